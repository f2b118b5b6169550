"""Liveness report over the pipeline's collaborators."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

Probe = Callable[[], object]


@dataclass(frozen=True)
class ComponentProbe:
    name: str
    probe: Probe
    required: bool = True  # a failing required component makes the system unhealthy


@dataclass(frozen=True)
class ComponentStatus:
    name: str
    up: bool
    latency_ms: float
    detail: str = ""


@dataclass(frozen=True)
class HealthReport:
    status: str  # "healthy" | "degraded" | "unhealthy"
    components: tuple[ComponentStatus, ...]

    def as_dict(self) -> dict[str, object]:
        return {
            "status": self.status,
            "components": {
                c.name: {"up": c.up, "latency_ms": round(c.latency_ms, 1), "detail": c.detail}
                for c in self.components
            },
        }


class CheckHealth:
    def __init__(self, probes: Sequence[ComponentProbe], clock: Callable[[], float] = time.perf_counter):
        self.probes = list(probes)
        self.clock = clock

    def _run(self, p: ComponentProbe) -> ComponentStatus:
        started = self.clock()
        try:
            result = p.probe()
        except Exception as ex:  # noqa: BLE001
            logger.warning("Health probe %s failed: %s", p.name, ex, extra={"component": p.name})
            return ComponentStatus(p.name, False, (self.clock() - started) * 1000, str(ex))
        detail = "" if result is None or result is True else str(result)
        return ComponentStatus(p.name, True, (self.clock() - started) * 1000, detail)

    def execute(self) -> HealthReport:
        statuses = tuple(self._run(p) for p in self.probes)
        required = {p.name for p in self.probes if p.required}
        if any(not s.up and s.name in required for s in statuses):
            status = "unhealthy"
        elif any(not s.up for s in statuses):
            status = "degraded"
        else:
            status = "healthy"
        return HealthReport(status=status, components=statuses)
