from collections.abc import Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any, cast

from contract_lens.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from contract_lens.domain.errors import GenerationFailed


@dataclass
class OpenAIChatAdapter(LLMPort):
    """Any OpenAI-compatible chat endpoint (OpenAI, vLLM, Ollama, HF router)."""

    base_url: str  # e.g. "http://localhost:8000/v1"
    api_key: str = "EMPTY"
    model: str = "meta-llama/Meta-Llama-3.1-8B-Instruct"
    timeout_s: float = 60.0

    def __post_init__(self) -> None:
        # Defer import of OpenAI to first use to avoid hard dependency in tests
        self._client: Any | None = None

    def _ensure_client(self) -> Any:
        if self._client is None:
            module = import_module("openai")
            OpenAI = module.OpenAI
            # retries are owned by RetryPolicy, not the SDK
            self._client = OpenAI(
                base_url=self.base_url, api_key=self.api_key, timeout=self.timeout_s, max_retries=0
            )
        return self._client

    def chat(
        self, messages: Sequence[ChatMessage], temperature: float = 0.2, max_tokens: int = 1024
    ) -> LLMResponse:
        try:
            client = self._ensure_client()
            payload: Any = [{"role": m.role, "content": m.content} for m in messages]
            resp: Any = client.chat.completions.create(
                model=self.model,
                messages=cast(Any, payload),
                temperature=temperature,
                max_tokens=max_tokens,
            )
            choice = resp.choices[0]
            usage = getattr(resp, "usage", None)
            return LLMResponse(
                text=choice.message.content or "",
                finish_reason=choice.finish_reason or "stop",
                usage_tokens=getattr(usage, "total_tokens", None),
            )
        except Exception as ex:  # noqa: BLE001
            # Translate external errors to domain-specific errors
            raise GenerationFailed(f"LLM communication failed: {ex}") from ex

    def ping(self) -> bool:
        try:
            self._ensure_client().models.list()
        except Exception as ex:  # noqa: BLE001
            raise GenerationFailed(f"LLM endpoint unreachable: {ex}") from ex
        return True
