import sys
import types
from dataclasses import replace

import pytest

from contract_lens.application.ports.llm_port import ChatMessage, LLMResponse
from contract_lens.domain.errors import GenerationFailed, IndexUnavailable, ValidationError
from contract_lens.domain.models import Severity
from contract_lens.domain.services.text_normalization import build_extracted_text
from contract_lens.infrastructure.llm.llm_risk_assessor import LLMRiskAssessor, parse_assessment
from contract_lens.infrastructure.llm.openai_chat_adapter import OpenAIChatAdapter
from contract_lens.infrastructure.resilience.resilient_adapters import ResilientLLM, ResilientVectorIndex
from contract_lens.infrastructure.resilience.retry import RetryPolicy

FAST = RetryPolicy(sleep=lambda _: None)


def _fake_openai(answer="Hello", error=None):
    created = {}

    class Completions:
        def create(self, **kwargs):
            created.update(kwargs)
            if error is not None:
                raise error
            message = types.SimpleNamespace(content=answer)
            return types.SimpleNamespace(
                choices=[types.SimpleNamespace(message=message, finish_reason="stop")],
                usage=types.SimpleNamespace(total_tokens=12),
            )

    class OpenAI:
        def __init__(self, **kwargs):
            created["client_kwargs"] = kwargs
            self.chat = types.SimpleNamespace(completions=Completions())
            self.models = types.SimpleNamespace(list=lambda: [])

    return types.SimpleNamespace(OpenAI=OpenAI), created


class TestOpenAIChatAdapter:
    def test_chat_maps_messages_and_usage(self, monkeypatch):
        fake, created = _fake_openai(answer="Draft text")
        monkeypatch.setitem(sys.modules, "openai", fake)
        adapter = OpenAIChatAdapter(base_url="http://llm:8000/v1", model="m")
        resp = adapter.chat([ChatMessage("system", "be brief"), ChatMessage("user", "hi")], max_tokens=50)
        assert resp.text == "Draft text"
        assert resp.usage_tokens == 12
        assert created["messages"][0] == {"role": "system", "content": "be brief"}
        assert created["max_tokens"] == 50
        assert created["client_kwargs"]["max_retries"] == 0
        assert adapter.ping()

    def test_generate_uses_chat(self, monkeypatch):
        fake, created = _fake_openai(answer="ok")
        monkeypatch.setitem(sys.modules, "openai", fake)
        adapter = OpenAIChatAdapter(base_url="http://llm:8000/v1")
        assert adapter.generate("prompt", system="sys") == "ok"
        assert [m["role"] for m in created["messages"]] == ["system", "user"]

    def test_errors_become_generation_failed(self, monkeypatch):
        fake, _ = _fake_openai(error=RuntimeError("boom"))
        monkeypatch.setitem(sys.modules, "openai", fake)
        with pytest.raises(GenerationFailed):
            OpenAIChatAdapter(base_url="http://llm:8000/v1").chat([ChatMessage("user", "hi")])


class ScriptedLLM:
    model = "scripted"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def chat(self, messages, temperature=0.2, max_tokens=1024):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return LLMResponse(text=outcome)


class TestResilientLLM:
    def test_one_retry_on_transient_error(self):
        inner = ScriptedLLM(TimeoutError("timed out"), "second try")
        llm = ResilientLLM(inner, replace(FAST, max_attempts=2))
        assert llm.chat([ChatMessage("user", "x")]).text == "second try"
        assert inner.calls == 2
        assert llm.model == "scripted"

    def test_exhaustion_is_generation_failed(self):
        inner = ScriptedLLM(TimeoutError("t1"), TimeoutError("t2"), "never")
        with pytest.raises(GenerationFailed):
            ResilientLLM(inner, replace(FAST, max_attempts=2)).chat([ChatMessage("user", "x")])
        assert inner.calls == 2


class TestResilientVectorIndex:
    def test_transient_errors_retried_then_wrapped(self):
        class Flaky:
            calls = 0

            def count(self, source_id=None):
                Flaky.calls += 1
                raise ConnectionError("refused")

        with pytest.raises(IndexUnavailable):
            ResilientVectorIndex(Flaky(), FAST).count()
        assert Flaky.calls == 3

    def test_domain_errors_pass_through(self):
        class Strict:
            def query(self, query_embedding, k, filter=None):
                raise ValidationError("k must be > 0")

        with pytest.raises(ValidationError):
            ResilientVectorIndex(Strict(), FAST).query(None, 0)


CONTRACT = build_extracted_text(
    "c1", "c1", ["The Consultant shall work 80 hours per week.", "Payment is due on completion."]
)


class TestRiskAssessor:
    def test_parses_json_inside_prose(self):
        raw = (
            'Here is my review:\n{"risk_adjustment": 8, "summary": "Heavy workload.", '
            '"concerns": [{"quote": "80 hours per week", "explanation": "Excessive hours", '
            '"severity": "CRITICAL"}]}\nThanks.'
        )
        result = LLMRiskAssessor(ScriptedLLM(raw)).assess(CONTRACT, [])
        assert result.risk_adjustment == 8
        assert result.model == "scripted"
        (concern,) = result.concerns
        assert concern.rule_id == "model_concern_1"
        assert concern.severity is Severity.CRITICAL
        assert concern.source == "model"
        assert CONTRACT.text[concern.start : concern.end] == "80 hours per week"

    def test_unknown_severity_and_missing_quote(self):
        parsed = parse_assessment('{"concerns": [{"quote": "", "severity": "urgent"}]}')
        assert parsed.concerns[0].severity is Severity.WARNING
        assert parsed.risk_adjustment == 0.0

    @pytest.mark.parametrize("raw", ["no json here", '{"risk_adjustment": "a lot"}', "{broken"])
    def test_unusable_answers_raise_generation_failed(self, raw):
        with pytest.raises(GenerationFailed):
            parse_assessment(raw)

    def test_llm_errors_become_generation_failed(self):
        with pytest.raises(GenerationFailed):
            LLMRiskAssessor(ScriptedLLM(RuntimeError("down"))).assess(CONTRACT, [])
