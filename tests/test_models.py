"""
Tests for credential rotation, retry handling and the Gemini client.
"""

import asyncio
from types import SimpleNamespace

import pytest

from examforge.config import Settings
from examforge.errors import ConfigurationError, ModelResponseError
from examforge.models import CredentialRotator, GeminiClient
from examforge.models._utils import _is_retryable, call_with_retry, strip_code_fences


class TestCredentialRotator:

    def test_next_credential_when_called_repeatedly_then_round_robin(self):
        rotator = CredentialRotator(["k1", "k2", "k3"])

        assert [rotator.next_credential() for _ in range(7)] == [
            "k1", "k2", "k3", "k1", "k2", "k3", "k1",
        ]

    def test_rotators_when_separate_instances_then_independent_state(self):
        first = CredentialRotator(["k1", "k2"])
        second = CredentialRotator(["k1", "k2"])

        first.next_credential()

        assert second.next_credential() == "k1"

    def test_next_credential_when_empty_pool_then_configuration_error(self):
        rotator = CredentialRotator([])

        assert not rotator
        with pytest.raises(ConfigurationError):
            rotator.next_credential()


class TestRetryHelpers:

    def test_strip_code_fences_when_fenced_then_removed(self):
        assert strip_code_fences('```json\n[1]\n```') == "[1]\n"

    def test_is_retryable_when_value_error_then_false(self):
        assert _is_retryable(ValueError("bad")) is False
        assert _is_retryable(TimeoutError("slow")) is True

    def test_is_retryable_when_client_status_code_then_only_429_retried(self):
        class HttpError(Exception):
            def __init__(self, code):
                self.status_code = code

        assert _is_retryable(HttpError(400)) is False
        assert _is_retryable(HttpError(429)) is True
        assert _is_retryable(HttpError(503)) is True

    def test_call_with_retry_when_single_attempt_then_error_raised_once(self):
        calls = []

        async def failing():
            calls.append(1)
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            asyncio.run(call_with_retry(failing, max_retries=1))
        assert len(calls) == 1

    def test_call_with_retry_when_transient_failure_then_retried(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError("reset")
            return "ok"

        assert asyncio.run(call_with_retry(flaky, max_retries=3, base_delay=0)) == "ok"
        assert len(calls) == 2


def _response(text="[]", candidates=True):
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(finish_reason="STOP")] if candidates else [],
        usage_metadata=SimpleNamespace(prompt_token_count=11, candidates_token_count=7),
    )


class _FakeGenai:
    """Stands in for google.genai.Client: records which key each call used."""

    def __init__(self, api_key, calls, result=None, delay=0.0):
        self.api_key = api_key

        async def generate_content(model, contents, config):
            calls.append((self.api_key, model, contents))
            if delay:
                await asyncio.sleep(delay)
            return result if result is not None else _response()

        self.aio = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))


class TestGeminiClient:

    def _client(self, keys, calls, created=None, **kwargs):
        result = kwargs.pop("result", None)
        delay = kwargs.pop("delay", 0.0)

        def factory(key):
            if created is not None:
                created.append(key)
            return _FakeGenai(key, calls, result=result, delay=delay)

        return GeminiClient(CredentialRotator(keys), model_name="gemini-test", client_factory=factory, **kwargs)

    def test_generate_text_when_called_then_keys_rotate_and_clients_cached(self):
        calls, created = [], []
        client = self._client(["k1", "k2"], calls, created)

        async def three_calls():
            for _ in range(3):
                await client.generate_text("prompt")

        asyncio.run(three_calls())

        assert [c[0] for c in calls] == ["k1", "k2", "k1"]
        assert created == ["k1", "k2"]
        assert calls[0][1:] == ("gemini-test", ["prompt"])

    def test_generate_text_when_usage_reported_then_tokens_accumulated(self):
        client = self._client(["k1"], [])

        asyncio.run(client.generate_text("prompt"))
        asyncio.run(client.generate_text("prompt"))

        assert client.get_token_usage() == (22, 14)

    def test_generate_text_when_slow_then_timeout_error(self):
        client = self._client(["k1"], [], timeout_seconds=0.01, delay=1.0)

        with pytest.raises(TimeoutError, match="timed out"):
            asyncio.run(client.generate_text("prompt"))

    def test_generate_text_when_empty_reply_then_model_response_error(self):
        client = self._client(["k1"], [], result=_response(text=""))

        with pytest.raises(ModelResponseError, match="empty response"):
            asyncio.run(client.generate_text("prompt"))

    def test_generate_text_when_no_candidates_then_model_response_error(self):
        client = self._client(["k1"], [], result=_response(candidates=False))

        with pytest.raises(ModelResponseError, match="No valid response"):
            asyncio.run(client.generate_text("prompt"))

    def test_from_settings_when_settings_given_then_configured_from_them(self):
        settings = Settings(
            GEMINI_API_KEYS=["a", "b"],
            GEMINI_MODEL="gemini-x",
            GEMINI_REQUEST_TIMEOUT_MS=5000,
            GEMINI_MAX_RETRIES=2,
        )

        client = GeminiClient.from_settings(settings)

        assert client.model_name == "gemini-x"
        assert client.timeout_seconds == 5.0
        assert client.max_retries == 2
        assert len(client.rotator) == 2
