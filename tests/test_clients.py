"""Tests for the reasoning clients and the X publishing client."""

from unittest.mock import MagicMock

import pytest
import requests

from factcheck_agent.errors import PublishError, PublishForbidden, PublishRateLimited, ValidationError
from factcheck_agent.output.x_client import XClient
from factcheck_agent.processors.ai import create_ai_client
from factcheck_agent.processors.ai.gemini import GeminiClient
from factcheck_agent.processors.ai.ollama import OllamaClient


def _json_response(payload: dict, status: int = 200) -> MagicMock:
    resp = MagicMock(status_code=status, text=str(payload))
    resp.json.return_value = payload
    return resp


class TestAIFactory:
    def test_unsupported_backend(self) -> None:
        with pytest.raises(ValidationError):
            create_ai_client(backend="watson")

    def test_gemini_requires_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        with pytest.raises(ValidationError):
            create_ai_client(backend="gemini")

    def test_ollama_backend(self) -> None:
        assert isinstance(create_ai_client(backend="ollama"), OllamaClient)


class TestGeminiClient:
    def test_joins_candidate_parts(self) -> None:
        session = MagicMock()
        session.post.return_value = _json_response(
            {"candidates": [{"content": {"parts": [{"text": '{"credibilityScore": '}, {"text": "0.7}"}]}}]}
        )
        client = GeminiClient(api_key="k", model="m", session=session)
        assert client.generate("prompt") == '{"credibilityScore": 0.7}'
        assert session.post.call_args.kwargs["params"] == {"key": "k"}

    def test_no_candidates_returns_empty_text(self) -> None:
        session = MagicMock()
        session.post.return_value = _json_response({"candidates": []})
        assert GeminiClient(api_key="k", session=session).generate("p") == ""


class TestOllamaClient:
    def test_requests_json_format(self) -> None:
        session = MagicMock()
        session.post.return_value = _json_response({"response": ' {"a": 1} '})
        client = OllamaClient(host="http://ollama:11434/", model="llama", session=session)
        assert client.generate("p") == '{"a": 1}'
        assert session.post.call_args.args[0] == "http://ollama:11434/api/generate"
        assert session.post.call_args.kwargs["json"]["format"] == "json"


class TestXClient:
    def _client(self, session: MagicMock) -> XClient:
        return XClient(token="t", api_base="https://x.example/2", session=session)

    def test_publish_returns_post_id(self) -> None:
        session = MagicMock()
        session.post.return_value = _json_response({"data": {"id": "1849"}}, status=201)
        assert self._client(session).publish("hello") == "1849"
        kwargs = session.post.call_args.kwargs
        assert kwargs["json"] == {"text": "hello"}
        assert kwargs["headers"]["Authorization"] == "Bearer t"

    @pytest.mark.parametrize(
        "status, error",
        [(429, PublishRateLimited), (401, PublishForbidden), (403, PublishForbidden), (500, PublishError)],
    )
    def test_status_mapping(self, status: int, error: type) -> None:
        session = MagicMock()
        session.post.return_value = _json_response({}, status=status)
        with pytest.raises(error) as exc_info:
            self._client(session).publish("hello")
        assert exc_info.value.status == status

    def test_transport_error(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("reset")
        with pytest.raises(PublishError):
            self._client(session).publish("hello")

    def test_missing_id_is_an_error(self) -> None:
        session = MagicMock()
        session.post.return_value = _json_response({"data": {}}, status=201)
        with pytest.raises(PublishError):
            self._client(session).publish("hello")

    def test_dry_run_does_not_post(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("X_ACCESS_TOKEN", raising=False)
        monkeypatch.delenv("TWITTER_ACCESS_TOKEN", raising=False)
        session = MagicMock()
        client = XClient(dry_run=True, session=session)
        assert client.publish("hello") == "dry-run"
        session.post.assert_not_called()

    def test_token_required_outside_dry_run(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("X_ACCESS_TOKEN", raising=False)
        monkeypatch.delenv("TWITTER_ACCESS_TOKEN", raising=False)
        with pytest.raises(ValidationError):
            XClient()
