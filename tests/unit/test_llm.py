from types import SimpleNamespace
from unittest.mock import AsyncMock
from unittest.mock import patch

import httpx
import pytest
from openai import APIError
from openai import OpenAIError

from app.core.exceptions import ConfigurationError
from app.core.exceptions import UpstreamUnavailable
from app.models.prompt_models import GenerationParams
from app.services.llm import MISSING_API_KEY
from app.services.llm import SEED_MESSAGES
from app.services.llm import _client_api_key
from app.services.llm import call_llm
from app.services.llm import complete
from app.services.llm import render_instruction

PARAMS = GenerationParams(model="test/model-123", temperature=0.3)


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class StatusError(APIError):
    def __init__(self, message, status_code):
        super().__init__(message, request=httpx.Request("POST", "https://llm.test/chat"), body=None)
        self.status_code = status_code


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_success(mock_client):
    mock_client.chat.completions.create = AsyncMock(return_value=_completion("  Hello, User!  "))

    result = await call_llm("system text", "App Idea: recipe tracker", PARAMS)

    assert result == "Hello, User!"
    call_args = mock_client.chat.completions.create.call_args
    assert call_args.kwargs["model"] == "test/model-123"
    assert call_args.kwargs["temperature"] == 0.3
    assert call_args.kwargs["messages"] == [
        {"role": "system", "content": "system text"},
        {"role": "user", "content": "App Idea: recipe tracker"},
    ]


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_seed_adds_priming_exchange(mock_client):
    mock_client.chat.completions.create = AsyncMock(return_value=_completion("ok"))

    await call_llm("system text", "msg", PARAMS, seed=True)

    messages = mock_client.chat.completions.create.call_args.kwargs["messages"]
    assert messages[1:-1] == SEED_MESSAGES
    assert messages[-1] == {"role": "user", "content": "msg"}


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_none_content_is_empty_string(mock_client):
    mock_client.chat.completions.create = AsyncMock(return_value=_completion(None))

    assert await call_llm("system", "msg", PARAMS) == ""


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_empty_choices_is_upstream_error(mock_client):
    mock_client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[]))

    with pytest.raises(UpstreamUnavailable):
        await call_llm("system", "msg", PARAMS)


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_openai_error_not_retried(mock_client):
    mock_error = OpenAIError("Simulated auth failure")
    mock_client.chat.completions.create.side_effect = mock_error

    with pytest.raises(UpstreamUnavailable) as excinfo:
        await call_llm("system", "msg", PARAMS)

    assert "OpenAI API error: Simulated auth failure" in str(excinfo.value)
    assert excinfo.value.__cause__ is mock_error
    mock_client.chat.completions.create.assert_called_once()


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_rate_limit_not_retried(mock_client):
    mock_client.chat.completions.create.side_effect = StatusError("Too Many Requests", status_code=429)

    with pytest.raises(UpstreamUnavailable):
        await call_llm("system", "msg", PARAMS)

    mock_client.chat.completions.create.assert_called_once()


@pytest.mark.asyncio
@patch("app.services.llm.client", new_callable=AsyncMock)
async def test_call_llm_gateway_error_retried(mock_client):
    mock_client.chat.completions.create.side_effect = [
        StatusError("Bad Gateway", status_code=502),
        _completion("recovered"),
    ]

    assert await call_llm("system", "msg", PARAMS) == "recovered"
    assert mock_client.chat.completions.create.call_count == 2


def test_render_instruction_loads_template():
    text = render_instruction("rules.jinja2")
    assert text
    assert text == text.strip()


def test_render_instruction_missing_template():
    with pytest.raises(ConfigurationError):
        render_instruction("does_not_exist.jinja2")


@pytest.mark.asyncio
async def test_complete_renders_instruction_and_calls_provider():
    with patch("app.services.llm.call_llm", new_callable=AsyncMock) as mock_call:
        mock_call.return_value = "raw text"

        result = await complete("app_name.jinja2", "App Idea: x", PARAMS, seed=True, request_id="req-1")

    assert result == "raw text"
    args = mock_call.call_args
    assert args.args[0] == render_instruction("app_name.jinja2")
    assert args.args[1:] == ("App Idea: x", PARAMS)
    assert args.kwargs == {"seed": True, "request_id": "req-1"}


def test_client_api_key_uses_configured_key():
    with patch("app.services.llm.settings.openrouter_api_key", "sk-or-test"):
        assert _client_api_key() == "sk-or-test"


def test_client_api_key_warns_when_unset():
    with patch("app.services.llm.settings.openrouter_api_key", None), patch("app.services.llm.logger") as mock_logger:
        assert _client_api_key() == MISSING_API_KEY
    mock_logger.warning.assert_called_once()
    assert "OPENROUTER_API_KEY is not set" in mock_logger.warning.call_args.args[0]
