import logging
from typing import Any
from typing import Protocol
from uuid import uuid4

import httpx
import jinja2
from openai import AsyncOpenAI
from openai import OpenAIError
from tenacity import RetryCallState
from tenacity import retry
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.core.exceptions import UpstreamUnavailable
from app.models.prompt_models import GenerationParams

# Configure module logger
logger = logging.getLogger(__name__)


class CompletionPort(Protocol):
    """Anything that turns (instruction template, user message, params) into raw text.

    Implementations raise UpstreamUnavailable when the provider cannot answer.
    """

    async def __call__(
        self,
        instruction: str,
        message: str,
        params: GenerationParams,
        *,
        seed: bool = False,
        request_id: str | None = None,
    ) -> str: ...


# --- Reusable Jinja2 Environment ---
# Instruction contexts are Jinja2 templates, one per section kind
env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(settings.prompt_dir),
    autoescape=False,
    keep_trailing_newline=False,
)
logger.info("Jinja2 environment initialized for prompt templates at: %s", settings.prompt_dir)

# Short priming exchange prepended when a call asks for a seeded conversation
SEED_MESSAGES: list[dict[str, str]] = [
    {"role": "user", "content": "Answer with the requested text only, without greetings or commentary."},
    {"role": "assistant", "content": "Understood."},
]


# ---------------------------------------------------------------
# OpenAI-compatible client with required headers
# ---------------------------------------------------------------
timeout_config = httpx.Timeout(
    settings.LLM_CONNECT_TIMEOUT,
    read=settings.LLM_READ_TIMEOUT,
)

MISSING_API_KEY = "missing-api-key"


def _client_api_key() -> str:
    """Return the configured OpenRouter key, or a placeholder the provider will reject."""
    if settings.openrouter_api_key:
        return settings.openrouter_api_key
    logger.warning("OPENROUTER_API_KEY is not set; every provider call will fail authentication")
    return MISSING_API_KEY


client = AsyncOpenAI(
    base_url=settings.llm_base_url,
    api_key=_client_api_key(),
    default_headers={
        "X-Title": "prompt-forge",
    },
    timeout=timeout_config,
    max_retries=0,  # Gateway retries are handled by tenacity below
)


def render_instruction(template_name: str, **context: Any) -> str:
    """Render the instruction context for one section kind."""
    try:
        return env.get_template(template_name).render(**context).strip()
    except jinja2.TemplateNotFound:
        logger.error("Prompt template not found: %s", template_name)
        raise ConfigurationError(f"Prompt template '{template_name}' not found.") from None


# ---------------------------------------------------------------
# Helper predicate for tenacity retry
# ---------------------------------------------------------------


def _should_retry_llm_call(retry_state: RetryCallState) -> bool:
    """Retry only on gateway errors; auth failures and rate limits surface at once."""
    if not retry_state.outcome:
        return False

    exc = retry_state.outcome.exception()
    if not exc:
        return False

    # Unwrap UpstreamUnavailable to get to the original cause (e.g., APIStatusError)
    actual_exception = exc.__cause__ if isinstance(exc, UpstreamUnavailable) and exc.__cause__ else exc

    status = getattr(actual_exception, "status", None) or getattr(actual_exception, "status_code", None)
    if status in {502, 503, 504}:
        logger.debug("Retryable gateway status %s detected. Retrying...", status)
        return True
    return False


@retry(
    wait=wait_exponential(multiplier=1, min=1, max=4),
    stop=stop_after_attempt(settings.llm_transport_attempts),
    retry=_should_retry_llm_call,
    reraise=True,
)  # type: ignore
async def call_llm(
    system_prompt: str,
    message: str,
    params: GenerationParams,
    seed: bool = False,
    request_id: str | None = None,
) -> str:
    """Send one chat completion and return the stripped text of the first choice."""
    request_id = request_id or str(uuid4())
    logger.info(
        "[%s] Making LLM API call with model: %s (temperature %.2f)",
        request_id,
        params.model,
        params.temperature,
    )

    messages: list[dict[str, str]] = [{"role": "system", "content": system_prompt}]
    if seed:
        messages.extend(SEED_MESSAGES)
    messages.append({"role": "user", "content": message})

    try:
        rsp = await client.chat.completions.create(
            model=params.model,
            messages=messages,
            max_tokens=settings.llm_max_tokens,
            temperature=params.temperature,
            timeout=timeout_config,
        )

        if not rsp or not getattr(rsp, "choices", None):
            logger.error("[%s] Invalid response structure from LLM API: %s", request_id, str(rsp))
            raise UpstreamUnavailable(f"Invalid response structure from LLM API: {str(rsp)}")

        first_choice = rsp.choices[0]
        if getattr(first_choice, "message", None) is None:
            logger.error("[%s] Missing 'message' in LLM API response: %s", request_id, str(first_choice))
            raise UpstreamUnavailable("Missing 'message' in LLM API response")

        content = (first_choice.message.content or "").strip()
        logger.debug("[%s] LLM response received, length: %d chars", request_id, len(content))
        return content
    except UpstreamUnavailable:
        raise
    except OpenAIError as e:
        logger.error("[%s] OpenAI API error: %s", request_id, str(e), exc_info=True)
        raise UpstreamUnavailable(f"OpenAI API error: {str(e)}") from e
    except Exception as e:
        logger.exception("[%s] Unexpected error in LLM call", request_id)
        raise UpstreamUnavailable(f"Unexpected error in LLM call: {str(e)}") from e


async def complete(
    instruction: str,
    message: str,
    params: GenerationParams,
    *,
    seed: bool = False,
    request_id: str | None = None,
) -> str:
    """Default CompletionPort: render the instruction template and query the provider."""
    system_prompt = render_instruction(instruction)
    return await call_llm(system_prompt, message, params, seed=seed, request_id=request_id)
