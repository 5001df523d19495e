from __future__ import annotations

import logging

from tenacity import RetryError

from app.core.config import settings
from app.core.exceptions import SectionGenerationFailed
from app.core.exceptions import SectionRejected
from app.models.prompt_models import SECTION_SPECS
from app.models.prompt_models import GenerationParams
from app.models.prompt_models import SectionKind
from app.models.prompt_models import SectionSpec
from app.services import llm
from app.services.llm import CompletionPort
from app.services.retry_policy import RetryPolicy
from app.services.section_validator import validate_with_spec

logger = logging.getLogger(__name__)


def build_section_message(spec: SectionSpec, topic: str, prior_value: str | None = None) -> str:
    """User message for one section, with a "do not repeat" hint when a prior value exists."""
    message = topic if spec.uses_topic else ""
    if prior_value:
        hint = f"(not {prior_value})"
        message = f"{message} {hint}" if message else hint
    return message


class SectionTaskService:
    """Produces one validated section, retrying rejected answers up to the policy bound."""

    def __init__(
        self,
        completion: CompletionPort | None = None,
        retry_policy: RetryPolicy | None = None,
        seed_conversation: bool = False,
    ):
        self.completion = completion or llm.complete
        self.retry_policy = retry_policy or RetryPolicy(
            settings.max_section_retries,
            retry_on=(SectionRejected,),
            label="section",
        )
        self.seed_conversation = seed_conversation

    async def _attempt(
        self,
        request_id: str,
        spec: SectionSpec,
        message: str,
        params: GenerationParams,
        prior_value: str | None,
    ) -> str:
        raw = await self.completion(
            spec.template_name,
            message,
            params,
            seed=self.seed_conversation,
            request_id=request_id,
        )
        outcome = validate_with_spec(raw, spec)
        if not outcome.accepted:
            raise SectionRejected(f"'{spec.kind.value}' output failed validation")
        if prior_value and outcome.cleaned == prior_value:
            raise SectionRejected(f"'{spec.kind.value}' output repeated the previous value")
        return outcome.cleaned

    async def run_section(
        self,
        request_id: str,
        kind: SectionKind,
        topic: str,
        params: GenerationParams,
        prior_value: str | None = None,
    ) -> str:
        """Generate and validate one section.

        Raises:
            SectionGenerationFailed: every attempt was rejected.
            UpstreamUnavailable: the provider failed; no retry is consumed.
        """
        spec = SECTION_SPECS[kind]
        message = build_section_message(spec, topic, prior_value)
        logger.debug("[%s] Generating section '%s'", request_id, kind.value)

        try:
            async for attempt in self.retry_policy.attempts(request_id):
                with attempt:
                    value = await self._attempt(request_id, spec, message, params, prior_value)
        except RetryError as e:
            attempts, reason = RetryPolicy.last_failure(e)
            logger.error("[%s] Section '%s' failed after %d attempts: %s", request_id, kind.value, attempts, reason)
            raise SectionGenerationFailed(kind.value, attempts, reason) from None

        logger.info("[%s] Section '%s' accepted (%d chars)", request_id, kind.value, len(value))
        return value
