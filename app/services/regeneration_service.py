from __future__ import annotations

import logging
from typing import NamedTuple

from app.core.exceptions import InvalidInputError
from app.core.exceptions import SectionGenerationFailed
from app.core.exceptions import UpstreamUnavailable
from app.core.validation import validate_artifact_inputs
from app.models.prompt_models import Artifact
from app.models.prompt_models import SectionKind
from app.services.section_service import SectionTaskService

logger = logging.getLogger(__name__)


class RegenerationResult(NamedTuple):
    artifact: Artifact
    error: SectionGenerationFailed | UpstreamUnavailable | None = None


class RegenerationService:
    """Re-runs a single section of an existing prompt without repeating its current value."""

    def __init__(self, section_service: SectionTaskService | None = None):
        self.section_service = section_service or SectionTaskService()

    async def regenerate(self, request_id: str, artifact: Artifact, kind: SectionKind) -> RegenerationResult:
        """Replace *kind* in a copy of *artifact*.

        On generation failure the original artifact comes back untouched along
        with the error, so callers can keep showing the rest of the prompt.

        Raises:
            InvalidInputError: *kind* is unknown or absent from the artifact,
                or its topic or params are not acceptable.
        """
        if not isinstance(kind, SectionKind):
            raise InvalidInputError(f"Unknown section: {kind}")
        if kind not in artifact.sections:
            raise InvalidInputError(f"Section '{kind.value}' is not part of this prompt")

        artifact = validate_artifact_inputs(artifact)
        prior_value = artifact.sections[kind]
        logger.info("[%s] Regenerating section '%s'", request_id, kind.value)
        try:
            value = await self.section_service.run_section(
                request_id,
                kind,
                artifact.topic,
                artifact.params,
                prior_value=prior_value,
            )
        except (SectionGenerationFailed, UpstreamUnavailable) as e:
            logger.error("[%s] Regeneration of '%s' failed: %s", request_id, kind.value, str(e))
            return RegenerationResult(artifact, e)

        return RegenerationResult(artifact.with_section(kind, value))
