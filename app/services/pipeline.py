from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from tenacity import RetryError

from app.core.config import settings
from app.core.exceptions import BatchGenerationFailed
from app.core.exceptions import DocumentTooShort
from app.core.exceptions import PipelineError
from app.core.exceptions import SectionGenerationFailed
from app.core.exceptions import UpstreamUnavailable
from app.models.prompt_models import Artifact
from app.models.prompt_models import GenerationRequest
from app.models.prompt_models import SectionKind
from app.models.prompt_models import SectionResult
from app.services.assembler import document_sections
from app.services.assembler import render_artifact
from app.services.assembler import render_storage
from app.services.assembler import word_count
from app.services.retry_policy import RetryPolicy
from app.services.section_service import SectionTaskService

# Configure module logger
logger = logging.getLogger(__name__)


class PipelineService:
    """Generates every section of a prompt concurrently and accepts only complete documents."""

    def __init__(
        self,
        section_service: SectionTaskService | None = None,
        batch_policy: RetryPolicy | None = None,
        min_document_words: int | None = None,
    ):
        logger.info("Initializing PipelineService")
        self.section_service = section_service or SectionTaskService()
        self.batch_policy = batch_policy or RetryPolicy(
            settings.max_batch_retries,
            retry_on=(SectionGenerationFailed, DocumentTooShort),
            label="batch",
        )
        self.min_document_words = settings.min_document_words if min_document_words is None else min_document_words

    async def _run_task(self, request_id: str, kind: SectionKind, request: GenerationRequest) -> SectionResult:
        # Each task owns its slot until the join hands it to the batch
        result = SectionResult(kind=kind)
        try:
            result.value = await self.section_service.run_section(
                request_id,
                kind,
                request.topic,
                request.params,
            )
        except PipelineError as e:
            result.error = e
        return result

    async def _run_batch(self, request_id: str, request: GenerationRequest) -> dict[SectionKind, str]:
        """One attempt at the whole document, starting from empty slots."""
        outcomes = await asyncio.gather(
            *(self._run_task(request_id, kind, request) for kind in request.kinds),
            return_exceptions=True,
        )

        results: list[SectionResult] = []
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)

        errors = [r.error for r in results if r.error is not None]
        if errors:
            # Provider and configuration failures end the run; rejected sections restart the batch
            fatal = next((e for e in errors if not isinstance(e, SectionGenerationFailed)), None)
            if fatal is not None:
                logger.error("[%s] Batch aborted: %s", request_id, fatal)
                raise fatal
            logger.warning("[%s] %d section(s) failed in this batch", request_id, len(errors))
            raise errors[0]

        sections = {r.kind: r.value for r in results if r.ok}
        words = word_count(render_storage(document_sections(sections)))
        if words < self.min_document_words:
            raise DocumentTooShort(f"Prompt is too short ({words} < {self.min_document_words} words)")
        logger.debug("[%s] Batch produced a %d-word document", request_id, words)
        return sections

    async def generate(self, request_id: str, request: GenerationRequest) -> Artifact:
        """Run batches until one yields an acceptable document.

        Raises:
            BatchGenerationFailed: the outer retry bound was exhausted.
            UpstreamUnavailable: the provider failed; the run stops immediately.
        """
        logger.info("[%s] Generating %d sections: %s", request_id, len(request.kinds), request.request_log)
        try:
            async for attempt in self.batch_policy.attempts(request_id):
                with attempt:
                    sections = await self._run_batch(request_id, request)
        except RetryError as e:
            attempts, reason = RetryPolicy.last_failure(e)
            logger.error("[%s] Giving up after %d batch attempts: %s", request_id, attempts, reason)
            raise BatchGenerationFailed(attempts, reason) from None

        logger.info("[%s] Prompt generated successfully", request_id)
        return Artifact(
            topic=request.topic,
            params=request.params,
            sections=sections,
            request_log=request.request_log,
        )

    async def run(self, request_id: str, request: GenerationRequest) -> AsyncGenerator[str, None]:
        """Stream the generation as JSON events: status updates, then data or error."""
        try:
            yield json.dumps(
                {
                    "type": "status",
                    "message": f"Generating {len(request.kinds)} sections...",
                }
            )
            artifact = await self.generate(request_id, request)
            yield json.dumps(
                {
                    "type": "data",
                    "payload": {
                        "artifact": artifact.model_dump(mode="json"),
                        "display": render_artifact(artifact),
                        "storage": render_artifact(artifact, storage=True),
                    },
                }
            )
        except UpstreamUnavailable as e:
            logger.error("[%s] Pipeline run failed due to provider error: %s", request_id, str(e), exc_info=False)
            yield json.dumps({"type": "error", "message": f"LLM Service Error: {str(e)}"})
        except PipelineError as e:
            logger.error("[%s] Pipeline run failed: %s", request_id, str(e), exc_info=False)
            yield json.dumps({"type": "error", "message": str(e)})
        except Exception as e:
            logger.exception("[%s] Pipeline run failed with unexpected error", request_id)
            yield json.dumps({"type": "error", "message": f"An unexpected problem occurred in the pipeline: {str(e)}"})
        finally:
            logger.info("[%s] Pipeline processing finished.", request_id)
