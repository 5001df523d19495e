import logging
from typing import Any
from uuid import uuid4

from fastapi import HTTPException

from app.core.exceptions import InvalidInputError
from app.core.exceptions import PipelineError
from app.core.validation import validate_section_kind
from app.models.prompt_models import Artifact
from app.services.assembler import render_artifact
from app.services.regeneration_service import RegenerationService

__all__ = ["regenerate_section"]

logger = logging.getLogger(__name__)


async def regenerate_section(
    artifact: Artifact,
    section: str,
    request_id: str | None = None,
    service: RegenerationService | None = None,
) -> dict[str, Any]:
    """Regenerate one section and return the resulting prompt with its display rendering.

    A failed regeneration is not an HTTP error: the untouched prompt is returned
    with an ``error`` message so the client keeps the rest of the document.
    """
    request_id = request_id or str(uuid4())
    logger.info("[%s] Regeneration requested for section '%s'", request_id, section)

    try:
        kind = validate_section_kind(section)
        service = service or RegenerationService()
        result = await service.regenerate(request_id, artifact, kind)
    except InvalidInputError as e:
        logger.warning("[%s] Invalid regeneration request: %s", request_id, str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PipelineError as e:
        logger.error("[%s] Regeneration failed: %s", request_id, str(e), exc_info=False)
        raise HTTPException(status_code=500, detail=f"Regeneration failed: {str(e)}") from e

    return {
        "artifact": result.artifact.model_dump(mode="json"),
        "display": render_artifact(result.artifact),
        "error": str(result.error) if result.error else None,
    }
