"""Renders an assembled prompt as a downloadable markdown file."""

import logging

from fastapi.responses import StreamingResponse

from app.core.exceptions import PipelineError
from app.models.prompt_models import Artifact
from app.services.assembler import render_artifact

__all__ = [
    "_build_prompt_download",
    "DEFAULT_PROMPT_FILENAME",
    "MARKDOWN_MEDIA_TYPE",
]

logger = logging.getLogger(__name__)

# Constants used for the downloaded prompt ----------------------------------------------
DEFAULT_PROMPT_FILENAME = "prompt.md"
MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"


async def _build_prompt_download(artifact: Artifact, request_id: str) -> StreamingResponse:
    """Stream the storage rendering of *artifact* back to the client as an attachment."""
    try:
        document = render_artifact(artifact, storage=True)
        logger.info("[%s] Prompt download ready (%d chars)", request_id, len(document))
        return StreamingResponse(
            iter([document.encode("utf-8")]),
            media_type=MARKDOWN_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={DEFAULT_PROMPT_FILENAME}"},
        )
    except Exception as e:
        logger.error("[%s] Failed to render prompt for download: %s", request_id, str(e), exc_info=True)
        raise PipelineError("An unexpected error occurred while rendering the prompt.") from e
