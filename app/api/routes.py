import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from pydantic import Field as PydanticField

from app.core.config import settings
from app.core.security import verify_api_key

# Generation-logic helpers -------------------------------------------------
from app.generation_logic.regeneration_flow import regenerate_section
from app.generation_logic.report_finalization import _build_prompt_download
from app.generation_logic.stream_orchestrator import _stream_prompt_generation_logic
from app.models.prompt_models import Artifact

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class GeneratePayload(BaseModel):
    topic: str = PydanticField(..., description="The user's app idea.")
    model: str | None = PydanticField(default=None, description="Model alias or provider identifier.")
    temperature: float | None = PydanticField(default=None, description="Sampling temperature (0-2).")


class RegeneratePayload(BaseModel):
    artifact: Artifact = PydanticField(..., description="The previously generated prompt.")
    section: str = PydanticField(..., description="Name of the section to regenerate.")


@router.get("/models", dependencies=[Depends(verify_api_key)])
async def list_models() -> dict[str, Any]:
    """Model aliases accepted by /generate, with the defaults used when none is given."""
    return {
        "models": settings.available_models,
        "default_model": settings.model_id,
        "default_temperature": settings.default_temperature,
    }


@router.post("/generate", dependencies=[Depends(verify_api_key)])
async def generate(payload: GeneratePayload) -> StreamingResponse:
    """
    Generates a new prompt from the user's topic.
    Streams back NDJSON events representing the generation progress.

    Potential Stream Events:
    - `status`: Progress messages.
    - `data`: The generated prompt (`artifact`, `display` and `storage` renderings).
    - `error`: Indicates a failure; no partial prompt is ever sent.
    - `finished`: Indicates the stream has successfully completed.
    """
    request_id = str(uuid4())
    logger.info("[%s] /generate called (model=%s, temperature=%s)", request_id, payload.model, payload.temperature)

    return StreamingResponse(
        _stream_prompt_generation_logic(
            payload.topic,
            payload.model,
            payload.temperature,
            request_id_override=request_id,
        ),
        media_type="application/x-ndjson",
    )


@router.post("/regenerate", dependencies=[Depends(verify_api_key)])
async def regenerate(request: Request, payload: RegeneratePayload) -> dict[str, Any]:
    """Regenerates a single section of an existing prompt.

    Returns the updated prompt, or the unchanged prompt together with an
    `error` message when no new value could be produced.
    """
    request_id = str(uuid4())
    request.state.request_id = request_id
    return await regenerate_section(payload.artifact, payload.section, request_id=request_id)


@router.post("/download", dependencies=[Depends(verify_api_key)])
async def download(request: Request, artifact: Artifact) -> StreamingResponse:
    """Returns the prompt as a markdown attachment (plain line breaks, `## ` section headers)."""
    request_id = str(uuid4())
    request.state.request_id = request_id
    logger.info("[%s] Download requested", request_id)
    return await _build_prompt_download(artifact, request_id)
