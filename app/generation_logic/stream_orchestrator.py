import json
import logging
from typing import Any
from uuid import uuid4

from app.core.exceptions import InvalidInputError
from app.core.validation import validate_params
from app.core.validation import validate_topic
from app.models.prompt_models import GenerationRequest
from app.services.pipeline import PipelineService

__all__ = [
    "_create_stream_event",
    "_stream_prompt_generation_logic",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# NDJSON event helper
# ---------------------------------------------------------------------------


def _create_stream_event(
    event_type: str,
    message: str | None = None,
    payload: dict[str, Any] | None = None,
) -> str:
    """Serialize an event dict to an NDJSON line."""
    event: dict[str, Any] = {"type": event_type}
    if message is not None:
        event["message"] = message
    if payload is not None:
        event["payload"] = payload
    return json.dumps(event) + "\n"


# ---------------------------------------------------------------------------
# Main streaming generation orchestrator
# ---------------------------------------------------------------------------


async def _stream_prompt_generation_logic(
    topic: str,
    model: str | None = None,
    temperature: float | None = None,
    request_id_override: str | None = None,
    pipeline: PipelineService | None = None,
):
    """Validate the request, run the pipeline and yield NDJSON events for the client."""
    request_id = request_id_override or str(uuid4())
    logger.info("[%s] Initiating streaming prompt generation", request_id)

    try:
        # ------------------------------------------------------------------
        # 1. Validate input before any generation starts
        # ------------------------------------------------------------------
        request = GenerationRequest(
            topic=validate_topic(topic),
            params=validate_params(model, temperature),
        )
        yield _create_stream_event("status", message=f"Request accepted: {request.request_log}")

        # ------------------------------------------------------------------
        # 2. Streaming pipeline
        # ------------------------------------------------------------------
        pipeline = pipeline or PipelineService()
        async for update_json_str in pipeline.run(request_id, request):
            update_data = json.loads(update_json_str)
            if update_data.get("type") == "error":
                logger.error("[%s] Error from pipeline stream: %s", request_id, update_data.get("message"))
                yield _create_stream_event("error", message=update_data.get("message", "Unknown pipeline error"))
                return
            if update_data.get("type") == "data":
                yield _create_stream_event(
                    "data",
                    message="Prompt generated.",
                    payload=update_data.get("payload"),
                )
            else:
                yield _create_stream_event(
                    update_data.get("type", "status"),
                    message=update_data.get("message", "Pipeline update"),
                )

        yield _create_stream_event("finished", message="Stream completed successfully.")

    # ----------------------------------------------------------------------
    # Error handling
    # ----------------------------------------------------------------------
    except InvalidInputError as ie:
        logger.warning("[%s] Invalid input: %s", request_id, str(ie))
        yield _create_stream_event("error", message=str(ie))
    except Exception as e:  # General catch-all MUST be last
        logger.exception("[%s] Unexpected error during prompt generation stream: %s", request_id, str(e))
        yield _create_stream_event("error", message=f"An unexpected server error occurred: {str(e)}")
    finally:
        logger.info("[%s] Stream generation logic finished.", request_id)
