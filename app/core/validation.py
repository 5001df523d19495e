"""Validation of user input before any generation starts."""

import logging

from app.core.config import settings
from app.core.exceptions import InvalidInputError
from app.models.prompt_models import Artifact
from app.models.prompt_models import GenerationParams
from app.models.prompt_models import SectionKind

logger = logging.getLogger(__name__)


def validate_topic(raw_topic: str | None) -> str:
    """Check the user's topic and return it with the configured prefix.

    Raises:
        InvalidInputError: if the topic is empty or longer than ``settings.max_topic_chars``.
    """
    topic = (raw_topic or "").strip()
    if not topic:
        raise InvalidInputError("No App Idea provided")
    if len(topic) > settings.max_topic_chars:
        raise InvalidInputError(f"App Idea too long (max {settings.max_topic_chars} characters)")
    return f"{settings.topic_prefix}{topic}"


def validate_params(model: str | None, temperature: float | None) -> GenerationParams:
    """Resolve the requested model and temperature into per-request generation params."""
    resolved = settings.resolve_model(model)
    if resolved is None:
        logger.warning("Rejected unknown model selection: %s", model)
        raise InvalidInputError(f"Unknown model: {model}")
    if temperature is None:
        temperature = settings.default_temperature
    if not 0.0 <= temperature <= 2.0:
        raise InvalidInputError("Temperature must be between 0 and 2")
    return GenerationParams(model=resolved, temperature=temperature)


def validate_section_kind(section: str | None) -> SectionKind:
    """Map a section name from a regeneration request to a SectionKind."""
    if not section:
        raise InvalidInputError("No section to regenerate")
    try:
        return SectionKind(section)
    except ValueError as e:
        raise InvalidInputError(f"Unknown section: {section}") from e


def validate_artifact_inputs(artifact: Artifact) -> Artifact:
    """Re-check the topic and params a client sent back with a stored prompt.

    Returns the artifact with its params resolved against the configured models.

    Raises:
        InvalidInputError: if the topic or the params would be rejected by a fresh request.
    """
    topic = artifact.topic.removeprefix(settings.topic_prefix)
    validate_topic(topic)
    params = validate_params(artifact.params.model, artifact.params.temperature)
    if params == artifact.params:
        return artifact
    return artifact.model_copy(update={"params": params})
