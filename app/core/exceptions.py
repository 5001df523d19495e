"""Core custom exceptions for the application."""


class PipelineError(Exception):
    """Base exception for pipeline-related errors."""


class ConfigurationError(PipelineError):
    """Exception for configuration-related errors (e.g., missing prompt templates, invalid settings)."""


class InvalidInputError(PipelineError):
    """Raised before any generation starts when the user input cannot be used."""


class UpstreamUnavailable(PipelineError):
    """The completion provider failed (auth, rate limit, network). Never retried by the pipeline."""


class SectionGenerationFailed(PipelineError):
    """A single section could not be produced within its retry bound."""

    def __init__(self, kind: str, attempts: int, reason: str | None = None):
        self.kind = kind
        self.attempts = attempts
        self.reason = reason
        message = f"Could not produce a valid '{kind}' section after {attempts} attempts"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BatchGenerationFailed(PipelineError):
    """No batch produced an acceptable document within the outer retry bound."""

    def __init__(self, attempts: int, reason: str | None = None):
        self.attempts = attempts
        self.reason = reason
        message = f"Failed to generate a valid prompt after {attempts} attempts"
        if reason:
            message = f"{message} (last failure: {reason})"
        super().__init__(message)


# Internal retry signals. They drive tenacity and never reach callers.
class SectionRejected(PipelineError):
    """A provider answer failed validation or repeated the previous value."""


class DocumentTooShort(PipelineError):
    """The assembled document fell below the minimum word count."""
