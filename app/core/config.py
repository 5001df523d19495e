"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "https://localhost:3000",
    "https://localhost:8000",
    "http://0.0.0.0:8000",  # Add this for local development with 0.0.0.0 host
]

# Short aliases accepted by the API, mapped to provider model identifiers
DEFAULT_AVAILABLE_MODELS = {
    "turbo": "openai/gpt-4-turbo",
    "turbo35": "openai/gpt-3.5-turbo",
    "m7b": "mistralai/mistral-7b-instruct",
    "m8x7b": "mistralai/mixtral-8x7b-instruct",
    "l13b": "meta-llama/llama-2-13b-chat",
    "l70b": "meta-llama/llama-2-70b-chat",
    "cl70b": "meta-llama/codellama-70b-instruct",
}


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        openrouter_api_key: API key for OpenRouter services.
        llm_base_url: Base URL of the OpenAI-compatible completion endpoint.
        model_id: Provider identifier of the model used when a request names none.
        default_temperature: Sampling temperature used when a request names none.
        available_models: Aliases accepted by the API, mapped to provider model identifiers.
        llm_max_tokens: Upper bound on tokens generated for a single section.
        max_topic_chars: Maximum length of the user's topic text.
        topic_prefix: Prefix added to every topic before it is sent to the model.
        max_section_retries: Retries allowed for one section beyond its first try.
        max_batch_retries: Retries allowed for a whole batch beyond its first try.
        min_document_words: Minimum word count of an accepted document.
        prompt_dir: Directory holding the Jinja2 instruction templates.
        api_key: Optional API key protecting the endpoints (disabled when unset).
        log_level: Level of the application loggers.
        cors_allowed_origins: List of allowed origins for CORS.
        LLM_CONNECT_TIMEOUT: LLM client connect timeout in seconds.
        LLM_READ_TIMEOUT: LLM client read timeout in seconds.
        llm_transport_attempts: Attempts made by the client on gateway errors (502/503/504).
    """

    openrouter_api_key: str | None = Field(default=None)
    llm_base_url: str = Field(default="https://openrouter.ai/api/v1")
    model_id: str = Field(default="mistralai/mixtral-8x7b-instruct")
    default_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    available_models: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_AVAILABLE_MODELS))
    llm_max_tokens: int = Field(default=600)

    max_topic_chars: int = Field(default=75)
    topic_prefix: str = Field(default="App Idea: ")
    max_section_retries: int = Field(default=3)
    max_batch_retries: int = Field(default=3)
    min_document_words: int = Field(default=100)

    prompt_dir: Path = Field(default=Path(__file__).parent.parent / "services" / "prompt_templates")

    api_key: str | None = Field(default=None)
    log_level: str = Field(default="DEBUG")

    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),  # Use a copy of the default list
    )

    LLM_CONNECT_TIMEOUT: float = Field(default=10.0, description="LLM client connect timeout in seconds.")
    LLM_READ_TIMEOUT: float = Field(default=60.0, description="LLM client read timeout in seconds.")
    llm_transport_attempts: int = Field(default=2, description="Attempts on 502/503/504 before giving up.")

    model_config = {
        "env_file": ".env",
        "protected_namespaces": ("settings_",),
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",  # Ignore extra fields
    }

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)

    def resolve_model(self, name: str | None) -> str | None:
        """Map an alias or a provider identifier to a known provider identifier.

        Returns the default model for an empty name and None for an unknown one.
        """
        if not name:
            return self.model_id
        if name in self.available_models:
            return self.available_models[name]
        if name == self.model_id or name in self.available_models.values():
            return name
        return None


settings = Settings()
