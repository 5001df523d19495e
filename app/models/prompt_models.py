from enum import Enum

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class SectionKind(str, Enum):
    """The fixed pieces of a generated prompt, in document order."""

    INTRODUCTION = "introduction"
    PRETRAINING = "pretraining"
    RULES = "rules"
    IMPORTANT = "important"
    APP_NAME = "app_name"


class ValidationRule(str, Enum):
    FREE_FORM = "free_form"
    LIST = "list"
    SHORT_NAME = "short_name"


class SectionSpec(BaseModel):
    """Static description of how one section kind is generated and accepted."""

    model_config = ConfigDict(frozen=True)

    kind: SectionKind
    template_name: str
    rule: ValidationRule
    min_items: int = 0
    max_items: int = 0
    header: str | None = None
    in_document: bool = True
    uses_topic: bool = True


SECTION_SPECS: dict[SectionKind, SectionSpec] = {
    SectionKind.INTRODUCTION: SectionSpec(
        kind=SectionKind.INTRODUCTION,
        template_name="introduction.jinja2",
        rule=ValidationRule.FREE_FORM,
    ),
    SectionKind.PRETRAINING: SectionSpec(
        kind=SectionKind.PRETRAINING,
        template_name="pretraining.jinja2",
        rule=ValidationRule.LIST,
        min_items=4,
        max_items=6,
        header="## Pretraining",
    ),
    SectionKind.RULES: SectionSpec(
        kind=SectionKind.RULES,
        template_name="rules.jinja2",
        rule=ValidationRule.LIST,
        min_items=4,
        max_items=6,
        header="## Rules",
        uses_topic=False,
    ),
    SectionKind.IMPORTANT: SectionSpec(
        kind=SectionKind.IMPORTANT,
        template_name="important.jinja2",
        rule=ValidationRule.LIST,
        min_items=2,
        max_items=4,
        header="## Important",
        uses_topic=False,
    ),
    SectionKind.APP_NAME: SectionSpec(
        kind=SectionKind.APP_NAME,
        template_name="app_name.jinja2",
        rule=ValidationRule.SHORT_NAME,
        in_document=False,
    ),
}

SECTION_ORDER: tuple[SectionKind, ...] = tuple(SectionKind)


class GenerationParams(BaseModel):
    """Per-request provider settings. Never shared or mutated between requests."""

    model_config = ConfigDict(frozen=True)

    model: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class GenerationRequest(BaseModel):
    """One validated user request; read-only for the lifetime of a pipeline run."""

    model_config = ConfigDict(frozen=True)

    topic: str
    params: GenerationParams
    kinds: tuple[SectionKind, ...] = SECTION_ORDER

    @property
    def request_log(self) -> str:
        return f"{self.topic} - Model: {self.params.model} - Temp: {self.params.temperature:f}"


class SectionResult(BaseModel):
    """Slot written by exactly one section task per batch attempt."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: SectionKind
    value: str | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


class Artifact(BaseModel):
    """A fully generated and validated prompt."""

    topic: str
    params: GenerationParams
    sections: dict[SectionKind, str]
    request_log: str = ""

    def with_section(self, kind: SectionKind, value: str) -> "Artifact":
        """Return a copy with only *kind* replaced."""
        sections = dict(self.sections)
        sections[kind] = value
        return self.model_copy(update={"sections": sections})

    @property
    def app_name(self) -> str | None:
        return self.sections.get(SectionKind.APP_NAME)
