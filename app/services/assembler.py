"""Turns accepted sections into the final prompt document.

Two renderings exist. The display variant keeps the ``<br>`` item markers so
list sections render as flat markup; the storage variant is plain markdown.
Stripping the markers from the display variant always gives the storage
variant.
"""

from collections.abc import Iterable

from app.models.prompt_models import SECTION_SPECS
from app.models.prompt_models import Artifact
from app.models.prompt_models import SectionKind
from app.services.section_validator import LINE_BREAK_MARKER

BLOCK_SEPARATOR = "\n\n"


def strip_break_markers(text: str) -> str:
    return text.replace(LINE_BREAK_MARKER, "")


def _render_block(kind: SectionKind, text: str) -> str:
    header = SECTION_SPECS[kind].header
    return f"{header}\n{text}" if header else text


def render_display(sections: Iterable[tuple[SectionKind, str]]) -> str:
    return BLOCK_SEPARATOR.join(_render_block(kind, text) for kind, text in sections)


def render_storage(sections: Iterable[tuple[SectionKind, str]]) -> str:
    return BLOCK_SEPARATOR.join(_render_block(kind, strip_break_markers(text)) for kind, text in sections)


def word_count(text: str) -> int:
    return len(text.split())


def document_sections(sections: dict[SectionKind, str]) -> list[tuple[SectionKind, str]]:
    """Body sections in fixed kind order; title-only kinds (the app name) are left out."""
    return [
        (kind, sections[kind])
        for kind, spec in SECTION_SPECS.items()
        if spec.in_document and kind in sections
    ]


def render_artifact(artifact: Artifact, storage: bool = False) -> str:
    body = document_sections(artifact.sections)
    return render_storage(body) if storage else render_display(body)
