import pytest

from app.models.prompt_models import Artifact
from app.models.prompt_models import GenerationParams
from app.models.prompt_models import SectionKind
from app.services.assembler import document_sections
from app.services.assembler import render_artifact
from app.services.assembler import render_display
from app.services.assembler import render_storage
from app.services.assembler import strip_break_markers
from app.services.assembler import word_count

SECTIONS = [
    (SectionKind.INTRODUCTION, "You are a kitchen companion"),
    (SectionKind.PRETRAINING, "- a<br>\n- b"),
    (SectionKind.RULES, "- c<br>\n- d"),
    (SectionKind.IMPORTANT, "- e"),
]


def test_render_display_layout():
    assert render_display(SECTIONS) == (
        "You are a kitchen companion\n\n"
        "## Pretraining\n- a<br>\n- b\n\n"
        "## Rules\n- c<br>\n- d\n\n"
        "## Important\n- e"
    )


def test_render_storage_has_plain_line_breaks():
    assert render_storage(SECTIONS) == (
        "You are a kitchen companion\n\n"
        "## Pretraining\n- a\n- b\n\n"
        "## Rules\n- c\n- d\n\n"
        "## Important\n- e"
    )


@pytest.mark.parametrize(
    "sections",
    [
        SECTIONS,
        [],
        [(SectionKind.INTRODUCTION, "")],
        [(SectionKind.RULES, "<br><br>\n<br>")],
        [(SectionKind.INTRODUCTION, "<b<br>r>"), (SectionKind.IMPORTANT, "r>- x<br")],
        [(SectionKind.PRETRAINING, "- ünïcode<br>\n- 😀"), (SectionKind.INTRODUCTION, "## fake header<br>")],
    ],
)
def test_stripping_display_gives_storage(sections):
    assert strip_break_markers(render_display(sections)) == render_storage(sections)


def test_document_sections_skip_app_name_and_keep_order():
    sections = {
        SectionKind.APP_NAME: "Pantry Pal",
        SectionKind.IMPORTANT: "- e",
        SectionKind.INTRODUCTION: "Intro",
    }
    assert document_sections(sections) == [
        (SectionKind.INTRODUCTION, "Intro"),
        (SectionKind.IMPORTANT, "- e"),
    ]


def test_render_artifact_variants():
    artifact = Artifact(
        topic="App Idea: recipe tracker",
        params=GenerationParams(model="m"),
        sections={**dict(SECTIONS), SectionKind.APP_NAME: "Pantry Pal"},
    )
    assert render_artifact(artifact) == render_display(SECTIONS)
    assert render_artifact(artifact, storage=True) == render_storage(SECTIONS)
    assert "Pantry Pal" not in render_artifact(artifact)


def test_word_count():
    assert word_count("") == 0
    assert word_count("one  two\nthree\n\nfour") == 4
