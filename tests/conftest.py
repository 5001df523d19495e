import asyncio

import pytest

from app.models.prompt_models import GenerationParams

# Canned provider answers that satisfy every section rule on the first try
CANNED_RESPONSES: dict[str, str] = {
    "introduction.jinja2": (
        "You are Recipe Tracker, a friendly kitchen companion that helps home cooks save, organise "
        "and rediscover their favourite recipes. You suggest meals from the ingredients people already "
        "have, keep shopping lists tidy, and explain cooking techniques in simple steps that anyone "
        "can follow on a busy weeknight."
    ),
    "pretraining.jinja2": (
        "1. Common cooking techniques and their typical timings\n"
        "2. Ingredient substitutions for frequent dietary restrictions\n"
        "3. Food safety guidance for storing and reheating leftovers\n"
        "4. Seasonal produce availability across the calendar year\n"
        "5. Unit conversions between metric and imperial kitchen measures"
    ),
    "rules.jinja2": (
        "- Keep every answer short and focused on cooking\n"
        "- Ask a clarifying question when a request is ambiguous\n"
        "- Never invent nutritional facts you are unsure about\n"
        "- Respect the dietary preferences the cook has shared\n"
        "- Offer one simple alternative when suggesting a recipe"
    ),
    "important.jinja2": (
        "- Always mention allergens present in a suggested recipe\n"
        "- Remind cooks to check internal temperatures for meat\n"
        "- Stay positive and encouraging about every cooking attempt"
    ),
    "app_name.jinja2": '"Pantry Pal"',
}

# Valid for every rule but far below the document word minimum
SHORT_RESPONSES: dict[str, str] = {
    "introduction.jinja2": "Hello there",
    "pretraining.jinja2": "a\nb\nc\nd",
    "rules.jinja2": "a\nb\nc\nd",
    "important.jinja2": "a\nb",
    "app_name.jinja2": "Tiny",
}


class StubCompletion:
    """Stand-in CompletionPort.

    ``responses`` maps an instruction template to a string or to a list of
    strings returned one per call (the last one repeats). ``error`` is raised
    on every call instead.
    """

    def __init__(
        self,
        responses: dict[str, str | Exception | list[str]] | None = None,
        error: Exception | None = None,
        block: bool = False,
    ):
        self.responses = {k: list(v) if isinstance(v, list) else v for k, v in (responses or CANNED_RESPONSES).items()}
        self.error = error
        self.block = block
        self.calls: list[tuple[str, str]] = []
        self.seeds: list[bool] = []
        self.cancelled = 0

    def count(self, instruction: str) -> int:
        return sum(1 for name, _ in self.calls if name == instruction)

    async def __call__(self, instruction, message, params, *, seed=False, request_id=None):
        self.calls.append((instruction, message))
        self.seeds.append(seed)
        if self.block:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if self.error is not None:
            raise self.error
        response = self.responses[instruction]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_stub_completion():
    def _make_stub_completion(responses=None, error=None, block=False) -> StubCompletion:
        return StubCompletion(responses=responses, error=error, block=block)

    return _make_stub_completion


@pytest.fixture
def canned_responses() -> dict[str, str]:
    return dict(CANNED_RESPONSES)


@pytest.fixture
def short_responses() -> dict[str, str]:
    return dict(SHORT_RESPONSES)


@pytest.fixture
def params() -> GenerationParams:
    return GenerationParams(model="mistralai/mixtral-8x7b-instruct", temperature=0.7)
