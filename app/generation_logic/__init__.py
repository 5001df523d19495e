"""Generation logic package.

This package groups the helpers that sit between the HTTP routes and the
generation services (input validation, NDJSON streaming, regeneration and
download rendering). Keeping them here allows `app/api/routes.py` to stay
minimal and focused on HTTP routing while core business logic lives in
composable modules.
"""

from .regeneration_flow import regenerate_section  # noqa: F401
from .report_finalization import _build_prompt_download  # noqa: F401
from .stream_orchestrator import _stream_prompt_generation_logic  # noqa: F401
