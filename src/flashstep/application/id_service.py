"""Service for generating stable session identifiers."""

from ulid import ULID

from flashstep.domain.constants import PHASE_ID_PREFIX


def generate_phase_id() -> str:
    """Generate a phase ID using ULID."""
    return f"{PHASE_ID_PREFIX}{ULID()}"


def generate_session_id() -> str:
    """Generate a study session ID using ULID."""
    return f"session_{ULID()}"
