# Application Package
from .phase_batcher import is_finished, next_batch, open_phase, resolve_batch
from .pool import due_filter, new_filter, restrict_to_ids, study_all
from .queue_builder import QueueBuildResult, build_queue
from .scheduler import (
    Scheduler,
    SchedulingPolicy,
    apply_rating,
    format_interval,
    is_mastered,
    preview_intervals,
)
from .session import (
    SessionResult,
    StudyMode,
    StudySession,
    StudySessionService,
    rating_for_answer,
)
from .set_stats import SetStats, summarize

__all__ = [
    "QueueBuildResult",
    "Scheduler",
    "SchedulingPolicy",
    "SessionResult",
    "SetStats",
    "StudyMode",
    "StudySession",
    "StudySessionService",
    "apply_rating",
    "build_queue",
    "due_filter",
    "format_interval",
    "is_finished",
    "is_mastered",
    "new_filter",
    "next_batch",
    "open_phase",
    "preview_intervals",
    "rating_for_answer",
    "resolve_batch",
    "restrict_to_ids",
    "study_all",
    "summarize",
]
