"""Centralized constants for flashstep.

All tunable numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Status thresholds (by learning step) ----------
LEARNING_MAX_STEP = 2  # 1..2 -> learning
YOUNG_MAX_STEP = 4  # 3..4 -> young, >=5 -> mature

# ---------- Scheduling policy ----------
STEP_INTERVALS_DAYS = (0, 1, 3, 7, 14, 30, 60)
AGAIN_INTERVAL_MINUTES = 10
HARD_FACTOR = 0.5
EASY_BONUS = 1.5
EASY_STEP_SKIP = 2
MAX_INTERVAL_DAYS = 365

# ---------- Daily limits ----------
DEFAULT_DAILY_NEW_LIMIT = 20
DEFAULT_DAILY_REVIEW_LIMIT = 100
DEFAULT_CARD_LIMIT = 20

# ---------- Session ----------
MIN_SESSION_SECONDS = 1
PHASE_ID_PREFIX = "phase_"
