"""Centralized constants for the anamnesis scheduler.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease factor (permille) ----------
INITIAL_EASE_FACTOR = 2_500  # 250%
MINIMUM_EASE_FACTOR = 1_300  # 130%
EASE_DELTA_HARD = -150
EASE_DELTA_OK = 0
EASE_DELTA_EASY = 150
LAPSE_EASE_PENALTY = 200

# ---------- Learning steps ----------
# remaining_steps packs two counters: steps left + achievable-today * 1000
STEP_PACKING = 1_000
LEARN_JITTER_MAX_SECONDS = 300
LEARN_JITTER_RATIO = 0.25
DEFAULT_STEP_DELAY_MINUTES = 1.0

# ---------- Time ----------
SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 86_400
# A `due` above this is read as a unix timestamp rather than a day number.
TIMESTAMP_THRESHOLD = 1_000_000_000
DEFAULT_ROLLOVER_HOUR = 4
MAX_UTC_OFFSET_MINUTES = 23 * 60

# ---------- Deck defaults ----------
DEFAULT_LEARN_STEPS = (1.0, 10.0)
DEFAULT_RELEARN_STEPS = (10.0,)
DEFAULT_MAXIMUM_INTERVAL = 36_500
DEFAULT_LEECH_THRESHOLD = 8

# ---------- Display ----------
END_OF_SCHEDULE_LABEL = "(end)"
