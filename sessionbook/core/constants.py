"""Application-wide constants for the session booking service."""

from __future__ import annotations

API_TITLE = "Session Booking API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Student availability posting and instructor session booking"

# Weekly availability grid
DEFAULT_MAX_LANES = 20  # display ceiling for parallel slots in one day
DEFAULT_MIN_LANES = 4
DEFAULT_FIRST_SESSION_HOUR = 8
DEFAULT_LAST_SESSION_HOUR = 23
DEFAULT_WEEKS_LOOKAHEAD = 4
DAYS_IN_WEEK = 7

# Posting wait period since the last session (days)
DEFAULT_POSTING_WAIT_DAYS = 12

# Slot colors
DEFAULT_SLOT_COLOR = "#00e676"

# Text constraints
MAX_REASON_LENGTH = 255
MAX_ANNOTATION_LENGTH = 500

DAYS_OF_WEEK = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
