# File: const.py
"""Constants for the ClearCue recurrence engine.

This file centralizes record keys, frequency and status values, validation
limits and the iteration ceilings that keep every calendar scan bounded.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Frequencies
# ------------------------------------------------------------------------------------------------
FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKDAYS = "weekdays"
FREQUENCY_WEEKENDS = "weekends"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"
FREQUENCY_YEARLY = "yearly"
FREQUENCY_FIRST_MONDAY = "first_monday"
FREQUENCY_LAST_FRIDAY = "last_friday"
FREQUENCY_CUSTOM = "custom"

# Older records used camelCase names for the month-anchored patterns
FREQUENCY_ALIASES = {
    "firstMondayOfMonth": FREQUENCY_FIRST_MONDAY,
    "first_monday_of_month": FREQUENCY_FIRST_MONDAY,
    "lastFridayOfMonth": FREQUENCY_LAST_FRIDAY,
    "last_friday_of_month": FREQUENCY_LAST_FRIDAY,
}

# Custom frequency modes
CUSTOM_MODE_DAYS_OF_WEEK = "days_of_week"
CUSTOM_MODE_INTERVAL = "interval"

# End conditions
END_CONDITION_NEVER = "never"
END_CONDITION_ON_DATE = "on_date"
END_CONDITION_AFTER_OCCURRENCES = "after_occurrences"

# ------------------------------------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------------------------------------
NOTIFICATION_TIMING_BEFORE = "before"
NOTIFICATION_TIMING_AFTER = "after"
NOTIFICATION_TIMING_EXACT = "exact"

# ------------------------------------------------------------------------------------------------
# Status
# ------------------------------------------------------------------------------------------------
STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

# ------------------------------------------------------------------------------------------------
# Weekdays (0 = Sunday)
# ------------------------------------------------------------------------------------------------
SUNDAY = 0
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6

WEEKDAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]
WORKING_DAYS = frozenset({MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY})
WEEKEND_DAYS = frozenset({SATURDAY, SUNDAY})

# ------------------------------------------------------------------------------------------------
# Persisted record keys
# ------------------------------------------------------------------------------------------------
DATA_REMINDER_ID = "id"
DATA_REMINDER_TITLE = "title"
DATA_REMINDER_DESCRIPTION = "description"
DATA_REMINDER_USER_ID = "user_id"
DATA_REMINDER_DUE_DATE = "due_date"
DATA_REMINDER_DUE_TIME = "due_time"
DATA_REMINDER_START_DATE = "start_date"
DATA_REMINDER_END_DATE = "end_date"
DATA_REMINDER_IS_RECURRING = "is_recurring"
DATA_REMINDER_REPEAT_PATTERN = "repeat_pattern"
DATA_REMINDER_CUSTOM_INTERVAL = "custom_interval"
DATA_REMINDER_CUSTOM_MODE = "custom_mode"
DATA_REMINDER_REPEAT_DAYS = "repeat_days"
DATA_REMINDER_RECURRING_START_DATE = "recurring_start_date"
DATA_REMINDER_RECURRING_END_DATE = "recurring_end_date"
DATA_REMINDER_RECURRING_END_AFTER = "recurring_end_after"
DATA_REMINDER_RECURRING_WINDOW_END_DATE = "recurring_window_end_date"
DATA_REMINDER_HAS_NOTIFICATION = "has_notification"
DATA_REMINDER_NOTIFICATION_TIMINGS = "notification_timings"
DATA_REMINDER_STATUS = "status"
DATA_REMINDER_COMPLETED = "completed"
DATA_REMINDER_ASSIGNED_TO = "assigned_to"
DATA_REMINDER_CREATED_AT = "created_at"
DATA_REMINDER_UPDATED_AT = "updated_at"

DATA_TIMING_TYPE = "type"
DATA_TIMING_VALUE = "value"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_INTERVAL = 1
DEFAULT_MAX_OCCURRENCES = 50
DEFAULT_ESTIMATE_DAYS_AHEAD = 365
DEFAULT_REMINDER_TITLE = "Untitled reminder"

# ------------------------------------------------------------------------------------------------
# Validation limits
# ------------------------------------------------------------------------------------------------
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
ASSIGNED_TO_MAX_COUNT = 10
NOTIFICATION_TIMINGS_MAX_COUNT = 5

# Warning thresholds (accepted but flagged)
INTERVAL_WARN_THRESHOLD = 365
NOTIFICATION_OFFSET_WARN_MINUTES = 10080  # one week
MANY_NOTIFICATION_TIMINGS_WARN_COUNT = 3

# ------------------------------------------------------------------------------------------------
# Iteration ceilings
# ------------------------------------------------------------------------------------------------
# rrule candidates inspected for day-set rules (weekdays, weekends, day-of-week sets)
MAX_DAY_SCAN_ITERATIONS = 366

# rrule candidates inspected for month patterns (first Monday, last Friday)
MAX_MONTH_SCAN_ITERATIONS = 24

# Anchored stepping after the arithmetic estimate
MAX_DATE_CALCULATION_ITERATIONS = 100

# Occurrences walked by the generator in one call
MAX_SERIES_ITERATIONS = 5000

# Occurrences inspected when looking for the next notification
NOTIFICATION_LOOKAHEAD_OCCURRENCES = 10
