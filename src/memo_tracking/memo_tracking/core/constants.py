"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7

REFERENCE_PREFIX = "IMTS"
REFERENCE_DEPT_CODE_LENGTH = 4
REFERENCE_SEQUENCE_WIDTH = 3

MIN_LOGIN_PASSWORD_LENGTH = 6
MIN_NEW_PASSWORD_LENGTH = 8

MIN_SEARCH_TERM_LENGTH = 3
SEARCH_RESULT_LIMIT = 10
HR_SEARCH_LIMIT = 15
NOTIFICATION_LIST_LIMIT = 20
ACTIVITY_MONTHS = 12

DEFAULT_REJECTION_COMMENT = "No comments"
