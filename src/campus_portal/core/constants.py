"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TOKEN_DAYS = 7
PASSWORD_MIN_LENGTH = 8
NOTE_TITLE_MIN_LENGTH = 3
NOTE_DESCRIPTION_MAX_LENGTH = 500
DEFAULT_NOTE_EXTENSIONS = frozenset({"pdf", "doc", "docx", "ppt", "pptx", "txt", "jpg", "jpeg", "png"})

USERS_COLLECTION = "users"
NOTES_COLLECTION = "notes"
ATTENDANCE_COLLECTION = "attendances"
