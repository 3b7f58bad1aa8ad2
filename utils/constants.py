"""
Application-wide constants.
Centralizes magic numbers and configuration values.
"""

# Validation limits
MAX_REASON_LENGTH = 200
MAX_NOTES_LENGTH = 1000
MAX_BREAK_LABEL_LENGTH = 100
MIN_SLOT_DURATION_MINUTES = 5
MAX_SLOT_DURATION_MINUTES = 480

# Bulk operations
MAX_BULK_LEAVE_IDS = 500  # Largest batch accepted by bulk_remove
