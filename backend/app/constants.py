"""Shared constants for compliance tracking."""

# Section 21 outcome letters lapse this many calendar months after upload
OUTCOME_LETTER_VALIDITY_MONTHS = 5

# Letters expiring within this many days are flagged as expiring soon
EXPIRING_SOON_WINDOW_DAYS = 30

# Placeholder for names and joined labels that could not be resolved
UNKNOWN = "Unknown"
