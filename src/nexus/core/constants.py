"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Slug generation
MAX_SLUG_LENGTH = 63
SLUG_SUFFIX_LENGTH = 6

# Hash lengths
SHA256_HEX_LENGTH = 64

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_URL_LENGTH = 500
MAX_ROLE_LENGTH = 20
MAX_STRIPE_ID_LENGTH = 255
MAX_PLAN_ID_LENGTH = 50
MAX_STATUS_LENGTH = 50

# Invitation tokens
INVITATION_TOKEN_BYTES = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Billing
DEFAULT_PLAN_ID = "creator"
WEBHOOK_TOLERANCE_SECONDS = 300
