"""Library-wide constants.

This module defines constants used throughout the authorization core
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_ROLE_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 200
MAX_PERMISSION_CODE_LENGTH = 100
MAX_PERMISSION_NAME_LENGTH = 100

# Session lifecycle
DEFAULT_INACTIVITY_TIMEOUT_MINUTES = 30
DEFAULT_SWEEP_INTERVAL_MINUTES = 5
DEFAULT_SESSION_RETENTION_MINUTES = 24 * 60

# Temporal constraints use 0=Sunday .. 6=Saturday
SUNDAY = 0
SATURDAY = 6

# Default policy
DEFAULT_POLICY_MAX_ACTIVE_ROLES = 3
