"""
Application constants that don't change between environments.
These are business logic constants, not configuration settings.
"""

# Password Constants
PASSWORD_MIN_LENGTH = 8
BCRYPT_ROUNDS = 12

# Reset Code Constants
RESET_CODE_TTL_MINUTES = 15
RESET_CODE_MIN = 100000
RESET_CODE_MAX = 999999

# OAuth Constants
SUPPORTED_PROVIDERS = ("google", "facebook", "github")

# Responses
RESET_REQUESTED_MESSAGE = "If the account exists, a reset code was sent"
PASSWORD_RESET_MESSAGE = "Password updated"
