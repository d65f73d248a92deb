"""Constants for the relay service."""

GITHUB_API_BASE = "https://api.github.com"
DEFAULT_BRANCH = "main"
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"

DEFAULT_LEDGER_PATH = "evaluations.json"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_CORS_ORIGINS = ("https://coodecrafters.github.io",)

KEEPALIVE_INTERVAL_SECS = 120
KEEPALIVE_PATH = "/welcome"
KEEPALIVE_TIMEOUT_SECS = 5.0

LEDGER_MAX_ATTEMPTS = 3  # fetch+write cycles per append before giving up

# Accepted spellings of the roll-number field, checked in this order.
ROLL_NUMBER_ALIASES = ("rollNo", "rollNumber", "roll_no")
