"""Constants for SpamSlam."""

import os
from pathlib import Path

# --- Config paths ---
CONFIG_DIR = Path.home() / ".spamslam"
CREDENTIALS_PATH = CONFIG_DIR / "credentials.json"
TOKEN_PATH = CONFIG_DIR / "token.json"
STORE_DB_PATH = CONFIG_DIR / "inventory.db"

# --- Gmail API ---
SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.compose",
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]
FETCH_BATCH_SIZE = 60  # messages per BatchHttpRequest
BATCH_PAUSE_SECONDS = 0.15
LIST_PAGE_SIZE = 500  # messages per list page
METADATA_HEADERS = ["From", "Subject"]

# --- Scan policy ---
SIGNUP_MARKERS = [
    "welcome",
    '"confirm your"',
    '"verify your"',
    '"create account"',
    '"complete registration"',
    '"thanks for registering"',
    "unsubscribe",
    '"account created"',
]
SCAN_NEWER_THAN_DAYS = 365
MAX_SCAN_RESULTS = 900

# --- Aggregation ---
SAMPLE_SUBJECTS_LIMIT = 3

# --- View ---
PAGE_SIZE = 9
SORT_BY_FREQUENCY = "by-frequency"
SORT_BY_RECENCY = "by-recency"
SORT_ALPHABETICAL = "alphabetical"
SORT_MODES = [SORT_BY_FREQUENCY, SORT_BY_RECENCY, SORT_ALPHABETICAL]

# --- AI actions ---
ACTION_UNSUBSCRIBE = "unsubscribe"
ACTION_DELETION = "deletion"
ACTION_KINDS = [ACTION_UNSUBSCRIBE, ACTION_DELETION]
WORKER_URL = os.environ.get("SPAMSLAM_WORKER_URL", "")
AI_MODEL = "gpt-4o-mini"
AI_TEMPERATURE = 0.2
AI_TIMEOUT_SECONDS = 60
AI_THROTTLE_SECONDS = 0.15
