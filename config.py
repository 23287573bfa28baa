import os
from datetime import datetime, timezone
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

ENV = os.getenv("ENV", "TEST").upper()

DEFAULTS = {
    "TEST": {
        "KITCHEN_WORKER_URL": "http://localhost:8082/internal/events/order-placed",
        "KITCHEN_AUTH_TOKEN": "kitchen-dev-token",
        "LOG_LEVEL": "DEBUG",
    },
    "LIVE": {
        "KITCHEN_WORKER_URL": "http://kitchen-worker:8082/internal/events/order-placed",
        "KITCHEN_AUTH_TOKEN": "",  # must come from the environment
        "LOG_LEVEL": "INFO",
    }
}

cfg = DEFAULTS["LIVE"] if ENV == "LIVE" else DEFAULTS["TEST"]

# Kitchen security gate
KITCHEN_TOKEN_HEADER = os.getenv("KITCHEN_TOKEN_HEADER", "X-Kitchen-Token")
KITCHEN_AUTH_TOKEN   = os.getenv("KITCHEN_AUTH_TOKEN", cfg["KITCHEN_AUTH_TOKEN"])
CONFIRM_DESTRUCTIVE_HEADER = os.getenv("CONFIRM_DESTRUCTIVE_HEADER", "X-Confirm-Destructive")

# Order placed events (order service -> kitchen worker)
KITCHEN_WORKER_URL    = os.getenv("KITCHEN_WORKER_URL", cfg["KITCHEN_WORKER_URL"])
EVENT_TIMEOUT_SECONDS = float(os.getenv("EVENT_TIMEOUT_SECONDS", "5"))

# Service ports (local dev only; production runs under waitress)
ORDER_SERVICE_PORT  = int(os.getenv("ORDER_SERVICE_PORT", "8080"))
KITCHEN_WORKER_PORT = int(os.getenv("KITCHEN_WORKER_PORT", "8082"))
REPORT_SERVICE_PORT = int(os.getenv("REPORT_SERVICE_PORT", "8081"))

# Business rules
MIN_TABLE_ID = 1
MAX_TABLE_ID = 12

# ---------------- Paths (stable, absolute) ----------------
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Logging
LOG_DIR   = os.getenv("LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE  = os.getenv("LOG_FILE", "restaurant.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", cfg["LOG_LEVEL"]).upper()

# Order/menu/ticket store (SQLite), shared by the three services
STATE_DB_PATH = os.getenv("STATE_DB_PATH", os.path.join(BASE_DIR, "state.db"))


# -------------- HTTP Session --------------
# Publication failures must reach the caller; retry is a client concern.
SESSION = requests.Session()
no_retries = Retry(total=0, raise_on_status=False)
SESSION.mount("http://", HTTPAdapter(max_retries=no_retries))
SESSION.mount("https://", HTTPAdapter(max_retries=no_retries))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def utc_now_iso() -> str:
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def require_kitchen_token(token: str) -> str:
    if ENV == "LIVE" and not (token or "").strip():
        raise RuntimeError("KITCHEN_AUTH_TOKEN environment variable must be defined when ENV=LIVE")
    return token
