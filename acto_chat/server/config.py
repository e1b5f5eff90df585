"""Server configuration values."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

SERVER_NAME = "ACTO uim Server"
SERVER_VERSION = "1.0.0"

HOST = os.getenv("ACTO_HOST", "0.0.0.0")
PORT = int(os.getenv("ACTO_PORT", "3001"))

# Reaper sweep period and the offline duration after which a user is retired
CLEANUP_INTERVAL_SECONDS = int(os.getenv("ACTO_CLEANUP_INTERVAL_SECONDS", str(10 * 60)))
IDLE_THRESHOLD_SECONDS = int(os.getenv("ACTO_IDLE_THRESHOLD_SECONDS", str(10 * 60)))

SEARCH_LIMIT = int(os.getenv("ACTO_SEARCH_LIMIT", "10"))
OUTBOX_SIZE = int(os.getenv("ACTO_OUTBOX_SIZE", "256"))

LOG_FILE = Path(os.getenv("ACTO_LOG_FILE", str(BASE_DIR / "server.log")))
LOG_LEVEL = os.getenv("ACTO_LOG_LEVEL", "INFO").upper()
