import os

from app.core.env import load_env

load_env()

OPENFDA_BASE_URL = os.getenv("OPENFDA_BASE_URL", "https://api.fda.gov")
OPENFDA_API_KEY = os.getenv("OPENFDA_API_KEY")
OPENFDA_TIMEOUT_S = int(os.getenv("OPENFDA_TIMEOUT_S", "10"))

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").lower()  # memory | sqlite
REMINDER_DB_PATH = os.getenv("REMINDER_DB_PATH")  # defaults to app/db/reminders.db

ENABLE_REMINDER_SCANNER = os.getenv("ENABLE_REMINDER_SCANNER", "true").lower() == "true"
REMINDER_TICK_SECONDS = int(os.getenv("REMINDER_TICK_SECONDS", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "temp-user-id")
