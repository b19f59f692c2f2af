# tollpay/config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Default is an in-memory database, so the transaction log lives as long as the process
DATABASE_URL = os.getenv("TOLLPAY_DATABASE_URL", "sqlite://")

# Simulated blockchain confirmation
CONFIRMATION_DELAY = float(os.getenv("TOLLPAY_CONFIRMATION_DELAY", "1.0"))
VERIFICATION_SUCCESS_RATE = float(os.getenv("TOLLPAY_SUCCESS_RATE", "0.9"))

# Reference data (toll booths and vehicle types)
TARIFF_FILE = os.getenv(
    "TOLLPAY_TARIFF_FILE",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "tariffs.json"),
)
ENFORCE_TARIFF = _flag("TOLLPAY_ENFORCE_TARIFF")

# Logging
LOG_LEVEL = os.getenv("TOLLPAY_LOG_LEVEL", "INFO").upper()
LOG_JSON = _flag("TOLLPAY_LOG_JSON")

# Server / simulator client
HOST = os.getenv("TOLLPAY_HOST", "0.0.0.0")
PORT = int(os.getenv("TOLLPAY_PORT", "8000"))
API_BASE = os.getenv("TOLLPAY_API_BASE", f"http://localhost:{PORT}")
