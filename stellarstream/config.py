"""
Service configuration via environment variables.
A .env file in the working directory is loaded first; real environment values win.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _split_list(raw: str, upper: bool = False):
    items = [item.strip() for item in raw.split(",")]
    items = [item for item in items if item]
    return [item.upper() for item in items] if upper else items


# ----- Server -----
PORT = int(os.environ.get("PORT", "3001"))
HOST = os.environ.get("HOST", "0.0.0.0")

# ----- Streams -----
ALLOWED_ASSETS = _split_list(os.environ.get("ALLOWED_ASSETS") or "USDC,XLM", upper=True)

# ----- CORS -----
CORS_ORIGINS = _split_list(os.environ.get("CORS_ORIGINS") or "*")

# ----- Settlement -----
# Empty disables notices to the settlement layer
SETTLEMENT_URL = os.environ.get("SETTLEMENT_URL", "").rstrip("/")

# ----- Logging -----
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
