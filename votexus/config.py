# votexus/config.py
# Central place for environment-driven settings and constants
import os

from dotenv import load_dotenv

load_dotenv()


def _split(value: str):
    return [item.strip() for item in value.split(",") if item.strip()]


# --- Database ---
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "votexus")
# "auto" asks the server, "on"/"off" force the choice
MONGO_TRANSACTIONS = os.getenv("MONGO_TRANSACTIONS", "auto").lower()

# --- HTTP ---
PORT = int(os.getenv("PORT", "5000"))
ALLOWED_ORIGINS = _split(os.getenv("ALLOWED_ORIGINS", "http://localhost:3000"))
API_PREFIX = "/api"

# --- Security & JWT ---
SECRET_KEY = os.getenv("SECRET_KEY", "a_very_secret_key_for_dev_only")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
ADMIN_EMAILS = [email.lower() for email in _split(os.getenv("ADMIN_EMAILS", ""))]
MIN_PASSWORD_LENGTH = 6

# --- Media ---
MEDIA_BACKEND = os.getenv("MEDIA_BACKEND", "local").lower()
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", f"http://localhost:{PORT}").rstrip("/")
ELECTION_IMAGE_FOLDER = "votexus/elections"
CANDIDATE_IMAGE_FOLDER = "votexus/candidates"
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/jpg", "image/webp")
MAX_IMAGE_BYTES = 1_000_000

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
