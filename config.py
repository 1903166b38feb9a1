# config.py
import os

from dotenv import load_dotenv

load_dotenv()

# --- Storage ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./luo_film.db")

# --- HTTP ---
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Download tokens ---
# Lifetime of an issued download token. Deployment parameter; never set per request.
DOWNLOAD_TOKEN_TTL_SECONDS = int(os.getenv("DOWNLOAD_TOKEN_TTL_SECONDS", 60 * 60))
TOKEN_SWEEP_INTERVAL_MINUTES = float(os.getenv("TOKEN_SWEEP_INTERVAL_MINUTES", 5))
TOKEN_SWEEPER_ENABLED = os.getenv("TOKEN_SWEEPER_ENABLED", "true").lower() == "true"

# --- Upstream media fetch ---
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", 60))
DOWNLOAD_USER_AGENT = os.getenv(
    "DOWNLOAD_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
)
DOWNLOAD_FILE_EXTENSION = ".mp4"

# --- Client helper ---
LUO_API_URL = os.getenv("LUO_API_URL", "http://localhost:8000")
