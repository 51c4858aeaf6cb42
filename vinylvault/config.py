"""Configuration: env, data paths, record store backend, admin access, cover lookup."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of vinylvault package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SUPABASE_URL etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("VINYLVAULT_DATA_DIR", str(BASE_DIR / "data")))
RECORDS_PATH = DATA_DIR / "records.json"

# API
API_HOST = os.getenv("VINYLVAULT_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("VINYLVAULT_API_PORT", "8000"))

# Hosted record store (PostgREST); local JSON file when unset
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
RECORDS_TABLE = "records"

# Admin session
ADMIN_EMAILS = [e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()]
ADMIN_TOKEN = os.getenv("VINYLVAULT_ADMIN_TOKEN", "")

# MusicBrainz / Cover Art Archive want a contact in the User-Agent
CONTACT = ADMIN_EMAILS[0] if ADMIN_EMAILS else "you@example.com"
USER_AGENT = f"vinyl-vault/1.0 ({CONTACT})"
MUSICBRAINZ_BASE = "https://musicbrainz.org/ws/2"
COVERART_BASE = "https://coverartarchive.org"
HTTP_TIMEOUT_SEC = float(os.getenv("HTTP_TIMEOUT_SEC", "10"))

# Cover lookup cache: successful lookups for a day, misses for an hour
COVER_HIT_TTL_SEC = int(os.getenv("COVER_HIT_TTL_SEC", "86400"))
COVER_MISS_TTL_SEC = int(os.getenv("COVER_MISS_TTL_SEC", "3600"))

# Batch backfill (be nice to MusicBrainz/CAA)
BACKFILL_DELAY_SEC = float(os.getenv("BACKFILL_DELAY_SEC", "0.8"))
BACKFILL_LIMIT = int(os.getenv("BACKFILL_LIMIT", "500"))

DASHBOARD_LIMIT = int(os.getenv("DASHBOARD_LIMIT", "5000"))
# Re-pull at least this often; change events only cover writes made in this process
DASHBOARD_MAX_AGE_SEC = float(os.getenv("DASHBOARD_MAX_AGE_SEC", "30"))


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
