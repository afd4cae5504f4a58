import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./ai_pulse.db")
DB_ECHO = os.getenv("DB_ECHO", "false").strip().lower() in {"1", "true", "yes"}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ip-api.com style service: GET {url}/{ip} -> {"countryCode": "US", ...}
GEO_LOOKUP_URL = os.getenv("GEO_LOOKUP_URL", "http://ip-api.com/json").rstrip("/")
GEO_LOOKUP_TIMEOUT = float(os.getenv("GEO_LOOKUP_TIMEOUT", "3"))
GEO_FALLBACK_COUNTRY = os.getenv("GEO_FALLBACK_COUNTRY", "US")

CORS_ALLOW_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if o.strip()
]

RECENT_VOTES_LIMIT = int(os.getenv("RECENT_VOTES_LIMIT", "50"))
RECENT_VOTES_MAX = int(os.getenv("RECENT_VOTES_MAX", "200"))
