# config/settings.py
from dotenv import load_dotenv
import os

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

APP_URL = os.getenv("APP_URL", "https://love-on-the-pixel.vercel.app")
FRONTEND_URL = os.getenv("FRONTEND_URL", APP_URL)
APP_DOWNLOAD_URL = os.getenv(
    "APP_DOWNLOAD_URL",
    "https://play.google.com/store/apps/details?id=com.loveonthepixel.app"
)

# Schema bootstrap is skipped when PGHOST is not set
DB_SCHEMA = os.getenv("DB_SCHEMA", "pixel")
PGHOST = os.getenv("PGHOST")
PGUSER = os.getenv("PGUSER")
PGPASSWORD = os.getenv("PGPASSWORD")
PGPORT = os.getenv("PGPORT", "5432")
PGDATABASE = os.getenv("PGDATABASE", "postgres")

INVITATION_EMAILS_ENABLED = os.getenv("INVITATION_EMAILS_ENABLED", "false").lower() in ("1", "true", "yes")

AVATAR_BUCKET = "avatars"


def database_url() -> str:
    return f"postgresql://{PGUSER}:{PGPASSWORD}@{PGHOST}:{PGPORT}/{PGDATABASE}"
