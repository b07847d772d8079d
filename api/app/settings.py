# api/app/settings.py
import os
from pathlib import Path
from dotenv import load_dotenv

# Always load the repo-root .env, regardless of CWD
ROOT_ENV = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=ROOT_ENV)


def _csv(value: str) -> list[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Settings:
    # ----------------------------------------------------------------------
    # Runtime
    # ----------------------------------------------------------------------
    ENV = os.getenv("ENV", "local")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    CORS_ORIGINS = _csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        )
    )

    # ----------------------------------------------------------------------
    # Database
    # ----------------------------------------------------------------------
    PGHOST = os.getenv("PGHOST", "localhost")
    PGPORT = int(os.getenv("PGPORT", "5432"))
    PGUSER = os.getenv("PGUSER", "clutch_user")
    PGPASSWORD = os.getenv("PGPASSWORD", "clutch_pass")
    PGDATABASE = os.getenv("PGDATABASE", "clutch_db")
    # empty: require SSL for remote Postgres, none for local
    PGSSLMODE = os.getenv("PGSSLMODE", "")
    DATABASE_URL = os.getenv("DATABASE_URL") or (
        f"postgresql://{PGUSER}:{PGPASSWORD}@{PGHOST}:{PGPORT}/{PGDATABASE}"
    )

    # ----------------------------------------------------------------------
    # Firebase (identity)
    # ----------------------------------------------------------------------
    FIREBASE_SERVICE_ACCOUNT_JSON = os.getenv("FIREBASE_SERVICE_ACCOUNT_JSON", "")

    # ----------------------------------------------------------------------
    # Google Sheets mirror
    # ----------------------------------------------------------------------
    GOOGLE_SERVICE_ACCOUNT_JSON = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")
    GOOGLE_SERVICE_ACCOUNT_EMAIL = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
    GOOGLE_PRIVATE_KEY = os.getenv("GOOGLE_PRIVATE_KEY", "")
    # bootstrap sheet holding the Leagues / UserRoles ranges
    GOOGLE_SHEET_ID = os.getenv("GOOGLE_SHEET_ID", "")

    # ----------------------------------------------------------------------
    # Stripe (one-time league upgrade)
    # ----------------------------------------------------------------------
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
    LEAGUE_UPGRADE_PRICE_CENTS = int(os.getenv("LEAGUE_UPGRADE_PRICE_CENTS", "499"))
    LEAGUE_UPGRADE_CURRENCY = os.getenv("LEAGUE_UPGRADE_CURRENCY", "usd")

    # ----------------------------------------------------------------------
    # Matchup blurbs
    # ----------------------------------------------------------------------
    BLURB_CACHE_SIZE = int(os.getenv("BLURB_CACHE_SIZE", "512"))
    BLURB_CACHE_TTL_SEC = int(os.getenv("BLURB_CACHE_TTL_SEC", "21600"))


settings = Settings()
