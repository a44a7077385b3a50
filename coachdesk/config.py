# coachdesk/config.py
import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    use_remote_db: bool = False
    database_url: str = "sqlite:///./coachdesk.db"
    db_timeout: float = 5.0
    seed_sample_data: bool = True
    session_ttl: int = 86400
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: str = None) -> "Settings":
        """Build settings from the process environment (and a .env file if present)."""
        load_dotenv(dotenv_path)
        return cls(
            use_remote_db=_env_bool("USE_REMOTE_DB", False),
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            db_timeout=float(os.environ.get("DB_TIMEOUT", cls.db_timeout)),
            seed_sample_data=_env_bool("SEED_SAMPLE_DATA", True),
            session_ttl=int(os.environ.get("SESSION_TTL", cls.session_ttl)),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level),
        )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
