"""
Configurazione del pannello admin, letta una sola volta dall'ambiente.

Il file .env (se presente) viene caricato da python-dotenv. Nessuna parte
dell'app rilegge l'ambiente durante una richiesta: le impostazioni vengono
passate a create_app().
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {env_var}: {raw!r}") from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class AdminCredential:
    username: str
    password: str

    def __repr__(self):
        # la password non deve mai finire nei log
        return f"AdminCredential(username={self.username!r})"


def _admin_credentials() -> tuple:
    return (
        AdminCredential(
            username=os.getenv("ADMIN_USERNAME_1", "admin1"),
            password=os.getenv("ADMIN_PASSWORD_1", "password1"),
        ),
        AdminCredential(
            username=os.getenv("ADMIN_USERNAME_2", "admin2"),
            password=os.getenv("ADMIN_PASSWORD_2", "password2"),
        ),
    )


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./saloon.db"
    admins: tuple = field(default_factory=tuple)
    port: int = 3001
    environment: str = "development"
    log_level: str = "INFO"
    lifecycle_strict: bool = True
    pages_dir: str = "pages"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_recycle: int = 300
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            admins=_admin_credentials(),
            port=_safe_int("PORT", "3001"),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            lifecycle_strict=_safe_bool("LIFECYCLE_STRICT", "true"),
            pages_dir=os.getenv("PAGES_DIR", "pages"),
            db_pool_size=_safe_int("DB_POOL_SIZE", "5"),
            db_max_overflow=_safe_int("DB_MAX_OVERFLOW", "10"),
            db_pool_recycle=_safe_int("DB_POOL_RECYCLE", "300"),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
        )
        _validate(settings)
        return settings


def _validate(settings: Settings) -> None:
    if not 0 < settings.port < 65536:
        raise ValueError(f"PORT must be between 1 and 65535, got {settings.port}")
    for admin in settings.admins:
        if not admin.username or not admin.password:
            raise ValueError("Admin credentials must have a non-empty username and password")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # librerie HTTP troppo verbose a INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
