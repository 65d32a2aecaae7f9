from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

DEFAULT_PROFILE_IMG = (
    "https://res.cloudinary.com/dboau6axv/image/upload/"
    "v1735641179/qa9dfyxn8spwm0nwtako.jpg"
)

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getbool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    default_profile_img: str = DEFAULT_PROFILE_IMG
    # Legacy behaviour: let an actor with no resolvable id through the
    # cross-account and self-delete guards.
    trust_unresolved_actor: bool = False

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getbool("LOG_JSON", False),
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        default_profile_img=_getenv("DEFAULT_PROFILE_IMG", "") or DEFAULT_PROFILE_IMG,
        trust_unresolved_actor=_getbool("TRUST_UNRESOLVED_ACTOR", False),
    )


SETTINGS = load_settings()
