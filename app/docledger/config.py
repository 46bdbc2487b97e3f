import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    identity_header: str
    log_level: str

    owner_identity: str
    initial_verifiers: tuple[str, ...]


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_list(name: str) -> tuple[str, ...]:
    raw = _getenv(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///docledger.db"),
        identity_header=_getenv("IDENTITY_HEADER", "X-Identity"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        owner_identity=_getenv("OWNER_IDENTITY", ""),
        initial_verifiers=_getenv_list("INITIAL_VERIFIERS"),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "IDENTITY_HEADER": s.identity_header,
        "LOG_LEVEL": s.log_level,
        "OWNER_IDENTITY": s.owner_identity,
        "INITIAL_VERIFIERS": list(s.initial_verifiers),
        # JSON API defaults
        "JSON_SORT_KEYS": False,
        # request bodies are small JSON documents (1MB)
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
