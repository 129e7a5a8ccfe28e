import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEV_JWT_SECRET = "barbershop-dev-access-secret"
DEV_JWT_REFRESH_SECRET = "barbershop-dev-refresh-secret"


def _load_env_file() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


_load_env_file()


def _as_bool(value: str, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _as_list(value: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: str
    database_url: str
    jwt_secret: str
    jwt_refresh_secret: str
    jwt_algorithm: str
    access_token_ttl_minutes: int
    refresh_token_ttl_days: int
    docs_enabled: bool
    auto_run_migrations: bool
    seed_defaults: bool
    log_level: str
    request_id_header: str
    debug_errors: bool
    login_max_attempts: int
    login_window_seconds: int
    login_lockout_seconds: int
    password_min_length: int
    reset_token_ttl_minutes: int
    expose_reset_token_in_response: bool
    smtp_enabled: bool
    smtp_host: str
    smtp_port: int
    smtp_username: str
    smtp_password: str
    smtp_use_tls: bool
    smtp_sender_email: str
    smtp_sender_name: str
    admin_email: str
    admin_password: str
    upload_dir: str
    max_upload_bytes: int
    port: int
    cors_origins: tuple[str, ...]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    environment = os.getenv("ENVIRONMENT", "development")
    is_production = environment == "production"

    return Settings(
        app_name=os.getenv("APP_NAME", "Barbershop Booking API"),
        environment=environment,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./barbershop.db"),
        jwt_secret=os.getenv("JWT_SECRET", "" if is_production else DEV_JWT_SECRET),
        jwt_refresh_secret=os.getenv(
            "JWT_REFRESH_SECRET",
            "" if is_production else DEV_JWT_REFRESH_SECRET,
        ),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_ttl_minutes=_as_int(os.getenv("ACCESS_TOKEN_TTL_MINUTES"), default=120),
        refresh_token_ttl_days=_as_int(os.getenv("REFRESH_TOKEN_TTL_DAYS"), default=30),
        docs_enabled=_as_bool(os.getenv("DOCS_ENABLED"), default=not is_production),
        auto_run_migrations=_as_bool(os.getenv("AUTO_RUN_MIGRATIONS"), default=True),
        seed_defaults=_as_bool(os.getenv("SEED_DEFAULTS"), default=not is_production),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        request_id_header=os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
        debug_errors=_as_bool(os.getenv("DEBUG_ERRORS"), default=False),
        login_max_attempts=_as_int(os.getenv("LOGIN_MAX_ATTEMPTS"), default=5),
        login_window_seconds=_as_int(os.getenv("LOGIN_WINDOW_SECONDS"), default=60),
        login_lockout_seconds=_as_int(os.getenv("LOGIN_LOCKOUT_SECONDS"), default=60),
        password_min_length=_as_int(os.getenv("PASSWORD_MIN_LENGTH"), default=8),
        reset_token_ttl_minutes=_as_int(os.getenv("RESET_TOKEN_TTL_MINUTES"), default=30),
        expose_reset_token_in_response=_as_bool(
            os.getenv("EXPOSE_RESET_TOKEN_IN_RESPONSE"),
            default=False,
        ),
        smtp_enabled=_as_bool(os.getenv("SMTP_ENABLED"), default=False),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_as_int(os.getenv("SMTP_PORT"), default=587),
        smtp_username=os.getenv("SMTP_USERNAME", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_use_tls=_as_bool(os.getenv("SMTP_USE_TLS"), default=True),
        smtp_sender_email=os.getenv("SMTP_SENDER_EMAIL", ""),
        smtp_sender_name=os.getenv("SMTP_SENDER_NAME", "Barbershop"),
        admin_email=os.getenv("ADMIN_EMAIL", ""),
        admin_password=os.getenv("ADMIN_PASSWORD", ""),
        upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
        max_upload_bytes=_as_int(os.getenv("MAX_UPLOAD_BYTES"), default=5 * 1024 * 1024),
        port=_as_int(os.getenv("PORT"), default=3000),
        cors_origins=_as_list(os.getenv("CORS_ORIGINS"), default=("*",)),
    )
