"""
Runtime configuration for the Cloud Variables backend.

Everything the service reads from the environment is read here, once, and then passed
explicitly into the app factory and the services it builds (JWT secret, storage location,
default tier). Tests construct Settings directly instead of patching the environment.
"""
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def normalize_database_url(url: str) -> str:
    # Normalize postgres:// -> postgresql:// for SQLAlchemy
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


@dataclass
class Settings:
    database_url: str = "sqlite:///./cloud_variables.db"
    jwt_secret: str = "default-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24
    storage_backend: str = "file"  # "file" or "memory"
    storage_path: str = "./data/variables"
    default_tier_name: str = "free"
    bcrypt_rounds: int = 12
    seed_default_tiers: bool = True
    run_migrations: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=normalize_database_url(
                os.getenv("DATABASE_URL", cls.database_url)
            ),
            jwt_secret=os.getenv("JWT_SECRET", cls.jwt_secret),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            jwt_expiration_hours=_env_int("JWT_EXPIRATION_HOURS", cls.jwt_expiration_hours),
            storage_backend=os.getenv("STORAGE_BACKEND", cls.storage_backend).lower(),
            storage_path=os.getenv("STORAGE_PATH", cls.storage_path),
            default_tier_name=os.getenv("DEFAULT_TIER_NAME", cls.default_tier_name),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", cls.bcrypt_rounds),
            seed_default_tiers=_env_bool("SEED_DEFAULT_TIERS", cls.seed_default_tiers),
            run_migrations=_env_bool("RUN_MIGRATIONS", cls.run_migrations),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
