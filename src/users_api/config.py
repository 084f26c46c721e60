import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CREATE_FIELDS_FROM_REQUEST = "request"
CREATE_FIELDS_GENERATED = "generated"

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "CREATE_FIELDS_FROM_REQUEST",
    "CREATE_FIELDS_GENERATED",
    "get_config",
]


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"expected a boolean, got '{raw}'")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration loaded from environment variables."""

    # --- Required Variables ---
    table_name: str
    service_name: str
    environment: str

    # --- Optional Variables with Defaults ---
    log_level: str
    create_fields_source: str
    strict_error_mapping: bool
    cors_allow_origin: str
    store_operation_timeout_seconds: int

    # --- Derived Properties ---
    @property
    def generates_create_fields(self) -> bool:
        return self.create_fields_source == CREATE_FIELDS_GENERATED

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Loads configuration from environment variables, performing validation and type casting.
        Fails fast with a ConfigurationError if anything is invalid.
        """
        try:
            # --- Handle required string variables ---
            # The deployment stack sets TABLE_NAME; USERS_TABLE_NAME takes precedence.
            table_name = os.getenv("USERS_TABLE_NAME") or os.getenv("TABLE_NAME")
            if not table_name:
                raise KeyError("USERS_TABLE_NAME")
            service_name = os.environ["SERVICE_NAME"]
            environment = os.environ["ENVIRONMENT"]

            # --- Handle special-case variables like log level ---
            log_level = os.getenv("LOG_LEVEL", "INFO").upper()
            allowed_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if log_level not in allowed_log_levels:
                raise ValueError(
                    f"LOG_LEVEL must be one of {allowed_log_levels}, not '{log_level}'"
                )

            # --- Handle behaviour switches ---
            create_fields_source = os.getenv(
                "CREATE_FIELDS_SOURCE", CREATE_FIELDS_FROM_REQUEST
            ).lower()
            allowed_sources = [CREATE_FIELDS_FROM_REQUEST, CREATE_FIELDS_GENERATED]
            if create_fields_source not in allowed_sources:
                raise ValueError(
                    f"CREATE_FIELDS_SOURCE must be one of {allowed_sources}, "
                    f"not '{create_fields_source}'"
                )

            strict_error_mapping = _parse_bool(os.getenv("STRICT_ERROR_MAPPING", "true"))

            cors_allow_origin = os.getenv("CORS_ALLOW_ORIGIN", "*")
            if not cors_allow_origin:
                raise ValueError("CORS_ALLOW_ORIGIN must not be empty.")

            store_operation_timeout_seconds = int(
                os.getenv("STORE_OPERATION_TIMEOUT_SECONDS", "5")
            )
            if store_operation_timeout_seconds <= 0:
                raise ValueError(
                    "STORE_OPERATION_TIMEOUT_SECONDS must be a positive integer."
                )

        except KeyError as e:
            raise ConfigurationError(
                f"Missing required environment variable: {e.args[0]}"
            ) from e
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid value for an environment variable: {e}"
            ) from e

        return cls(
            table_name=table_name,
            service_name=service_name,
            environment=environment,
            log_level=log_level,
            create_fields_source=create_fields_source,
            strict_error_mapping=strict_error_mapping,
            cors_allow_origin=cors_allow_origin,
            store_operation_timeout_seconds=store_operation_timeout_seconds,
        )


# --- Singleton Factory Function (Lazy-loaded and Cached) ---
@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Loads the application configuration from environment variables.
    The result is cached using lru_cache, so the environment is only read once
    on the first call. This avoids import-time side effects.
    """
    logger.info("Loading application configuration from environment...")
    return AppConfig.load_from_env()
