"""Settings and logging setup shared by the CLI and the MCP server."""
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from zendesk_csat_attribution.exceptions import ConfigurationError

LOGGER_NAME = "zendesk_csat_attribution"
logger = logging.getLogger(LOGGER_NAME)

REQUIRED_ENV_VARS: dict[str, str] = {
    "ZENDESK_SUBDOMAIN": "Zendesk subdomain used for API calls",
    "ZENDESK_EMAIL": "Agent email associated with the API token",
    "ZENDESK_API_KEY": "Zendesk API token with ticket permissions",
}

# Optional overrides: env var -> Settings field
OPTIONAL_ENV_VARS: dict[str, str] = {
    "CSAT_OWNER_NAME": "owner_name",
    "CSAT_OWNER_EMAIL": "owner_email",
    "CSAT_VERY_LOW_THRESHOLD": "very_low_threshold",
    "CSAT_NOTE_LANGUAGE": "note_language",
    "CSAT_BACKFILL_DELAY": "backfill_delay",
    "CSAT_COL_CSAT": "col_csat",
    "CSAT_COL_NPS": "col_nps",
    "CSAT_COL_COMMENT": "col_comment",
    "CSAT_COL_TICKET_ID": "col_ticket_id",
    "CSAT_COL_AGENT_NAME": "col_agent_name",
}


class Settings(BaseModel):
    """Immutable run configuration handed to every component."""
    model_config = ConfigDict(frozen=True)

    zendesk_subdomain: str
    zendesk_email: str
    zendesk_api_key: str

    owner_name: str = ""
    owner_email: str = ""
    very_low_threshold: float = 2
    note_language: str = Field(default="en", pattern="^(en|ar)$")
    backfill_delay: float = Field(default=0.3, ge=0)

    # 1-based spreadsheet columns
    col_csat: int = Field(default=3, ge=1)
    col_nps: int = Field(default=4, ge=1)
    col_comment: int = Field(default=6, ge=1)
    col_ticket_id: int = Field(default=7, ge=1)
    col_agent_name: int = Field(default=8, ge=1)


def load_settings() -> Settings:
    """Validate environment variables and return the run settings."""
    missing: list[str] = []
    values: dict[str, str] = {}

    for key, description in REQUIRED_ENV_VARS.items():
        value = os.getenv(key)
        if value:
            values[key.lower()] = value
        else:
            missing.append(f"{key} ({description})")

    if missing:
        detail = ", ".join(missing)
        raise ConfigurationError(
            f"Missing required environment variables: {detail}. "
            "Populate .env or export them before running."
        )

    for key, field_name in OPTIONAL_ENV_VARS.items():
        value = os.getenv(key)
        if value is not None and value.strip() != "":
            values[field_name] = value.strip()

    # The owner defaults to the API account, as the sheet owner runs the script
    values.setdefault("owner_email", values["zendesk_email"])

    try:
        return Settings(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


load_dotenv()
_settings_cache: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings, loading them on first use."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def _reset_settings_cache_for_tests() -> None:
    """Clear cached settings; intended for use in unit tests."""
    global _settings_cache
    _settings_cache = None


def configure_logging(level: int = logging.INFO) -> None:
    """Configure package logging without overriding host configuration."""
    if logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
