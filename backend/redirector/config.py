import json
import logging
import os
from typing import Dict

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Checked in order, first non-empty value wins
CONNECTION_STRING_ENV_VARS = (
    "DB_CONN_STRING",
    "DB_CONNECTION_STRING",
    "SQLAZURECONNSTR_SqlConnectionString",
    "SQLCONNSTR_SqlConnectionString",
    "CUSTOMCONNSTR_SqlConnectionString",
    "APPSETTING_SqlConnectionString",
    "SqlConnectionString",
    "SqlConnectionString__Value",
)

DEFAULT_BOT_MAP = ",".join([
    "whatsapp:WhatsApp",
    "facebook:Facebook",
    "facebookexternalhit:Facebook",
    "twitter:Twitter",
    "twitterbot:Twitter",
    "linkedin:LinkedIn",
    "linkedinbot:LinkedIn",
    "applebot:Apple",
    "googlebot:Google",
    "bingbot:Bing",
    "telegram:Telegram",
    "preview:Generic Preview",
    "crawler:Generic Crawler",
    "spider:Generic Spider",
    "bot:Generic Bot",
])


class Settings(BaseSettings):
    """Application settings"""

    # Tables (owned by the external store)
    REDIRECT_TABLE: str = "redirects"
    CLICK_TABLE: str = "link_clicks"
    BOT_AUDIT_TABLE: str = "bot_audit"

    # Reserved, has no effect on redirects
    HUMAN_DELAY_MS: int = Field(
        0, validation_alias=AliasChoices("REDIRECT_DELAY_MS", "HUMAN_DELAY_MS")
    )

    # Bot map: JSON object or "key:Label,key2:Label2"
    BOT_MAP: str = ""

    # Routing
    REDIRECT_ROUTE_PREFIX: str = "/r"

    # Database
    DB_TIMEOUT_SECONDS: float = 10.0
    DB_POOL_SIZE: int = 5
    ODBC_DRIVER: str = "ODBC Driver 18 for SQL Server"

    # Geolocation
    GEO_LOOKUP_ENABLED: bool = True
    GEO_LOOKUP_URL: str = "http://ip-api.com/json/{ip}"
    GEO_LOOKUP_TIMEOUT: float = 2.0

    LOG_LEVEL: str = "INFO"

    @field_validator("HUMAN_DELAY_MS", mode="before")
    @classmethod
    def _delay_or_zero(cls, value):
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_connection_string() -> str:
    """
    Resolve the database connection string from the environment.

    Returns an empty string when none of the known variables is set;
    callers must treat that as fatal for any database work.
    """
    for name in CONNECTION_STRING_ENV_VARS:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value

    logger.warning("Database connection string not found in env (DB_CONN_STRING)")
    return ""


def parse_bot_map(raw: str) -> Dict[str, str]:
    """
    Parse the bot map configuration.

    Accepts a JSON object or a comma separated "key:Label" list. Keys are
    lower-cased, malformed pairs are skipped. An empty value falls back to
    the built-in crawler list. Iteration order follows the input.
    """
    if not raw or not raw.strip():
        raw = DEFAULT_BOT_MAP

    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        return {
            str(key).strip().lower(): str(value)
            for key, value in parsed.items()
            if str(key).strip()
        }

    bot_map = {}
    for pair in raw.split(","):
        parts = pair.split(":")
        if len(parts) < 2:
            continue
        # Only the first two segments count, "a:b:c" labels "a" as "b"
        key, label = parts[0].strip(), parts[1].strip()
        if key and label:
            bot_map[key.lower()] = label

    return bot_map


settings = Settings()

BOT_MAP = parse_bot_map(settings.BOT_MAP)
