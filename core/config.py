"""Bot configuration.

Two layers:
- ``Settings``: process-level knobs from the environment / ``.env``.
- ``TickerConfig``: the coins and gas ticker to publish, read from ``config.json``.
"""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigError

logger = logging.getLogger(__name__)
load_dotenv()

CONFIG_FILE_NAME = "config.json"
CONFIG_SEARCH_DIRS = (Path("."), Path("./config"))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    mode: str = Field(default="", alias="MODE")  # DEBUG enables verbose logging

    # Ticker config file (defaults to searching ./ and ./config/)
    ticker_config_path: Optional[str] = Field(default=None, alias="TICKER_CONFIG_PATH")

    # Upstream endpoints
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3", alias="COINGECKO_BASE_URL")
    gas_station_base_url: str = Field(default="https://ethgasstation.info/api", alias="GAS_STATION_BASE_URL")
    discord_api_base_url: str = Field(default="https://discord.com/api/v10", alias="DISCORD_API_BASE_URL")
    discord_gateway_url: str = Field(
        default="wss://gateway.discord.gg/?v=10&encoding=json",
        alias="DISCORD_GATEWAY_URL",
    )
    http_timeout_seconds: float = Field(default=10.0, alias="HTTP_TIMEOUT_SECONDS")

    # Job intervals
    index_refresh_minutes: int = Field(default=60, alias="INDEX_REFRESH_MINUTES")
    price_update_seconds: int = Field(default=60, alias="PRICE_UPDATE_SECONDS")
    gas_update_seconds: int = Field(default=60, alias="GAS_UPDATE_SECONDS")

    @property
    def is_debug(self) -> bool:
        return self.mode.upper() == "DEBUG"

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.is_debug else self.log_level


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class CoinConfig(_CamelModel):
    """One coin to publish as a bot nickname/status."""
    id: str
    coingecko_id: Optional[str] = Field(default=None, alias="coingeckoID")
    decimal_place: int = Field(default=2, alias="decimalPlace", ge=0)
    vs_currencies: str = Field(default="usd", alias="vsCurrencies")
    discord_bot_key: str = Field(alias="discordBotKey")
    guild_id: str = Field(alias="guildID")

    @field_validator("id", "discord_bot_key", "guild_id")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("coingecko_id")
    @classmethod
    def _blank_override_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def ticker(self) -> str:
        """Lowercased symbol used for index lookups."""
        return self.id.lower()

    @property
    def vs_currency(self) -> str:
        """Display currency: first entry of ``vsCurrencies``, lowercased."""
        first = self.vs_currencies.split(",")[0].strip().lower()
        return first or "usd"


class GasTickerConfig(_CamelModel):
    api_key: str = Field(default="", alias="apiKey")
    discord_bot_key: str = Field(alias="discordBotKey")
    guild_id: str = Field(alias="guildID")


class PriceTickerConfig(_CamelModel):
    coin_list: list[CoinConfig] = Field(default_factory=list, alias="coinList")


class TickerConfig(_CamelModel):
    gas_ticker_config: GasTickerConfig = Field(alias="gasTickerConfig")
    price_ticker_config: PriceTickerConfig = Field(
        default_factory=PriceTickerConfig, alias="priceTickerConfig"
    )

    @property
    def coins(self) -> list[CoinConfig]:
        return list(self.price_ticker_config.coin_list)


def find_config_file(path: Optional[str] = None) -> Path:
    """Resolve the ticker config file: explicit path, env override, then search dirs."""
    explicit = path or settings.ticker_config_path
    if explicit:
        candidate = Path(explicit)
        if not candidate.is_file():
            raise ConfigError(f"config file not found: {candidate}")
        return candidate

    for directory in CONFIG_SEARCH_DIRS:
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    searched = ", ".join(str(d / CONFIG_FILE_NAME) for d in CONFIG_SEARCH_DIRS)
    raise ConfigError(f"config file not found (searched {searched})")


def load_ticker_config(path: Optional[str] = None) -> TickerConfig:
    """Read and validate the ticker config. Raises ConfigError on any problem."""
    config_file = find_config_file(path)
    try:
        raw = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read {config_file}: {e}") from e

    try:
        cfg = TickerConfig.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid config in {config_file}: {e}") from e

    logger.info("[CONFIG] Loaded %s (%d coins)", config_file, len(cfg.coins))
    return cfg


settings = Settings()
