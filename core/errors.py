"""Error taxonomy for the ticker pipeline."""

from typing import Optional


class TickerError(Exception):
    """Base class for every error raised by the ticker pipeline."""


class ConfigError(TickerError):
    """Configuration file missing or invalid. Fatal at startup."""


class NotReady(TickerError):
    """Symbol index used before its first successful refresh."""

    def __init__(self, message: str = "symbol index is not initialized yet"):
        super().__init__(message)


class ResolutionMiss(TickerError):
    """Ticker has no provider id in the index and no explicit override."""

    def __init__(self, ticker: str):
        super().__init__(f"no provider id found for {ticker!r}")
        self.ticker = ticker


class UpstreamFailure(TickerError):
    """Network, HTTP or parse failure talking to a price/gas API."""

    def __init__(self, source: str, detail: str, status_code: Optional[int] = None):
        prefix = f"{source} HTTP {status_code}" if status_code is not None else source
        super().__init__(f"{prefix}: {detail}")
        self.source = source
        self.detail = detail
        self.status_code = status_code


class PublishFailure(TickerError):
    """Chat gateway connect or update failed."""

    def __init__(self, action: str, detail: str, guild_id: Optional[str] = None):
        where = f" (guild {guild_id})" if guild_id else ""
        super().__init__(f"failed to {action}{where}: {detail}")
        self.action = action
        self.detail = detail
        self.guild_id = guild_id
