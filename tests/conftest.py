import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.config import CoinConfig, GasTickerConfig, PriceTickerConfig, TickerConfig  # noqa: E402
from core.errors import UpstreamFailure  # noqa: E402
from core.models import CoinListing, GasSnapshot, PriceSnapshot  # noqa: E402


class FakeSession:
    """Records every gateway call; optionally fails on nickname/status."""

    def __init__(self, credential: str, fail_on: str | None = None):
        self.credential = credential
        self.fail_on = fail_on
        self.nicknames: list[tuple[str, str, str]] = []
        self.statuses: list[str] = []
        self.closed = False

    def set_nickname(self, guild_id, user, nickname):
        if self.fail_on == "nickname":
            raise RuntimeError("403 Missing Permissions")
        self.nicknames.append((guild_id, user, nickname))

    def set_status(self, text):
        if self.fail_on == "status":
            raise RuntimeError("gateway closed")
        self.statuses.append(text)

    def close(self):
        self.closed = True

    @property
    def calls(self) -> int:
        return len(self.nicknames) + len(self.statuses)


class FakeConnector:
    """SessionPool connector handing out FakeSessions."""

    def __init__(self, fail_credentials=(), session_fail_on=None):
        self.fail_credentials = set(fail_credentials)
        self.session_fail_on = dict(session_fail_on or {})
        self.connects: list[str] = []
        self.sessions: dict[str, FakeSession] = {}

    def __call__(self, credential):
        self.connects.append(credential)
        if credential in self.fail_credentials:
            raise ConnectionError(f"cannot reach gateway for {credential}")
        session = FakeSession(credential, fail_on=self.session_fail_on.get(credential))
        self.sessions[credential] = session
        return session

    @property
    def total_calls(self) -> int:
        return sum(s.calls for s in self.sessions.values())


class FakePrices:
    """In-memory catalog + quotes keyed by provider id."""

    def __init__(self, listings=None, quotes=None, failing_ids=(), list_error=None):
        self.listings = list(listings or [])
        self.quotes = dict(quotes or {})
        self.failing_ids = set(failing_ids)
        self.list_error = list_error
        self.price_calls: list[tuple[str, str]] = []
        self.list_calls = 0

    def fetch_coin_list(self):
        self.list_calls += 1
        if self.list_error is not None:
            raise self.list_error
        return list(self.listings)

    def fetch_price(self, provider_id, currency):
        self.price_calls.append((provider_id, currency))
        if provider_id in self.failing_ids or provider_id not in self.quotes:
            raise UpstreamFailure("coingecko", f"no quote for {provider_id}", status_code=404)
        price, change = self.quotes[provider_id]
        return PriceSnapshot(provider_id=provider_id, currency=currency, price=price, change_24h=change)


class FakeGas:
    def __init__(self, snapshot=None, error=None):
        self.snapshot = snapshot
        self.error = error
        self.calls = 0

    def fetch_gas(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.snapshot


def make_coin(coin_id="btc", token="token-btc", guild="guild-1", **kwargs) -> CoinConfig:
    data = {
        "id": coin_id,
        "decimalPlace": kwargs.pop("decimal_place", 2),
        "vsCurrencies": kwargs.pop("vs_currencies", "usd"),
        "discordBotKey": token,
        "guildID": guild,
    }
    override = kwargs.pop("coingecko_id", None)
    if override is not None:
        data["coingeckoID"] = override
    return CoinConfig.model_validate(data)


def make_ticker_config(coins=None, gas_token="token-gas", gas_guild="guild-gas") -> TickerConfig:
    return TickerConfig(
        gas_ticker_config=GasTickerConfig(api_key="gas-key", discord_bot_key=gas_token, guild_id=gas_guild),
        price_ticker_config=PriceTickerConfig(coin_list=list(coins or [])),
    )


SAMPLE_LISTINGS = [
    CoinListing(id="bitcoin", symbol="btc", name="Bitcoin"),
    CoinListing(id="ethereum", symbol="ETH", name="Ethereum"),
    CoinListing(id="solana", symbol="sol", name="Solana"),
]


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def prices():
    return FakePrices(
        listings=SAMPLE_LISTINGS,
        quotes={
            "bitcoin": (12345.678, -1.234),
            "ethereum": (2000.5, 3.14159),
            "solana": (150.0, 0.5),
        },
    )


@pytest.fixture
def gas_snapshot():
    return GasSnapshot(fast=650, fastest=800, safe_low=120, average=423)
