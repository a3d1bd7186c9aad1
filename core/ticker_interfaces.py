"""Collaborator interfaces for the ticker pipeline."""

from typing import Callable, Iterable, Protocol

from core.models import CoinListing, GasSnapshot, PriceSnapshot


class IChatSession(Protocol):
    """Long-lived chat gateway session bound to one bot credential."""

    def set_nickname(self, guild_id: str, user: str, nickname: str) -> None:
        ...

    def set_status(self, text: str) -> None:
        ...

    def close(self) -> None:
        ...


# credential -> connected session; raises on failure
SessionConnector = Callable[[str], IChatSession]


class IPriceSource(Protocol):
    """Provider catalog and spot quotes."""

    def fetch_coin_list(self) -> Iterable[CoinListing]:
        ...

    def fetch_price(self, provider_id: str, currency: str) -> PriceSnapshot:
        ...


class IGasSource(Protocol):
    """Gas fee snapshot provider."""

    def fetch_gas(self) -> GasSnapshot:
        ...
