"""Provider catalog entries."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CoinListing:
    """One ``/coins/list`` row: provider id, trading symbol and display name."""
    id: str
    symbol: str
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "CoinListing":
        return cls(
            id=str(data["id"]),
            symbol=str(data["symbol"]),
            name=str(data.get("name") or ""),
        )
