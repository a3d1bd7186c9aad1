"""Point-in-time price and gas readings. Consumed immediately, never stored."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PriceSnapshot:
    """Spot price and 24h percent change for one provider id."""
    provider_id: str
    currency: str
    price: float
    change_24h: float


@dataclass(frozen=True)
class GasSnapshot:
    """Gas station reading. Fee levels are tenths of a gwei."""
    fast: int
    fastest: int
    safe_low: int
    average: int
    block_time: float = 0.0
    block_num: int = 0
    speed: float = 0.0
    safe_low_wait: float = 0.0
    avg_wait: float = 0.0
    fast_wait: float = 0.0
    fastest_wait: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "GasSnapshot":
        return cls(
            fast=int(data["fast"]),
            fastest=int(data.get("fastest", 0) or 0),
            safe_low=int(data["safeLow"]),
            average=int(data["average"]),
            block_time=float(data.get("block_time", 0) or 0),
            block_num=int(data.get("blockNum", 0) or 0),
            speed=float(data.get("speed", 0) or 0),
            safe_low_wait=float(data.get("safeLowWait", 0) or 0),
            avg_wait=float(data.get("avgWait", 0) or 0),
            fast_wait=float(data.get("fastWait", 0) or 0),
            fastest_wait=float(data.get("fastestWait", 0) or 0),
        )

    @staticmethod
    def to_gwei(tenths: int) -> int:
        """Provider units (tenths of a gwei) to whole gwei, truncated."""
        return int(tenths / 10)
