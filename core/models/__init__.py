"""Typed data models for the ticker pipeline."""

from core.models.listing import CoinListing
from core.models.report import UpdateReport
from core.models.snapshot import GasSnapshot, PriceSnapshot

__all__ = [
    "CoinListing",
    "GasSnapshot",
    "PriceSnapshot",
    "UpdateReport",
]
