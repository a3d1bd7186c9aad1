"""Nickname/status strings shown on the ticker bots."""

from core.models import GasSnapshot

CURRENCY_SYMBOLS = {
    "usd": "$",
    "idr": "RP.",
}
DEFAULT_CURRENCY_SYMBOL = "$"

WALKING = "\U0001F6B6"  # 🚶
LIGHTNING = "\u26A1"  # ⚡
SNAIL = "\U0001F40C"  # 🐌


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.lower(), DEFAULT_CURRENCY_SYMBOL)


def price_nickname(coin_id: str, currency: str, price: float, decimals: int) -> str:
    """e.g. ``btc $12345.68``"""
    return f"{coin_id} {currency_symbol(currency)}{price:.{decimals}f}"


def price_status(change_24h: float) -> str:
    """e.g. ``24H: -1.23%``"""
    return f"24H: {change_24h:.2f}%"


def gas_nickname(snapshot: GasSnapshot) -> str:
    return f"{WALKING}{GasSnapshot.to_gwei(snapshot.average)} gwei"


def gas_status(snapshot: GasSnapshot) -> str:
    fast = GasSnapshot.to_gwei(snapshot.fast)
    safe_low = GasSnapshot.to_gwei(snapshot.safe_low)
    return f"{LIGHTNING}{fast} {SNAIL}{safe_low}"
