"""CoinGecko REST client: coin catalog and simple price."""

from __future__ import annotations

from typing import List, Optional

import requests

from core.config import settings
from core.errors import UpstreamFailure
from core.logging_utils import get_logger
from core.models import CoinListing, PriceSnapshot

logger = get_logger(__name__)

_SOURCE = "coingecko"
_BODY_EXCERPT = 200


def _excerpt(text: str) -> str:
    text = (text or "").strip()
    return text if len(text) <= _BODY_EXCERPT else text[:_BODY_EXCERPT] + "..."


class CoinGeckoClient:
    """
    Thin wrapper over the public CoinGecko API.

    Every failure (transport, non-2xx, malformed JSON) surfaces as
    ``UpstreamFailure`` so callers only handle one exception type.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.session = session or requests.Session()

    def _get_json(self, path: str, params: Optional[dict] = None):
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFailure(_SOURCE, f"GET {path} failed: {e}") from e

        if not resp.ok:
            raise UpstreamFailure(_SOURCE, _excerpt(resp.text), status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamFailure(_SOURCE, f"GET {path} returned invalid JSON") from e

    def fetch_coin_list(self) -> List[CoinListing]:
        """Full catalog, in the order the provider returns it."""
        data = self._get_json("/coins/list")
        if not isinstance(data, list):
            raise UpstreamFailure(_SOURCE, f"/coins/list expected a list, got {type(data).__name__}")
        try:
            listings = [CoinListing.from_dict(row) for row in data]
        except (KeyError, TypeError, AttributeError) as e:
            raise UpstreamFailure(_SOURCE, f"/coins/list malformed row: {e}") from e
        logger.debug("[CG] Fetched %d listings", len(listings))
        return listings

    def fetch_price(self, provider_id: str, currency: str) -> PriceSnapshot:
        """Spot price and 24h change of ``provider_id`` quoted in ``currency``."""
        currency = currency.lower()
        data = self._get_json(
            "/simple/price",
            params={
                "ids": provider_id,
                "vs_currencies": currency,
                "include_24hr_change": "true",
            },
        )
        try:
            quote = data[provider_id]
            price = float(quote[currency])
            change = float(quote[f"{currency}_24h_change"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamFailure(
                _SOURCE, f"no {currency} quote for {provider_id!r} in response: {e!r}"
            ) from e
        return PriceSnapshot(provider_id=provider_id, currency=currency, price=price, change_24h=change)
