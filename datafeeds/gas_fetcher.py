"""ETH Gas Station client."""

from __future__ import annotations

from typing import Optional

import requests

from core.config import settings
from core.errors import UpstreamFailure
from core.logging_utils import get_logger
from core.models import GasSnapshot

logger = get_logger(__name__)

_SOURCE = "ethgasstation"


class GasStationClient:
    def __init__(
        self,
        api_key: str = "",
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or settings.gas_station_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.session = session or requests.Session()

    def fetch_gas(self) -> GasSnapshot:
        """Current fee levels. Raises UpstreamFailure on any transport/parse problem."""
        url = f"{self.base_url}/ethgasAPI.json"
        try:
            resp = self.session.get(url, params={"api-key": self.api_key}, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFailure(_SOURCE, f"GET /ethgasAPI.json failed: {e}") from e

        if not resp.ok:
            raise UpstreamFailure(_SOURCE, (resp.text or "").strip()[:200], status_code=resp.status_code)

        try:
            snapshot = GasSnapshot.from_dict(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamFailure(_SOURCE, f"malformed gas response: {e!r}") from e

        logger.debug(
            "[GAS] avg=%s fast=%s safeLow=%s block=%s",
            snapshot.average, snapshot.fast, snapshot.safe_low, snapshot.block_num,
        )
        return snapshot
