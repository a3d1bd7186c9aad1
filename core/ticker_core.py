"""
Ticker Core - owns the shared state and wires the three jobs.

Shared state (symbol index + session pool) lives here and is handed by
reference to each updater. Clients and the session connector can be injected
for tests; defaults talk to CoinGecko, ETH Gas Station and Discord.
"""

from typing import Optional

from core.config import Settings, TickerConfig, settings as default_settings
from core.logging_utils import get_logger
from core.models import GasSnapshot, UpdateReport
from core.scheduler import TickerScheduler
from core.session_pool import SessionPool
from core.symbol_index import SymbolIndex
from core.ticker_interfaces import IGasSource, IPriceSource, SessionConnector
from datafeeds.coingecko_fetcher import CoinGeckoClient
from datafeeds.gas_fetcher import GasStationClient
from execution.discord_session import connect_discord
from execution.gas_updater import GasUpdater
from execution.price_updater import PriceUpdater

logger = get_logger(__name__)

JOB_INDEX_REFRESH = "index_refresh"
JOB_PRICE_UPDATE = "price_update"
JOB_GAS_UPDATE = "gas_update"


class TickerCore:
    def __init__(
        self,
        config: TickerConfig,
        prices: Optional[IPriceSource] = None,
        gas: Optional[IGasSource] = None,
        connector: Optional[SessionConnector] = None,
        settings: Optional[Settings] = None,
    ):
        self.config = config
        self.settings = settings or default_settings
        self.prices = prices or CoinGeckoClient(
            base_url=self.settings.coingecko_base_url,
            timeout=self.settings.http_timeout_seconds,
        )
        self.gas = gas or GasStationClient(
            api_key=config.gas_ticker_config.api_key,
            base_url=self.settings.gas_station_base_url,
            timeout=self.settings.http_timeout_seconds,
        )

        self.index = SymbolIndex(self.prices.fetch_coin_list)
        self.pool = SessionPool(connector or connect_discord)

        self.price_updater = PriceUpdater(config.coins, self.index, self.pool, self.prices)
        self.gas_updater = GasUpdater(config.gas_ticker_config, self.pool, self.gas)

    # Job bodies
    def refresh_index(self) -> int:
        return self.index.refresh()

    def update_price_ticker(self) -> UpdateReport:
        return self.price_updater.run()

    def update_gas_ticker(self) -> GasSnapshot:
        return self.gas_updater.run()

    def build_scheduler(self) -> TickerScheduler:
        """Three independent jobs. Index refresh is expected to have run once already."""
        sched = TickerScheduler(max_workers=3)
        sched.add(
            JOB_INDEX_REFRESH,
            self.refresh_index,
            seconds=self.settings.index_refresh_minutes * 60,
            run_immediately=False,
        )
        sched.add(JOB_PRICE_UPDATE, self.update_price_ticker, seconds=self.settings.price_update_seconds)
        sched.add(JOB_GAS_UPDATE, self.update_gas_ticker, seconds=self.settings.gas_update_seconds)
        return sched

    def close(self) -> None:
        self.pool.close_all()
