"""
Price Updater - per-minute price ticker run.

For every configured coin: resolve provider id, fetch price + 24h change,
format, publish. Resolution misses and upstream failures skip only that coin.
A publish failure aborts the rest of the run.

The whole iteration holds the symbol index lock, so a price run and an index
refresh never interleave.
"""

from typing import Optional, Sequence

from core.config import CoinConfig
from core.errors import NotReady, PublishFailure, ResolutionMiss, UpstreamFailure
from core.logging_utils import job_logger
from core.models import UpdateReport
from core.session_pool import SessionPool
from core.symbol_index import SymbolIndex
from core.ticker_interfaces import IPriceSource
from execution.display import price_nickname, price_status
from execution.publisher import publish_update

logger = job_logger("price_update")


class PriceUpdater:
    def __init__(
        self,
        coins: Sequence[CoinConfig],
        index: SymbolIndex,
        pool: SessionPool,
        prices: IPriceSource,
    ):
        self.coins = list(coins)
        self.index = index
        self.pool = pool
        self.prices = prices

    def resolve(self, coin: CoinConfig) -> str:
        """Provider id for ``coin``: explicit override first, then the index."""
        if coin.coingecko_id:
            return coin.coingecko_id
        provider_id: Optional[str] = self.index.lookup(coin.ticker)
        if provider_id is None:
            raise ResolutionMiss(coin.id)
        return provider_id

    def run(self) -> UpdateReport:
        """Update every coin once. Raises NotReady or PublishFailure as the run's failure."""
        report = UpdateReport()

        with self.index.exclusive():
            if not self.index.ready:
                logger.error("[PRICE] Symbol index is not initialized yet")
                raise NotReady()

            for coin in self.coins:
                logger.debug("[PRICE] Updating %s...", coin.id)

                try:
                    provider_id = self.resolve(coin)
                except ResolutionMiss as e:
                    logger.warning("[PRICE] Skipping %s, not found: %s", coin.id, e, exc_info=True)
                    report.skipped.append(coin.id)
                    continue

                try:
                    snapshot = self.prices.fetch_price(provider_id, coin.vs_currency)
                except UpstreamFailure as e:
                    logger.warning(
                        "[PRICE] Skipping %s, fetch failed (%s): %s", coin.id, provider_id, e, exc_info=True
                    )
                    report.skipped.append(coin.id)
                    continue

                nickname = price_nickname(coin.id, coin.vs_currency, snapshot.price, coin.decimal_place)
                status = price_status(snapshot.change_24h)

                try:
                    publish_update(self.pool, coin.guild_id, coin.discord_bot_key, nickname, status)
                except PublishFailure as e:
                    logger.error("[PRICE] Failed to update %s to discord: %s", coin.id, e)
                    raise

                report.published.append(coin.id)
                logger.debug("[PRICE] %s -> %r / %r", coin.id, nickname, status)

        logger.info(
            "[PRICE] Run complete: %d published, %d skipped",
            len(report.published), len(report.skipped),
        )
        return report
