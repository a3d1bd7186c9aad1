"""Gas Updater - publish the current gas fees to the gas ticker bot."""

from core.config import GasTickerConfig
from core.errors import PublishFailure, UpstreamFailure
from core.logging_utils import job_logger
from core.models import GasSnapshot
from core.session_pool import SessionPool
from core.ticker_interfaces import IGasSource
from execution.display import gas_nickname, gas_status
from execution.publisher import publish_update

logger = job_logger("gas_update")


class GasUpdater:
    def __init__(self, config: GasTickerConfig, pool: SessionPool, gas: IGasSource):
        self.config = config
        self.pool = pool
        self.gas = gas

    def run(self) -> GasSnapshot:
        """Fetch once and publish. Any failure fails the whole run."""
        try:
            snapshot = self.gas.fetch_gas()
        except UpstreamFailure as e:
            logger.error("[GAS] Failed to fetch gas: %s", e)
            raise

        nickname = gas_nickname(snapshot)
        status = gas_status(snapshot)

        try:
            publish_update(self.pool, self.config.guild_id, self.config.discord_bot_key, nickname, status)
        except PublishFailure as e:
            logger.error("[GAS] Failed to update to discord: %s", e)
            raise

        logger.info("[GAS] Published %r / %r", nickname, status)
        return snapshot
