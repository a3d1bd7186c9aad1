"""Push a nickname + status pair to one guild through a pooled session."""

from core.errors import PublishFailure
from core.logging_utils import get_logger
from core.session_pool import SessionPool

logger = get_logger(__name__)

SELF_MEMBER = "@me"


def publish_update(pool: SessionPool, guild_id: str, credential: str, nickname: str, status: str) -> None:
    """Set the bot's nickname in ``guild_id`` and its listening status.

    Raises PublishFailure if the session cannot be opened or either call fails.
    """
    session = pool.get_or_create(credential)

    logger.debug("[PUBLISH] guild=%s nickname=%r", guild_id, nickname)
    try:
        session.set_nickname(guild_id, SELF_MEMBER, nickname)
    except PublishFailure:
        raise
    except Exception as e:
        raise PublishFailure("change nickname", str(e), guild_id=guild_id) from e

    logger.debug("[PUBLISH] status=%r", status)
    try:
        session.set_status(status)
    except PublishFailure:
        raise
    except Exception as e:
        raise PublishFailure("change status", str(e), guild_id=guild_id) from e
