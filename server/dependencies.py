"""FastAPI dependencies for session access."""

from context.session import ChatSession
from utils.logger import get_logger

logger = get_logger(__name__)


def get_session() -> ChatSession:
    """Dependency to get the chat session (one per server process)."""
    if not hasattr(get_session, "_instance"):
        get_session._instance = ChatSession.from_config()
        logger.info("Chat session created")
    return get_session._instance


async def close_session() -> None:
    """Release the session's HTTP clients, if a session was created."""
    session = getattr(get_session, "_instance", None)
    if session is None:
        return
    await session.aclose()
    delattr(get_session, "_instance")
