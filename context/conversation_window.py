"""
ConversationWindow - Bounded in-memory chat history for one session.

Stores user and assistant messages in insertion order. Every outgoing prompt is
a projection of the window: one synthesized system message, the most recent
stored messages, and the new user turn. The system message is never stored.
"""

from config.prompts import SYSTEM_PROMPT
from models.chat_message import ChatMessage
from utils.logger import get_logger

logger = get_logger(__name__)

MAX_STORED_MESSAGES = 10
PROMPT_CONTEXT_MESSAGES = 5


class ConversationWindow:
    """
    Sliding conversation history.

    Invariants:
    - build_prompt never mutates the window
    - after finalize, at most ``max_messages`` messages are stored
    - a prompt carries at most ``context_messages`` stored messages

    Not thread-safe; ChatSession serializes access with an asyncio.Lock.
    """

    def __init__(
        self,
        max_messages: int = MAX_STORED_MESSAGES,
        context_messages: int = PROMPT_CONTEXT_MESSAGES,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        """
        Initialize ConversationWindow.

        Args:
            max_messages: Messages retained after each completed exchange
            context_messages: Most recent stored messages included in a prompt
            system_prompt: Content of the synthesized system message
        """
        if max_messages < 1 or context_messages < 0:
            raise ValueError("max_messages must be >= 1 and context_messages >= 0")

        self.max_messages = max_messages
        self.context_messages = context_messages
        self.system_prompt = system_prompt
        self._messages: list[ChatMessage] = []

        logger.info(
            f"Initialized ConversationWindow (max_messages={max_messages}, context_messages={context_messages})"
        )

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def system_message(self) -> ChatMessage:
        return ChatMessage.system(self.system_prompt)

    def build_prompt(self, new_text: str) -> list[ChatMessage]:
        """
        Build the message list for the next request.

        Args:
            new_text: The new user turn

        Returns:
            [system] + recent stored messages + [new user message]
        """
        recent = self._messages[-self.context_messages:] if self.context_messages else []
        return [self.system_message(), *recent, ChatMessage.user(new_text)]

    def append(self, message: ChatMessage) -> None:
        """Store a message. No pruning happens here."""
        self._messages.append(message)
        logger.debug(f"Appended {message.role} message (total messages: {len(self._messages)})")

    def finalize(self, reply_text: str) -> bool:
        """
        Store a completed assistant reply and prune to the window size.

        Args:
            reply_text: Full text of the streamed reply

        Returns:
            True if the reply was stored, False for an empty reply
        """
        if not reply_text:
            logger.debug("Empty reply, nothing to finalize")
            return False

        self._messages.append(ChatMessage.assistant(reply_text))

        overflow = len(self._messages) - self.max_messages
        if overflow > 0:
            del self._messages[:overflow]
            logger.info(
                f"Pruned conversation: removed {overflow} old messages (current: {len(self._messages)})"
            )
        return True

    def clear(self) -> None:
        self._messages.clear()
        logger.info("Conversation cleared")

    def summary(self, last_n: int = 10) -> str:
        """
        Formatted view of the most recent messages, for diagnostics.

        Args:
            last_n: Number of recent messages to include
        """
        if not self._messages:
            return "No conversation history"

        recent = self._messages[-last_n:]
        lines = [
            f"=== Conversation History (showing last {len(recent)} of {len(self._messages)} messages) ==="
        ]
        for i, msg in enumerate(recent, 1):
            content = msg.content
            if len(content) > 100:
                content = content[:97] + "..."
            lines.append(f"{i}. [{msg.role.upper()}] {content}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ConversationWindow(messages={len(self._messages)}, max={self.max_messages})"
