"""Conversation sessions and an explicit, caller-owned session store."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from ..client.turn import Message, MessageRole, Usage

logger = logging.getLogger(__name__)

DEFAULT_MAX_FUNCTION_CALLS = 5


@dataclass
class ConversationSession:
    """
    State of one conversation.

    Messages are append-only. ``usage`` holds the figures of the most recent
    request; ``turn_usages`` keeps one entry per request in order.
    """
    messages: List[Message] = field(default_factory=list)
    max_function_calls: int = DEFAULT_MAX_FUNCTION_CALLS
    function_call_count: int = 0
    usage: Usage = field(default_factory=Usage)
    turn_usages: List[Usage] = field(default_factory=list)
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if self.max_function_calls < 0:
            raise ValueError("max_function_calls must be >= 0")

    @classmethod
    def create(
        cls,
        system_prompt: Optional[str] = None,
        messages: Optional[Sequence[Message]] = None,
        max_function_calls: int = DEFAULT_MAX_FUNCTION_CALLS,
        session_id: Optional[str] = None,
    ) -> "ConversationSession":
        """
        Start a session.

        Args:
            system_prompt: Optional system message placed first
            messages: Initial messages (for example the user's question)
            max_function_calls: Bound on tool invocations
            session_id: Explicit identifier; generated when omitted
        """
        initial: List[Message] = []
        if system_prompt:
            initial.append(Message.system(system_prompt))
        initial.extend(messages or ())

        session = cls(messages=initial, max_function_calls=max_function_calls)
        if session_id:
            session.session_id = session_id
        return session

    def append(self, message: Message) -> None:
        self.messages.append(message)

    def record_usage(self, usage: Usage) -> None:
        self.usage = usage
        self.turn_usages.append(usage)

    def record_invocation(self) -> None:
        self.function_call_count += 1

    def can_invoke(self) -> bool:
        """Whether another tool invocation is allowed."""
        return self.function_call_count < self.max_function_calls

    def reset_invocation_budget(self) -> None:
        """Start a new answer with the full function-call budget."""
        self.function_call_count = 0

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None

    def messages_with_role(self, role: MessageRole) -> List[Message]:
        return [m for m in self.messages if m.role == role]


class SessionStore:
    """Map from session id to session, owned by whoever creates it."""

    def __init__(self) -> None:
        self._sessions: Dict[str, ConversationSession] = {}

    def create(self, system_prompt: Optional[str] = None, **kwargs) -> ConversationSession:
        session = ConversationSession.create(system_prompt=system_prompt, **kwargs)
        if session.session_id in self._sessions:
            raise ValueError(f"Session '{session.session_id}' already exists")
        self._sessions[session.session_id] = session
        logger.debug(f"Created session {session.session_id}")
        return session

    def get(self, session_id: str) -> Optional[ConversationSession]:
        return self._sessions.get(session_id)

    def drop(self, session_id: str) -> bool:
        """Remove a session; returns False if it was unknown."""
        return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sessions)
