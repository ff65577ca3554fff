"""Role-merge normalization of canonical turns into backend turns.

Converse requires strict user/assistant alternation and carries system text
outside the message list. Normalization pulls system turns into a preamble
and coalesces adjacent turns that map to the same backend role, keeping
every block in its original order.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .data_structures import BackendTurn, ConversationRole, Message, Role
from .tool_codec import encode_message

__all__ = ["BACKEND_ROLES", "NormalizedConversation", "normalize_messages"]

logger = logging.getLogger(__name__)

BACKEND_ROLES: Mapping[Role, ConversationRole] = {
    Role.USER: ConversationRole.USER,
    Role.ASSISTANT: ConversationRole.ASSISTANT,
    Role.TOOL: ConversationRole.USER,
}


@dataclass
class NormalizedConversation:
    """System preamble plus the alternating backend turns."""

    system: list[str] = field(default_factory=list)
    turns: list[BackendTurn] = field(default_factory=list)


def normalize_messages(messages: Sequence[Message]) -> NormalizedConversation:
    """Group canonical turns into the fewest backend turns.

    Args:
        messages: Ordered canonical turns. Not modified.

    Returns:
        NormalizedConversation with the preamble and backend turns
    """
    result = NormalizedConversation()

    for msg in messages:
        role = msg.known_role
        if role is Role.SYSTEM:
            result.system.append(msg.content)
            continue
        if role is None:
            # Invisible to coalescing: the next turn still compares
            # against the last turn actually emitted.
            logger.debug("Skipping message with unrecognized role %r", msg.role)
            continue

        backend_role = BACKEND_ROLES[role]
        blocks = encode_message(msg)

        if result.turns and result.turns[-1].role is backend_role:
            result.turns[-1].blocks.extend(blocks)
        else:
            result.turns.append(BackendTurn(role=backend_role, blocks=blocks))

    return result
