"""Heuristic token counting and exchange statistics.

The estimate assumes roughly three words per four tokens. It is an
approximation of sub-word tokenization and will not match any particular
model's tokenizer exactly.
"""

from __future__ import annotations

import json
import math
from typing import Sequence

from snapthink.core.models import ChatStats, Message

WORDS_PER_TOKEN = 0.75


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_tokens(text: str) -> int:
    """Approximate token count: whitespace-separated words divided by 0.75."""
    words = text.split()
    return _round_half_up(len(words) / WORDS_PER_TOKEN)


def tokens_per_second(tokens: int, elapsed: float) -> int:
    if elapsed <= 0:
        return 0
    return max(0, _round_half_up(tokens / elapsed))


def serialize_log(messages: Sequence[Message]) -> str:
    """Compact JSON of a message log, as sent over the wire."""
    return json.dumps(
        [m.to_dict() for m in messages], ensure_ascii=False, separators=(",", ":")
    )


def compute_stats(
    messages: Sequence[Message],
    context: Sequence[Message],
    reply: Message,
    elapsed: float,
) -> ChatStats:
    """Build stats after an exchange.

    *messages* is the full log including *reply*; *context* is the log that
    was sent to the backend (everything before the reply).
    """
    total_text = " ".join(m.content for m in messages)
    return ChatStats(
        total_tokens=estimate_tokens(total_text),
        tokens_per_second=tokens_per_second(estimate_tokens(reply.content), elapsed),
        context_tokens=estimate_tokens(serialize_log(context)),
    )
