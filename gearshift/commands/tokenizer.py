"""
Message tokenizer.

Splits the prefix-stripped body of a chat message into positional tokens.
Double-quoted spans become a single token holding the quote interior:

    tokenize('foo "bar baz" qux')  →  foo, bar baz, qux

Each Token remembers where it was found in the original text so the binder
can later cut the raw remainder of the message for rest parameters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

# Either a run of non-whitespace, non-quote characters or a "quoted span".
# No escape sequences; a lone unterminated quote never matches and is skipped.
_TOKEN_RE = re.compile(r'[^\s"]+|"([^"]*)"')


@dataclass(frozen=True)
class Token:
    """A single token and its location in the source text."""

    text: str
    index: int
    length: int

    @property
    def end(self) -> int:
        """Offset one past the last character of the raw match."""
        return self.index + self.length


def tokenize(text: str) -> Iterator[Token]:
    """
    Yield tokens from text in order of appearance.

    Args:
        text: Message body with the command prefix already removed

    Yields:
        Token for each bare word or quoted span
    """
    for match in _TOKEN_RE.finditer(text):
        quoted = match.group(1)
        yield Token(
            text=quoted if quoted is not None else match.group(0),
            index=match.start(),
            length=match.end() - match.start(),
        )
