"""
Item identifiers: `<commit hash>:<repository URL>`.

An identifier is the only state carried from the listing of a repository to
the loading of one of its commits, so it must survive any queue unchanged.
Repository URLs may contain colons themselves; decoding therefore splits once,
on the colon that ends the fixed-width hash.
"""

import re
from typing import NamedTuple

from ..core.exceptions import ParseError


SEPARATOR = ":"

_HASH = re.compile(r'[0-9a-f]{40}')


class ItemIdentifier(NamedTuple):
    """A commit within a repository."""
    commit: str
    repository: str

    def encode(self) -> str:
        return encode_item(self.commit, self.repository)

    @classmethod
    def decode(cls, item: str) -> "ItemIdentifier":
        return cls(*decode_item(item))

    def __str__(self) -> str:
        return self.encode()


def encode_item(commit: str, repository: str) -> str:
    """Build the identifier for `commit` in `repository`."""
    if not _HASH.fullmatch(commit):
        raise ValueError(f"Not a 40 character commit hash: {commit!r}")
    if not repository:
        raise ValueError("Repository reference must not be empty")
    return f"{commit}{SEPARATOR}{repository}"


def decode_item(item: str) -> tuple:
    """
    Split an identifier back into `(commit, repository)`.

    Raises:
        ParseError: if the identifier does not start with a commit hash and a
            separator, or names no repository
    """
    parts = item.split(SEPARATOR, 1)
    if len(parts) != 2 or not _HASH.fullmatch(parts[0]) or not parts[1]:
        raise ParseError("Malformed item identifier", item=item)
    return parts[0], parts[1]
