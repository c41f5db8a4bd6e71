"""
Parsing of raw `git log` output into commit records.

Two modes share one header grammar:

* batch mode reads a multi-commit log and returns only the commit hashes;
* single-commit mode reads one commit printed with its patch and returns a
  full `CommitRecord`.

Everything here is a pure function of the input text.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, replace

from dateutil import parser as date_parser

from ..core.exceptions import ParseError


COMMIT_HASH_PATTERN = r'[0-9a-f]{40}'

# Ordered as they appear in a document
RECORD_FIELDS = ("id", "commit", "author", "committer", "date", "message", "diff", "repository")


@dataclass(frozen=True)
class CommitRecord:
    """Data structure for one parsed commit."""
    commit: str
    author: Optional[str] = None
    committer: Optional[str] = None
    date: Optional[datetime] = None
    message: Optional[str] = None
    diff: Optional[str] = None
    repository: Optional[str] = None
    id: Optional[str] = None

    def to_fields(self) -> Dict[str, Any]:
        """Ordered field map of the record; absent fields are left out."""
        fields = {}
        for name in RECORD_FIELDS:
            value = getattr(self, name)
            if value is not None:
                fields[name] = value
        return fields

    def with_item(self, item: str, repository: str) -> "CommitRecord":
        """Copy of the record carrying its queue identifier and repository."""
        return replace(self, id=item, repository=repository)


def parse_date(value: str) -> datetime:
    """
    Parse a `Date:` header value into an aware datetime.

    Accepts git's default format (``Mon Oct 5 14:23:11 2026 +0200``) as well
    as RFC 2822 and ISO 8601. Values without an offset are taken as UTC.
    """
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ParseError(f"Unparseable commit date: {value!r}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CommitLogParser:
    """Converts raw log text into commit hashes or commit records."""

    def __init__(self):
        self._patterns = self._compile_patterns()

    def _compile_patterns(self) -> Dict[str, re.Pattern]:
        """Compile the header grammar."""
        return {
            # A commit header that starts a new segment; not consumed by the split
            'segment': re.compile(rf'(?=^commit {COMMIT_HASH_PATTERN}\b)', re.MULTILINE),
            'commit': re.compile(rf'^commit ({COMMIT_HASH_PATTERN})\b', re.MULTILINE),
            'author': re.compile(r'^Author:[ \t]*(.+?)[ \t]*(?=\n)', re.MULTILINE),
            'committer': re.compile(r'^Committer:[ \t]*(.+?)[ \t]*(?=\n)', re.MULTILINE),
            'date': re.compile(r'^Date:[ \t]*(.+?)[ \t]*(?=\n)', re.MULTILINE),
            'blank_line': re.compile(r'\n\n'),
            # First line of a patch: "diff --git" or "diff --cc" for merges
            'patch': re.compile(r'diff -'),
        }

    def split_segments(self, text: str) -> List[str]:
        """Split a multi-commit log into one segment per commit header."""
        segments = self._patterns['segment'].split(text)
        return [segment for segment in segments if segment.strip()]

    def parse_batch(self, text: str) -> List[str]:
        """
        Extract the commit hash of every entry of a multi-commit log.

        Returns:
            Hashes in the order they appear in the text

        Raises:
            ParseError: if a non-empty segment has no commit header
        """
        hashes = []
        for segment in self.split_segments(text):
            match = self._patterns['commit'].match(segment.lstrip('\n'))
            if match is None:
                preview = segment.strip().splitlines()[0][:80]
                raise ParseError(f"Log segment without commit header: {preview!r}")
            hashes.append(match.group(1))
        return hashes

    def parse_single(self, text: str, repository: Optional[str] = None) -> CommitRecord:
        """
        Parse one commit printed with its patch.

        The entry splits on blank lines into header, message and diff. Two parts
        are either header and message (empty and merge commits print no diff) or
        header and diff (a commit with an empty message); git indents message
        lines, so a second part opening with a ``diff`` line is the patch. Any
        other shape is rejected.

        Raises:
            ParseError: if the commit header is missing or the entry does not split
                into header, message and diff
        """
        parts = self._patterns['blank_line'].split(text.strip('\n'))
        if len(parts) not in (2, 3):
            raise ParseError(
                f"Expected header, message and diff separated by blank lines, got {len(parts)} parts"
            )

        # The field patterns look ahead for the newline ending each header line
        header = parts[0] + '\n'

        match = self._patterns['commit'].search(header)
        if match is None:
            raise ParseError("Commit header not found")

        fields: Dict[str, Any] = {'commit': match.group(1)}
        for name in ('author', 'committer'):
            match = self._patterns[name].search(header)
            if match:
                fields[name] = match.group(1)

        match = self._patterns['date'].search(header)
        if match:
            fields['date'] = parse_date(match.group(1))

        body = parts[1:]
        if self._patterns['patch'].match(body[0].lstrip('\n')):
            if len(body) > 1:
                raise ParseError("Patch found where the commit message belongs")
            # Empty message
            body = ['', body[0]]

        fields['message'] = body[0].strip()
        if len(body) == 2:
            fields['diff'] = body[1].strip()

        return CommitRecord(repository=repository, **fields)
