"""
Tests for CommitLogParser - batch and single-commit parsing of git log text.
"""

from datetime import datetime, timedelta, timezone

import pytest

from git_collection.core.exceptions import ParseError
from git_collection.data.log_parser import CommitLogParser, CommitRecord, parse_date
from tests.log_samples import HASHES, batch_log, single_log


@pytest.fixture
def parser():
    return CommitLogParser()


class TestBatchParsing:
    """Batch mode returns commit hashes only."""

    def test_returns_every_hash_in_order(self, parser):
        assert parser.parse_batch(batch_log(HASHES)) == HASHES

    def test_single_entry(self, parser):
        assert parser.parse_batch(batch_log(HASHES[:1])) == HASHES[:1]

    def test_empty_output_yields_no_hashes(self, parser):
        assert parser.parse_batch("") == []
        assert parser.parse_batch("\n\n") == []

    def test_surrounding_blank_lines_are_discarded(self, parser):
        text = "\n" + batch_log(HASHES[:2]) + "\n\n"
        assert parser.parse_batch(text) == HASHES[:2]

    def test_hash_mentioned_in_message_is_not_a_boundary(self, parser):
        text = (
            f"commit {HASHES[0]}\n"
            f"Author: Jane Doe <jane@example.com>\n"
            f"\n"
            f"    Revert of\n"
            f"    commit {HASHES[1]}\n"
        )
        assert parser.parse_batch(text) == [HASHES[0]]

    def test_decorated_header_still_matches(self, parser):
        text = f"commit {HASHES[0]} (HEAD -> main, origin/main)\nAuthor: A <a@x>\n\n    msg"
        assert parser.parse_batch(text) == [HASHES[0]]

    def test_text_before_first_header_is_rejected(self, parser):
        with pytest.raises(ParseError):
            parser.parse_batch("warning: something odd\n" + batch_log(HASHES[:1]))

    def test_segments_keep_their_header(self, parser):
        segments = parser.split_segments(batch_log(HASHES[:2]))
        assert len(segments) == 2
        assert segments[1].startswith(f"commit {HASHES[1]}")


class TestSingleCommitParsing:
    """Single-commit mode returns a full record."""

    def test_well_formed_entry(self, parser):
        commit = "abcdef0123456789abcdef0123456789abcdef01"
        text = f"commit {commit}\nAuthor: A <a@x>\nDate: Mon Oct 5 14:23:11 2026 +0200\n\nmsg\n\ndiff --git a/x b/x\n+1"

        record = parser.parse_single(text)

        assert record.commit == commit
        assert record.author == "A <a@x>"
        assert record.message == "msg"
        assert record.diff.startswith("diff")
        assert record.committer is None
        assert "committer" not in record.to_fields()

    def test_date_is_absolute(self, parser):
        record = parser.parse_single(single_log(HASHES[0]))
        assert record.date == datetime(2026, 10, 5, 12, 23, 11, tzinfo=timezone.utc)
        assert record.date.utcoffset() == timedelta(hours=2)

    def test_message_and_diff_are_trimmed(self, parser):
        record = parser.parse_single(single_log(HASHES[0], message="Fix the frobnicator  "))
        assert record.message == "Fix the frobnicator"
        assert record.diff.startswith("diff --git a/frob.py b/frob.py")
        assert record.diff.endswith("+x = 2")

    def test_multi_paragraph_message_stays_in_message(self, parser):
        record = parser.parse_single(single_log(HASHES[0], message="Subject\n    \n    Body text"))
        assert record.message.startswith("Subject")
        assert record.message.endswith("Body text")
        assert record.diff.startswith("diff --git")

    def test_committer_is_extracted_when_present(self, parser):
        text = single_log(HASHES[0]).replace(
            "Date:", "Committer: Bot <bot@example.com>\nDate:", 1
        )
        record = parser.parse_single(text)
        assert record.committer == "Bot <bot@example.com>"

    def test_last_header_line_is_matched(self, parser):
        text = f"commit {HASHES[0]}\nDate:   Mon Oct 5 14:23:11 2026 +0200\n\n    msg\n\ndiff"
        record = parser.parse_single(text)
        assert record.date is not None
        assert record.author is None

    def test_missing_optional_fields_are_omitted(self, parser):
        record = parser.parse_single(f"commit {HASHES[0]}\n\n    msg\n\ndiff")
        assert record.to_fields() == {"commit": HASHES[0], "message": "msg", "diff": "diff"}

    def test_entry_without_diff(self, parser):
        text = f"commit {HASHES[0]}\nAuthor: A <a@x>\n\n    Empty commit"
        record = parser.parse_single(text)
        assert record.message == "Empty commit"
        assert record.diff is None

    def test_empty_message_keeps_the_patch_in_diff(self, parser):
        text = single_log(HASHES[0]).replace("    Fix the frobnicator\n\n", "", 1)

        record = parser.parse_single(text)

        assert record.message == ""
        assert record.diff.startswith("diff --git a/frob.py b/frob.py")
        assert record.diff.endswith("+x = 2")

    def test_merge_entry_without_diff(self, parser):
        text = (
            f"commit {HASHES[0]}\n"
            f"Merge: {HASHES[1][:7]} {HASHES[2][:7]}\n"
            f"Author: A <a@x>\n"
            f"Date:   Mon Oct 5 14:23:11 2026 +0200\n"
            f"\n"
            f"    Merge branch 'side'"
        )
        record = parser.parse_single(text)
        assert record.message == "Merge branch 'side'"
        assert record.author == "A <a@x>"
        assert record.diff is None

    def test_patch_in_place_of_message_is_an_error(self, parser):
        text = f"commit {HASHES[0]}\n\ndiff --git a/x b/x\n+1\n\ndiff --git a/y b/y\n+2"
        with pytest.raises(ParseError, match="Patch"):
            parser.parse_single(text)

    def test_repository_back_reference(self, parser):
        record = parser.parse_single(single_log(HASHES[0]), repository="https://example.com/r.git")
        assert record.repository == "https://example.com/r.git"

    def test_missing_commit_header_is_an_error(self, parser):
        with pytest.raises(ParseError, match="Commit header"):
            parser.parse_single("Author: A <a@x>\n\n    msg\n\ndiff")

    def test_extra_blank_line_separated_parts_are_an_error(self, parser):
        text = single_log(HASHES[0]) + "\n\nstray paragraph"
        with pytest.raises(ParseError, match="4 parts"):
            parser.parse_single(text)

    def test_header_only_is_an_error(self, parser):
        with pytest.raises(ParseError):
            parser.parse_single(f"commit {HASHES[0]}\nAuthor: A <a@x>")

    def test_unparseable_date_is_an_error(self, parser):
        with pytest.raises(ParseError, match="date"):
            parser.parse_single(single_log(HASHES[0], date="garbage"))


class TestCommitRecord:

    def test_fields_are_ordered(self):
        record = CommitRecord(commit=HASHES[0], message="m", author="a").with_item("item", "repo")
        assert list(record.to_fields()) == ["id", "commit", "author", "message", "repository"]

    def test_records_are_immutable(self):
        record = CommitRecord(commit=HASHES[0])
        with pytest.raises(AttributeError):
            record.commit = HASHES[1]


class TestParseDate:

    def test_git_and_rfc2822_formats_agree(self):
        native = parse_date("Mon Oct 5 14:23:11 2026 +0200")
        rfc = parse_date("Mon, 05 Oct 2026 14:23:11 +0200")
        assert native == rfc

    def test_naive_values_are_utc(self):
        assert parse_date("2026-10-05 12:00:00").tzinfo == timezone.utc
