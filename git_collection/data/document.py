"""
Mapping of commit records onto index documents.
"""

import json
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Mapping, MutableMapping, Union

from .log_parser import CommitRecord


TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class IndexDocument(OrderedDict):
    """An ordered field map handed to a search index."""

    def to_json(self, **kwargs) -> str:
        return json.dumps(self, ensure_ascii=False, **kwargs)


def format_timestamp(value: datetime) -> str:
    """Render `value` as a UTC `YYYY-MM-DDTHH:MM:SSZ` string; naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def build_document(
    document: MutableMapping[str, Any],
    data: Union[CommitRecord, Mapping[str, Any]],
) -> MutableMapping[str, Any]:
    """
    Copy every field of `data` into `document` by name.

    Datetime values are rendered with `format_timestamp`; every other value is
    copied verbatim. The sink's schema is not validated.

    Returns:
        The same `document`, for chaining
    """
    fields = data.to_fields() if isinstance(data, CommitRecord) else data

    for name, value in fields.items():
        if isinstance(value, datetime):
            value = format_timestamp(value)
        document[name] = value

    return document
