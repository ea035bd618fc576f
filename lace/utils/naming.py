"""Component tag <-> identifier conversion.

Tags join identifier segments with ``-`` (``view-form-text_input``) and use
``_`` inside a segment where the identifier has a camel-case boundary
(``Form.TextInput``). Acronyms do not survive the round trip (``HTMLBlock``
comes back as ``HtmlBlock``); register such components explicitly.
"""
from __future__ import annotations

import re
from typing import List

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_TAG_SEGMENT = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")


def camel_to_snake(segment: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", segment).lower()


def snake_to_camel(segment: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in segment.split("_") if part)


def split_prefix(tag: str, prefix: str) -> str:
    """Return the part of ``tag`` after ``<prefix>-``."""
    lead = f"{prefix}-"
    if not tag.startswith(lead) or len(tag) == len(lead):
        raise ValueError(f"tag {tag!r} does not start with prefix {prefix!r}")
    return tag[len(lead):]


def tag_to_identifier(tag: str, prefix: str) -> str:
    rest = split_prefix(tag.lower(), prefix.lower())
    segments: List[str] = []
    for segment in rest.split("-"):
        if not _TAG_SEGMENT.match(segment):
            raise ValueError(f"tag {tag!r} has an invalid segment {segment!r}")
        segments.append(snake_to_camel(segment))
    return ".".join(segments)


def identifier_to_tag(identifier: str, prefix: str) -> str:
    segments = [camel_to_snake(s) for s in identifier.split(".") if s]
    if not segments:
        raise ValueError("identifier must not be empty")
    return "-".join([prefix.lower(), *segments])


__all__ = [
    "camel_to_snake",
    "snake_to_camel",
    "split_prefix",
    "tag_to_identifier",
    "identifier_to_tag",
]
