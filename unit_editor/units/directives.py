"""
Placement directives embedded in unit content.

The generative service may mark where a new unit goes with a comment line::

    // insert-before: handleRequest
    // insert-after: main.gopart

Directives are parsed once, when an edit record is ingested, and moved
into the record's structured ``insert_before`` / ``insert_after`` fields.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .models import EditRecord

_DIRECTIVE = re.compile(r"^\s*//\s*insert-(before|after):\s*(\S+)\s*$")

DEFAULT_EXTENSION = ".gopart"


@dataclass
class Placement:
    content: str
    insert_before: Optional[str] = None
    insert_after: Optional[str] = None


def normalize_target(target: str, extension: str = DEFAULT_EXTENSION) -> str:
    """Turn ``foo.gopart`` (or a path to it) into the bare unit id ``foo``."""
    target = target.strip().rsplit("/", 1)[-1]
    if extension and target.endswith(extension):
        target = target[: -len(extension)]
    return target


def parse_directives(content: str, extension: str = DEFAULT_EXTENSION) -> Placement:
    """Strip directive lines from *content* and return what they said.

    The first directive of each kind wins; all directive lines are removed.
    """
    before: Optional[str] = None
    after: Optional[str] = None
    kept: list[str] = []

    for line in content.split("\n"):
        m = _DIRECTIVE.match(line)
        if not m:
            kept.append(line)
            continue
        target = normalize_target(m.group(2), extension)
        if m.group(1) == "before":
            before = before or target
        else:
            after = after or target

    return Placement(content="\n".join(kept), insert_before=before, insert_after=after)


def absorb_directives(record: EditRecord, extension: str = DEFAULT_EXTENSION) -> EditRecord:
    """Return *record* with content directives moved into structured fields.

    Explicit wire fields take precedence over directives in the content.
    """
    before = normalize_target(record.insert_before, extension) if record.insert_before else None
    after = normalize_target(record.insert_after, extension) if record.insert_after else None

    if record.content is None:
        return record.evolve(insert_before=before, insert_after=after)

    placement = parse_directives(record.content, extension)
    if before is None and after is None:
        before, after = placement.insert_before, placement.insert_after

    return record.evolve(
        content=placement.content,
        insert_before=before,
        insert_after=after,
    )
