"""
Change-set extractor — recovers edit records from raw generated text.

The generative service is asked for a JSON array of edit records, but
the text that comes back may be wrapped in prose, may be complete, or
may be cut off mid-record by a length limit.  The extractor:

1. tries a direct parse of the whole document,
2. otherwise scans from the first ``[`` and decodes one top-level object
   at a time, so every complete record before a truncation survives,
3. asks a :class:`ContinuationRequestor` for the rest when the array was
   cut off (bounded by ``max_continuations``),
4. hands each non-delete record to the manifest reconciler.

Malformed input never raises; the outcome is reported as a status.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from ..llm.base import LLMError
from ..units.models import EditRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONTINUATIONS = 3


class ExtractionStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"                    # cut off, no continuation possible
    EMPTY = "empty"                        # well-formed, zero edits: ``[]``
    FAILED = "failed"                      # nothing recognizable
    CONTINUATION_EXHAUSTED = "continuation_exhausted"


@dataclass
class ScanResult:
    """Outcome of a single pass over one response."""
    records: list[EditRecord] = field(default_factory=list)
    status: ExtractionStatus = ExtractionStatus.FAILED
    remainder: str = ""
    truncated: bool = False
    discarded: int = 0


@dataclass
class ExtractionResult:
    """Records recovered from a response and any continuations."""
    records: list[EditRecord] = field(default_factory=list)
    status: ExtractionStatus = ExtractionStatus.FAILED
    remainder: str = ""
    continuations: int = 0
    discarded: int = 0

    def __iter__(self) -> Iterator[EditRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_complete(self) -> bool:
        return self.status in (ExtractionStatus.COMPLETE, ExtractionStatus.EMPTY)


class ChangeSetExtractor:
    """Parse edit records out of raw, possibly truncated, text."""

    def __init__(
        self,
        reconciler=None,
        requestor=None,
        max_continuations: int = DEFAULT_MAX_CONTINUATIONS,
    ) -> None:
        self.reconciler = reconciler
        self.requestor = requestor
        self.max_continuations = max_continuations

    def extract(self, raw: str) -> ExtractionResult:
        """Recover every edit record from *raw*, fetching continuations."""
        first = self.scan(raw)
        result = ExtractionResult(
            records=list(first.records),
            status=first.status,
            remainder=first.remainder,
            discarded=first.discarded,
        )

        truncated = first.truncated and bool(first.records)
        while truncated:
            if self.requestor is None:
                result.status = ExtractionStatus.PARTIAL
                break
            if result.continuations >= self.max_continuations:
                logger.warning(
                    "Continuation limit (%d) reached with %d records; "
                    "returning partial change-set",
                    self.max_continuations, len(result.records),
                )
                result.status = ExtractionStatus.CONTINUATION_EXHAUSTED
                break

            result.continuations += 1
            logger.info("Response truncated after %d records; continuation %d/%d",
                        len(result.records), result.continuations,
                        self.max_continuations)
            try:
                text = self.requestor.request(result.records, result.remainder)
            except LLMError as exc:
                logger.error("Continuation request failed: %s", exc)
                result.status = ExtractionStatus.PARTIAL
                break

            step = self.scan(text)
            result.records.extend(step.records)
            result.discarded += step.discarded

            if step.truncated and step.records:
                result.remainder = step.remainder
                continue
            if step.status in (ExtractionStatus.COMPLETE, ExtractionStatus.EMPTY):
                result.status = ExtractionStatus.COMPLETE
                result.remainder = ""
            else:
                result.status = ExtractionStatus.PARTIAL
            truncated = False

        if result.discarded:
            logger.warning("Discarded %d malformed edit record(s)", result.discarded)

        if self.reconciler is not None:
            result.records = [
                r if r.delete else self.reconciler.reconcile(r)
                for r in result.records
            ]

        logger.info("Extracted %d edit record(s) [%s]", len(result.records),
                    result.status.value)
        return result

    def scan(self, raw: str) -> ScanResult:
        """Single extraction pass over one response (no continuation)."""
        direct = self._parse_document(raw)
        if direct is not None:
            return direct

        start = raw.find("[")
        if start == -1:
            logger.warning("No JSON array found in response")
            return ScanResult(status=ExtractionStatus.FAILED, remainder=raw)

        text = raw[start:]
        records: list[EditRecord] = []
        discarded = 0

        depth = 0
        in_string = False
        escaped = False
        obj_start = 0
        consumed = 0
        seen_object = False
        closed = False

        for i, ch in enumerate(text):
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue

            if depth == 0:
                if ch == "{":
                    depth = 1
                    obj_start = i
                    seen_object = True
                elif ch == "]" and seen_object:
                    closed = True
                    consumed = i + 1
                    break
                continue

            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    record = self._decode(text[obj_start:i + 1])
                    if record is None:
                        discarded += 1
                    else:
                        records.append(record)
                    consumed = i + 1

        if not seen_object:
            if text[1:].lstrip().startswith("]"):
                return ScanResult(status=ExtractionStatus.EMPTY)
            logger.warning("JSON array in response holds no objects")
            return ScanResult(status=ExtractionStatus.FAILED, remainder=text)

        truncated = not closed
        remainder = text[consumed:] if truncated else ""

        if truncated:
            status = ExtractionStatus.PARTIAL if records else ExtractionStatus.FAILED
        elif records:
            status = ExtractionStatus.COMPLETE
        else:
            status = ExtractionStatus.FAILED

        return ScanResult(
            records=records,
            status=status,
            remainder=remainder,
            truncated=truncated,
            discarded=discarded,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse_document(self, raw: str) -> Optional[ScanResult]:
        """Fast path: the whole response is a JSON array (or one object)."""
        try:
            data = json.loads(raw.strip(), strict=False)
        except ValueError:
            return None
        if isinstance(data, dict):
            # a lone object counts only if it is itself an edit record
            try:
                EditRecord.from_dict(data)
            except ValueError:
                return None
            data = [data]
        if not isinstance(data, list):
            return None
        if not data:
            return ScanResult(status=ExtractionStatus.EMPTY)

        records: list[EditRecord] = []
        discarded = 0
        for item in data:
            try:
                records.append(EditRecord.from_dict(item))
            except ValueError as exc:
                logger.debug("Skipping invalid edit record: %s", exc)
                discarded += 1
        status = ExtractionStatus.COMPLETE if records else ExtractionStatus.FAILED
        return ScanResult(records=records, status=status, discarded=discarded)

    @staticmethod
    def _decode(candidate: str) -> Optional[EditRecord]:
        try:
            return EditRecord.from_dict(json.loads(candidate, strict=False))
        except ValueError as exc:
            logger.debug("Skipping malformed edit record (%s): %.80s", exc, candidate)
            return None
