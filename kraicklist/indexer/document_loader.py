"""
Document loader for converting bulk source lines into import-ready documents.

The source is newline-delimited JSON, one ad per line. Lines that are not
UTF-8 encoded JSON objects are skipped. Identifiers are normalized to strings because the
engine only accepts string ids.
"""

import json
import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Union

from ..schema.document import DocumentFields
from .exceptions import DocumentParseError, DocumentSourceError, MissingIdentifierError

logger = logging.getLogger(__name__)


@dataclass
class AdDocument:
    """A normalized document ready for import."""

    id: str
    fields: DocumentFields = field(default_factory=dict)
    id_field: str = "id"

    def to_engine_document(self) -> DocumentFields:
        """Convert to the engine document format, id first."""
        doc: DocumentFields = {self.id_field: self.id}
        for name, value in self.fields.items():
            if name != self.id_field:
                doc[name] = value
        return doc

    def to_jsonl(self) -> str:
        return json.dumps(self.to_engine_document(), ensure_ascii=False)


@dataclass
class LoadResult:
    """Outcome of normalizing a bulk source."""

    documents: List[AdDocument] = field(default_factory=list)
    skipped: int = 0
    missing_ids: int = 0

    @property
    def count(self) -> int:
        return len(self.documents)


def normalize_id(value: Any) -> str:
    """
    Render an identifier in canonical string form.

    Integral floats lose their fractional part (123.0 -> "123") and no value
    is rendered with an exponent. Strings pass through unchanged.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return str(int(value))
        return format(value, "f")
    return str(value)


def iter_source_lines(path: Union[str, Path]) -> Iterator[bytes]:
    """Lazily yield raw lines from the bulk source file; decoding happens per record."""
    try:
        with open(path, "rb") as f:
            for line in f:
                yield line
    except OSError as e:
        raise DocumentSourceError(str(path), e) from e


def normalize_documents(
    lines: Iterable[Union[str, bytes]],
    id_field: str = "id",
    strict_ids: bool = True,
    strict_parse: bool = False,
) -> LoadResult:
    """
    Parse and normalize source lines.

    Args:
        lines: Raw source lines, as text or UTF-8 bytes
        id_field: Name of the identifier field
        strict_ids: Raise MissingIdentifierError on a record without an id
            instead of skipping it
        strict_parse: Raise DocumentParseError on a malformed line instead of
            skipping it

    Returns:
        LoadResult with documents in source order
    """
    result = LoadResult()

    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue

        try:
            if isinstance(line, bytes):
                line = line.decode("utf-8")
            record = json.loads(line)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            reason = e.reason if isinstance(e, UnicodeDecodeError) else e.msg
            if strict_parse:
                raise DocumentParseError(line_number, reason) from e
            logger.debug(f"Skipping malformed line {line_number}: {reason}")
            result.skipped += 1
            continue

        if not isinstance(record, dict):
            if strict_parse:
                raise DocumentParseError(line_number, f"got {type(record).__name__}")
            logger.debug(f"Skipping line {line_number}: not an object")
            result.skipped += 1
            continue

        # A null id counts as missing
        if record.get(id_field) is None:
            if strict_ids:
                raise MissingIdentifierError(line_number, id_field)
            logger.warning(f"Skipping document without '{id_field}' on line {line_number}")
            result.missing_ids += 1
            continue

        doc_id = normalize_id(record.pop(id_field))
        result.documents.append(AdDocument(id=doc_id, fields=record, id_field=id_field))

    if result.skipped:
        logger.warning(f"Skipped {result.skipped} malformed lines")

    return result


def load_documents(
    path: Union[str, Path],
    id_field: str = "id",
    strict_ids: bool = True,
    strict_parse: bool = False,
) -> LoadResult:
    """Load and normalize every document in the bulk source file."""
    logger.info(f"Loading documents from {path}")
    result = normalize_documents(
        iter_source_lines(path), id_field=id_field, strict_ids=strict_ids, strict_parse=strict_parse
    )
    logger.info(f"Loaded {result.count} documents ({result.skipped} skipped)")
    return result
