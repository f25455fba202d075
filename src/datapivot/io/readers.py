from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterator, Optional, TextIO
import csv
import json
import logging

from datapivot.domain.record import Record

logger = logging.getLogger(__name__)

_SUFFIX_FORMATS = {
    ".csv": "csv",
    ".json": "json",
    ".jsonl": "json-lines",
    ".ndjson": "json-lines",
}


def parse_scalar(text: str) -> Any:
    """Parse a CSV cell: numbers become int/float, blanks become None."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        value = float(stripped)
    except ValueError:
        return text
    if value != value or value in (float("inf"), float("-inf")):
        return text
    return value


class Decoder(ABC):
    """Turns an open text stream into raw row mappings."""

    newline: Optional[str] = None

    @abstractmethod
    def decode(self, stream: TextIO) -> Iterator[Any]:
        pass


class CsvDecoder(Decoder):
    newline = ""

    def __init__(self, *, delimiter: str = ","):
        self.delimiter = delimiter

    def decode(self, stream: TextIO) -> Iterator[dict]:
        for row in csv.DictReader(stream, delimiter=self.delimiter):
            yield {
                name: parse_scalar(value) if isinstance(value, str) else None
                for name, value in row.items()
                if name is not None
            }


class JsonDecoder(Decoder):
    """A top-level list of objects, a single object, or a list under ``array_field``."""

    def __init__(self, *, array_field: Optional[str] = None):
        self.array_field = array_field

    def decode(self, stream: TextIO) -> Iterator[Any]:
        data = json.load(stream)
        if self.array_field:
            if not isinstance(data, dict):
                raise ValueError("json array_field requires a top-level object")
            if self.array_field not in data:
                raise ValueError(f"{self.array_field!r} not found in top-level object")
            data = data[self.array_field]
        if isinstance(data, list):
            yield from data
        else:
            yield data


class JsonLinesDecoder(Decoder):
    def decode(self, stream: TextIO) -> Iterator[dict]:
        for lineno, line in enumerate(stream, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                yield json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"line {lineno}: invalid JSON: {exc.msg}") from exc


def infer_format(path: Path) -> str:
    fmt = _SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise ValueError(
            f"Cannot infer record format from {path.name!r}; use one of: csv, json, json-lines")
    return fmt


def build_decoder(
    fmt: str,
    *,
    delimiter: str = ",",
    array_field: Optional[str] = None,
) -> Decoder:
    if fmt == "csv":
        return CsvDecoder(delimiter=delimiter)
    if fmt == "json":
        return JsonDecoder(array_field=array_field)
    if fmt == "json-lines":
        return JsonLinesDecoder()
    raise ValueError(f"Unsupported record format: {fmt!r}")


def iter_records(
    path: Path,
    *,
    format: Optional[str] = None,
    delimiter: str = ",",
    encoding: str = "utf-8",
    array_field: Optional[str] = None,
) -> Iterator[Record]:
    """Stream records from ``path`` (csv, json or json-lines)."""
    path = Path(path)
    fmt = format or infer_format(path)
    decoder = build_decoder(fmt, delimiter=delimiter, array_field=array_field)
    logger.debug("Reading %s records from %s", fmt, path)
    with path.open("r", encoding=encoding, newline=decoder.newline) as fh:
        for index, row in enumerate(decoder.decode(fh)):
            try:
                yield Record.coerce(row)
            except TypeError as exc:
                raise ValueError(f"{path.name}: row {index + 1}: {exc}") from exc


def read_records(path: Path, **kwargs: Any) -> list[Record]:
    return list(iter_records(path, **kwargs))
