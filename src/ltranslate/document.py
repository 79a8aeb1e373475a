"""In-memory model of flat JSON locale files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from .errors import ValidationError
from .utils import atomic_write

logger = logging.getLogger(__name__)


def _collect_pairs(pairs: list[tuple[str, object]]) -> dict:
    """
    Build a JSON object from its key/value pairs, keeping the last duplicate.

    A duplicated key ends up at the position of its last occurrence.
    """
    result = {}
    duplicates = []
    for key, value in pairs:
        if key in result:
            duplicates.append(key)
            # Re-insert so the key takes the position of its last occurrence
            del result[key]
        result[key] = value
    if duplicates:
        logger.warning("Duplicate keys in locale file, keeping last value: %s", ", ".join(duplicates))
    return result


class LocaleDocument:
    """
    Ordered mapping of locale keys to translated strings.

    Keys are non-empty strings and every value is a plain string. Anything else
    is rejected with a ValidationError instead of being coerced.
    """

    def __init__(self, data: Mapping[str, str] | Iterable[tuple[str, str]] | None = None):
        self._data: dict[str, str] = {}
        if data is None:
            return
        items = data.items() if isinstance(data, Mapping) else data
        for key, value in items:
            self.set(key, value)

    @classmethod
    def parse(cls, raw: bytes | str, source: str = "<input>") -> LocaleDocument:
        """
        Parse a JSON object of string values.

        Args:
            raw: UTF-8 encoded bytes or an already decoded string
            source: Name used in error messages (usually the file path)

        Raises:
            ValidationError: If the content is not a flat JSON object of strings
        """
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ValidationError(f"{source}: locale file is not valid UTF-8 ({e})") from e

        try:
            data = json.loads(raw, object_pairs_hook=_collect_pairs)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{source}: failed to parse locale file ({e})") from e

        if not isinstance(data, dict):
            raise ValidationError(
                f"{source}: locale file must contain a JSON object, got {type(data).__name__}"
            )

        document = cls()
        for key, value in data.items():
            if not isinstance(value, str):
                raise ValidationError(
                    f"{source}: value for key '{key}' must be a string, "
                    f"got {_json_type_name(value)}"
                )
            if not key:
                raise ValidationError(f"{source}: locale keys must not be empty")
            document._data[key] = value
        return document

    @classmethod
    def load(cls, path: Path) -> LocaleDocument:
        """Read and parse the locale file at ``path``."""
        path = Path(path)
        return cls.parse(path.read_bytes(), source=str(path))

    def serialize(self) -> bytes:
        """Encode the document as indented UTF-8 JSON, preserving key order."""
        text = json.dumps(self._data, ensure_ascii=False, indent=2)
        return (text + "\n").encode("utf-8")

    def write(self, path: Path) -> None:
        """Atomically write the document to ``path``."""
        atomic_write(Path(path), self.serialize())

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)

    def set(self, key: str, value: str) -> None:
        if not isinstance(key, str) or not key:
            raise ValidationError(f"Locale keys must be non-empty strings, got {key!r}")
        if not isinstance(value, str):
            raise ValidationError(
                f"Value for key '{key}' must be a string, got {_json_type_name(value)}"
            )
        self._data[key] = value

    def remove(self, key: str) -> str | None:
        """Remove ``key`` and return its value, or None if it was not present."""
        return self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def items(self) -> list[tuple[str, str]]:
        return list(self._data.items())

    def to_dict(self) -> dict[str, str]:
        return dict(self._data)

    def copy(self) -> LocaleDocument:
        return LocaleDocument(self._data)

    def ordered_like(self, reference: LocaleDocument) -> LocaleDocument:
        """
        Return a copy whose keys follow the order of ``reference``.

        Keys that ``reference`` does not contain keep their relative order and
        are placed after the others.
        """
        ordered = LocaleDocument()
        for key in reference.keys():
            if key in self._data:
                ordered._data[key] = self._data[key]
        for key, value in self._data.items():
            if key not in ordered._data:
                ordered._data[key] = value
        return ordered

    def merge_overlay(
        self, changes: Mapping[str, str] | LocaleDocument, removed: Iterable[str] = ()
    ) -> LocaleDocument:
        """Shortcut for :func:`merge_overlay` with this document as the base."""
        return merge_overlay(self, changes, removed)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocaleDocument):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"LocaleDocument({self._data!r})"


def merge_overlay(
    base: LocaleDocument,
    changes: Mapping[str, str] | LocaleDocument,
    removed: Iterable[str] = (),
) -> LocaleDocument:
    """
    Build a new document from ``base`` with ``changes`` applied on top.

    Keys present in ``changes`` override (or are appended to) ``base``, keys
    listed in ``removed`` are dropped and every other key is kept as-is.
    Neither input is modified.
    """
    merged = base.copy()
    for key in removed:
        merged.remove(key)
    change_items = changes.items()
    for key, value in change_items:
        merged.set(key, value)
    return merged


def _json_type_name(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
