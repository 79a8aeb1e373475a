"""Change detection between the source locale and its last synchronized snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .document import LocaleDocument
from .utils import Language


@dataclass(frozen=True)
class Delta:
    """
    Keys that changed between a snapshot and the current source document.

    ``added`` and ``modified`` follow the order of the current document,
    ``removed`` follows the order of the snapshot. The three are disjoint.
    """

    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    # Added and modified keys interleaved in current-document order
    order: tuple[str, ...] = field(default=(), compare=False, repr=False)

    @property
    def to_translate(self) -> tuple[str, ...]:
        """Keys whose source text has to be (re)translated."""
        if self.order:
            return self.order
        return self.added + self.modified

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)

    def __len__(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)


def diff(current: LocaleDocument, snapshot: LocaleDocument) -> Delta:
    """
    Compare ``current`` against ``snapshot``.

    Values are compared byte for byte; no whitespace or case normalization is
    applied, so any edit to a source string counts as a modification.
    """
    added = []
    modified = []
    order = []
    for key, value in current.items():
        if key not in snapshot:
            added.append(key)
        elif snapshot[key] != value:
            modified.append(key)
        else:
            continue
        order.append(key)

    removed = [key for key in snapshot.keys() if key not in current]

    return Delta(
        added=tuple(added),
        removed=tuple(removed),
        modified=tuple(modified),
        order=tuple(order),
    )


@dataclass
class LanguageDiff:
    """Languages added to or removed from a project's target list."""

    added: list[Language]
    removed: list[Language]

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed)

    @classmethod
    def diff(cls, enabled: Sequence[Language], selected: Sequence[Language]) -> LanguageDiff:
        """Compare the currently enabled languages with a new selection, by code."""
        enabled_codes = {language.code for language in enabled}
        selected_codes = {language.code for language in selected}
        return cls(
            added=[language for language in selected if language.code not in enabled_codes],
            removed=[language for language in enabled if language.code not in selected_codes],
        )
