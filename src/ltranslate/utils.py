"""Utility functions for ltranslate."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import pycountry

from .errors import ConfigError


@dataclass(frozen=True)
class Language:
    """A target language, identified by its code."""

    code: str
    name: str

    @classmethod
    def from_code(cls, code: str) -> Language:
        """Build a Language from its code, raising ValueError for unknown codes."""
        return cls(code=code, name=get_language_name(code))

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"


def get_language_name(code: str) -> str:
    """
    Get the full language name from a language code.

    Args:
        code: ISO 639-1 language code, optionally with a region suffix
            (e.g., 'de', 'fr', 'pt-br')

    Returns:
        Full language name (e.g., 'German', 'French', 'Portuguese (Brazilian)')

    Raises:
        ValueError: If the language code is not recognized
    """
    # Regional variants and names pycountry spells differently
    special_cases = {
        "el": "Greek",
        "zh": "Chinese",
        "zh-cn": "Chinese (Simplified)",
        "zh-hans": "Chinese (Simplified)",
        "zh-tw": "Chinese (Traditional)",
        "zh-hant": "Chinese (Traditional)",
        "en-gb": "English (British)",
        "en-us": "English (American)",
        "pt-br": "Portuguese (Brazilian)",
        "pt-pt": "Portuguese (European)",
    }

    code_lower = code.lower()
    if code_lower in special_cases:
        return special_cases[code_lower]

    language = pycountry.languages.get(alpha_2=code_lower)
    if language:
        return language.name

    # Try alpha_3 code as fallback
    language = pycountry.languages.get(alpha_3=code_lower)
    if language:
        return language.name

    raise ValueError(f"Unknown language code: {code}")


def load_context(path: Path | None) -> str:
    """
    Load translation context from a JSON file.

    The context file can have the following structure:
    {
        "instructions": "General instructions for the translator...",
        "glossary": {
            "term": "definition",
            ...
        }
    }

    Args:
        path: Path to the context JSON file, or None for no context

    Returns:
        Formatted context string for the translation prompt
    """
    if path is None:
        return ""

    if not path.exists():
        raise FileNotFoundError(f"Context file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Context file is not valid JSON: {path} ({e})") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Context file must contain a JSON object: {path}")

    parts = []

    if "instructions" in data:
        parts.append("**Contextual Information**:")
        parts.append(data["instructions"])

    if "glossary" in data and isinstance(data["glossary"], dict):
        parts.append("\n**Glossary**:")
        for term, definition in data["glossary"].items():
            parts.append(f'- "{term}" refers to {definition}')

    return "\n".join(parts)


def atomic_write(path: Path, data: bytes) -> None:
    """
    Write ``data`` to ``path`` so readers see either the old or the new file.

    The bytes go to a temporary sibling file which is fsynced and then moved
    over the target with ``os.replace``. The parent directory is created if
    needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open(temp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
