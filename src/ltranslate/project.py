"""Persistent project configuration and source history."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .document import LocaleDocument
from .errors import ConfigError, ProjectNotFoundError, ValidationError
from .utils import Language, atomic_write

logger = logging.getLogger(__name__)

APP_DIR_NAME = "ltranslate"
MANIFEST_FILE_NAME = "manifest.json"
SOURCE_HISTORY_FILE_NAME = "source-history.json"
PENDING_DIR_NAME = "pending"

ALREADY_SET_UP_MESSAGE = (
    "Project has already been set up. To fully reset the project, "
    f"remove the '{APP_DIR_NAME}' directory."
)

CORRUPTION_HINT = (
    "The files in the 'ltranslate' directory must not be edited by hand. "
    "Restore it from version control and try again."
)


@dataclass
class TargetLocale:
    """A language the project translates into, and where its locale file lives."""

    code: str
    name: str
    path: Path

    @property
    def language(self) -> Language:
        return Language(self.code, self.name)

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name, "path": self.path.as_posix()}

    @classmethod
    def from_dict(cls, data: dict) -> TargetLocale:
        return cls(code=data["code"], name=data["name"], path=Path(data["path"]))


@dataclass
class ProjectConfig:
    """Source locale path and the ordered list of target locales."""

    source_path: Path
    targets: list[TargetLocale] = field(default_factory=list)

    @property
    def languages(self) -> list[Language]:
        return [target.language for target in self.targets]

    def get(self, code: str) -> TargetLocale | None:
        for target in self.targets:
            if target.code == code:
                return target
        return None

    def add_target(self, language: Language, path: Path) -> TargetLocale:
        """Append a target locale; language codes must stay unique."""
        if self.get(language.code) is not None:
            raise ConfigError(f"Language '{language.code}' is already enabled in this project.")
        target = TargetLocale(code=language.code, name=language.name, path=Path(path))
        self.targets.append(target)
        return target

    def remove_target(self, code: str) -> TargetLocale | None:
        target = self.get(code)
        if target is not None:
            self.targets.remove(target)
        return target

    def to_dict(self) -> dict:
        return {
            "source_locale_path": self.source_path.as_posix(),
            "targets": [target.to_dict() for target in self.targets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> ProjectConfig:
        config = cls(source_path=Path(data["source_locale_path"]))
        for entry in data.get("targets", []):
            target = TargetLocale.from_dict(entry)
            if config.get(target.code) is not None:
                raise ConfigError(f"Duplicate language '{target.code}' in manifest. {CORRUPTION_HINT}")
            config.targets.append(target)
        return config


class ProjectStore:
    """
    Reads and writes the tool-owned ``ltranslate`` directory of a project.

    The directory holds the manifest, the source history snapshot used as the
    change-detection baseline, and per-language pending baselines. It is assumed
    to be well formed; anything that fails to parse is reported as a
    ConfigError rather than repaired.
    """

    def __init__(self, root: Path = Path(".")):
        self.root = Path(root)
        self.app_dir = self.root / APP_DIR_NAME
        self.manifest_path = self.app_dir / MANIFEST_FILE_NAME
        self.snapshot_path = self.app_dir / SOURCE_HISTORY_FILE_NAME
        self.pending_dir = self.app_dir / PENDING_DIR_NAME

    def resolve(self, path: Path) -> Path:
        """Resolve a manifest path against the project root."""
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def exists(self) -> bool:
        return self.manifest_path.exists()

    def load(self) -> ProjectConfig:
        """
        Load the project configuration.

        Raises:
            ProjectNotFoundError: If no project has been set up under ``root``
            ConfigError: If the manifest cannot be parsed
        """
        if not self.exists():
            raise ProjectNotFoundError()

        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                data = json.load(f)
            return ProjectConfig.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise ConfigError(f"Failed to parse manifest file {self.manifest_path}: {e}. {CORRUPTION_HINT}") from e

    def save(self, config: ProjectConfig) -> None:
        text = json.dumps(config.to_dict(), ensure_ascii=False, indent=2) + "\n"
        atomic_write(self.manifest_path, text.encode("utf-8"))
        logger.debug("Wrote manifest %s", self.manifest_path)

    def initialize(self, config: ProjectConfig) -> None:
        """Create the project directory with ``config`` and an empty source history."""
        if self.exists():
            raise ConfigError(ALREADY_SET_UP_MESSAGE)
        self.save_snapshot(LocaleDocument())
        self.save(config)

    def load_snapshot(self) -> LocaleDocument:
        """Load the source document as it was at the last successful sync."""
        if not self.snapshot_path.exists():
            raise ConfigError(f"Missing source locale history file {self.snapshot_path}. {CORRUPTION_HINT}")
        return self._load_document(self.snapshot_path)

    def save_snapshot(self, document: LocaleDocument) -> None:
        document.write(self.snapshot_path)
        logger.debug("Wrote source history %s", self.snapshot_path)

    def pending_path(self, code: str) -> Path:
        return self.pending_dir / f"{code}.json"

    def load_pending(self, code: str) -> LocaleDocument | None:
        """Baseline a language still has to catch up from, if its last sync failed."""
        path = self.pending_path(code)
        if not path.exists():
            return None
        return self._load_document(path)

    def save_pending(self, code: str, document: LocaleDocument) -> None:
        document.write(self.pending_path(code))

    def clear_pending(self, code: str) -> None:
        self.pending_path(code).unlink(missing_ok=True)

    def _load_document(self, path: Path) -> LocaleDocument:
        try:
            return LocaleDocument.load(path)
        except ValidationError as e:
            raise ConfigError(f"{e}. {CORRUPTION_HINT}") from e
