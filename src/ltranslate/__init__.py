"""ltranslate: Translate English JSON locale files and keep them in sync using OpenAI."""

__version__ = "0.1.0"

from .changes import Delta, diff
from .document import LocaleDocument, merge_overlay
from .project import ProjectConfig, ProjectStore
from .provider import TranslationProvider, TranslationResult
from .sync import manage_project, setup_project, translate_document, update_project

__all__ = [
    "__version__",
    "Delta",
    "diff",
    "LocaleDocument",
    "merge_overlay",
    "ProjectConfig",
    "ProjectStore",
    "TranslationProvider",
    "TranslationResult",
    "manage_project",
    "setup_project",
    "translate_document",
    "update_project",
]
