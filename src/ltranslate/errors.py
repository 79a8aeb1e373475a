"""Exception types raised by ltranslate."""

from __future__ import annotations


class LTranslateError(Exception):
    """Base class for all errors reported by ltranslate."""


class ValidationError(LTranslateError, ValueError):
    """A locale document does not have the flat string-to-string shape."""


class ConfigError(LTranslateError):
    """Project files are missing, unreadable or inconsistent."""


class ProjectNotFoundError(ConfigError):
    """No project has been set up in the working directory."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Missing project data. Ensure you are in the correct working directory "
            "and run 'ltranslate project setup' to set up a project if necessary."
        )


class ProviderError(LTranslateError):
    """The translation provider could not complete a request."""


class ProviderTransientError(ProviderError):
    """Network, timeout or server-side failure that may succeed on retry."""


class ProviderFatalError(ProviderError):
    """Authentication, quota or request failure that must not be retried."""


class TranslationFailedError(LTranslateError):
    """One or more keys could not be translated."""

    def __init__(self, language: str, failures: dict[str, str]):
        self.language = language
        self.failures = failures
        keys = ", ".join(sorted(failures))
        super().__init__(
            f"Failed to translate {len(failures)} key(s) to {language}: {keys}"
        )


class PromptCancelledError(LTranslateError):
    """The user declined a confirmation prompt or aborted input."""
