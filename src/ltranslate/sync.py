"""One-off translation and project synchronization."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .changes import Delta, LanguageDiff, diff
from .document import LocaleDocument
from .errors import ConfigError, LTranslateError, PromptCancelledError, TranslationFailedError
from .interact import Prompter, select_output_locale, select_source_locale
from .project import ALREADY_SET_UP_MESSAGE, ProjectConfig, ProjectStore, TargetLocale
from .provider import TranslationProvider
from .utils import Language

logger = logging.getLogger(__name__)


@dataclass
class LanguageOutcome:
    """Result of synchronizing one target locale."""

    target: TargetLocale
    baseline: LocaleDocument | None = None
    delta: Delta | None = None
    translated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    written: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None and not self.failures

    @property
    def status(self) -> str:
        if not self.succeeded:
            return "failed"
        return "updated" if self.written else "up to date"


@dataclass
class SyncReport:
    """Outcome of a project update across all target locales."""

    outcomes: list[LanguageOutcome] = field(default_factory=list)
    snapshot_updated: bool = False

    @property
    def succeeded(self) -> list[LanguageOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed(self) -> list[LanguageOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


async def translate_document(
    provider: TranslationProvider,
    input_file: Path,
    output_file: Path,
    target_language: Language,
) -> LocaleDocument:
    """
    Translate every key of a locale file and write the result.

    Nothing is written unless every key was translated.

    Args:
        provider: Translation provider to use
        input_file: Path to the source English JSON file
        output_file: Path to write the translated JSON file
        target_language: Language to translate into

    Returns:
        The translated document

    Raises:
        ValidationError: If the input is not a flat JSON object of strings
        TranslationFailedError: If any key could not be translated
    """
    source = LocaleDocument.load(input_file)

    print(f"Translating {len(source)} key(s) from {input_file} to {target_language}...")
    results = await provider.translate(source.items(), target_language)

    failures = {result.key: result.error for result in results if not result.ok}
    if failures:
        for key, reason in failures.items():
            logger.info("Translation failed for '%s': %s", key, reason)
        raise TranslationFailedError(target_language.code, failures)

    translated = LocaleDocument((result.key, result.text) for result in results)
    translated.write(output_file)
    return translated


async def _update_language(
    store: ProjectStore,
    provider: TranslationProvider,
    target: TargetLocale,
    source: LocaleDocument,
    snapshot: LocaleDocument,
) -> LanguageOutcome:
    """
    Bring one target locale in line with the current source document.

    Only keys added or modified since the language's baseline are translated;
    removed keys are dropped and all other entries are left untouched. The
    locale file is only written when every required translation succeeded.
    """
    outcome = LanguageOutcome(target=target)
    try:
        pending = store.load_pending(target.code)
        outcome.baseline = pending if pending is not None else snapshot

        output_file = store.resolve(target.path)
        if output_file.exists():
            existing = LocaleDocument.load(output_file)
            delta = diff(source, outcome.baseline)
        else:
            logger.debug("No locale file for %s yet, translating every key", target.code)
            existing = LocaleDocument()
            delta = diff(source, LocaleDocument())
        outcome.delta = delta

        if delta.is_empty and output_file.exists():
            return outcome

        batch = [(key, source[key]) for key in delta.to_translate]
        results = await provider.translate(batch, target.language)

        outcome.failures = {result.key: result.error for result in results if not result.ok}
        if outcome.failures:
            return outcome

        changes = {result.key: result.text for result in results}
        updated = existing.merge_overlay(changes, delta.removed).ordered_like(source)
        outcome.translated = list(delta.to_translate)
        outcome.removed = [key for key in delta.removed if key in existing]

        if updated.items() != existing.items() or not output_file.exists():
            updated.write(output_file)
            outcome.written = True
    except (LTranslateError, OSError) as e:
        outcome.error = str(e)

    return outcome


async def update_project(store: ProjectStore, provider: TranslationProvider) -> SyncReport:
    """
    Update all target locales of a project after edits to the source locale.

    Target languages are processed in parallel and independently; a failure
    for one language never blocks the others. The source history snapshot is
    advanced once the writes are done, provided at least one language
    succeeded. Languages that failed keep their previous baseline as a pending
    baseline so their missed changes are picked up on the next run.

    Raises:
        ProjectNotFoundError: If no project has been set up
        ConfigError: If the project files cannot be parsed
        ValidationError: If the source locale file is invalid
    """
    config = store.load()
    source = LocaleDocument.load(store.resolve(config.source_path))
    snapshot = store.load_snapshot()

    report = SyncReport()
    if not config.targets:
        print("No target languages are enabled. Use 'ltranslate project manage' to add some.")
    else:
        print(f"Updating {len(config.targets)} language(s) in parallel...")
        report.outcomes = list(
            await asyncio.gather(
                *(
                    _update_language(store, provider, target, source, snapshot)
                    for target in config.targets
                )
            )
        )

    if report.failed and not report.succeeded:
        logger.info("Every language failed, keeping the source history unchanged")
    else:
        for outcome in report.failed:
            if outcome.baseline is not None and store.load_pending(outcome.target.code) is None:
                store.save_pending(outcome.target.code, outcome.baseline)
        for outcome in report.succeeded:
            store.clear_pending(outcome.target.code)
        if snapshot.items() != source.items():
            store.save_snapshot(source)
            report.snapshot_updated = True

    _print_report(report)
    return report


def _print_report(report: SyncReport) -> None:
    if not report.outcomes:
        return
    print("Translation results:")
    for outcome in report.outcomes:
        target = outcome.target
        label = f"  {target.name} ({target.code})"
        if outcome.error:
            print(f"{label}: FAILED - {outcome.error}", file=sys.stderr)
        elif outcome.failures:
            keys = ", ".join(outcome.failures)
            print(
                f"{label}: FAILED - {len(outcome.failures)} key(s) could not be translated: {keys}. "
                f"{target.path} was left unchanged.",
                file=sys.stderr,
            )
        elif outcome.written:
            print(
                f"{label}: {len(outcome.translated)} translated, {len(outcome.removed)} removed. "
                f"Written to {target.path}"
            )
        else:
            print(f"{label}: up to date")
    if report.failed and not report.succeeded:
        print("Every language failed; the source history was not updated.", file=sys.stderr)


def setup_project(
    store: ProjectStore, prompter: Prompter, provider: TranslationProvider
) -> ProjectConfig:
    """
    Set up a new project by prompting the user.

    The source history starts out empty, so the first update translates every
    key of the source locale.

    Raises:
        ConfigError: If a project already exists or a language is selected twice
        PromptCancelledError: If the user declines to continue
        ValidationError: If the source locale file is invalid
    """
    if store.exists():
        raise ConfigError(ALREADY_SET_UP_MESSAGE)

    if not prompter.confirm(
        "It looks like you're using ltranslate for the first time. "
        "Would you like to set up a new project in the current directory?"
    ):
        raise PromptCancelledError("Setup canceled.")

    source_path = select_source_locale(prompter, store.root)
    LocaleDocument.load(store.resolve(source_path))

    languages = prompter.select_languages(
        provider.available_languages(), "What languages do you want to translate to?"
    )

    config = ProjectConfig(source_path=source_path)
    taken = [source_path]
    for language in languages:
        if config.get(language.code) is not None:
            raise ConfigError(f"Language '{language.code}' was selected more than once.")
        path = select_output_locale(prompter, language, store.root, taken)
        config.add_target(language, path)
        taken.append(path)

    store.initialize(config)
    print(f"Project set up with {len(config.targets)} language(s).")
    print(
        "WARNING: Do not edit the files in the 'ltranslate' directory or the translated "
        "locales directly. Edit only the English locale file and use "
        "'ltranslate project manage' for changing settings."
    )
    return config


PROJECT_SETTINGS = ("source locale path", "enabled languages")


def manage_project(
    store: ProjectStore, prompter: Prompter, provider: TranslationProvider
) -> LanguageDiff | None:
    """
    Let the user change the source locale path or the enabled languages.

    Added languages get an output path and are translated on the next update.
    Removed languages are dropped from the project but their locale files are
    kept. Selecting the current languages again changes nothing.

    Returns:
        The language changes applied, or None if the source path was edited
    """
    config = store.load()

    setting = prompter.select_option("What setting would you like to change?", PROJECT_SETTINGS)
    if setting == 0:
        source_path = select_source_locale(prompter, store.root, default=config.source_path.as_posix())
        LocaleDocument.load(store.resolve(source_path))
        if source_path != config.source_path:
            config.source_path = source_path
            store.save(config)
        return None

    enabled = config.languages
    options = provider.available_languages()
    option_codes = {language.code for language in options}
    options.extend(language for language in enabled if language.code not in option_codes)

    selected = prompter.select_languages(
        options, "What languages do you want to translate to?", preselected=enabled
    )
    language_diff = LanguageDiff.diff(enabled, selected)
    if language_diff.is_empty:
        print("No changes to the enabled languages.")
        return language_diff

    for language in language_diff.removed:
        config.remove_target(language.code)
        store.clear_pending(language.code)
    if language_diff.removed:
        print(
            "It looks like you've removed one or more languages. Note that the files are not "
            "deleted automatically, so if you wish to delete them, remember to do so."
        )

    for language in language_diff.added:
        taken = [config.source_path] + [target.path for target in config.targets]
        path = select_output_locale(prompter, language, store.root, taken)
        config.add_target(language, path)

    store.save(config)
    if language_diff.added:
        added = ", ".join(language.code for language in language_diff.added)
        print(f"Added {added}. Run 'ltranslate project update' to translate the new locale(s).")
    return language_diff
