"""Interactive prompts used by project setup, management and one-off translation."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Protocol, Sequence

from .errors import PromptCancelledError
from .utils import Language

DEFAULT_LOCALE_DIR = "locales"


class Prompter(Protocol):
    """Terminal interaction the synchronizer depends on; tests pass a stub."""

    def confirm(self, prompt: str, default: bool = True) -> bool: ...

    def input_text(self, prompt: str, default: str | None = None) -> str: ...

    def select_option(self, prompt: str, options: Sequence[str]) -> int: ...

    def select_language(self, options: Sequence[Language], prompt: str) -> Language: ...

    def select_languages(
        self,
        options: Sequence[Language],
        prompt: str,
        preselected: Sequence[Language] = (),
    ) -> list[Language]: ...


class ConsolePrompter:
    """Prompter reading answers from standard input."""

    def __init__(self, input_func=input, output=None):
        self._input = input_func
        self._output = output

    def _print(self, message: str = "") -> None:
        print(message, file=self._output or sys.stderr)

    def _ask(self, prompt: str) -> str:
        try:
            return self._input(prompt)
        except EOFError as e:
            raise PromptCancelledError("Input closed before an answer was given.") from e

    def confirm(self, prompt: str, default: bool = True) -> bool:
        suffix = "[Y/n]" if default else "[y/N]"
        while True:
            answer = self._ask(f"{prompt} {suffix} ").strip().lower()
            if not answer:
                return default
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self._print("Please answer 'y' or 'n'.")

    def input_text(self, prompt: str, default: str | None = None) -> str:
        suffix = f" [{default}]" if default else ""
        while True:
            answer = self._ask(f"{prompt}{suffix}: ").strip()
            if answer:
                return answer
            if default is not None:
                return default
            self._print("A value is required.")

    def select_option(self, prompt: str, options: Sequence[str]) -> int:
        self._print(prompt)
        for i, option in enumerate(options, start=1):
            self._print(f"  {i}) {option}")
        while True:
            answer = self._ask("> ").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1
            self._print(f"Enter a number between 1 and {len(options)}.")

    def select_language(self, options: Sequence[Language], prompt: str) -> Language:
        self._print(prompt)
        self._print_languages(options)
        while True:
            answer = self._ask("Language: ").strip()
            matches = _match_language(answer, options)
            if len(matches) == 1:
                return matches[0]
            if matches:
                self._print("That matches several languages: " + ", ".join(str(m) for m in matches))
            else:
                self._print("Unknown language. Enter a number, a code or a name from the list.")

    def select_languages(
        self,
        options: Sequence[Language],
        prompt: str,
        preselected: Sequence[Language] = (),
    ) -> list[Language]:
        self._print(prompt)
        self._print_languages(options, preselected)
        current = ", ".join(language.code for language in preselected)
        while True:
            answer = self._ask(
                "Languages (comma separated)" + (f" [{current}]" if current else "") + ": "
            ).strip()
            if not answer:
                if preselected:
                    return list(preselected)
                self._print("Select at least one language.")
                continue

            selected: list[Language] = []
            unknown = []
            for token in answer.split(","):
                token = token.strip()
                if not token:
                    continue
                matches = _match_language(token, options)
                if len(matches) != 1:
                    unknown.append(token)
                elif matches[0] not in selected:
                    selected.append(matches[0])
            if unknown:
                self._print("Could not identify: " + ", ".join(unknown))
                continue
            return selected

    def _print_languages(self, options: Sequence[Language], marked: Sequence[Language] = ()) -> None:
        marked_codes = {language.code for language in marked}
        for i, language in enumerate(options, start=1):
            mark = "*" if language.code in marked_codes else " "
            self._print(f" {mark}{i:>3}) {language}")


def _match_language(answer: str, options: Sequence[Language]) -> list[Language]:
    """Find languages by list number, exact code, or name prefix."""
    if not answer:
        return []
    if answer.isdigit():
        index = int(answer) - 1
        return [options[index]] if 0 <= index < len(options) else []
    lowered = answer.lower()
    for language in options:
        if language.code.lower() == lowered:
            return [language]
    return [language for language in options if language.name.lower().startswith(lowered)]


def select_source_locale(prompter: Prompter, root: Path, default: str | None = None) -> Path:
    """Ask for the English locale file until an existing file is given."""
    default = default or f"{DEFAULT_LOCALE_DIR}/en.json"
    while True:
        path = Path(prompter.input_text("What is the path of the English locale file?", default))
        if not (root / path).is_file():
            print("The file you specified does not exist. Please try again.", file=sys.stderr)
            continue
        return path


def select_output_locale(
    prompter: Prompter, language: Language, root: Path, taken: Sequence[Path] = ()
) -> Path:
    """
    Ask where the locale file for ``language`` should be written.

    The path must end in ``.json``, must not exist yet and must not already be
    used by another locale of the project.
    """
    default = f"{DEFAULT_LOCALE_DIR}/{language.code.lower()}.json"
    taken_paths = {(root / p).resolve() for p in taken}
    while True:
        answer = prompter.input_text(f"[{language}] What should the output file be called?", default)
        if not answer.endswith(".json"):
            print("The file must have a .json extension.", file=sys.stderr)
            continue
        path = Path(answer)
        if (root / path).resolve() in taken_paths:
            print("That file is already used by another locale. Please give it a different name.", file=sys.stderr)
            continue
        if (root / path).exists():
            print("The file you specified already exists. Please give it a different name.", file=sys.stderr)
            continue
        return path
