"""Command-line interface for ltranslate."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from openai import AsyncOpenAI

from . import __version__
from .document import LocaleDocument
from .errors import LTranslateError, PromptCancelledError
from .interact import ConsolePrompter, Prompter
from .project import ProjectStore
from .provider import TranslationProvider, get_client
from .sync import manage_project, setup_project, translate_document, update_project
from .utils import load_context

CONTEXT_FILE_NAME = "translation-context.json"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ltranslate",
        description="Translate English JSON locale files with OpenAI and keep the translations up to date.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Translate a single file, picking the language from a list
  ltranslate translate ./locales/en.json ./locales/de.json

  # Translate a single file without prompts (useful for scripts)
  ltranslate translate ./locales/en.json ./locales/fr.json -l fr -y

  # Set up a project, then translate only what changed after each edit
  ltranslate project setup
  ltranslate project update

Environment Variables:
  OPENAI_API_KEY    Your OpenAI API key (required)
        """,
    )

    parser.add_argument(
        "-C",
        "--directory",
        type=Path,
        default=Path("."),
        help="Project root directory (default: current directory)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress and retry information",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate a single locale file in its entirety without engaging project mode",
    )
    translate_parser.add_argument("input_file", type=Path, help="English locale file to translate")
    translate_parser.add_argument("output_file", type=Path, help="Path to write the translated locale file")
    translate_parser.add_argument(
        "-l",
        "--language",
        type=str,
        metavar="CODE",
        help="Target language code instead of picking it from a list",
    )
    translate_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation before translating",
    )
    _add_context_argument(translate_parser)

    project_parser = subparsers.add_parser(
        "project",
        help="Use project mode to automatically translate locales for you",
    )
    project_subparsers = project_parser.add_subparsers(dest="project_command", metavar="ACTION")
    project_subparsers.required = True

    project_subparsers.add_parser(
        "setup",
        help="Set up a new project and point it at your existing English locale file",
    )
    project_subparsers.add_parser(
        "manage",
        help="Alter project settings such as enabled languages",
    )
    update_parser = project_subparsers.add_parser(
        "update",
        help="Check the English locale file for changes and update all other locales accordingly",
    )
    _add_context_argument(update_parser)

    return parser


def _add_context_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--context-file",
        type=Path,
        default=None,
        help="Path to JSON file containing translation context and glossary "
        f"(default: {CONTEXT_FILE_NAME} next to the English locale file, if present)",
    )


def _resolve_context(context_file: Path | None, locale_dir: Path) -> str:
    """Load the explicit context file, or the default one next to the source locale."""
    if context_file is None:
        default_context = locale_dir / CONTEXT_FILE_NAME
        if not default_context.exists():
            return ""
        context_file = default_context
        print(f"Using default context file: {context_file}")
    return load_context(context_file)


def _translate(args: argparse.Namespace, prompter: Prompter, client: AsyncOpenAI) -> int:
    if not args.input_file.is_file():
        print(f"Error: Input file does not exist: {args.input_file}", file=sys.stderr)
        return 1

    # Fail on an invalid document before asking anything
    LocaleDocument.load(args.input_file)

    context = _resolve_context(args.context_file, args.input_file.parent)
    provider = TranslationProvider(client, context=context)

    target_language = None
    if args.language:
        target_language = provider.get_language(args.language)
        if target_language is None:
            print(f"Unknown target language '{args.language}'.", file=sys.stderr)
    if target_language is None:
        target_language = prompter.select_language(
            provider.available_languages(), "What language do you want to translate to?"
        )

    if not args.yes and not prompter.confirm("Are you sure you want to translate this file?"):
        raise PromptCancelledError("Translation canceled.")

    asyncio.run(
        _run_with_client(
            client, translate_document(provider, args.input_file, args.output_file, target_language)
        )
    )
    print(f"Translation complete. Output has been written to {args.output_file}.")
    return 0


async def _run_with_client(client: AsyncOpenAI, coro):
    """Await ``coro``, then close the client."""
    async with client:
        return await coro


def _project(args: argparse.Namespace, prompter: Prompter, client: AsyncOpenAI) -> int:
    store = ProjectStore(args.directory)

    if args.project_command == "setup":
        provider = TranslationProvider(client)
        config = setup_project(store, prompter, provider)
        if config.targets and prompter.confirm("Translate the enabled languages now?"):
            return _update(store, None, client)
        print("Run 'ltranslate project update' to translate the enabled languages.")
        return 0

    if args.project_command == "manage":
        provider = TranslationProvider(client)
        manage_project(store, prompter, provider)
        return 0

    return _update(store, args.context_file, client)


def _update(store: ProjectStore, context_file: Path | None, client: AsyncOpenAI) -> int:
    config = store.load()
    source_dir = store.resolve(config.source_path).parent
    provider = TranslationProvider(client, context=_resolve_context(context_file, source_dir))
    report = asyncio.run(_run_with_client(client, update_project(store, provider)))
    return report.exit_code


def main(argv: list[str] | None = None, prompter: Prompter | None = None) -> int:
    """Main entry point for the CLI."""
    # Load environment variables from .env file in current working directory
    load_dotenv(find_dotenv(usecwd=True))

    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    prompter = prompter or ConsolePrompter()

    try:
        # The API key is required by every command; check it before any prompt
        client = get_client()
        if args.command == "translate":
            return _translate(args, prompter, client)
        return _project(args, prompter, client)
    except PromptCancelledError as e:
        print(e, file=sys.stderr)
        return 1
    except (LTranslateError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
