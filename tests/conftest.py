"""Shared fixtures built on the helpers in helpers.py."""

from pathlib import Path

import pytest

from helpers import FRENCH, GERMAN, FakeClient, write_json
from ltranslate.document import LocaleDocument
from ltranslate.project import ProjectConfig, ProjectStore
from ltranslate.provider import TranslationProvider


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def provider(fake_client):
    return TranslationProvider(fake_client, initial_retry_delay=0)


@pytest.fixture
def project(tmp_path):
    """A project with an English source locale and German and French targets."""
    write_json(tmp_path / "locales" / "en.json", {"greeting": "Hello", "farewell": "Goodbye"})
    store = ProjectStore(tmp_path)
    config = ProjectConfig(source_path=Path("locales/en.json"))
    config.add_target(GERMAN, "locales/de.json")
    config.add_target(FRENCH, "locales/fr.json")
    store.initialize(config)
    assert store.load_snapshot() == LocaleDocument()
    return store
