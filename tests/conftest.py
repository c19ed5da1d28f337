"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path et fournit un conteneur isolé par test: store
mémoire, LLM factice, object store local dans `tmp_path`, backoff sans attente.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from backend...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient  # noqa: E402

from backend.core.container import Container  # noqa: E402
from backend.core.logging import setup_logging  # noqa: E402
from backend.infra.repositories import InMemoryContentStore  # noqa: E402
from tests.fakes import FakeExtractor, FakeLLM, RecordingSleep, make_settings  # noqa: E402

setup_logging()


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def container(settings, store, fake_llm, fake_extractor, sleep) -> Container:
    return Container(settings, store=store, llm=fake_llm, extractor=fake_extractor, sleep=sleep)


@pytest.fixture
def client(container) -> TestClient:
    """Client HTTP; les exceptions non gérées deviennent des réponses 500."""
    from backend.app.main import create_app

    with TestClient(create_app(container), raise_server_exceptions=False) as c:
        yield c
