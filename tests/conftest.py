import logging
import os
import sys

import pytest

# Ensure the repository root is on sys.path so tests can import docbatch and
# tests.fixtures regardless of how pytest is invoked.
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from docbatch import DocumentClient, NoopMetricsProvider  # noqa: E402
from tests.fixtures.fake_firestore import FakeFirestoreRPC  # noqa: E402

# Environment variables that change how clients and settings are built.
_ISOLATED_ENV = (
    "FIRESTORE_EMULATOR_HOST",
    "DOCBATCH_EMULATOR_HOST",
    "GOOGLE_CLOUD_PROJECT",
    "GCLOUD_PROJECT",
    "DOCBATCH_PROJECT_ID",
    "DOCBATCH_DATABASE_ID",
    "DOCBATCH_CONFIG_PATH",
    "DOCBATCH_REQUEST_TIMEOUT_SECONDS",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run every test without ambient GCP configuration, docbatch.toml or .env."""
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOCBATCH_BUILTIN_METRICS_ENABLED", "false")
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture
def fake_rpc():
    return FakeFirestoreRPC()


@pytest.fixture
def client(fake_rpc):
    c = DocumentClient("projectID", rpc=fake_rpc, metrics_provider=NoopMetricsProvider())
    yield c
    c.close()


@pytest.fixture
def restore_docbatch_logger():
    """Undo configure_logging() so later tests see the default logger state."""
    logger = logging.getLogger("docbatch")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
