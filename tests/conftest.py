import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from roomgen import create_app  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_roomgen_env(monkeypatch):
    # Layout config reads ROOMGEN_* from the environment; keep tests hermetic.
    for key in list(os.environ):
        if key.startswith("ROOMGEN_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def test_app():
    app = create_app({"TESTING": True})
    return app


@pytest.fixture()
def client(test_app):
    return test_app.test_client()
