import sys
from pathlib import Path

# Ensure the application package under src/ is importable when running tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / 'src'
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

import os
import pytest

from screencraft.factory import create_app
from screencraft.services.generation import VisualInput


class ScriptedInferenceClient:
    """Stands in for InferenceClient: returns queued replies in order.

    Queued exceptions are raised instead of returned. Every call is recorded
    as a (prompt, visual_inputs) tuple.
    """

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.calls = []

    async def invoke(self, prompt, visual_inputs=None):
        self.calls.append((prompt, visual_inputs))
        if not self.replies:
            raise AssertionError(f"Unexpected inference call #{len(self.calls)}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_client():
    """Factory fixture: ``scripted_client(reply1, reply2, ...)``."""
    def _make(*replies):
        return ScriptedInferenceClient(replies)
    return _make


@pytest.fixture
def screen_image():
    return VisualInput(mime_type='image/png', data=b'\x89PNG\r\n\x1a\nhome', name='home.png')


@pytest.fixture(scope='session')
def app():
    """Create application for the tests."""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing')
    app.config.update({'TESTING': True})
    yield app


@pytest.fixture(scope='function')
def client(app):
    """Create a test client."""
    return app.test_client()
