import pytest
import sys
from fastapi.testclient import TestClient
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Hypothesis configuration for property-based testing
from hypothesis import settings
from kara.config import Settings
from kara.main import create_app
from kara.services.broadcast import ConnectionManager
from kara.services.master import MasterManager
from kara.services.queue import QueueManager
from tests.helpers.factories import EventRecorder, make_song

# Register Hypothesis profiles
settings.register_profile("fast", max_examples=50, deadline=None)
settings.register_profile("thorough", max_examples=1000, deadline=None)
settings.load_profile("fast")  # Default to fast profile


def pytest_collection_modifyitems(items):
    """Automatically order tests: unit tests first, then property tests."""
    for item in items:
        if hasattr(item, 'get_closest_marker') and item.get_closest_marker('order'):
            continue

        test_file = str(item.fspath)
        if 'test_unit_' in test_file:
            item.add_marker(pytest.mark.order(1))
        elif 'test_props_' in test_file:
            item.add_marker(pytest.mark.order(2))


@pytest.fixture
def song_factory():
    return make_song


@pytest.fixture
def queue_manager():
    """Queue engine with auto-recommend on (the default)."""
    return QueueManager()


@pytest.fixture
def recorder(queue_manager):
    """Recorder attached to the queue_manager fixture."""
    rec = EventRecorder()
    queue_manager.add_listener(rec)
    return rec


@pytest.fixture
def master_manager():
    return MasterManager()


@pytest.fixture
def connection_manager(queue_manager):
    manager = ConnectionManager()
    manager.attach(queue_manager)
    return manager


@pytest.fixture
def app_settings(tmp_path):
    """Settings isolated from the environment."""
    return Settings(
        youtube_api_keys=["test-key"],
        playlist_store=tmp_path / "library" / "playlists.json",
        auto_recommend=False,
    )


@pytest.fixture
def app(app_settings):
    return create_app(app_settings)


@pytest.fixture
def client(app):
    """TestClient with the lifespan running (listeners wired)."""
    with TestClient(app) as test_client:
        yield test_client
