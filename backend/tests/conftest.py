"""
Shared pytest fixtures and configuration for the DropIn backend test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A controllable clock for expiry tests
- Fixtures wiring the registry and services over temporary directories
- A fully built Flask app for API tests
"""

from datetime import timedelta

import pytest
from hypothesis import HealthCheck, Phase, settings

from app_factory import AppConfig, create_app
from dropin.application import RetrievalService, UploadLimits, UploadService
from dropin.config.transfer_config import TransferConfig
from dropin.domain.transfer import CodeRegistry, ExpirySweeper
from dropin.infrastructure import JsonFileCodeGroupRepository, LocalBlobStore

from tests.fixtures.clock import FakeClock
from tests.fixtures.mock_repositories import MockBlobStore, MockCodeGroupRepository

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")


# =============================================================================
# Time-related Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Provide a clock frozen at a fixed instant."""
    return FakeClock()


# =============================================================================
# In-memory Fixtures
# =============================================================================

@pytest.fixture
def group_repository():
    return MockCodeGroupRepository()


@pytest.fixture
def blob_store():
    return MockBlobStore()


@pytest.fixture
def registry(group_repository, blob_store, clock):
    """CodeRegistry over in-memory storage."""
    return CodeRegistry(group_repository, blob_store, clock=clock)


@pytest.fixture
def sweeper(registry):
    return ExpirySweeper(registry)


@pytest.fixture
def upload_service(registry, blob_store):
    limits = UploadLimits(max_file_size=100, max_batch_size=150, max_files=3)
    return UploadService(registry, blob_store, limits=limits, ttl=timedelta(hours=1))


@pytest.fixture
def retrieval_service(registry, blob_store):
    return RetrievalService(registry, blob_store)


# =============================================================================
# Filesystem Fixtures
# =============================================================================

@pytest.fixture
def local_blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "uploads"))


@pytest.fixture
def json_repository(tmp_path):
    return JsonFileCodeGroupRepository(str(tmp_path / "metadata"))


@pytest.fixture
def transfer_config(tmp_path, monkeypatch):
    """TransferConfig pointing at a temporary data directory with small limits."""
    monkeypatch.setenv("DROPIN_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("REGISTRY_BACKEND", "file")
    monkeypatch.setenv("MAX_FILE_SIZE", "1000")
    monkeypatch.setenv("MAX_BATCH_SIZE", "1500")
    monkeypatch.setenv("MAX_FILES_PER_BATCH", "5")
    monkeypatch.delenv("DROPIN_STORAGE_DIR", raising=False)
    monkeypatch.delenv("DROPIN_METADATA_DIR", raising=False)
    monkeypatch.delenv("ALLOWED_CONTENT_TYPES", raising=False)
    return TransferConfig()


@pytest.fixture
def app(transfer_config, clock, monkeypatch):
    """Flask app built by the factory over temporary storage, Celery disabled."""
    monkeypatch.setenv("CELERY_ENABLED", "false")
    flask_app = create_app(AppConfig(), transfer_config=transfer_config, clock=clock)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (filesystem, Flask app or Redis)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )
    config.addinivalue_line(
        "markers", "redis: Tests requiring a reachable Redis server"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
