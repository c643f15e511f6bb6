"""
Test Application Factory

Verifies that the factory wires the storage backends, services and
container from configuration, and that Celery is optional.
"""

import io
from datetime import timedelta
from unittest.mock import patch

import pytest

from app_factory import MULTIPART_OVERHEAD, AppConfig, create_app
from dropin.application import RetrievalService, UploadService
from dropin.domain.transfer import BlobStore, CodeGroupRepository, CodeRegistry, ExpirySweeper
from dropin.infrastructure import JsonFileCodeGroupRepository, LocalBlobStore
from dropin.tasks.cleanup_task import sweep_expired_codes
from tests.fixtures import make_file_record


class TestAppFactory:
    """Test application factory pattern."""

    def test_services_are_attached(self, app):
        assert isinstance(app.upload_service, UploadService)
        assert isinstance(app.retrieval_service, RetrievalService)
        assert app.container.resolve(UploadService) is app.upload_service

    def test_file_backends_selected(self, app, transfer_config):
        assert isinstance(app.container.resolve(CodeGroupRepository), JsonFileCodeGroupRepository)
        blob_store = app.container.resolve(BlobStore)
        assert isinstance(blob_store, LocalBlobStore)
        assert str(blob_store.base_path) == transfer_config.storage_dir

    def test_registry_uses_injected_clock(self, app, clock):
        assert app.container.resolve(CodeRegistry).clock is clock
        assert app.clock is clock

    def test_sweeper_is_transient(self, app):
        assert app.container.resolve(ExpirySweeper) is not app.container.resolve(ExpirySweeper)

    def test_request_ceiling_follows_batch_limit(self, app, transfer_config):
        assert app.config["MAX_CONTENT_LENGTH"] == transfer_config.max_batch_size + MULTIPART_OVERHEAD

    def test_celery_disabled(self, app):
        assert app.celery is None

    def test_celery_enabled(self, transfer_config, clock, monkeypatch):
        monkeypatch.setenv("CELERY_ENABLED", "true")

        app = create_app(AppConfig(), transfer_config=transfer_config, clock=clock)

        assert app.celery is not None
        assert "dropin.tasks.sweep_expired_codes" in app.celery.conf.beat_schedule[
            "sweep-expired-codes"]["task"]

    def test_beat_interval_follows_transfer_config(self, transfer_config, clock, monkeypatch):
        monkeypatch.setenv("CELERY_ENABLED", "true")
        transfer_config.sweep_interval_seconds = 120

        app = create_app(AppConfig(), transfer_config=transfer_config, clock=clock)

        assert app.celery.conf.beat_schedule["sweep-expired-codes"]["schedule"] == 120.0

    def test_sweep_body_uses_active_app_after_celery_app_is_built(
        self, app, transfer_config, clock, monkeypatch
    ):
        monkeypatch.setenv("CELERY_ENABLED", "true")
        create_app(AppConfig(), transfer_config=transfer_config, clock=clock)

        registry = app.container.resolve(CodeRegistry)
        stored_name = registry.blob_store.put(io.BytesIO(b"data"), "a.txt")
        registry.create([make_file_record(stored_name, size=4)], ttl=timedelta(minutes=5))
        clock.advance(minutes=10)

        with app.app_context():
            stats = sweep_expired_codes.run()

        assert stats["codes_scanned"] == 1
        assert stats["expired_codes_removed"] == 1

    def test_storage_failure_leaves_services_unset(self, transfer_config, clock, monkeypatch):
        monkeypatch.setenv("CELERY_ENABLED", "false")

        with patch("app_factory.StorageFactory.create_blob_store", side_effect=OSError("read-only")):
            app = create_app(AppConfig(), transfer_config=transfer_config, clock=clock)

        assert app.upload_service is None
        response = app.test_client().post(
            "/api/v1/upload", data={}, content_type="multipart/form-data"
        )
        assert response.status_code == 503
        assert app.test_client().get("/health").status_code == 503

    def test_invalid_environment_fails_fast(self, monkeypatch):
        monkeypatch.setenv("CODE_TTL_SECONDS", "not-a-number")

        with pytest.raises(ValueError):
            create_app()

    def test_cors_exposes_range_headers(self, client):
        response = client.get("/", headers={"Origin": "https://example.com"})

        exposed = response.headers.get("Access-Control-Expose-Headers", "")
        assert "Content-Range" in exposed
        assert "Content-Disposition" in exposed
