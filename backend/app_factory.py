"""
Application Factory

Creates and configures the Flask application with all dependencies.
The factory pattern keeps the app testable: configuration, storage
locations and the clock can all be injected.
"""

import logging
import os
from datetime import datetime, timedelta
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from dropin.application import DependencyContainer, RetrievalService, UploadLimits, UploadService
from dropin.config.celery_config import make_celery
from dropin.config.transfer_config import MB, TransferConfig
from dropin.domain.transfer import (
    BlobStore,
    CodeGroupRepository,
    CodeRegistry,
    ExpirySweeper,
    utcnow,
)
from dropin.infrastructure import StorageFactory

logger = logging.getLogger(__name__)

# Multipart framing on top of the file bytes themselves
MULTIPART_OVERHEAD = 1 * MB


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        origins = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins = "*" if origins.strip() == "*" else [
            origin.strip() for origin in origins.split(",") if origin.strip()
        ]

        # Celery drives the periodic sweep; lazy expiry works without it
        self.celery_enabled = os.getenv("CELERY_ENABLED", "true").lower() == "true"


def create_app(
    config: Optional[AppConfig] = None,
    transfer_config: Optional[TransferConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        transfer_config: Storage and limit settings, read from the environment if None
        clock: Current-time source for expiry decisions, UTC wall clock if None

    Returns:
        Configured Flask application

    Raises:
        ValueError: If the environment holds invalid settings
    """
    if config is None:
        config = AppConfig()
    if transfer_config is None:
        transfer_config = TransferConfig()
    if clock is None:
        clock = utcnow

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Create Flask app
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = transfer_config.max_batch_size + MULTIPART_OVERHEAD
    app.config["RESTX_MASK_SWAGGER"] = False
    app.transfer_config = transfer_config
    app.clock = clock

    # Configure CORS
    CORS(
        app,
        resources={
            r"/*": {
                "origins": config.cors_origins,
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "Range"],
                "expose_headers": [
                    "Content-Type",
                    "Content-Length",
                    "Content-Range",
                    "Content-Disposition",
                    "Accept-Ranges",
                ],
                "max_age": 3600,
            }
        },
    )

    # Initialize infrastructure
    _initialize_infrastructure(app, config)

    # Initialize services
    _initialize_services(app, transfer_config, clock)

    # Register blueprints
    _register_blueprints(app, config)

    # Register health check and banner endpoints
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(app: Flask, config: AppConfig) -> None:
    """
    Initialize infrastructure components (Celery).

    Args:
        app: Flask application
        config: Application configuration
    """
    app.celery = None
    if not config.celery_enabled:
        logger.info("Celery disabled - expired codes are only removed on lookup")
        return

    try:
        app.celery = make_celery(app, app.transfer_config.sweep_interval_seconds)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")


def _initialize_services(
    app: Flask, transfer_config: TransferConfig, clock: Callable[[], datetime]
) -> None:
    """
    Build the service graph and attach it to the app through a DependencyContainer.

    Storage adapters come from StorageFactory; the domain and application
    services are registered as singletons and resolved by the API and the
    sweeper task.

    Args:
        app: Flask application
        transfer_config: Storage and limit settings
        clock: Current-time source shared by every service
    """
    try:
        container = DependencyContainer()
        container.register_singleton(TransferConfig, transfer_config)

        # Infrastructure adapters
        blob_store = StorageFactory.create_blob_store(transfer_config)
        group_repository = StorageFactory.create_registry(transfer_config, clock=clock)
        container.register_singleton(BlobStore, blob_store)
        container.register_singleton(CodeGroupRepository, group_repository)

        # Domain services
        registry = CodeRegistry(
            group_repository,
            blob_store,
            clock=clock,
            code_length=transfer_config.code_length,
            max_attempts=transfer_config.code_max_attempts,
        )
        container.register_singleton(CodeRegistry, registry)
        container.register_transient(ExpirySweeper, lambda: ExpirySweeper(registry))

        # Application services
        upload_service = UploadService(
            registry,
            blob_store,
            limits=UploadLimits.from_config(transfer_config),
            ttl=timedelta(seconds=transfer_config.code_ttl_seconds),
        )
        retrieval_service = RetrievalService(registry, blob_store)
        container.register_singleton(UploadService, upload_service)
        container.register_singleton(RetrievalService, retrieval_service)

        # Attach container to Flask app context
        app.container = container

        # Commonly-used services, for convenient access in API routes
        app.upload_service = upload_service
        app.retrieval_service = retrieval_service

        logger.info(
            f"Application services initialized ({len(container)} registrations, "
            f"registry backend: {transfer_config.registry_backend})"
        )

    except Exception as e:
        logger.error(f"Could not initialize services: {e}", exc_info=True)
        app.container = None
        app.upload_service = None
        app.retrieval_service = None


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
        config: Application configuration
    """
    from dropin.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _get_health_status(app: Flask) -> tuple:
    """
    Get health status of all system components.

    The registry and the blob store are required; Celery only matters
    when it was enabled.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "registry": "unknown",
        "storage": "unknown",
        "celery": "not_configured",
    }

    container = getattr(app, "container", None)
    if container is None:
        health_status["status"] = "degraded"
        health_status["registry"] = "unavailable"
        health_status["storage"] = "unavailable"
        return health_status, 503

    for key, interface in (("registry", CodeGroupRepository), ("storage", BlobStore)):
        try:
            if container.resolve(interface).is_available():
                health_status[key] = "available"
            else:
                health_status[key] = "unavailable"
                health_status["status"] = "degraded"
        except Exception as e:
            health_status[key] = f"error: {str(e)}"
            health_status["status"] = "degraded"

    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check and banner endpoints.

    Args:
        app: Flask application
    """

    @app.route("/", methods=["GET"])
    def index():
        return "DropIn backend is running"

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its storage.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
