"""
API v1 - DropIn REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

API_VERSION = os.getenv("API_VERSION", "v1")

api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Swagger UI is served at /api/v1/docs
api = Api(
    api_v1_bp,
    version="1.0",
    title="DropIn API",
    description="Share files with a short code. Codes expire one hour after upload.",
    doc="/docs",
    license="MIT",
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import download_ns, info_ns, upload_ns  # noqa: E402

api.add_namespace(upload_ns, path="/upload")
api.add_namespace(info_ns, path="/info")
api.add_namespace(download_ns, path="/download")
