"""
main.py

Flask backend for DropIn: anonymous file sharing by short-lived codes.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery
  - Infrastructure: Redis server (Celery broker, optional registry backend)

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Expired codes are removed on lookup; the Celery beat sweep is a safety net
  - Uses application factory pattern for better testability
"""

import os

from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 5000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
