"""
Tests package for the DropIn backend.

This package contains test suites organized by type:
- unit/: Fast tests against in-memory fakes and mocks
- integration/: Tests against the real filesystem, Flask app and Redis
- property/: Shared Hypothesis strategies
"""
