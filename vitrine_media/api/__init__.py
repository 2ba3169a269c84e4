"""
Vitrine Media API Package.

Endpoints are versioned under /api/v1 so later versions can be added
without breaking existing clients.

Package Structure:
    - v1/: Version 1 API endpoints (current stable version)
        - uploads.py: Single-file and multi-file media upload endpoints
"""
