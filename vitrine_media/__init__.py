"""
Vitrine Media Backend Application Package

This package contains the FastAPI service that ingests product media for the
storefront catalogue. Uploaded images and videos are validated, staged in
memory and published to the managed media host with the transformations
required by the shop front.

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Infrastructure clients (remote media store)
- models/: Data models for staged files, publish targets and responses
- services/: Upload orchestration and media publishing
- utils/: Validation, limits, multipart parsing, errors and logging
"""

__version__ = "1.0.0"
__app_name__ = "vitrine-media"
