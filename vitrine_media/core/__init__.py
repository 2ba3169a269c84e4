"""
Core infrastructure clients for the Vitrine Media service.

- media_store: Async client for the remote media host (Cloudinary)
"""
