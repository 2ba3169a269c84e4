"""
Services module for the Vitrine Media service.

- media_publisher: Publishes staged files to the media store
- upload_service: Admission, publishing and reporting of upload requests
"""
