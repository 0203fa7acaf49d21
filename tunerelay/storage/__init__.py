"""
Storage module for transient upload handling.
"""

from .uploads import upload_storage, UploadStorage, UploadedFile

__all__ = ["upload_storage", "UploadStorage", "UploadedFile"]
