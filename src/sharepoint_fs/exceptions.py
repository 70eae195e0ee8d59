# -*- coding: utf-8 -*-
"""
Error types raised by the SharePoint filesystem adapter.
"""


class SharePointError(Exception):
    """Base class for every error raised by this package."""
    pass


class FileNotFound(SharePointError):
    """The requested file or folder does not exist in the document library."""

    def __init__(self, path):
        super().__init__(f"File not found at path: {path}")
        self.path = path


class RemoteRequestFailure(SharePointError):
    """
    A Graph API request failed (authentication, malformed request, server error).

    The original response text is kept in the message so callers can diagnose it.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RemoteRequestFailure):
    """Azure AD did not issue an access token."""
    pass


class InvalidPath(SharePointError, ValueError):
    """A path cannot be mapped onto the document library."""
    pass


class UnsupportedOperation(SharePointError):
    """The operation has no counterpart in a SharePoint document library."""
    pass
