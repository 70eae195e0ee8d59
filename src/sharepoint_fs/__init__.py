# -*- coding: utf-8 -*-
"""
SharePoint document libraries behind a generic filesystem interface.

Example:
    from sharepoint_fs import Filesystem, GetUrl, SharePointAdapter

    fs = Filesystem(SharePointAdapter({'url': ..., 'client_id': ..., 'username': ..., 'password': ...}))
    fs.write('reports/q1.txt', 'hello')
    fs.add_plugin(GetUrl())
    fs.get_url('reports/q1.txt')
"""

from .adapter import SharePointAdapter
from .config import Config, parse_config
from .exceptions import (
    AuthenticationError,
    FileNotFound,
    InvalidPath,
    RemoteRequestFailure,
    SharePointError,
    UnsupportedOperation,
)
from .filesystem import Filesystem, FilesystemAdapter
from .models import FileEntry, UploadSession
from .plugins import GetUrl, Plugin

__version__ = '1.0.0'

__all__ = [
    'AuthenticationError',
    'Config',
    'FileEntry',
    'FileNotFound',
    'Filesystem',
    'FilesystemAdapter',
    'GetUrl',
    'InvalidPath',
    'Plugin',
    'RemoteRequestFailure',
    'SharePointAdapter',
    'SharePointError',
    'UnsupportedOperation',
    'UploadSession',
    'parse_config',
]
