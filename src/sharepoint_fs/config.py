# -*- coding: utf-8 -*-
"""
Configuration management for the SharePoint filesystem adapter.

This module handles adapter options, validation and environment loading.
"""

import os
from urllib.parse import urlparse

from dotenv import load_dotenv

# Graph upload sessions require chunks in multiples of 320 KiB
CHUNK_ALIGNMENT = 327680
MAX_CHUNK_SIZE = 60 * 1024 * 1024

# Option name -> environment variable read by Config.from_env()
ENV_VARS = {
    'url': 'SHAREPOINT_SITE_URL',
    'username': 'SHAREPOINT_USERNAME',
    'password': 'SHAREPOINT_PASSWORD',
    'tenant_id': 'SHAREPOINT_TENANT_ID',
    'client_id': 'SHAREPOINT_CLIENT_ID',
    'client_secret': 'SHAREPOINT_CLIENT_SECRET',
    'access_token': 'SHAREPOINT_ACCESS_TOKEN',
    'library': 'SHAREPOINT_LIBRARY',
    'root': 'SHAREPOINT_ROOT',
    'login_endpoint': 'SHAREPOINT_LOGIN_ENDPOINT',
    'graph_endpoint': 'SHAREPOINT_GRAPH_ENDPOINT',
    'max_retry': 'SHAREPOINT_MAX_RETRY',
    'upload_threshold': 'SHAREPOINT_UPLOAD_THRESHOLD',
    'chunk_size': 'SHAREPOINT_CHUNK_SIZE',
}

INT_OPTIONS = ('max_retry', 'upload_threshold', 'chunk_size')

# Azure CLI's public client, pre-authorized for Microsoft Graph; used for the
# username/password flow when no app registration is configured
DEFAULT_PUBLIC_CLIENT_ID = '04b07795-8ddb-461a-bbee-02f9e1bf7b46'


def align_chunk_size(chunk_size):
    """
    Round a chunk size up to the next 320 KiB multiple, capped at 60 MiB.

    Args:
        chunk_size (int): Requested chunk size in bytes

    Returns:
        int: Chunk size accepted by Graph upload sessions
    """
    if chunk_size % CHUNK_ALIGNMENT != 0:
        chunk_size = ((chunk_size // CHUNK_ALIGNMENT) + 1) * CHUNK_ALIGNMENT
    if chunk_size > MAX_CHUNK_SIZE:
        chunk_size = MAX_CHUNK_SIZE
    return chunk_size


class Config:
    """Configuration for SharePoint adapter operations"""

    def __init__(self, url, client_id=None, username=None, password=None,
                 tenant_id=None, client_secret=None, library=None, root='',
                 login_endpoint=None, graph_endpoint=None, max_retry=3,
                 upload_threshold=4 * 1024 * 1024, chunk_size=5 * 1024 * 1024,
                 access_token=None):
        """
        Initialize configuration.

        Args:
            url (str): Site URL, e.g. 'https://contoso.sharepoint.com/sites/Team'
            client_id (str): Application (client) ID from the Azure AD app registration.
                The username/password flow falls back to DEFAULT_PUBLIC_CLIENT_ID.
            username (str): User for the username/password flow
            password (str): Password for the username/password flow
            tenant_id (str): Azure AD tenant ID (default: 'organizations')
            client_secret (str): Enables the client credentials flow when set
            access_token (str | callable): Graph bearer token obtained elsewhere, or a
                callable returning one; MSAL is not used when set
            library (str): Document library display name (default: site default drive)
            root (str): Prefix every adapter path is relative to
            login_endpoint (str): Azure AD endpoint (default: login.microsoftonline.com)
            graph_endpoint (str): Graph API endpoint (default: graph.microsoft.com)
            max_retry (int): Retry attempts for transient HTTP errors (default: 3)
            upload_threshold (int): Payloads above this size use an upload session
            chunk_size (int): Upload session chunk size, aligned to 320 KiB
        """
        self.url = (url or '').rstrip('/')
        if not client_id and username and not client_secret:
            client_id = DEFAULT_PUBLIC_CLIENT_ID
        self.client_id = client_id
        self.username = username
        self.password = password
        self.tenant_id = tenant_id or 'organizations'
        self.client_secret = client_secret
        self.access_token = access_token or None
        self.library = library or None
        self.root = root or ''
        self.login_endpoint = login_endpoint or 'login.microsoftonline.com'
        self.graph_endpoint = graph_endpoint or 'graph.microsoft.com'
        self.max_retry = int(max_retry)
        self.upload_threshold = int(upload_threshold)
        self.chunk_size = align_chunk_size(int(chunk_size))

    @property
    def hostname(self):
        return urlparse(self.url).netloc

    @property
    def site_path(self):
        return urlparse(self.url).path

    @property
    def uses_client_credentials(self):
        return bool(self.client_secret)

    def validate(self):
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.url:
            raise ValueError("url cannot be empty")
        if urlparse(self.url).scheme != 'https' or not self.hostname:
            raise ValueError(f"url must be an https site URL, got '{self.url}'")
        if not self.access_token:
            if not self.client_id:
                raise ValueError("client_id cannot be empty: a client secret belongs to an Azure AD app registration")
            if not self.client_secret and not (self.username and self.password):
                raise ValueError("either access_token, client_secret, or username and password must be set")
        if self.max_retry < 0:
            raise ValueError("max_retry must be non-negative")
        if self.upload_threshold < 0:
            raise ValueError("upload_threshold must be non-negative")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    @classmethod
    def from_mapping(cls, options):
        """
        Build a configuration from a plain mapping of option names.

        Unknown keys are rejected so typos do not go unnoticed.
        """
        unknown = set(options) - set(ENV_VARS)
        if unknown:
            raise ValueError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")
        return cls(**options)

    @classmethod
    def from_env(cls, dotenv_path=None):
        """
        Build a configuration from environment variables, loading a .env file first.

        Args:
            dotenv_path (str): Optional explicit .env location

        Returns:
            Config: Configuration populated from SHAREPOINT_* variables
        """
        load_dotenv(dotenv_path)
        options = {}
        for option, env_var in ENV_VARS.items():
            value = os.environ.get(env_var)
            if value is None or value == '':
                continue
            options[option] = int(value) if option in INT_OPTIONS else value
        options.setdefault('url', '')
        return cls.from_mapping(options)

    def __repr__(self):
        return f"Config(url={self.url!r}, library={self.library!r}, root={self.root!r})"


def parse_config(options=None):
    """
    Build and validate configuration.

    Args:
        options (dict | Config | None): Adapter options; None reads the environment

    Returns:
        Config: Validated Config object

    Raises:
        ValueError: If configuration is invalid
    """
    if isinstance(options, Config):
        config = options
    elif options is None:
        config = Config.from_env()
    else:
        config = Config.from_mapping(dict(options))
    config.validate()
    return config
