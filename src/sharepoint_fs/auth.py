# -*- coding: utf-8 -*-
"""
Microsoft authentication module for the SharePoint filesystem adapter.

This module handles Azure AD authentication using MSAL (Microsoft Authentication Library).
"""

import time

import msal

from .exceptions import AuthenticationError
from .utils import is_debug_enabled


def build_msal_app(config):
    """
    Create the MSAL application matching the configured credentials.

    A client secret selects a confidential client (service-to-service); otherwise a
    public client is used for the username/password flow.

    Args:
        config (Config): Adapter configuration

    Returns:
        msal.ClientApplication: Application used to request tokens
    """
    # Format: https://login.microsoftonline.com/{tenant_id}
    authority_url = f'https://{config.login_endpoint}/{config.tenant_id}'

    if config.uses_client_credentials:
        return msal.ConfidentialClientApplication(
            authority=authority_url,
            client_id=config.client_id,
            client_credential=config.client_secret
        )
    return msal.PublicClientApplication(
        authority=authority_url,
        client_id=config.client_id
    )


def acquire_token(config, app=None):
    """
    Acquire an authentication token from Azure Active Directory using MSAL.

    Args:
        config (Config): Adapter configuration holding the credentials
        app (msal.ClientApplication): Reuse an existing MSAL application

    Returns:
        dict: Token dictionary containing:
            - 'access_token': The JWT token to authenticate API calls
            - 'token_type': Usually 'Bearer'
            - 'expires_in': Token lifetime in seconds

    Raises:
        AuthenticationError: If Azure AD does not issue a token

    Example:
        token = acquire_token(config)
        headers = {'Authorization': f"{token['token_type']} {token['access_token']}"}
    """
    app = app or build_msal_app(config)
    # '/.default' scope means "use all permissions granted to this app"
    scopes = [f"https://{config.graph_endpoint}/.default"]

    if config.uses_client_credentials:
        token = app.acquire_token_for_client(scopes=scopes)
    else:
        token = app.acquire_token_by_username_password(
            config.username, config.password, scopes=scopes
        )

    if not token or 'access_token' not in token:
        error = (token or {}).get('error_description') or (token or {}).get('error') or 'no token returned'
        raise AuthenticationError(f"Failed to acquire authentication token: {error}", status_code=401)

    if is_debug_enabled():
        print(f"[DEBUG] Acquired token (expires in {token.get('expires_in')}s)")
    return token


class TokenProvider:
    """
    Keeps one MSAL application and its current token for a configuration.

    The token is refreshed a minute before Azure AD says it expires. A configured
    access_token is handed out as-is (a callable is asked on every request).
    """

    refresh_margin = 60

    def __init__(self, config):
        self.config = config
        self._app = None
        self._token = None
        self._expires_at = 0

    def get_token(self):
        external = self.config.access_token
        if external:
            access_token = external() if callable(external) else external
            if not access_token:
                raise AuthenticationError("Externally supplied access token is empty", status_code=401)
            return {'access_token': access_token, 'token_type': 'Bearer'}

        if self._token is None or time.time() >= self._expires_at - self.refresh_margin:
            if self._app is None:
                self._app = build_msal_app(self.config)
            self._token = acquire_token(self.config, app=self._app)
            self._expires_at = time.time() + int(self._token.get('expires_in', 3600))
        return self._token

    def authorization_header(self):
        token = self.get_token()
        return f"{token.get('token_type', 'Bearer')} {token['access_token']}"
