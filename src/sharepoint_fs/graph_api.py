# -*- coding: utf-8 -*-
"""
Microsoft Graph API operations for the SharePoint filesystem adapter.

This module provides request retry logic and the drive item REST calls the
adapter is built on. Every method takes drive-relative paths that have
already been normalized by the PathTranslator.
"""

import time
from urllib.parse import quote

import requests

from .auth import TokenProvider
from .exceptions import FileNotFound, RemoteRequestFailure
from .monitoring import rate_monitor
from .utils import is_debug_enabled, is_debug_metadata_enabled

# Generous timeout for content transfers; metadata calls return much sooner
REQUEST_TIMEOUT = 300


def make_graph_request_with_retry(url, headers, method='GET', json_data=None, data=None, params=None,
                                  max_retries=3, retry_conflicts=True):
    """
    Make a Graph API request with proper retry handling for transient errors.
    Includes rate limiting monitoring via response header analysis.

    Retry Logic:
        - 429 (Rate Limit): Waits for Retry-After header duration
        - 5xx (Server Error): Exponential backoff (2s, 3s, 5s)
        - 409 (Conflict/Lock): Exponential backoff (3s, 4s, 6s) unless retry_conflicts is False
        - Network errors: Exponential backoff, same as 5xx
        - Other 4xx (Client Error): No retry

    Args:
        url (str): The Graph API endpoint URL
        headers (dict): Request headers including Authorization
        method (str): HTTP method ('GET', 'POST', 'PATCH', 'PUT', 'DELETE')
        json_data (dict): JSON body (mutually exclusive with data)
        data (bytes | file): Binary body (mutually exclusive with json_data)
        params (dict): URL query parameters
        max_retries (int): Maximum number of retry attempts (default: 3)
        retry_conflicts (bool): Retry 409 responses (default: True)

    Returns:
        requests.Response: The HTTP response object

    Raises:
        RemoteRequestFailure: If all retries are exhausted for 429, 5xx or network errors

    Note:
        409 responses are returned after retries (no exception) for graceful handling.
    """
    debug_metadata = is_debug_metadata_enabled()
    method = method.upper()
    if method not in ('GET', 'POST', 'PATCH', 'PUT', 'DELETE'):
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_retries + 1):
        # Add proactive delay if approaching rate limits
        if rate_monitor.should_slow_down() and attempt > 0:
            delay = 2 ** attempt
            if is_debug_enabled():
                print(f"[⚠] Proactive rate limiting delay: {delay}s")
            time.sleep(delay)

        try:
            response = requests.request(
                method, url, headers=headers, params=params, json=json_data, data=data,
                timeout=REQUEST_TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            if attempt < max_retries:
                wait_seconds = (2 ** attempt) + 1
                print(f"[!] Network error: {e}. Retrying in {wait_seconds} seconds... ({attempt + 1}/{max_retries})")
                time.sleep(wait_seconds)
                continue
            print(f"[!] Network errors exhausted all retries: {e}")
            raise RemoteRequestFailure(f"Graph API network error on {method} {url}: {e}") from e

        rate_monitor.analyze_response_headers(response)

        if response.status_code == 429:
            retry_after = response.headers.get('Retry-After', '60')
            try:
                wait_seconds = int(retry_after)
            except ValueError:
                wait_seconds = 60  # Default to 60 seconds if header is malformed

            if attempt < max_retries:
                if is_debug_enabled():
                    print(f"[!] Rate limited (429). Waiting {wait_seconds} seconds before retry {attempt + 1}/{max_retries}...")
                if debug_metadata:
                    print(f"[DEBUG] Rate limit response: {response.text[:300]}")
                time.sleep(wait_seconds)
                continue
            raise RemoteRequestFailure(
                f"Graph API rate limiting: {response.status_code} after {max_retries} retries - {response.text[:500]}",
                status_code=response.status_code
            )

        if 500 <= response.status_code < 600:
            if attempt < max_retries:
                wait_seconds = (2 ** attempt) + 1
                if is_debug_enabled():
                    print(f"[!] Server error ({response.status_code}). Retrying in {wait_seconds} seconds... ({attempt + 1}/{max_retries})")
                if debug_metadata:
                    print(f"[DEBUG] Server error response: {response.text[:300]}")
                time.sleep(wait_seconds)
                continue
            raise RemoteRequestFailure(
                f"Graph API server error: {response.status_code} after {max_retries} retries - {response.text[:500]}",
                status_code=response.status_code
            )

        if response.status_code == 409 and retry_conflicts and attempt < max_retries:
            # Often transient: SharePoint virus scan, indexing or a lock held by another editor
            wait_seconds = (2 ** attempt) + 2
            if is_debug_enabled():
                print(f"[!] Conflict/Lock error (409). Retrying in {wait_seconds} seconds... ({attempt + 1}/{max_retries})")
            time.sleep(wait_seconds)
            continue

        return response

    raise RemoteRequestFailure(f"Unexpected end of retries for {method} {url}")


class GraphDriveClient:
    """
    Drive item operations against one SharePoint document library.

    Site and drive IDs are resolved on first use and kept for the lifetime of the client.
    """

    def __init__(self, config, token_provider=None):
        self.config = config
        self.token_provider = token_provider or TokenProvider(config)
        self.base_url = f"https://{config.graph_endpoint}/v1.0"
        self._site_id = None
        self._drive_id = None

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _headers(self, content_type=None):
        headers = {
            'Authorization': self.token_provider.authorization_header(),
            'Accept': 'application/json'
        }
        if content_type:
            headers['Content-Type'] = content_type
        return headers

    def _request(self, url, method='GET', content_type=None, **kwargs):
        if is_debug_metadata_enabled():
            print(f"[DEBUG] {method} {url}")
        return make_graph_request_with_retry(
            url, self._headers(content_type), method=method,
            max_retries=self.config.max_retry, **kwargs
        )

    @staticmethod
    def _fail(response, action, path=None):
        """Translate an unsuccessful response into the matching exception."""
        if response.status_code == 404 and path is not None:
            raise FileNotFound(path)
        raise RemoteRequestFailure(
            f"Failed to {action}: {response.status_code} - {response.text}",
            status_code=response.status_code
        )

    # ------------------------------------------------------------------
    # Site / drive resolution
    # ------------------------------------------------------------------

    @property
    def site_id(self):
        if self._site_id is None:
            site_path = self.config.site_path.rstrip('/')
            if site_path:
                site_url = f"{self.base_url}/sites/{self.config.hostname}:{site_path}"
            else:
                site_url = f"{self.base_url}/sites/{self.config.hostname}"
            response = self._request(site_url)
            if response.status_code != 200:
                self._fail(response, "get site ID")
            self._site_id = response.json()['id']
            if is_debug_enabled():
                print(f"[DEBUG] Site ID: {self._site_id}")
        return self._site_id

    @property
    def drive_id(self):
        if self._drive_id is None:
            if self.config.library:
                self._drive_id = self._find_library_drive(self.config.library)
            else:
                response = self._request(f"{self.base_url}/sites/{self.site_id}/drive")
                if response.status_code != 200:
                    self._fail(response, "get drive")
                self._drive_id = response.json()['id']
            if is_debug_enabled():
                print(f"[DEBUG] Drive ID: {self._drive_id}")
        return self._drive_id

    def _find_library_drive(self, library):
        url = f"{self.base_url}/sites/{self.site_id}/drives"
        while url:
            response = self._request(url)
            if response.status_code != 200:
                self._fail(response, "list document libraries")
            payload = response.json()
            for drive in payload.get('value', []):
                if drive.get('name') == library:
                    return drive['id']
            url = payload.get('@odata.nextLink')
        raise RemoteRequestFailure(f"Document library '{library}' not found on {self.config.url}", status_code=404)

    def item_url(self, path, action=None):
        """
        Build the Graph URL addressing a drive item by path.

        Args:
            path (str): Drive-relative path, '' for the library root
            action (str): Optional trailing segment ('children', 'content', ...)

        Returns:
            str: e.g. .../drives/{id}/root:/Reports/a.txt:/content
        """
        drive_url = f"{self.base_url}/drives/{self.drive_id}"
        if not path:
            return f"{drive_url}/root/{action}" if action else f"{drive_url}/root"
        encoded = quote(path)
        return f"{drive_url}/root:/{encoded}:/{action}" if action else f"{drive_url}/root:/{encoded}"

    def parent_reference(self, parent_path):
        if not parent_path:
            return {'driveId': self.drive_id, 'path': f"/drives/{self.drive_id}/root:"}
        return {'driveId': self.drive_id, 'path': f"/drives/{self.drive_id}/root:/{parent_path}"}

    # ------------------------------------------------------------------
    # Drive item operations
    # ------------------------------------------------------------------

    def get_item(self, path):
        """
        Get a drive item (file or folder) by its path.

        Returns:
            dict: Drive item metadata (id, name, size, webUrl, file/folder facet, ...)

        Raises:
            FileNotFound: If nothing exists at the path
        """
        response = self._request(self.item_url(path))
        if response.status_code != 200:
            self._fail(response, f"get item '{path}'", path)
        return response.json()

    def list_children(self, path):
        """
        List all children (files and folders) of a folder, following pagination.

        Returns:
            list: driveItem dictionaries; use 'file' in item or 'folder' in item to determine type

        Raises:
            FileNotFound: If the folder does not exist
        """
        children = []
        url = self.item_url(path, 'children')
        while url:
            response = self._request(url)
            if response.status_code != 200:
                self._fail(response, f"list children of '{path}'", path)
            payload = response.json()
            children.extend(payload.get('value', []))
            url = payload.get('@odata.nextLink')

        if is_debug_enabled():
            print(f"[DEBUG] Found {len(children)} children in folder '{path or '/'}'")
        return children

    def download(self, path):
        """Return the full content of a file. Graph answers with a redirect that requests follows."""
        response = self._request(self.item_url(path, 'content'))
        if response.status_code != 200:
            self._fail(response, f"download '{path}'", path)
        return response.content

    def upload_small_file(self, path, content):
        """
        Upload a file in a single request (Graph limits this to 4 MB).

        Missing parent folders are created by Graph.

        Returns:
            dict: Uploaded drive item metadata
        """
        if is_debug_enabled():
            print(f"[DEBUG] Uploading {len(content)} bytes to: {path}")
        response = self._request(
            self.item_url(path, 'content'), method='PUT',
            content_type='application/octet-stream', data=content
        )
        if response.status_code not in (200, 201):
            self._fail(response, f"upload '{path}'")
        return response.json()

    def create_upload_session(self, path):
        """
        Create an upload session for a large file.

        The session is created with deferCommit so the file only appears once
        commit_upload_session() is called after the last chunk.

        Returns:
            dict: Session info including 'uploadUrl' and 'expirationDateTime'
        """
        request_body = {
            'item': {'@microsoft.graph.conflictBehavior': 'replace'},
            'deferCommit': True
        }
        response = self._request(
            self.item_url(path, 'createUploadSession'), method='POST',
            content_type='application/json', json_data=request_body
        )
        if response.status_code != 200:
            self._fail(response, f"create upload session for '{path}'")
        session = response.json()
        if 'uploadUrl' not in session:
            raise RemoteRequestFailure(f"Upload session for '{path}' has no uploadUrl")
        if is_debug_enabled():
            print(f"[DEBUG] Upload session created: {session['uploadUrl'][:50]}...")
        return session

    def upload_chunk(self, upload_url, chunk_data, chunk_start, total_size):
        """
        Upload a chunk of a file to an upload session.

        The upload URL is pre-authenticated, so no Authorization header is sent.
        Chunks are not retried: a failed chunk ends the session.

        Args:
            upload_url (str): Upload URL from create_upload_session()
            chunk_data (bytes): Chunk content
            chunk_start (int): Starting byte position (0-indexed)
            total_size (int): Total file size in bytes

        Returns:
            dict: Either session status with nextExpectedRanges, or the finished driveItem
        """
        chunk_end = chunk_start + len(chunk_data) - 1
        headers = {
            'Content-Length': str(len(chunk_data)),
            'Content-Range': f"bytes {chunk_start}-{chunk_end}/{total_size}"
        }
        if is_debug_enabled():
            print(f"[DEBUG] Uploading chunk: bytes {chunk_start}-{chunk_end}/{total_size}")
        try:
            response = requests.request('PUT', upload_url, headers=headers, data=chunk_data, timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            raise RemoteRequestFailure(f"Chunk upload failed at offset {chunk_start}: {e}") from e

        # 202 = chunk accepted, 200/201 = upload complete
        if response.status_code not in (200, 201, 202):
            raise RemoteRequestFailure(
                f"Chunk upload failed at offset {chunk_start}: {response.status_code} - {response.text}",
                status_code=response.status_code
            )
        return response.json() if response.content else {}

    def commit_upload_session(self, upload_url):
        """Finalize a deferred upload session; returns the created driveItem."""
        try:
            response = requests.request(
                'POST', upload_url, headers={'Content-Length': '0'}, timeout=REQUEST_TIMEOUT
            )
        except requests.exceptions.RequestException as e:
            raise RemoteRequestFailure(f"Upload commit failed: {e}") from e
        if response.status_code not in (200, 201):
            raise RemoteRequestFailure(
                f"Upload commit failed: {response.status_code} - {response.text}",
                status_code=response.status_code
            )
        return response.json() if response.content else {}

    def cancel_upload_session(self, upload_url):
        """Abandon an upload session. Returns False if Graph refused."""
        try:
            response = requests.request('DELETE', upload_url, timeout=REQUEST_TIMEOUT)
        except requests.exceptions.RequestException as e:
            print(f"[!] Could not cancel upload session: {e}")
            return False
        return response.status_code in (200, 204)

    def create_folder(self, parent_path, folder_name):
        """
        Create a folder under parent_path.

        Returns:
            dict: Created folder driveItem metadata

        Raises:
            RemoteRequestFailure: status_code 409 when an item with that name exists
        """
        request_body = {
            'name': folder_name,
            'folder': {},
            '@microsoft.graph.conflictBehavior': 'fail'
        }
        if is_debug_enabled():
            print(f"[DEBUG] Creating folder: {folder_name} in '{parent_path or '/'}'")
        response = self._request(
            self.item_url(parent_path, 'children'), method='POST',
            content_type='application/json', json_data=request_body, retry_conflicts=False
        )
        if response.status_code not in (200, 201):
            self._fail(response, f"create folder '{folder_name}'", parent_path)
        return response.json()

    def delete_item(self, path):
        """
        Delete a file or folder. Graph deletes folders together with their contents.

        Raises:
            FileNotFound: If nothing exists at the path
        """
        response = self._request(self.item_url(path), method='DELETE')
        if response.status_code not in (200, 204):
            self._fail(response, f"delete '{path}'", path)
        return True

    def move_item(self, path, new_parent_path, new_name):
        """Move and/or rename an item; returns the updated driveItem."""
        request_body = {
            'name': new_name,
            'parentReference': self.parent_reference(new_parent_path)
        }
        response = self._request(
            self.item_url(path), method='PATCH',
            content_type='application/json', json_data=request_body, retry_conflicts=False
        )
        if response.status_code != 200:
            self._fail(response, f"move '{path}'", path)
        return response.json()
