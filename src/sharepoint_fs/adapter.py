# -*- coding: utf-8 -*-
"""
SharePoint document library adapter.

Maps the generic filesystem verbs onto Microsoft Graph drive item calls:

    write / write_stream  -> PUT .../content, or an upload session above the threshold
    read                  -> GET .../content
    has / get_metadata    -> GET item by path
    list_contents         -> GET .../children (paged via @odata.nextLink)
    create_dir            -> POST .../children with a folder facet, one segment at a time
    delete                -> DELETE item
    get_url               -> the item's webUrl

The adapter does not retry; transient errors are handled by graph_api.
"""

import io
import shutil
import tempfile

from .config import parse_config
from .exceptions import FileNotFound, InvalidPath, RemoteRequestFailure, SharePointError, UnsupportedOperation
from .filesystem import FilesystemAdapter
from .graph_api import GraphDriveClient
from .models import FileEntry, UploadSession
from .paths import PathTranslator, normalize_path
from .utils import is_debug_enabled


def _read_exactly(stream, length):
    """Read up to length bytes, looping over short reads from raw streams."""
    parts = []
    remaining = length
    while remaining > 0:
        data = stream.read(remaining)
        if not data:
            break
        parts.append(data)
        remaining -= len(data)
    return b''.join(parts)


def _stream_size(stream):
    """Bytes left in a seekable stream, or None when the stream cannot seek."""
    seekable = getattr(stream, 'seekable', None)
    if seekable is None or not seekable():
        return None
    start = stream.tell()
    end = stream.seek(0, io.SEEK_END)
    stream.seek(start)
    return end - start


class SharePointAdapter(FilesystemAdapter):
    """
    Filesystem adapter for a SharePoint document library.

    Args:
        config (Config | dict | None): Adapter options (url, username, password,
            client_id, ...). None reads SHAREPOINT_* environment variables.
        client (GraphDriveClient): Drive client to use instead of building one

    Example:
        adapter = SharePointAdapter({
            'url': 'https://contoso.sharepoint.com/sites/Team',
            'client_id': '...',
            'username': 'robot@contoso.com',
            'password': '...',
        })
        fs = Filesystem(adapter)
    """

    def __init__(self, config=None, client=None):
        self.config = parse_config(config)
        self.client = client or GraphDriveClient(self.config)
        self.paths = PathTranslator(self.config.root)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _remote(self, path):
        return self.paths.to_remote(path)

    def _get_item(self, path):
        try:
            return self.client.get_item(self._remote(path))
        except FileNotFound:
            raise FileNotFound(normalize_path(path)) from None

    def _find_item(self, path):
        """The driveItem at path, or None when there is nothing there."""
        try:
            return self._get_item(path)
        except (FileNotFound, InvalidPath):
            return None

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write(self, path, contents):
        if isinstance(contents, str):
            contents = contents.encode('utf-8')
        return self.write_stream(path, io.BytesIO(contents))

    def write_stream(self, path, stream):
        """
        Upload a stream, choosing the strategy by size.

        Streams up to upload_threshold bytes go up in a single PUT; larger ones
        through an upload session. Streams that cannot seek are spooled to a
        temporary file first so the total size is known.

        Returns:
            bool: True if the file was stored, False if the path is invalid or
                  SharePoint rejected it
        """
        try:
            logical = normalize_path(path)
            remote = self._remote(path)
        except InvalidPath as e:
            print(f"[!] Failed to write '{path}': {e}")
            return False
        if not logical:
            print("[!] Cannot write a file at the root folder")
            return False

        spool = None
        size = _stream_size(stream)
        if size is None:
            spool = tempfile.SpooledTemporaryFile(max_size=self.config.upload_threshold or None)
            shutil.copyfileobj(stream, spool)
            size = spool.tell()
            spool.seek(0)
            stream = spool

        try:
            if size <= self.config.upload_threshold:
                self.client.upload_small_file(remote, _read_exactly(stream, size))
            else:
                self._upload_in_chunks(remote, stream, size)
        except SharePointError as e:
            print(f"[!] Failed to write '{path}': {e}")
            return False
        finally:
            if spool is not None:
                spool.close()

        if is_debug_enabled():
            print(f"[✓] Written: {path} ({size:,} bytes)")
        return True

    def _upload_in_chunks(self, remote, stream, size):
        """
        Upload a large stream through a Graph upload session.

        Chunks are sent strictly in order with a running offset; the session is
        committed only after the last chunk is acknowledged. Any failure cancels
        the session, so the file never appears half written.
        """
        info = self.client.create_upload_session(remote)
        session = UploadSession(
            upload_url=info['uploadUrl'],
            total_size=size,
            chunk_size=self.config.chunk_size,
            expiration=info.get('expirationDateTime')
        )
        if is_debug_enabled():
            print(f"[→] Uploading large file with upload session: {remote} ({size:,} bytes, "
                  f"chunk size {session.chunk_size:,})")

        try:
            result = {}
            while not session.finished:
                chunk = _read_exactly(stream, session.next_chunk_length())
                if not chunk:
                    raise RemoteRequestFailure(f"Stream ended at byte {session.offset} of {size}")
                result = self.client.upload_chunk(session.upload_url, chunk, session.offset, size)
                session.advance(len(chunk))
                if is_debug_enabled():
                    print(f"Uploaded {session.offset} bytes from {size} bytes ... {session.offset / size * 100:.2f}%")

            if 'id' not in result:
                result = self.client.commit_upload_session(session.upload_url)
            return result
        except Exception:
            # Stream read errors end the session as well
            if not self.client.cancel_upload_session(session.upload_url):
                print(f"[!] Upload session for '{remote}' could not be cancelled; it will expire on its own")
            raise

    def _is_existing_file(self, path):
        try:
            item = self._find_item(path)
        except RemoteRequestFailure as e:
            print(f"[!] Cannot update '{path}': {e}")
            return False
        if item is None or 'folder' in item:
            print(f"[!] Cannot update '{path}': file does not exist")
            return False
        return True

    def update(self, path, contents):
        if not self._is_existing_file(path):
            return False
        return self.write(path, contents)

    def update_stream(self, path, stream):
        if not self._is_existing_file(path):
            return False
        return self.write_stream(path, stream)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read(self, path):
        try:
            return self.client.download(self._remote(path))
        except FileNotFound:
            raise FileNotFound(normalize_path(path)) from None

    def read_stream(self, path):
        return io.BytesIO(self.read(path))

    def has(self, path):
        return self._find_item(path) is not None

    def list_contents(self, path='', recursive=False):
        """
        List the files and folders inside path.

        With recursive=True every folder entry is followed by its own contents
        (depth first). A folder that does not exist lists as empty.

        Raises:
            RemoteRequestFailure: For failures other than a missing folder
        """
        directory = normalize_path(path)
        try:
            children = self.client.list_children(self._remote(directory))
        except (FileNotFound, InvalidPath):
            return []

        entries = []
        for child in children:
            entry = FileEntry.from_drive_item(child, self.paths.join(directory, child.get('name', '')))
            entries.append(entry)
            if recursive and entry.is_dir and child['folder'].get('childCount', 1) > 0:
                entries.extend(self.list_contents(entry.path, recursive=True))
        return entries

    def get_metadata(self, path):
        return FileEntry.from_drive_item(self._get_item(path), normalize_path(path))

    def get_size(self, path):
        return self.get_metadata(path).size

    def get_timestamp(self, path):
        timestamp = self.get_metadata(path).timestamp
        if timestamp is None:
            raise RemoteRequestFailure(f"SharePoint returned no modification time for '{path}'")
        return timestamp

    def get_mimetype(self, path):
        """The mimetype SharePoint reports, or None when it reports none."""
        return self.get_metadata(path).mimetype

    def get_url(self, path):
        """
        Return the browser URL of a file or folder.

        Raises:
            FileNotFound: If nothing exists at path
        """
        url = self._get_item(path).get('webUrl')
        if not url:
            raise RemoteRequestFailure(f"SharePoint returned no URL for '{path}'")
        return url

    # ------------------------------------------------------------------
    # Directories, deletion and moves
    # ------------------------------------------------------------------

    def create_dir(self, path):
        """
        Create a folder, including any missing parents.

        Returns:
            bool: True if the folder exists afterwards, False if a file is in the way,
                  the path is invalid or SharePoint refused
        """
        try:
            remote = self._remote(path)
        except InvalidPath as e:
            print(f"[!] Cannot create folder '{path}': {e}")
            return False
        if not remote:
            return True

        try:
            existing = self._find_item(path)
        except RemoteRequestFailure as e:
            print(f"[!] Error checking folder existence: {e}")
            return False
        if existing is not None:
            if 'folder' in existing:
                return True
            print(f"[!] Cannot create folder '{path}': a file exists at that path")
            return False

        current = ''
        for folder_name in remote.split('/'):
            parent, current = current, self.paths.join(current, folder_name)
            try:
                item = self.client.get_item(current)
                if 'folder' not in item:
                    print(f"[!] Cannot create folder '{path}': '{current}' is a file")
                    return False
                continue
            except FileNotFound:
                pass
            except RemoteRequestFailure as e:
                print(f"[!] Error checking folder existence: {e}")
                return False

            try:
                self.client.create_folder(parent, folder_name)
                if is_debug_enabled():
                    print(f"[✓] Created folder: {current}")
            except RemoteRequestFailure as e:
                # Someone else created it between our check and the POST
                if e.status_code == 409 and self._remote_is_folder(current):
                    if is_debug_enabled():
                        print(f"[!] Folder already exists (race condition): {current}")
                    continue
                print(f"[!] Error creating folder {folder_name}: {e}")
                return False
            except FileNotFound as e:
                print(f"[!] Error creating folder {folder_name}: {e}")
                return False
        return True

    def _remote_is_folder(self, remote):
        try:
            return 'folder' in self.client.get_item(remote)
        except SharePointError:
            return False

    def delete(self, path):
        """
        Delete a file or folder. Folders are removed together with their contents.

        Returns:
            bool: False if nothing existed at path, the path is invalid or SharePoint refused
        """
        try:
            logical = normalize_path(path)
            remote = self._remote(path)
        except InvalidPath as e:
            print(f"[!] Failed to delete '{path}': {e}")
            return False
        if not logical:
            print("[!] Refusing to delete the root folder")
            return False
        try:
            self.client.delete_item(remote)
        except FileNotFound:
            if is_debug_enabled():
                print(f"[!] Nothing to delete at: {path}")
            return False
        except RemoteRequestFailure as e:
            print(f"[!] Failed to delete '{path}': {e}")
            return False

        if is_debug_enabled():
            print(f"[×] Deleted: {path}")
        return True

    def delete_dir(self, path):
        try:
            item = self._find_item(path)
        except RemoteRequestFailure as e:
            print(f"[!] Cannot delete folder '{path}': {e}")
            return False
        if item is None or 'folder' not in item:
            print(f"[!] Cannot delete folder '{path}': not a folder")
            return False
        return self.delete(path)

    def rename(self, path, new_path):
        try:
            logical, new_logical = normalize_path(path), normalize_path(new_path)
            source = self._remote(path)
            target = self._remote(new_path)
        except InvalidPath as e:
            print(f"[!] Failed to move '{path}' to '{new_path}': {e}")
            return False
        if not logical or not new_logical:
            print("[!] Cannot move the root folder")
            return False

        new_parent, new_name = self.paths.split(new_logical)
        if new_parent and not self.create_dir(new_parent):
            return False
        try:
            self.client.move_item(source, self.paths.split(target)[0], new_name)
        except SharePointError as e:
            print(f"[!] Failed to move '{path}' to '{new_path}': {e}")
            return False
        return True

    def copy(self, path, new_path):
        """Copy a file by downloading it and uploading it again."""
        try:
            contents = self.read(path)
        except SharePointError as e:
            print(f"[!] Failed to copy '{path}': {e}")
            return False
        return self.write(new_path, contents)

    def get_visibility(self, path):
        raise UnsupportedOperation("SharePoint document libraries have no file visibility setting")

    def set_visibility(self, path, visibility):
        raise UnsupportedOperation("SharePoint document libraries have no file visibility setting")
