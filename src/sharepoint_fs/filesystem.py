# -*- coding: utf-8 -*-
"""
Generic filesystem abstraction.

FilesystemAdapter defines the contract every storage backend implements;
Filesystem is the facade callers use, independent of the backend it wraps.
"""

from abc import ABC, abstractmethod
from functools import partial
from typing import BinaryIO, List, Optional, Union

from .models import FileEntry
from .paths import normalize_path


class FilesystemAdapter(ABC):
    """
    Abstract base class for a storage backend.
    Paths handed to an adapter are already normalized by the facade.
    """

    @abstractmethod
    def write(self, path: str, contents: Union[str, bytes]) -> bool:
        """
        Creates or overwrites a file.

        :param path: Path of the file to write.
        :param contents: File contents; str is encoded as UTF-8.
        :return: True on success, False if the backend rejected the write.
        """
        pass

    @abstractmethod
    def write_stream(self, path: str, stream: BinaryIO) -> bool:
        """
        Creates or overwrites a file from a binary stream.

        :param path: Path of the file to write.
        :param stream: Readable binary stream, left open.
        :return: True on success, False if the backend rejected the write.
        """
        pass

    @abstractmethod
    def update(self, path: str, contents: Union[str, bytes]) -> bool:
        """Overwrites an existing file. Returns False when it does not exist."""
        pass

    @abstractmethod
    def update_stream(self, path: str, stream: BinaryIO) -> bool:
        """Overwrites an existing file from a stream. Returns False when it does not exist."""
        pass

    @abstractmethod
    def read(self, path: str) -> bytes:
        """
        Reads a whole file.

        :raises FileNotFound: If the file does not exist.
        """
        pass

    @abstractmethod
    def read_stream(self, path: str) -> BinaryIO:
        """Returns file contents as a binary stream. Raises FileNotFound."""
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Deletes a file or folder. Returns False if nothing was deleted."""
        pass

    @abstractmethod
    def delete_dir(self, path: str) -> bool:
        """Deletes a folder. Returns False if path is not a folder."""
        pass

    @abstractmethod
    def has(self, path: str) -> bool:
        """Checks whether a file or folder exists. Never raises for a missing path."""
        pass

    @abstractmethod
    def create_dir(self, path: str) -> bool:
        """Creates a folder and any missing parents. Succeeds if it already exists."""
        pass

    @abstractmethod
    def list_contents(self, path: str = '', recursive: bool = False) -> List[FileEntry]:
        """
        Lists the entries of a folder.

        :param path: Folder to list.
        :param recursive: Include the contents of subfolders.
        :return: Files and folders; empty when the folder does not exist.
        """
        pass

    @abstractmethod
    def get_metadata(self, path: str) -> FileEntry:
        """Returns the entry for one file or folder. Raises FileNotFound."""
        pass

    @abstractmethod
    def get_size(self, path: str) -> int:
        pass

    @abstractmethod
    def get_mimetype(self, path: str) -> Optional[str]:
        """Returns the mimetype, or None when the backend does not know it."""
        pass

    @abstractmethod
    def get_timestamp(self, path: str) -> int:
        pass

    @abstractmethod
    def rename(self, path: str, new_path: str) -> bool:
        pass

    @abstractmethod
    def copy(self, path: str, new_path: str) -> bool:
        pass

    @abstractmethod
    def get_visibility(self, path: str) -> str:
        pass

    @abstractmethod
    def set_visibility(self, path: str, visibility: str) -> bool:
        pass


class Filesystem:
    """
    Facade over a FilesystemAdapter.

    Normalizes paths before handing them to the adapter, and dispatches
    unknown method names to registered plugins.
    """

    def __init__(self, adapter: FilesystemAdapter):
        if not isinstance(adapter, FilesystemAdapter):
            raise TypeError(f"Expected a FilesystemAdapter, got {type(adapter).__name__}")
        self.adapter = adapter
        self.plugins = {}

    def get_adapter(self) -> FilesystemAdapter:
        return self.adapter

    def add_plugin(self, plugin) -> 'Filesystem':
        """
        Registers a plugin; its method becomes callable on the facade.

        :param plugin: Object implementing get_method(), set_filesystem() and handle().
        """
        plugin.set_filesystem(self)
        self.plugins[plugin.get_method()] = plugin
        return self

    def __getattr__(self, name):
        # Only reached for names that are not regular attributes
        plugins = self.__dict__.get('plugins', {})
        if name in plugins:
            return partial(plugins[name].handle)
        raise AttributeError(f"Call to undefined method {type(self).__name__}.{name}()")

    def write(self, path, contents):
        return self.adapter.write(normalize_path(path), contents)

    def write_stream(self, path, stream):
        return self.adapter.write_stream(normalize_path(path), stream)

    def update(self, path, contents):
        return self.adapter.update(normalize_path(path), contents)

    def update_stream(self, path, stream):
        return self.adapter.update_stream(normalize_path(path), stream)

    def put(self, path, contents):
        """Writes a file whether or not it exists yet."""
        path = normalize_path(path)
        if self.adapter.has(path):
            return self.adapter.update(path, contents)
        return self.adapter.write(path, contents)

    def read(self, path):
        return self.adapter.read(normalize_path(path))

    def read_stream(self, path):
        return self.adapter.read_stream(normalize_path(path))

    def delete(self, path):
        return self.adapter.delete(normalize_path(path))

    def delete_dir(self, path):
        return self.adapter.delete_dir(normalize_path(path))

    def has(self, path):
        return self.adapter.has(normalize_path(path))

    def create_dir(self, path):
        return self.adapter.create_dir(normalize_path(path))

    def list_contents(self, directory='', recursive=False):
        return self.adapter.list_contents(normalize_path(directory), recursive)

    def get_metadata(self, path):
        return self.adapter.get_metadata(normalize_path(path))

    def get_size(self, path):
        return self.adapter.get_size(normalize_path(path))

    def get_mimetype(self, path):
        return self.adapter.get_mimetype(normalize_path(path))

    def get_timestamp(self, path):
        return self.adapter.get_timestamp(normalize_path(path))

    def rename(self, path, new_path):
        return self.adapter.rename(normalize_path(path), normalize_path(new_path))

    def copy(self, path, new_path):
        return self.adapter.copy(normalize_path(path), normalize_path(new_path))

    def get_visibility(self, path):
        return self.adapter.get_visibility(normalize_path(path))

    def set_visibility(self, path, visibility):
        return self.adapter.set_visibility(normalize_path(path), visibility)
