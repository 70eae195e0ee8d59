# -*- coding: utf-8 -*-
"""
Facade plugins for the SharePoint filesystem adapter.
"""

from abc import ABC, abstractmethod

from .exceptions import UnsupportedOperation
from .paths import normalize_path


class Plugin(ABC):
    """Base class for methods added to a Filesystem facade with add_plugin()."""

    def __init__(self):
        self.filesystem = None

    def set_filesystem(self, filesystem):
        self.filesystem = filesystem

    @abstractmethod
    def get_method(self):
        """Name under which the plugin is callable on the facade."""
        pass

    @abstractmethod
    def handle(self, *args, **kwargs):
        pass


class GetUrl(Plugin):
    """
    Adds fs.get_url(path), forwarding to the adapter's own get_url().

    Example:
        fs.add_plugin(GetUrl())
        fs.get_url('reports/q1.xlsx')
    """

    def get_method(self):
        return 'get_url'

    def handle(self, path):
        if self.filesystem is None:
            raise RuntimeError("GetUrl plugin is not registered on a filesystem")
        adapter = self.filesystem.get_adapter()
        if not hasattr(adapter, 'get_url'):
            raise UnsupportedOperation(f"{type(adapter).__name__} does not generate URLs")
        return adapter.get_url(normalize_path(path))
