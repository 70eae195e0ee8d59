# tests/test_filesystem.py
from unittest.mock import MagicMock

import pytest

from sharepoint_fs import Filesystem, FilesystemAdapter, GetUrl, Plugin
from sharepoint_fs.exceptions import InvalidPath, UnsupportedOperation


class Shout(Plugin):
    def get_method(self):
        return "shout"

    def handle(self, path):
        return self.filesystem.read(path).upper()


@pytest.fixture
def mock_adapter():
    return MagicMock(spec=FilesystemAdapter)


def test_requires_an_adapter():
    with pytest.raises(TypeError):
        Filesystem(object())


def test_adapter_contract_is_abstract():
    with pytest.raises(TypeError):
        FilesystemAdapter()


def test_paths_are_normalized_before_delegation(mock_adapter):
    fs = Filesystem(mock_adapter)

    fs.write("/reports//q1.txt", b"x")
    fs.rename("\\a.txt", "b/./c.txt")
    fs.list_contents("/reports/", recursive=True)

    mock_adapter.write.assert_called_once_with("reports/q1.txt", b"x")
    mock_adapter.rename.assert_called_once_with("a.txt", "b/c.txt")
    mock_adapter.list_contents.assert_called_once_with("reports", True)


def test_traversal_is_rejected_before_the_adapter(mock_adapter):
    fs = Filesystem(mock_adapter)

    with pytest.raises(InvalidPath):
        fs.read("../outside.txt")
    mock_adapter.read.assert_not_called()


def test_put_writes_new_files(mock_adapter):
    mock_adapter.has.return_value = False
    fs = Filesystem(mock_adapter)

    fs.put("a.txt", "hello")

    mock_adapter.write.assert_called_once_with("a.txt", "hello")
    mock_adapter.update.assert_not_called()


def test_put_updates_existing_files(mock_adapter):
    mock_adapter.has.return_value = True
    fs = Filesystem(mock_adapter)

    fs.put("a.txt", "hello")

    mock_adapter.update.assert_called_once_with("a.txt", "hello")


def test_get_adapter(mock_adapter):
    assert Filesystem(mock_adapter).get_adapter() is mock_adapter


def test_plugin_dispatch(mock_adapter):
    mock_adapter.read.return_value = b"quiet"
    fs = Filesystem(mock_adapter).add_plugin(Shout())

    assert fs.shout("a.txt") == b"QUIET"


def test_unknown_method_raises_attribute_error(mock_adapter):
    fs = Filesystem(mock_adapter)

    with pytest.raises(AttributeError, match="get_url"):
        fs.get_url("a.txt")


def test_get_url_plugin_forwards_to_adapter(mock_adapter):
    mock_adapter.get_url = MagicMock(return_value="https://contoso/a.txt")
    fs = Filesystem(mock_adapter)
    fs.add_plugin(GetUrl())

    assert fs.get_url("/a.txt") == "https://contoso/a.txt"
    mock_adapter.get_url.assert_called_once_with("a.txt")


def test_get_url_plugin_requires_adapter_support(mock_adapter):
    fs = Filesystem(mock_adapter)
    fs.add_plugin(GetUrl())

    with pytest.raises(UnsupportedOperation):
        fs.get_url("a.txt")


def test_unregistered_plugin_cannot_run():
    with pytest.raises(RuntimeError):
        GetUrl().handle("a.txt")
