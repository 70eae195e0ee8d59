# -*- coding: utf-8 -*-
"""
Path translation between adapter paths and document library paths.

Adapter paths are relative to the configured root prefix; library paths are
relative to the root of the document library.
"""

import posixpath

from .exceptions import InvalidPath

# Characters SharePoint Online rejects in file and folder names
FORBIDDEN_CHARACTERS = set('"*:<>?|')


def normalize_path(path):
    r"""
    Normalize a slash-separated path.

    Converts backslashes, collapses duplicate separators, drops '.' segments and
    strips leading and trailing separators.

    Args:
        path (str): Path as supplied by the caller

    Returns:
        str: Normalized path, '' for the root

    Raises:
        InvalidPath: If the path contains a '..' segment

    Example:
        normalize_path('\\reports//2024/./q1.xlsx/') -> 'reports/2024/q1.xlsx'
    """
    if path is None:
        return ''
    path = str(path).replace('\\', '/')
    segments = []
    for segment in path.split('/'):
        if segment in ('', '.'):
            continue
        if segment == '..':
            raise InvalidPath(f"Path traversal is not allowed: '{path}'")
        segments.append(segment)
    return '/'.join(segments)


def validate_segment(segment):
    """
    Check a single file or folder name against SharePoint naming rules.

    Raises:
        InvalidPath: If the name would be rejected by SharePoint
    """
    bad = sorted(FORBIDDEN_CHARACTERS.intersection(segment))
    if bad:
        raise InvalidPath(f"Name '{segment}' contains characters SharePoint does not allow: {' '.join(bad)}")
    if segment.startswith('~'):
        raise InvalidPath(f"Name '{segment}' cannot start with '~'")
    if segment.endswith('.'):
        raise InvalidPath(f"Name '{segment}' cannot end with '.'")
    if len(segment) > 255:
        raise InvalidPath(f"Name '{segment[:40]}...' is longer than 255 characters")


class PathTranslator:
    """Apply and strip the configured root prefix."""

    def __init__(self, root=''):
        self.root = normalize_path(root)

    def to_remote(self, path):
        """
        Map an adapter path onto a library path.

        Args:
            path (str): Adapter path, relative to the root prefix

        Returns:
            str: Library path ('' means the library root)
        """
        path = normalize_path(path)
        for segment in path.split('/') if path else []:
            validate_segment(segment)
        if not self.root:
            return path
        return f"{self.root}/{path}" if path else self.root

    def to_logical(self, remote_path):
        """
        Map a library path back onto an adapter path.

        Raises:
            InvalidPath: If the library path lies outside the root prefix
        """
        remote_path = normalize_path(remote_path)
        if not self.root:
            return remote_path
        if remote_path == self.root:
            return ''
        if remote_path.startswith(self.root + '/'):
            return remote_path[len(self.root) + 1:]
        raise InvalidPath(f"'{remote_path}' is outside the root '{self.root}'")

    @staticmethod
    def split(path):
        """
        Split a normalized path into (parent, name).

        Example:
            split('reports/2024/q1.xlsx') -> ('reports/2024', 'q1.xlsx')
        """
        parent, name = posixpath.split(path)
        return parent, name

    @staticmethod
    def join(*parts):
        return normalize_path('/'.join(part for part in parts if part))
