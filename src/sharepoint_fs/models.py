# -*- coding: utf-8 -*-
"""
Value objects returned and used by the SharePoint filesystem adapter.
"""

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

TYPE_FILE = 'file'
TYPE_DIR = 'dir'

_FRACTION = re.compile(r'\.(\d+)')


def parse_graph_timestamp(value):
    """
    Convert a Graph ISO 8601 timestamp into integer seconds since the epoch.

    Graph returns values such as '2024-03-01T09:30:12Z' or
    '2024-03-01T09:30:12.1234567Z'.

    Returns:
        int | None: Epoch seconds, None when the value is missing
    """
    if not value:
        return None
    value = value.replace('Z', '+00:00')
    # fromisoformat() only accepts up to six fractional digits
    value = _FRACTION.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


@dataclass
class FileEntry:
    """
    A single file or folder as seen through the adapter.

    Supports attribute access (entry.basename) and mapping access
    (entry['basename']). mimetype is None when SharePoint does not report one.
    """

    path: str
    basename: str
    type: str
    size: int = 0
    timestamp: Optional[int] = None
    mimetype: Optional[str] = None
    url: Optional[str] = None
    id: Optional[str] = None
    dirname: str = field(default='')

    @property
    def is_dir(self):
        return self.type == TYPE_DIR

    @property
    def is_file(self):
        return self.type == TYPE_FILE

    def __getitem__(self, key):
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key, default=None):
        return getattr(self, key, default)

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_drive_item(cls, item, path):
        """
        Build an entry from a Graph driveItem.

        The type comes from the item's 'folder' facet, never from the path.

        Args:
            item (dict): driveItem JSON
            path (str): Adapter path of the item
        """
        is_folder = 'folder' in item
        file_facet = item.get('file') or {}
        dirname, _, basename = path.rpartition('/')
        return cls(
            path=path,
            basename=basename or item.get('name', ''),
            dirname=dirname,
            type=TYPE_DIR if is_folder else TYPE_FILE,
            size=int(item.get('size') or 0),
            timestamp=parse_graph_timestamp(item.get('lastModifiedDateTime')),
            mimetype=None if is_folder else (file_facet.get('mimeType') or None),
            url=item.get('webUrl'),
            id=item.get('id'),
        )


@dataclass
class UploadSession:
    """
    Bookkeeping for one chunked upload.

    Lives only for the duration of a single write_stream() call.
    """

    upload_url: str
    total_size: int
    chunk_size: int
    offset: int = 0
    expiration: Optional[str] = None

    @property
    def remaining(self):
        return self.total_size - self.offset

    @property
    def finished(self):
        return self.offset >= self.total_size

    def next_chunk_length(self):
        return min(self.chunk_size, self.remaining)

    def advance(self, length):
        self.offset += length
