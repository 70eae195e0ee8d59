#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SharePoint Filesystem Command Line
==================================

PURPOSE:
    Small front end over the SharePoint filesystem adapter, handy for checking
    credentials and poking at a document library from a shell or a CI job.

SYNOPSIS:
    python main.py <command> [arguments]

COMMANDS:
    ls [path] [recursive]     List a folder ('recursive' to descend into subfolders)
    stat <path>               Show size, type, timestamp, mimetype and URL
    get <path> <local_file>   Download a file
    put <local_file> <path>   Upload a file (large files use an upload session)
    mkdir <path>              Create a folder and any missing parents
    rm <path>                 Delete a file or folder
    mv <path> <new_path>      Move or rename
    url <path>                Print the browser URL

CONFIGURATION:
    Read from SHAREPOINT_* environment variables, or a .env file in the
    current directory:
        SHAREPOINT_SITE_URL       https://contoso.sharepoint.com/sites/Team
        SHAREPOINT_CLIENT_ID      App registration (client) ID
        SHAREPOINT_CLIENT_SECRET  Client secret (app-only access), or
        SHAREPOINT_USERNAME / SHAREPOINT_PASSWORD for delegated access, or
        SHAREPOINT_ACCESS_TOKEN   Bearer token obtained elsewhere
        SHAREPOINT_TENANT_ID      Tenant (default: organizations)
        SHAREPOINT_LIBRARY        Document library name (default: site default)
        SHAREPOINT_ROOT           Folder all paths are relative to

    Set DEBUG=true for progress output, DEBUG_METADATA=true for request dumps.

EXIT CODES:
    0 success, 1 operation failed, 2 usage or configuration error
"""

import sys
from datetime import datetime, timezone

from sharepoint_fs import Filesystem, GetUrl, SharePointAdapter, SharePointError
from sharepoint_fs.config import parse_config

USAGE = "usage: python main.py {ls|stat|get|put|mkdir|rm|mv|url} [arguments]"

# command -> (minimum args, maximum args)
COMMANDS = {
    'ls': (0, 2),
    'stat': (1, 1),
    'get': (2, 2),
    'put': (2, 2),
    'mkdir': (1, 1),
    'rm': (1, 1),
    'mv': (2, 2),
    'url': (1, 1),
}


def format_entry(entry):
    """One listing line: type marker, size, modification time, path."""
    marker = 'd' if entry.is_dir else '-'
    modified = ''
    if entry.timestamp is not None:
        modified = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc).strftime('%Y-%m-%d %H:%M')
    return f"{marker} {entry.size:>12,} {modified:16} {entry.path}"


def build_filesystem(config=None):
    """Create a facade over a SharePoint adapter with the URL plugin registered."""
    fs = Filesystem(SharePointAdapter(config))
    fs.add_plugin(GetUrl())
    return fs


def run_command(fs, command, args):
    """
    Execute one command against the filesystem.

    Returns:
        int: Process exit code
    """
    if command == 'ls':
        path = args[0] if args else ''
        recursive = len(args) > 1 and args[1].lower() in ('recursive', 'true', '-r')
        for entry in fs.list_contents(path, recursive):
            print(format_entry(entry))
        return 0

    if command == 'stat':
        entry = fs.get_metadata(args[0])
        print(f"path:      {entry.path}")
        print(f"type:      {entry.type}")
        print(f"size:      {entry.size:,} bytes")
        print(f"timestamp: {entry.timestamp}")
        print(f"mimetype:  {entry.mimetype or 'unknown'}")
        print(f"url:       {entry.url}")
        return 0

    if command == 'get':
        with open(args[1], 'wb') as f:
            f.write(fs.read(args[0]))
        print(f"File Downloaded: {args[0]} -> {args[1]}")
        return 0

    if command == 'put':
        with open(args[0], 'rb') as f:
            ok = fs.write_stream(args[1], f)
        if ok:
            print(f"File Processed: {args[1]}")
        return 0 if ok else 1

    if command == 'mkdir':
        return 0 if fs.create_dir(args[0]) else 1

    if command == 'rm':
        ok = fs.delete(args[0])
        if ok:
            print(f"File Deleted: {args[0]}")
        return 0 if ok else 1

    if command == 'mv':
        return 0 if fs.rename(args[0], args[1]) else 1

    if command == 'url':
        print(fs.get_url(args[0]))
        return 0

    raise ValueError(f"Unknown command: {command}")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in COMMANDS:
        print(USAGE)
        return 2

    command, args = argv[0], argv[1:]
    minimum, maximum = COMMANDS[command]
    if not minimum <= len(args) <= maximum:
        print(USAGE)
        return 2

    try:
        config = parse_config()
    except ValueError as e:
        print(f"[Error] Invalid configuration: {e}")
        return 2

    try:
        return run_command(build_filesystem(config), command, args)
    except SharePointError as e:
        print(f"[Error] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
