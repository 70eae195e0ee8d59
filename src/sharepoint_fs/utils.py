# -*- coding: utf-8 -*-
"""
Shared utility functions for the SharePoint filesystem adapter.

This module provides the diagnostic toggles used across multiple modules.
"""

import os


def _env_flag(name):
    return os.environ.get(name, 'false').lower() == 'true'


def is_debug_enabled():
    """
    Check if debug output is enabled via the DEBUG environment variable.

    Returns:
        bool: True if debug mode is enabled, False otherwise
    """
    return _env_flag('DEBUG')


def is_debug_metadata_enabled():
    """
    Check if request/response dumps are enabled via DEBUG_METADATA.

    Returns:
        bool: True if metadata debugging is enabled, False otherwise
    """
    return _env_flag('DEBUG_METADATA')
