# SPDX-License-Identifier: MIT
"""Validation utilities for logical database names."""

import re

# Turso database names: lowercase letters, digits and dashes
DATABASE_NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,62}[a-z0-9])?$")


def is_valid_database_name(name: str | None) -> bool:
    """
    Check whether a name can be used as a remote database name.

    Args:
        name: Logical database name chosen by the caller

    Returns:
        True if the name is 1-64 lowercase letters, digits or dashes and
        neither starts nor ends with a dash

    Examples:
        >>> is_valid_database_name("notes")
        True
        >>> is_valid_database_name("user-42-notes")
        True
        >>> is_valid_database_name("Notes")
        False
        >>> is_valid_database_name("../etc")
        False
    """
    if not name:
        return False
    return DATABASE_NAME_PATTERN.match(name) is not None


def validate_database_name(name: str) -> str:
    """Return ``name`` unchanged, raising ``ValueError`` if it is not usable.

    The name becomes both a remote database name and a local file name, so it
    is checked before any network or file access happens.
    """
    if not is_valid_database_name(name):
        raise ValueError(
            f"Invalid database name {name!r}: use 1-64 lowercase letters, "
            "digits or dashes, not starting or ending with a dash"
        )
    return name
