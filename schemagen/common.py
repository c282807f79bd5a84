"""
Common utility functions for schemagen.
"""

import re

from schemagen.typeinfo import TypeField


def sanitize_namespace(namespace: str) -> str:
    """Convert a namespace identifier into a schema name prefix."""
    return re.sub(r'[/.\-]', '_', namespace)


def field_name(field: TypeField) -> str:
    """
    Get the external name of a field.

    The name comes from the field's 'json' metadata if present, otherwise it is
    the declared field name. Only the first comma-separated token of the
    metadata value is the name; the rest are modifiers such as 'omitempty'.

    Args:
        field (TypeField): The record field.

    Returns:
        str: The external name.
    """
    tag = field.tag
    if tag:
        return tag.split(',')[0] or field.name
    return field.name
