"""
Configuration for schema generation.

A configuration file is a JSON document with two optional sections:

    {
        "packages": [
            {"module": "shop.model", "javaPackage": "com.example.shop", "prefix": "shop_"}
        ],
        "typeMap": {
            "datetime:datetime": "str"
        }
    }

Type references have the form 'module:QualifiedName'. Builtin types may be
given by their bare name.
"""

import builtins
import importlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from schemagen.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class PackageDescriptor:
    """Maps a Python module to a schema name prefix and a Java package."""
    module: str
    java_package: str
    prefix: str = ''


def resolve_type(reference: str) -> Any:
    """
    Resolve a 'module:QualifiedName' reference to the type it names.

    Args:
        reference (str): The type reference.

    Returns:
        Any: The referenced type.
    """
    if ':' not in reference:
        builtin = getattr(builtins, reference, None)
        if isinstance(builtin, type):
            return builtin
        raise ConfigurationError("Type references must have the form 'module:QualifiedName'", context=reference)
    module_name, qualified_name = reference.split(':', 1)
    try:
        target = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import module '{module_name}'", context=reference, cause=e) from e
    for part in qualified_name.split('.'):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ConfigurationError(f"Module '{module_name}' has no type '{qualified_name}'", context=reference, cause=e) from e
    return target


def load_packages(entries: List[Dict[str, str]], source: str = '') -> List[PackageDescriptor]:
    """Build package descriptors from the 'packages' section of a configuration."""
    packages = []
    for entry in entries:
        try:
            packages.append(PackageDescriptor(
                module=entry['module'],
                java_package=entry['javaPackage'],
                prefix=entry.get('prefix', '')))
        except KeyError as e:
            raise ConfigurationError(f"Package entry is missing {e}", context=source, cause=e) from e
    return packages


def load_type_map(entries: Dict[str, str]) -> Dict[Any, Any]:
    """Build the type substitution table from the 'typeMap' section of a configuration."""
    return {resolve_type(source): resolve_type(target) for source, target in entries.items()}


def load_config(config_file: str) -> Tuple[List[PackageDescriptor], Dict[Any, Any]]:
    """
    Load the package table and the type substitution table from a JSON file.

    Args:
        config_file (str): Path to the configuration file.

    Returns:
        Tuple[List[PackageDescriptor], Dict[Any, Any]]: The packages and the type map.
    """
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {e}", context=config_file, cause=e) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid configuration file: {e}", context=config_file, cause=e) from e
    if not isinstance(config, dict):
        raise ConfigurationError("Configuration must be a JSON object", context=config_file)

    packages = load_packages(config.get('packages', []), config_file)
    type_map = load_type_map(config.get('typeMap', {}))
    logger.debug("Loaded %d package(s) and %d type substitution(s) from %s", len(packages), len(type_map), config_file)
    return packages, type_map
