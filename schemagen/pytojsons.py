""" Python classes to JSON Schema converter. """

# pylint: disable=line-too-long

import json
import logging
from typing import Any, Dict, List, Optional

from jsoncomparison import NO_DIFF, Compare

from schemagen.common import field_name, sanitize_namespace
from schemagen.config import PackageDescriptor, load_config, resolve_type
from schemagen.constants import (DEFINITIONS_REF_PREFIX, JAVA_LIST_TYPE, JAVA_MAP_TYPE,
                                 JAVA_OBJECT_TYPE, SCHEMA_DIALECT, SCHEMA_ID_PREFIX)
from schemagen.errors import SchemaDriftError, UnsupportedRootKindError
from schemagen.typeinfo import (ANY, ARRAY, BOOL, COMPLEX, FLOAT, INT, MAP, POINTER,
                                RECORD, SLICE, STRING, TypeInfo)

logger = logging.getLogger(__name__)


class PythonToJsonSchemaConverter:
    """
    Converts a Python record type and every record type reachable from it
    into a JSON Schema document with javaType annotations.
    """

    def __init__(self, packages: Optional[List[PackageDescriptor]] = None, type_map: Optional[Dict[Any, Any]] = None) -> None:
        self.packages: Dict[str, PackageDescriptor] = {}
        for package in packages or []:
            self.packages[package.module] = package
        self.type_map: Dict[Any, Any] = dict(type_map or {})
        self.types: Dict[Any, Dict[str, Any]] = {}

    def qualified_name(self, info: TypeInfo) -> str:
        """
        Construct the definition name of a record type from its module and class name.
        """
        package = self.packages.get(info.namespace)
        if package is None:
            return sanitize_namespace(info.namespace) + '_' + info.name
        return package.prefix + info.name

    def get_definition_ref(self, info: TypeInfo) -> str:
        return DEFINITIONS_REF_PREFIX + self.qualified_name(info)

    def java_type(self, info: TypeInfo) -> str:
        """
        Map a type to the name of the equivalent Java type.
        """
        if info.kind == POINTER:
            info = info.dereference()
        package = self.packages.get(info.namespace)
        if package is not None:
            return f"{package.java_package}.{info.name}"
        kind = info.kind
        if kind == BOOL:
            return 'bool'
        if kind == INT:
            return 'int'
        if kind in (FLOAT, COMPLEX):
            return 'double'
        if kind == STRING:
            return 'String'
        if kind in (SLICE, ARRAY):
            return f"{JAVA_LIST_TYPE}<{self.java_type(info.element_type())}>"
        if kind == MAP:
            return f"{JAVA_MAP_TYPE}<String,{self.java_type(info.element_type())}>"
        if kind == ANY or not info.name:
            return JAVA_OBJECT_TYPE
        return info.name

    def resolve_field_type(self, info: TypeInfo) -> TypeInfo:
        """
        Strip one level of Optional and apply the type substitution table.
        """
        info = info.dereference()
        substitute = self.type_map.get(info.type)
        if substitute is not None:
            return TypeInfo(substitute)
        return info

    def discover(self, info: TypeInfo) -> Dict[str, Any]:
        """
        Get the object descriptor of a record type, generating it on first sight.

        The registry entry is created before the fields are walked, so a field
        that leads back to a type under construction finds the entry and
        becomes a reference instead of recursing.
        """
        descriptor = self.types.get(info.type)
        if descriptor is None:
            logger.debug("Discovered record type %s", self.qualified_name(info))
            self.types[info.type] = {}
            descriptor = self.generate_object_descriptor(info)
            self.types[info.type] = descriptor
        return descriptor

    def get_property_descriptor(self, info: TypeInfo) -> Dict[str, Any]:
        """
        Convert the type of a field into a JSON schema property.
        Types without a JSON schema mapping yield an empty property.
        """
        info = self.resolve_field_type(info)
        kind = info.kind
        if kind == BOOL:
            return {'type': 'boolean'}
        if kind == INT:
            return {'type': 'integer'}
        if kind in (FLOAT, COMPLEX):
            return {'type': 'number'}
        if kind == STRING:
            return {'type': 'string'}
        if kind == SLICE:
            return {
                'type': 'array',
                'items': self.get_property_descriptor(info.element_type())
            }
        if kind == MAP:
            value_type = info.element_type()
            return {
                'type': 'object',
                'additionalProperties': self.get_property_descriptor(value_type),
                'javaType': f"{JAVA_MAP_TYPE}<String,{self.java_type(value_type)}>"
            }
        if kind == RECORD:
            self.discover(info)
            return {
                '$ref': self.get_definition_ref(info),
                'javaType': self.java_type(info)
            }
        logger.debug("No JSON schema mapping for %r (%s), leaving the property open", info.type, kind)
        return {}

    def get_record_properties(self, info: TypeInfo) -> Dict[str, Any]:
        """
        Collect the properties of a record type in field declaration order.

        Private fields are skipped. The properties of embedded record fields are
        promoted into the owner; a field later in the declaration order replaces
        an earlier property of the same name.
        """
        properties: Dict[str, Any] = {}
        for field in info.fields():
            if not field.exported:
                continue
            field_type = TypeInfo(field.type)
            prop = self.get_property_descriptor(field_type)
            if field.embedded and field_type.dereference().is_record:
                if '$ref' in prop:
                    embedded = self.types[self.resolve_field_type(field_type).type]
                    promoted = embedded.get('properties', {})
                else:
                    promoted = prop.get('properties', {})
                for name, value in promoted.items():
                    properties[name] = value
            else:
                properties[field_name(field)] = prop
        return properties

    def generate_object_descriptor(self, info: TypeInfo) -> Dict[str, Any]:
        descriptor: Dict[str, Any] = {}
        properties = self.get_record_properties(info)
        if properties:
            descriptor['properties'] = properties
        descriptor['additionalProperties'] = True
        return descriptor

    def convert(self, root_type: Any) -> Dict[str, Any]:
        """
        Convert a root record type to a JSON schema document.

        The root type is described inline; every other record type reachable
        from it is emitted once under 'definitions'.
        """
        info = TypeInfo(root_type)
        if not info.is_record:
            raise UnsupportedRootKindError(info.kind, context=repr(root_type))
        self.types = {}

        json_schema: Dict[str, Any] = {
            'id': SCHEMA_ID_PREFIX + info.name + '#',
            '$schema': SCHEMA_DIALECT,
            'type': 'object'
        }
        json_schema.update(self.generate_object_descriptor(info))
        if self.types:
            definitions: Dict[str, Any] = {}
            for record_type, descriptor in self.types.items():
                record_info = TypeInfo(record_type)
                definition: Dict[str, Any] = {'type': 'object'}
                definition.update(descriptor)
                definition['javaType'] = self.java_type(record_info)
                definitions[self.qualified_name(record_info)] = definition
            json_schema['definitions'] = definitions
        logger.debug("Generated schema for %s with %d definition(s)", info.name, len(self.types))
        return json_schema


def generate_schema(root_type: Any, packages: Optional[List[PackageDescriptor]] = None, type_map: Optional[Dict[Any, Any]] = None) -> Dict[str, Any]:
    """
    Generate a JSON schema document for a Python record type.

    :param root_type: The record type (dataclass or annotated class) to describe.
    :param packages: Module to schema name prefix and Java package mappings. For duplicate modules the last entry wins.
    :param type_map: Types to substitute before a field type is classified.
    :return: The JSON schema document.
    """
    converter = PythonToJsonSchemaConverter(packages, type_map)
    return converter.convert(root_type)


def convert_python_to_json_schema_string(type_reference: str, config_file: Optional[str] = None) -> str:
    """
    Convert a Python record type to a JSON schema string.

    Args:
        type_reference (str): The root type as 'module:QualifiedName'
        config_file (str): Optional path to a JSON configuration file with packages and type map

    Returns:
        str: The JSON schema document as a string
    """
    packages: List[PackageDescriptor] = []
    type_map: Dict[Any, Any] = {}
    if config_file:
        packages, type_map = load_config(config_file)
    root_type = resolve_type(type_reference)
    return json.dumps(generate_schema(root_type, packages, type_map), indent=2)


def convert_python_to_json_schema(type_reference: str, json_schema_file: str, config_file: Optional[str] = None) -> None:
    """
    Convert a Python record type to a JSON schema file.

    :param type_reference: The root type as 'module:QualifiedName'.
    :param json_schema_file: The path to the output JSON schema file.
    :param config_file: Optional path to a JSON configuration file with packages and type map.
    """
    result = convert_python_to_json_schema_string(type_reference, config_file)
    with open(json_schema_file, 'w', encoding='utf-8') as f:
        f.write(result)


def verify_json_schema(type_reference: str, json_schema_file: str, config_file: Optional[str] = None) -> None:
    """
    Check that a stored JSON schema file matches the schema generated for a Python record type.

    :param type_reference: The root type as 'module:QualifiedName'.
    :param json_schema_file: The path to the stored JSON schema file.
    :param config_file: Optional path to a JSON configuration file with packages and type map.
    :raises SchemaDriftError: If the stored schema differs from the generated one.
    """
    with open(json_schema_file, 'r', encoding='utf-8') as f:
        expected = json.load(f)
    actual = json.loads(convert_python_to_json_schema_string(type_reference, config_file))
    diff = Compare().check(expected, actual)
    if diff != NO_DIFF:
        raise SchemaDriftError(json_schema_file, diff)
