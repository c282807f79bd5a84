"""Constants for the schemagen package."""

# Document envelope
SCHEMA_ID_PREFIX = 'http://fabric8.io/fabric8/v2/'
SCHEMA_DIALECT = 'http://json-schema.org/schema#'
DEFINITIONS_REF_PREFIX = '#/definitions/'

# Java collection templates used for javaType annotations
JAVA_LIST_TYPE = 'java.util.ArrayList'
JAVA_MAP_TYPE = 'java.util.Map'
JAVA_OBJECT_TYPE = 'Object'
