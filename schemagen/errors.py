"""Exceptions raised by schemagen."""

from typing import Optional


class SchemaGenError(Exception):
    """
    Base exception for schema generation failures.

    Attributes:
        message: Human-readable error description
        context: Optional context about where the error occurred
        cause: Optional underlying exception that caused this error
    """

    def __init__(self, message: str, context: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        self.message = message
        self.context = context
        self.cause = cause
        full_message = message
        if context:
            full_message = f"{message} (context: {context})"
        super().__init__(full_message)


class UnsupportedRootKindError(SchemaGenError):
    """
    Exception raised when the root type handed to the generator is not a record type.

    Attributes:
        kind: The structural kind of the rejected root type
    """

    def __init__(self, kind: str, context: Optional[str] = None) -> None:
        self.kind = kind
        super().__init__(f"Only record types can be converted, got a '{kind}' type", context=context)


class ConfigurationError(SchemaGenError):
    """Exception raised when a configuration file or a type reference cannot be resolved."""


class SchemaDriftError(SchemaGenError):
    """
    Exception raised when a stored JSON schema no longer matches the generated one.

    Attributes:
        diff: The difference report between the stored and the generated schema
    """

    def __init__(self, schema_file: str, diff: dict) -> None:
        self.diff = diff
        super().__init__("JSON schema is out of date", context=schema_file)
