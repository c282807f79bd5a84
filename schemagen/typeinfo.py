"""
Introspection of Python classes and typing annotations.

TypeInfo wraps a single annotation (a class, a typing construct such as
List[int] or Optional[Node], or a builtin) and exposes the structural view the
schema generator walks:

- kind: one of the kind constants below
- fields(): the ordered fields of a record type
- element_type(): the element of a sequence, the value of a map, the target of an optional
- dereference(): strips one level of Optional
- namespace / name: the defining module and the local class name

Record types are dataclasses and any other class that declares field
annotations (plain annotated classes, NamedTuple classes). Builtins and typing
constructs have an empty namespace, and typing constructs have an empty name.
"""

import collections
import collections.abc
import dataclasses
import inspect
import logging
import sys
import types
import typing
from typing import Any, ClassVar, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

BOOL = 'bool'
INT = 'int'
FLOAT = 'float'
COMPLEX = 'complex'
STRING = 'string'
SLICE = 'slice'
ARRAY = 'array'
MAP = 'map'
POINTER = 'pointer'
RECORD = 'record'
ANY = 'any'
OTHER = 'other'

SEQUENCE_ORIGINS = (
    list, set, frozenset, collections.deque,
    collections.abc.Sequence, collections.abc.MutableSequence,
    collections.abc.Set, collections.abc.MutableSet,
    collections.abc.Collection, collections.abc.Iterable,
)
MAP_ORIGINS = (
    dict, collections.OrderedDict, collections.defaultdict,
    collections.abc.Mapping, collections.abc.MutableMapping,
)
UNION_ORIGINS = (typing.Union, types.UnionType)
BUILTIN_MODULES = ('builtins', 'typing')

_NONE_TYPE = type(None)
_NO_METADATA: Mapping[str, Any] = types.MappingProxyType({})


def is_class(annotation: Any) -> bool:
    """Check whether an annotation is a plain class rather than a parameterized typing construct."""
    return isinstance(annotation, type) and typing.get_origin(annotation) is None


def has_annotations(cls: type) -> bool:
    """Check whether a class or one of its bases declares field annotations."""
    for klass in cls.__mro__:
        if klass is object:
            continue
        if inspect.get_annotations(klass):
            return True
    return False


def resolve_annotation(annotation: Any, globalns: Dict[str, Any], localns: Dict[str, Any]) -> Any:
    """
    Resolve the forward references in a single annotation.
    An annotation naming something that cannot be found is returned unresolved.
    """
    holder = types.SimpleNamespace(__annotations__={'value': annotation})
    try:
        return typing.get_type_hints(holder, globalns, localns)['value']
    except NameError as e:
        logger.debug("Cannot resolve annotation %r: %s", annotation, e)
        return annotation


def get_field_annotations(cls: type) -> Dict[str, Any]:
    """
    Get the resolved annotations of a class and its bases, base classes first.

    Forward references resolve against the defining module and the class
    itself, so classes defined inside functions can refer to themselves.
    Annotations that still do not resolve are kept as they are and classify
    as OTHER.
    """
    localns = {cls.__name__: cls}
    try:
        return typing.get_type_hints(cls, localns=localns)
    except NameError:
        pass
    hints: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        globalns = getattr(sys.modules.get(klass.__module__), '__dict__', {})
        for name, annotation in inspect.get_annotations(klass).items():
            hints[name] = resolve_annotation(annotation, globalns, localns)
    return hints


class TypeField:
    """ A field of a record type. """

    def __init__(self, name: str, annotation: Any, metadata: Optional[Mapping[str, Any]] = None):
        self.name: str = name
        self.type: Any = annotation
        self.metadata: Mapping[str, Any] = metadata if metadata is not None else _NO_METADATA

    @property
    def exported(self) -> bool:
        """Fields with a leading underscore are private to the class."""
        return not self.name.startswith('_')

    @property
    def embedded(self) -> bool:
        return bool(self.metadata.get('embedded', False))

    @property
    def tag(self) -> str:
        """The raw external name override, e.g. 'name,omitempty'."""
        return self.metadata.get('json', '') or ''

    def __repr__(self) -> str:
        return f"TypeField({self.name!r}, {self.type!r})"


class TypeInfo:
    """ Structural view of a Python annotation. """

    def __init__(self, annotation: Any):
        self.type: Any = annotation
        self.origin = typing.get_origin(annotation)
        self.args = typing.get_args(annotation)
        self.kind: str = self._classify()

    def _classify(self) -> str:
        annotation = self.type
        if annotation is Any or annotation is object:
            return ANY
        if self.origin is not None:
            return self._classify_construct()
        if not is_class(annotation):
            return OTHER
        if issubclass(annotation, bool):
            return BOOL
        if issubclass(annotation, int):
            return INT
        if issubclass(annotation, float):
            return FLOAT
        if issubclass(annotation, complex):
            return COMPLEX
        if issubclass(annotation, str):
            return STRING
        if issubclass(annotation, (bytes, bytearray)):
            return SLICE
        if annotation in (list, tuple, set, frozenset):
            return SLICE
        if annotation is dict:
            return MAP
        if dataclasses.is_dataclass(annotation) or has_annotations(annotation):
            return RECORD
        return OTHER

    def _classify_construct(self) -> str:
        origin = self.origin
        if origin in UNION_ORIGINS:
            if len(self.args) == 2 and _NONE_TYPE in self.args:
                return POINTER
            return OTHER
        if origin is tuple:
            if len(self.args) == 2 and self.args[1] is Ellipsis:
                return SLICE
            return ARRAY
        if origin in SEQUENCE_ORIGINS:
            return SLICE
        if origin in MAP_ORIGINS:
            return MAP
        return OTHER

    @property
    def is_record(self) -> bool:
        return self.kind == RECORD

    @property
    def namespace(self) -> str:
        if not is_class(self.type) or self.type.__module__ in BUILTIN_MODULES:
            return ''
        return self.type.__module__

    @property
    def name(self) -> str:
        if not is_class(self.type):
            return ''
        return self.type.__name__

    def dereference(self) -> 'TypeInfo':
        """Strip one level of Optional."""
        if self.kind != POINTER:
            return self
        return TypeInfo(next(arg for arg in self.args if arg is not _NONE_TYPE))

    def element_type(self) -> 'TypeInfo':
        """
        Get the element type of a sequence, fixed array or optional, or the value type of a map.
        Untyped containers yield Any.
        """
        if self.kind == POINTER:
            return self.dereference()
        if self.kind == SLICE:
            if is_class(self.type) and issubclass(self.type, (bytes, bytearray)):
                return TypeInfo(int)
            return TypeInfo(self.args[0] if self.args else Any)
        if self.kind == ARRAY:
            if self.args and all(arg == self.args[0] for arg in self.args):
                return TypeInfo(self.args[0])
            return TypeInfo(Any)
        if self.kind == MAP:
            return TypeInfo(self.args[1] if len(self.args) > 1 else Any)
        raise TypeError(f"Type {self.type!r} of kind '{self.kind}' has no element type")

    def fields(self) -> List[TypeField]:
        """
        Get the fields of a record type in declaration order.

        A class decorated as a dataclass reports its dataclass fields with the
        field metadata attached. Other annotated classes, including plain
        subclasses of dataclasses, report their annotations, base classes first.
        ClassVar annotations are never fields.
        """
        if not self.is_record:
            raise TypeError(f"Type {self.type!r} of kind '{self.kind}' has no fields")
        hints = get_field_annotations(self.type)
        if '__dataclass_fields__' in vars(self.type):
            return [TypeField(f.name, hints.get(f.name, f.type), f.metadata)
                    for f in dataclasses.fields(self.type)]
        inherited = getattr(self.type, '__dataclass_fields__', {})
        record_fields = []
        for name, annotation in hints.items():
            if annotation is ClassVar or typing.get_origin(annotation) is ClassVar:
                continue
            metadata = inherited[name].metadata if name in inherited else None
            record_fields.append(TypeField(name, annotation, metadata))
        return record_fields

    def __repr__(self) -> str:
        return f"TypeInfo({self.type!r}, kind={self.kind!r})"
