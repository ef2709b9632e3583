"""
Typeline shapes: the expected form of a value, derived from type hints.

Overview
- Shapes tell a value decoder what to expect for a raw text span:
  • Scalar(type): int, float, bool or str.
  • Optional(inner): a value that may be absent (None / Some(x) / bare x).
  • Sequence(inner): a list of values.
  • Choice(enum): a member of an enum.Enum subclass, by name.
  • Struct(dataclass): a record with named, ordered fields (its schema).
- shape_of(annotation) maps a type hint onto a shape. Dataclasses map to a
  cached Struct per class, whose fields are resolved lazily (so self-referential
  records work).
- StructVisitor(struct) consumes a map access (next_key / next_value) and
  builds the dataclass instance, applying the record's own defaults.

Defaults
- a field with a dataclass default or default_factory uses it when missing.
- an Optional field without a default is None when missing.
- any other missing field is an ArityError.
"""
import builtins
import dataclasses
import enum
import functools
import types
import typing
from typing import NamedTuple

from .faults import ArityError, FaultCode, UnknownFieldError, getdoc
from .utils import Unset

SCALARS = (int, float, bool, str)


class Scalar(NamedTuple):
    type: type

    def describe(self):
        return self.type.__name__


class Optional(NamedTuple):
    inner: typing.Any

    def describe(self):
        return "optional " + self.inner.describe()


class Sequence(NamedTuple):
    inner: typing.Any

    def describe(self):
        return "list of " + self.inner.describe()


class Choice(NamedTuple):
    type: type

    @property
    def names(self):
        return tuple(self.type.__members__)

    def describe(self):
        return "one of " + ", ".join(self.names)


class Field(NamedTuple):
    """
    One struct field: its name, its shape and how to fill it when missing.
    """
    name: str
    shape: typing.Any
    default: typing.Any = Unset
    factory: typing.Any = Unset

    def fallback(self):
        """
        value to use when the field is not given, or Unset when it is required.
        """
        if self.factory is not Unset:
            return self.factory()
        if self.default is not Unset:
            return self.default
        if isinstance(self.shape, Optional):
            return None
        return Unset


class Struct:
    """
    Shape of a dataclass record.

    - type: the dataclass itself.
    - fields: tuple[Field, ...] in declaration order (init fields only).
    - schema: tuple[str, ...] of field names, the order used for positional fill.
    """
    def __init__(self, type, /):
        if not (isinstance(type, builtins.type) and dataclasses.is_dataclass(type)):
            raise TypeError("Struct() argument must be a dataclass type")
        self.type = type

    @functools.cached_property
    def fields(self):
        hints = typing.get_type_hints(self.type)
        fields = []
        for field in dataclasses.fields(self.type):
            if not field.init:
                continue
            fields.append(Field(
                field.name,
                shape_of(hints[field.name]),
                field.default if field.default is not dataclasses.MISSING else Unset,
                field.default_factory if field.default_factory is not dataclasses.MISSING else Unset,
            ))
        return tuple(fields)

    @property
    def schema(self):
        return tuple(field.name for field in self.fields)

    @property
    def name(self):
        return self.type.__name__

    def field(self, name, /):
        for field in self.fields:
            if field.name == name:
                return field
        raise KeyError(name)

    def build(self, values, /):
        return self.type(**values)

    def describe(self):
        return self.name

    def __eq__(self, other):
        if not isinstance(other, Struct):
            return NotImplemented
        return self.type is other.type

    def __hash__(self):
        return hash((Struct, self.type))

    def __repr__(self):
        return "Struct(%s)" % self.type.__qualname__

    def __rich_repr__(self):
        yield "type", self.type
        yield "schema", self.schema


@functools.cache
def struct_of(type, /):
    """
    Return the (cached) Struct shape of a dataclass type.
    """
    return Struct(type)


def shape_of(annotation, /):
    """
    Map a type hint onto a shape.

    Supported
    - int, float, bool, str                      → Scalar
    - X | None, typing.Optional[X]               → Optional(shape_of(X))
    - list[X]                                    → Sequence(shape_of(X))
    - enum.Enum subclasses                       → Choice
    - dataclasses                                → Struct (cached per class)

    Raises
    - TypeError: the annotation has no shape (e.g. dict, unions of several types).
    """
    if annotation in SCALARS:
        return Scalar(annotation)

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        arguments = typing.get_args(annotation)
        inner = [argument for argument in arguments if argument is not type(None)]
        if len(inner) == 1 and len(arguments) == 2:
            return Optional(shape_of(inner[0]))
        raise TypeError("shape_of() only supports unions of a single type with None, not %r" % annotation)
    if origin is list:
        argument, = typing.get_args(annotation)
        return Sequence(shape_of(argument))

    if isinstance(annotation, type):
        if issubclass(annotation, enum.Enum):
            return Choice(annotation)
        if dataclasses.is_dataclass(annotation):
            return struct_of(annotation)

    raise TypeError("shape_of() cannot derive a shape from %r" % (annotation,))


class StructVisitor:
    """
    Build a dataclass instance from a map access.

    The access must provide next_key() -> str | None and next_value(shape).
    Keys are consumed in the access's own order; each value is decoded with
    its field's shape, and missing fields are filled from the record defaults.
    """

    def __init__(self, struct, /):
        if not isinstance(struct, Struct):
            raise TypeError("StructVisitor() argument must be a Struct shape")
        self.struct = struct

    def visit_map(self, access, /):
        values = {}
        while (key := access.next_key()) is not None:
            try:
                field = self.struct.field(key)
            except KeyError:
                raise UnknownFieldError(
                    "unknown field %r for %s" % (key, self.struct.name),
                    title="unknown field",
                    code=FaultCode.UNKNOWN_FIELD,
                    hint="%s accepts: %s" % (self.struct.name, ", ".join("--" + name for name in self.struct.schema) or "no fields"),
                    field=key,
                    schema=self.struct.schema,
                    docs=getdoc(FaultCode.UNKNOWN_FIELD)
                ) from None
            values[key] = access.next_value(field.shape)

        for field in self.struct.fields:
            if field.name in values:
                continue
            if (value := field.fallback()) is Unset:
                raise ArityError(
                    "missing field %r for %s" % (field.name, self.struct.name),
                    title="missing field",
                    code=FaultCode.MISSING_FIELD,
                    hint="pass it positionally or as --%s <%s>" % (field.name, field.shape.describe()),
                    field=field.name,
                    schema=self.struct.schema,
                    docs=getdoc(FaultCode.MISSING_FIELD)
                )
            values[field.name] = value

        return self.struct.build(values)


__all__ = (
    "Scalar",
    "Optional",
    "Sequence",
    "Choice",
    "Field",
    "Struct",
    "struct_of",
    "shape_of",
    "StructVisitor",
)
