"""
Typeline registry: explicit name → record lookup for the dynamic path.

Overview
- TypeRegistration: one registered dataclass.
  • type: the dataclass.
  • identifier: canonical, unique identifier ("module.QualName").
  • name: short name typed by users (the class __name__ by default).
  • shape: the Struct shape (and so the field schema) used to decode it.
- TypeRegistry: ordered collection of registrations.
  • register(cls) / @register / @register(name="alias").
  • get(identifier): exact lookup by canonical identifier.
  • find(name): first registration whose short name matches case-insensitively.
  • iteration yields registrations in registration order.
- Resolved: what a registry-driven decode produces, (registration, value).
- RegistryVisitor: consumes the single-entry map produced by the dynamic decoder,
  identifies the registration by its key and decodes the value with its shape.

Concurrency
- the registry is not synchronized. Decoders only read it; the embedding
  application must serialize register() calls against concurrent lookups.
"""
import builtins
import dataclasses
from typing import NamedTuple

from .faults import ArityError, FaultCode, TypeNotFoundError, getdoc
from .shapes import struct_of
from .utils import Unset, coalesce


class TypeRegistration(NamedTuple):
    type: type
    identifier: str
    name: str
    shape: object

    @property
    def schema(self):
        return self.shape.schema

    def __rich_repr__(self):
        yield "identifier", self.identifier
        yield "name", self.name
        yield "schema", self.schema


class Resolved(NamedTuple):
    registration: TypeRegistration
    value: object


class TypeRegistry:
    """
    Ordered, append-only collection of TypeRegistration.

    Identifiers are unique; short names are not (find() returns the first match,
    so the earliest registration wins).
    """

    def __init__(self, types=(), /):
        self._registrations = {}
        for type in types:
            self.register(type)

    def register(self, type=Unset, /, *, name=Unset):
        """
        Register a dataclass, or return a decorator that will do so.

        Parameters
        - type: Unset | dataclass type
          When Unset, a decorator is returned.
        - name: Unset | str
          Short name users type; defaults to the class __name__.

        Returns
        - the class itself (so it can be used as a decorator), or the decorator.

        Raises
        - TypeError: not a dataclass, or name is not a non-empty word.
        - ValueError: the identifier is already registered.
        """
        def wrapper(type, /):
            if not (isinstance(type, builtins.type) and dataclasses.is_dataclass(type)):
                raise TypeError("register() argument must be a dataclass type")
            short = coalesce(name, type.__name__)
            if not isinstance(short, str) or not short or any(char.isspace() for char in short):
                raise TypeError("register() name must be a non-empty string without whitespace")

            identifier = "%s.%s" % (type.__module__, type.__qualname__)
            if identifier in self._registrations:
                raise ValueError("type %r is already registered" % identifier)

            self._registrations[identifier] = TypeRegistration(type, identifier, short, struct_of(type))
            return type

        return wrapper(type) if type is not Unset else wrapper

    def get(self, identifier, /):
        return self._registrations.get(identifier)

    def find(self, name, /):
        folded = name.casefold()
        for registration in self:
            if registration.name.casefold() == folded:
                return registration
        return None

    def names(self):
        return tuple(registration.name for registration in self)

    def __iter__(self):
        return iter(tuple(self._registrations.values()))

    def __len__(self):
        return len(self._registrations)

    def __contains__(self, object):
        if isinstance(object, str):
            return object in self._registrations
        return any(registration.type is object for registration in self)

    def __repr__(self):
        return "TypeRegistry(%s)" % ", ".join(map(repr, self.names()))

    def __rich_repr__(self):
        for registration in self:
            yield registration


class RegistryVisitor:
    """
    Consume a single-entry map keyed by a canonical identifier.

    visit_map(access) returns Resolved(registration, value); the value is decoded
    through access.next_value(registration.shape).
    """

    def __init__(self, registry, /):
        self.registry = registry

    def _lookup(self, identifier):
        if hasattr(self.registry, "get"):
            registration = self.registry.get(identifier)
        else:
            registration = next((item for item in self.registry if item.identifier == identifier), None)
        if registration is None:
            raise TypeNotFoundError(
                "no registered type with identifier %r" % identifier,
                title="unknown type",
                code=FaultCode.UNKNOWN_TYPE,
                hint="register the type before decoding lines that name it",
                input=identifier,
                docs=getdoc(FaultCode.UNKNOWN_TYPE)
            )
        return registration

    def visit_map(self, access, /):
        if (identifier := access.next_key()) is None:
            raise ArityError(
                "no type named in the input",
                title="missing type",
                code=FaultCode.MISSING_FIELD,
                hint="start the line with the name of a registered type",
                docs=getdoc(FaultCode.MISSING_FIELD)
            )
        registration = self._lookup(identifier)
        return Resolved(registration, access.next_value(registration.shape))


__all__ = (
    "TypeRegistration",
    "TypeRegistry",
    "Resolved",
    "RegistryVisitor",
)
