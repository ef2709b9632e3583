r"""
Typeline decoders: command line → visitor-consumable maps.

Overview
- Typed path (schema known up front)
  • decode(input, schema) runs tokenize() + resolve() and returns an ArgumentMap.
  • TypedLineDecoder(input).decode_struct(name, schema, visitor) hands that map to
    visitor.visit_map(...). Only struct-shaped decoding is supported.

- Dynamic path (type named by the first token)
  • decode_untyped(input, registry) strips the leading type name, finds the first
    registration whose short name matches case-insensitively, and returns a
    SingleEntryMap keyed by the registration's canonical identifier. Its value
    is decoded lazily: next_value(shape) runs the typed path over the rest of
    the line.
  • LineDecoder(input, registry).decode_map(visitor) hands that map to the visitor.
    Only map-shaped decoding is supported.

- Map accesses (what visitors consume)
  • next_key() -> str | None: the next key, None once exhausted.
  • next_value(shape): decode the value of the key just returned.
  • ArgumentMap yields keys in first-appearance order in the line, which is
    not necessarily schema order.

- Convenience
  • parse(cls, input): typed path straight to a dataclass instance.
  • resolve_line(input, registry): dynamic path to Resolved(registration, value).

Field values
- each raw text goes to the value decoder (Notation unless one is injected) with
  the shape the visitor asks for; its ValueError becomes a ValueDecodeError
  carrying the same message, with the original exception chained.
- a key given without a value ('--name' at the end of the line) decodes to None
  for optional shapes and is an ArityError otherwise.

Quick example:
    >>> @dataclass
    ... class SetGold:
    ...     gold: int
    >>> parse(SetGold, "--gold 100")
    SetGold(gold=100)
    >>> registry = TypeRegistry([SetGold])
    >>> resolve_line("setgold 100", registry).value
    SetGold(gold=100)
"""
import difflib

from .faults import (
    ArityError,
    FaultCode,
    GrammarError,
    TypeNotFoundError,
    UnsupportedOperationError,
    ValueDecodeError,
    getdoc,
)
from .notation import Notation
from .registry import RegistryVisitor
from .resolver import resolve
from .shapes import Optional, Struct, StructVisitor, shape_of
from .tokenizer import tokenize
from .utils import WHITESPACE, Unset, coalesce, excerpt

NOTATION = Notation()


def _unsupported(operation, decoder, supported):
    return UnsupportedOperationError(
        "%s is not supported by %s" % (operation, type(decoder).__name__),
        title="unsupported operation",
        code=FaultCode.UNSUPPORTED_OPERATION,
        hint="%s only decodes through %s" % (type(decoder).__name__, supported),
        operation=operation,
        docs=getdoc(FaultCode.UNSUPPORTED_OPERATION)
    )


class ArgumentMap:
    """
    Map access over one resolved command line (field name → raw text).

    Each entry is read exactly once, in insertion order: call next_key(), then
    next_value(shape) for that key.
    """

    def __init__(self, values, /, *, decoder=Unset):
        self._values = dict(values)
        self._keys = tuple(self._values)
        self._index = 0
        self._pending = Unset
        self._decoder = coalesce(decoder, NOTATION)

    def keys(self):
        return self._keys

    def raw(self, key, /):
        return self._values[key]

    def next_key(self):
        if self._index >= len(self._keys):
            return None
        self._pending = self._keys[self._index]
        self._index += 1
        return self._pending

    def next_value(self, shape, /):
        if self._pending is Unset:
            raise _unsupported("next_value() without a pending key", self, "next_key() followed by next_value()")
        key, self._pending = self._pending, Unset
        raw = self._values[key]

        if raw is None:
            if isinstance(shape, Optional):
                return None
            raise ArityError(
                "missing value for --%s" % key,
                title="missing value",
                code=FaultCode.MISSING_VALUE,
                hint="pass a value after the name (for example: --%s <%s>)" % (key, shape.describe()),
                field=key,
                docs=getdoc(FaultCode.MISSING_VALUE)
            )

        try:
            return self._decoder.decode(raw, shape)
        except ValueError as error:
            raise ValueDecodeError(
                str(error),
                title="invalid value",
                code=FaultCode.VALUE_REJECTED,
                hint="--%s expects %s, got %r" % (key, shape.describe(), excerpt(raw)),
                field=key,
                input=raw,
                docs=getdoc(FaultCode.VALUE_REJECTED)
            ) from error

    def __len__(self):
        return len(self._keys)

    def __repr__(self):
        return "ArgumentMap(%r)" % self._values

    def __rich_repr__(self):
        yield from self._values.items()


class SingleEntryMap:
    """
    Map access with one entry: canonical identifier → rest of the line.

    The value is a deferred typed decode: next_value(struct) runs
    TypedLineDecoder over the remaining text with the struct's schema.
    """

    def __init__(self, identifier, input, /, *, decoder=Unset):
        self.identifier = identifier
        self.input = input
        self._decoder = decoder
        self._state = 0  # 0: key pending, 1: value pending, 2: consumed

    def next_key(self):
        if self._state != 0:
            return None
        self._state = 1
        return self.identifier

    def next_value(self, shape, /):
        if self._state != 1:
            raise _unsupported("next_value() without a pending key", self, "next_key() followed by next_value()")
        if not isinstance(shape, Struct):
            raise _unsupported("next_value(%s)" % shape.describe(), self, "next_value(<struct shape>)")
        self._state = 2
        return TypedLineDecoder(self.input, decoder=self._decoder).decode_struct(
            shape.name, shape.schema, StructVisitor(shape)
        )

    def __len__(self):
        return 1

    def __repr__(self):
        return "SingleEntryMap(%r: %r)" % (self.identifier, self.input)

    def __rich_repr__(self):
        yield self.identifier, self.input


def decode(input, schema, /, *, decoder=Unset):
    """
    Tokenize and resolve a line against a field schema.

    Returns
    - ArgumentMap ready for a visitor.

    Raises
    - GrammarError (tokenizer), ArityError (too many positionals).
    """
    return ArgumentMap(resolve(tokenize(input), schema), decoder=decoder)


def decode_untyped(input, registry, /, *, decoder=Unset):
    """
    Resolve the leading type name of a line and defer the rest.

    Parameters
    - input: str, e.g. "setgold --gold 100".
    - registry: iterable of registrations exposing .name and .identifier.

    Returns
    - SingleEntryMap keyed by the canonical identifier of the matched registration.

    Raises
    - GrammarError: no leading token (blank input).
    - TypeNotFoundError: no registration matches the name.
    """
    if not isinstance(input, str):
        raise TypeError("decode_untyped() first argument must be a string")

    start = 0
    while start < len(input) and input[start] in WHITESPACE:
        start += 1
    end = start
    while end < len(input) and input[end] not in WHITESPACE:
        end += 1
    if start == end:
        raise GrammarError(
            "missing type name",
            title="malformed input",
            code=FaultCode.MALFORMED_INPUT,
            hint="start the line with the name of a type (for example: setgold 100)",
            input=input,
            docs=getdoc(FaultCode.MALFORMED_INPUT)
        )

    name = input[start:end]
    folded = name.casefold()
    registrations = tuple(registry)
    for registration in registrations:
        if registration.name.casefold() == folded:
            return SingleEntryMap(registration.identifier, input[end:], decoder=decoder)

    names = {}
    for registration in registrations:
        names.setdefault(registration.name.casefold(), registration.name)
    suggestions = [names[match] for match in difflib.get_close_matches(folded, names.keys(), 5)]
    try:
        hint = "did you mean %r?" % suggestions[0]
    except IndexError:
        hint = "known types: %s" % (", ".join(names.values()) or "none registered")
    raise TypeNotFoundError(
        "unknown type %r" % name,
        title="unknown type",
        code=FaultCode.UNKNOWN_TYPE,
        hint=hint,
        input=name,
        suggestions=suggestions,
        docs=getdoc(FaultCode.UNKNOWN_TYPE)
    )


class TypedLineDecoder:
    """
    Struct-shaped decoder over a line whose target schema is known.
    """

    def __init__(self, input, /, *, decoder=Unset):
        if not isinstance(input, str):
            raise TypeError("TypedLineDecoder() argument must be a string")
        self.input = input
        self.decoder = decoder

    def decode_struct(self, name, fields, visitor, /):
        return visitor.visit_map(decode(self.input, fields, decoder=self.decoder))

    def decode_map(self, visitor, /):
        raise _unsupported("decode_map()", self, "decode_struct()")

    def decode_scalar(self, shape, visitor, /):
        raise _unsupported("decode_scalar()", self, "decode_struct()")

    def decode_any(self, visitor, /):
        raise _unsupported("decode_any()", self, "decode_struct()")


class LineDecoder:
    """
    Map-shaped decoder over a line whose first token names a registered type.
    """

    def __init__(self, input, registry, /, *, decoder=Unset):
        if not isinstance(input, str):
            raise TypeError("LineDecoder() first argument must be a string")
        self.input = input
        self.registry = registry
        self.decoder = decoder

    def decode_map(self, visitor, /):
        return visitor.visit_map(decode_untyped(self.input, self.registry, decoder=self.decoder))

    def decode_struct(self, name, fields, visitor, /):
        raise _unsupported("decode_struct()", self, "decode_map()")

    def decode_scalar(self, shape, visitor, /):
        raise _unsupported("decode_scalar()", self, "decode_map()")

    def decode_any(self, visitor, /):
        raise _unsupported("decode_any()", self, "decode_map()")


def parse(cls, input, /, *, decoder=Unset):
    """
    Decode a line into an instance of the dataclass `cls`.
    """
    struct = shape_of(cls)
    if not isinstance(struct, Struct):
        raise TypeError("parse() first argument must be a dataclass type")
    return TypedLineDecoder(input, decoder=decoder).decode_struct(struct.name, struct.schema, StructVisitor(struct))


def resolve_line(input, registry, /, *, decoder=Unset):
    """
    Decode a line whose first token names a registered type.

    Returns
    - Resolved(registration, value)
    """
    return LineDecoder(input, registry, decoder=decoder).decode_map(RegistryVisitor(registry))


__all__ = (
    "ArgumentMap",
    "SingleEntryMap",
    "TypedLineDecoder",
    "LineDecoder",
    "decode",
    "decode_untyped",
    "parse",
    "resolve_line",
)
