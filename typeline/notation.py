r"""
Typeline value notation: the default decoder for raw field text.

A field's raw text (a bare word, a quoted string or a parenthesized literal) is
decoded against the shape the target expects. The notation is a small
object-notation in the spirit of RON:

    scalars     100   -3   0x1f   1_000   2.5   1.   1e3   true   false
    strings     "with \"escapes\"\n"
    optionals   None   Some(100)   100
    sequences   [1, 2, 3]
    enums       Easy   Easy()
    structs     (gold: 200)   SetGold(gold: 200)   (inner: (x: 1), tags: [a, b],)

Decoding is shape-directed: the expected shape decides how the next characters
are read, so `100` is an int for Scalar(int) and the text "100" for Scalar(str).
Struct literals apply the record's defaults for fields they omit and reject
fields the record does not declare. The whole text must be consumed.

A str or optional str field takes an unquoted raw text whole, punctuation
included (http://host, a,b); for an optional str, None and Some(...) keep
their meaning.

Any rejection raises NotationError (a ValueError) with an offset into the text.

Pluggability
- decoders only need decode(text, shape) -> value and to raise ValueError on
  rejection; Notation is the implementation used when none is injected.
"""
import re

from .shapes import Choice, Optional, Scalar, Sequence, Struct
from .utils import Unset, excerpt

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INTEGER = re.compile(r"[+-]?(?:0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+|[0-9][0-9_]*)")
_FLOAT = re.compile(r"[+-]?(?:inf|NaN|(?:[0-9][0-9_]*)?(?:\.[0-9_]*)?(?:[eE][+-]?[0-9]+)?)")
_BAREWORD = re.compile(r"[^\s,:()\[\]\"]+")
_UNICODE = re.compile(r"\{([0-9a-fA-F]{1,6})\}")
_ESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
}


class NotationError(ValueError):
    def __init__(self, message, text, offset, /):
        super().__init__(message, text, offset)
        self.message = message
        self.text = text
        self.offset = offset

    def __str__(self):
        return "%s at offset %d in %r" % (self.message, self.offset, excerpt(self.text))


class _Reader:
    """
    cursor over the text being decoded.
    """

    def __init__(self, text):
        self.text = text
        self.offset = 0

    @property
    def done(self):
        return self.offset >= len(self.text)

    def skip(self):
        while not self.done and self.text[self.offset].isspace():
            self.offset += 1

    def peek(self):
        self.skip()
        return self.text[self.offset] if not self.done else ""

    def fail(self, message):
        return NotationError(message, self.text, self.offset)

    def expect(self, char):
        if self.peek() != char:
            found = repr(self.text[self.offset]) if not self.done else "end of input"
            raise self.fail("expected %r, found %s" % (char, found))
        self.offset += 1

    def match(self, pattern):
        self.skip()
        if not (found := pattern.match(self.text, self.offset)) or not found.group():
            return None
        self.offset = found.end()
        return found.group()

    def keyword(self, word):
        """
        consume `word` when it appears as a whole identifier.
        """
        self.skip()
        found = _IDENTIFIER.match(self.text, self.offset)
        if not found or found.group() != word:
            return False
        self.offset = found.end()
        return True


def _verbatim(text, shape):
    """
    whether `text` is a whole bare token for a str (or optional str) field.
    """
    stripped = text.strip()
    if stripped.startswith('"'):
        return False
    if isinstance(shape, Optional):
        if stripped == "None" or stripped.startswith("Some("):
            return False
        shape = shape.inner
    return isinstance(shape, Scalar) and shape.type is str


class Notation:
    """
    Default value-notation decoder (see module docstring for the grammar).

    Usage
        >>> Notation().decode("(gold : 200)", shape_of(SetGold))
        SetGold(gold=200)
    """

    def decode(self, text, shape, /):
        if not isinstance(text, str):
            raise TypeError("decode() first argument must be a string")
        if _verbatim(text, shape):
            return text
        reader = _Reader(text)
        value = self._read(reader, shape)
        reader.skip()
        if not reader.done:
            raise reader.fail("unexpected trailing input %r" % excerpt(text[reader.offset:]))
        return value

    def _read(self, reader, shape):
        match shape:
            case Scalar():
                return self._scalar(reader, shape.type)
            case Optional():
                return self._optional(reader, shape)
            case Sequence():
                return self._sequence(reader, shape)
            case Choice():
                return self._choice(reader, shape)
            case Struct():
                return self._struct(reader, shape)
            case _:
                raise TypeError("unsupported shape %r" % (shape,))

    def _scalar(self, reader, type):
        if type is bool:
            for word, value in (("true", True), ("false", False)):
                if reader.keyword(word):
                    return value
            raise reader.fail("expected true or false")
        if type is int:
            if (found := reader.match(_INTEGER)) is None or reader.peek() == ".":
                raise reader.fail("expected an integer")
            try:
                return int(found, 0) if found.lstrip("+-")[1:2].isalpha() else int(found)
            except ValueError:
                raise reader.fail("invalid integer %r" % found) from None
        if type is float:
            if (found := reader.match(_FLOAT)) is None:
                raise reader.fail("expected a number")
            try:
                return float(found)
            except ValueError:
                raise reader.fail("invalid number %r" % found) from None
        if type is str:
            if reader.peek() == '"':
                return self._string(reader)
            if (found := reader.match(_BAREWORD)) is None:
                raise reader.fail("expected a string")
            return found
        raise TypeError("unsupported scalar type %r" % type)

    def _string(self, reader):
        reader.expect('"')
        text = reader.text
        chunks = []
        while True:
            if reader.done:
                raise reader.fail("unterminated string")
            char = text[reader.offset]
            reader.offset += 1
            if char == '"':
                return "".join(chunks)
            if char != "\\":
                chunks.append(char)
                continue
            if reader.done:
                raise reader.fail("unterminated escape sequence")
            escape = text[reader.offset]
            reader.offset += 1
            if escape == "u":
                found = _UNICODE.match(text, reader.offset)
                if not found:
                    raise reader.fail("invalid unicode escape")
                chunks.append(chr(int(found.group(1), 16)))
                reader.offset = found.end()
            elif escape in _ESCAPES:
                chunks.append(_ESCAPES[escape])
            else:
                raise reader.fail("unknown escape sequence '\\%s'" % escape)

    def _optional(self, reader, shape):
        if reader.keyword("None"):
            return None
        start = reader.offset
        if reader.keyword("Some"):
            if reader.peek() == "(":
                reader.expect("(")
                value = self._read(reader, shape.inner)
                reader.expect(")")
                return value
            # "Some" on its own is a plain value of the inner shape (e.g. a bare string)
            reader.offset = start
        return self._read(reader, shape.inner)

    def _sequence(self, reader, shape):
        reader.expect("[")
        values = []
        while reader.peek() != "]":
            values.append(self._read(reader, shape.inner))
            if reader.peek() != ",":
                break
            reader.expect(",")
        reader.expect("]")
        return values

    def _choice(self, reader, shape):
        if (name := reader.match(_IDENTIFIER)) is None:
            raise reader.fail("expected %s" % shape.describe())
        try:
            member = shape.type[name]
        except KeyError:
            raise reader.fail("unknown variant %r, expected %s" % (name, shape.describe())) from None
        if reader.peek() == "(":
            reader.expect("(")
            reader.expect(")")
        return member

    def _struct(self, reader, shape):
        if reader.peek() != "(":
            start = reader.offset
            name = reader.match(_IDENTIFIER)
            if name is None:
                raise reader.fail("expected a %s literal like (%s)" % (shape.name, ", ".join(
                    "%s: …" % field for field in shape.schema
                )))
            if name != shape.name:
                reader.offset = start
                raise reader.fail("expected %s, found %r" % (shape.name, name))
            if reader.peek() != "(":
                # unit-like record written by name only
                return self._fill(reader, shape, {})

        reader.expect("(")
        values = {}
        while reader.peek() != ")":
            start = reader.offset
            if (key := reader.match(_IDENTIFIER)) is None:
                raise reader.fail("expected a field name")
            try:
                field = shape.field(key)
            except KeyError:
                reader.offset = start
                raise reader.fail("unknown field %r for %s" % (key, shape.name)) from None
            if key in values:
                reader.offset = start
                raise reader.fail("duplicate field %r" % key)
            reader.expect(":")
            values[key] = self._read(reader, field.shape)
            if reader.peek() != ",":
                break
            reader.expect(",")
        reader.expect(")")
        return self._fill(reader, shape, values)

    def _fill(self, reader, shape, values):
        for field in shape.fields:
            if field.name in values:
                continue
            if (value := field.fallback()) is Unset:
                raise reader.fail("missing field %r for %s" % (field.name, shape.name))
            values[field.name] = value
        return shape.build(values)


__all__ = (
    "Notation",
    "NotationError",
)
