r"""
Typeline tokenizer: split one command line into argument tokens.

Grammar (left to right, whitespace-separated)
    line          := arg (WS arg)*
    arg           := keyed | positional
    keyed         := "--" key (WS value)?
    key           := non-whitespace+
    positional    := value
    value         := quoted | parenthesized | bareword
    quoted        := '"' [^"]* '"'
    parenthesized := '(' [^)]* ')'
    bareword      := non-whitespace+

Rules
- Tokens keep the original text: quotes and parentheses stay in the value, and
  the interior of a span (spaces included) is never rewritten.
- A keyed token takes the next value verbatim, even when that value itself
  starts with '--'. A key at the end of the line has no value (None).
- Unsupported input fails with GrammarError instead of being truncated:
  • a quote or parenthesis that is never closed,
  • an escaped quote (\") inside a quoted span, i.e. a \" followed by more
    text; a backslash right before the closing quote is kept (e.g. "C:\dir\"),
  • a '(' inside a parenthesized span (no nesting),
  • a span glued to more text, e.g. '"a"b' or '(x)y',
  • a bare '--' without a name.

Quick example:
    >>> tokenize('100 --arg1 "200 "')
    (Token(key=None, value='100'), Token(key='arg1', value='"200 "'))
"""
from typing import NamedTuple

from .faults import FaultCode, GrammarError, getdoc
from .utils import WHITESPACE, excerpt


class Token(NamedTuple):
    """
    One argument of a command line.

    - key: the name after '--' for keyed tokens; None for positional tokens.
    - value: raw text of the value, or None for a key with no value.
    """
    key: str | None
    value: str | None

    @property
    def positional(self):
        return self.key is None

    def __rich_repr__(self):
        if self.key is not None:
            yield "key", self.key
        yield "value", self.value


def _skip(input, index):
    while index < len(input) and input[index] in WHITESPACE:
        index += 1
    return index


def _word(input, index):
    start = index
    while index < len(input) and input[index] not in WHITESPACE:
        index += 1
    return input[start:index], index


def _malformed(message, hint, input):
    return GrammarError(
        message,
        title="malformed input",
        code=FaultCode.MALFORMED_INPUT,
        hint=hint,
        input=input,
        docs=getdoc(FaultCode.MALFORMED_INPUT)
    )


def _span(input, index, closing, kind):
    """
    read a delimited span starting at input[index] and ending at the next `closing`.

    returns (text, next_index) with both delimiters kept in text.
    """
    end = input.find(closing, index + 1)
    if end == -1:
        raise _malformed(
            "unterminated %s %r" % (kind, excerpt(input[index:])),
            "close it with %r" % closing,
            input
        )
    text = input[index:end + 1]

    glued = end + 1 < len(input) and input[end + 1] not in WHITESPACE
    if closing == '"' and text[-2:-1] == "\\" and glued:
        raise _malformed(
            "escaped quotes are not supported in %r" % excerpt(text),
            "wrap the value in parentheses or drop the inner quotes",
            input
        )
    if closing == ")" and "(" in text[1:]:
        raise _malformed(
            "nested parentheses are not supported in %r" % excerpt(input[index:]),
            "pass the inner value with its own --name instead of nesting it",
            input
        )
    if glued:
        raise _malformed(
            "%s %r is followed by %r without a space" % (kind, excerpt(text), input[end + 1]),
            "put a space after the closing %r" % closing,
            input
        )
    return text, end + 1


def _value(input, index):
    match input[index]:
        case '"':
            return _span(input, index, '"', "quoted string")
        case "(":
            return _span(input, index, ")", "parenthesized value")
        case _:
            return _word(input, index)


def tokenize(input, /):
    """
    Split a command line into a tuple of Token.

    Parameters
    - input: str
      The raw line (without the leading type name on the dynamic path).

    Returns
    - tuple[Token, ...]: tokens in input order; empty for blank input.

    Raises
    - TypeError: input is not a string.
    - GrammarError: unterminated or unsupported spans, or a bare '--'.
    """
    if not isinstance(input, str):
        raise TypeError("tokenize() argument must be a string")

    tokens = []
    index = _skip(input, 0)
    while index < len(input):
        if input.startswith("--", index):
            key, index = _word(input, index + 2)
            if not key:
                raise _malformed(
                    "missing name after '--'",
                    "write the field name right after the dashes (for example: --gold 100)",
                    input
                )
            index = _skip(input, index)
            value = None
            if index < len(input):
                value, index = _value(input, index)
            tokens.append(Token(key, value))
        else:
            value, index = _value(input, index)
            tokens.append(Token(None, value))
        index = _skip(input, index)

    return tuple(tokens)


__all__ = (
    "Token",
    "tokenize",
)
