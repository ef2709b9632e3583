"""
Typeline faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every issue the decoders
  can surface. Codes are grouped by domain to keep copy consistent and make
  logs/searches predictable.
- LineException / LineWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Taxonomy
- GrammarError: the line itself is malformed (unterminated quote/parenthesis,
  unsupported escapes or nesting, a bare '--', no leading type name).
- ArityError: positional/field bookkeeping failed (too many positionals, a key
  without a value for a required field, a required field left unfilled).
  UnknownFieldError narrows it to a '--key' that names no field.
- TypeNotFoundError: the leading type name matched no registration.
- ValueDecodeError: the value-notation decoder rejected a field's raw text; the
  decoder's message is kept verbatim and its exception is chained.
- UnsupportedOperationError: the decode protocol was driven in a way this input
  does not support. This is a programmer error, so it is also a NotImplementedError.

Integration
- Decoders raise faults directly; embedding consoles call trigger(fault, **ctx).
- In non-shell mode, exceptions are raised; in shell mode, they are rendered via rich.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across typeline (stable identifiers).

    grouping (by high-level domain)
    - resolution (1110x)
      • UNKNOWN_TYPE
    - grammar (1111x)
      • MALFORMED_INPUT
    - arity (1112x)
      • TOO_MANY_POSITIONALS, UNKNOWN_FIELD, MISSING_VALUE, MISSING_FIELD
    - delegated (1113x)
      • VALUE_REJECTED
    - warnings (1211x)
      • DUPLICATED_KEY
    - protocol misuse (1310x)
      • UNSUPPORTED_OPERATION
    """
    # --- resolution errors (11xxx) ---
    UNKNOWN_TYPE                = 11101

    # --- grammar errors (11xxx) ---
    MALFORMED_INPUT             = 11111

    # --- arity errors (11xxx) ---
    TOO_MANY_POSITIONALS        = 11121
    UNKNOWN_FIELD               = 11122
    MISSING_VALUE               = 11123
    MISSING_FIELD               = 11124

    # --- delegated errors (11xxx) ---
    VALUE_REJECTED              = 11131

    # --- warnings (12xxx) ---
    DUPLICATED_KEY              = 12115

    # --- protocol misuse (13xxx) ---
    UNSUPPORTED_OPERATION       = 13101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by exceptions and warnings.

    options read from the fault
    - colorful (default True), fancy (default False), ratio (panel width share)
    - prog (falls back to __main__.__prog__, then "typeline")
    - code, title, hint, docs
    """
    main = __import__("__main__")
    options = fault.options

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style])

    prog = text(getattr(main, "__prog__", options.get("prog", "typeline")), "prog-name")
    code = options.get("code")
    title = options.get("title") or type(fault).__name__

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
        " | ",
        text(title.title(), "title"),
        " ]"
    )
    parts = [text(fault.message, "message")]
    if hint := options.get("hint"):
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    if docs := options.get("docs"):
        parts.append(text(docs, "docs"))

    if fancy:
        try:
            width = int((console.width - 4) * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(*parts), title=header, title_align="left", width=width)

    return Group(header, *parts)


class LineException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title

            # body
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from self.__cause__
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        fault = type(self)(self.message, **{**self.options, **overrides})
        fault.__cause__ = self.__cause__
        return fault


class GrammarError(LineException): ...
class ArityError(LineException): ...
class UnknownFieldError(ArityError): ...
class TypeNotFoundError(LineException): ...
class ValueDecodeError(LineException): ...
class UnsupportedOperationError(LineException, NotImplementedError): ...


class LineWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
            "docs": "underline #FFB400 dim",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicatedKeyWarning(LineWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised
      and warnings are emitted through the warnings module.

    typical options
    - shell, fancy, colorful, deferred, prog, and any other context the reporter
      may want to show (e.g., input/index/field).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    lookup
    - the host application may expose a __docs__ mapping in __main__ where keys
      are FaultCode instances and values are short documentation strings.
    - when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "LineException",
    "GrammarError",
    "ArityError",
    "UnknownFieldError",
    "TypeNotFoundError",
    "ValueDecodeError",
    "UnsupportedOperationError",
    "LineWarning",
    "DuplicatedKeyWarning",
    "trigger",
    "getdoc",
)
