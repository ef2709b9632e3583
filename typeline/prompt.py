"""
Typeline prompt: decode console lines against a registry and surface faults.

Prompt is the piece an embedding console calls once per typed line. It runs the
dynamic path (leading type name + arguments) and returns Resolved(registration,
value). It does not apply the value to anything: dispatching commands is the
host's job.

Runtime options (same meaning as for trigger())
- shell: print faults with rich instead of raising them (and render warnings
  instead of emitting them through the warnings module).
- deferred: in shell mode, return None after printing instead of exiting.
- fancy / colorful: rendering style of printed faults.
- prog: program name shown in fault headers (__main__.__prog__ wins when set).

Examples
    >>> prompt = Prompt(registry, shell=True)
    >>> prompt("setgold 100")
    Resolved(registration=..., value=SetGold(gold=100))
    >>> prompt("setgold \\"100")   # prints an unterminated-quote fault, returns None
"""
import builtins
import warnings

from .decoding import resolve_line
from .faults import LineException, LineWarning, trigger
from .utils import Unset


class Prompt:
    def __init__(
            self,
            registry,
            /,
            *,
            decoder=Unset,
            shell=False,
            fancy=False,
            colorful=True,
            deferred=True,
            prog=Unset,
    ):
        self.registry = registry
        self.decoder = decoder
        self.shell = bool(shell)
        self.fancy = bool(fancy)
        self.colorful = bool(colorful)
        self.deferred = bool(deferred)
        self.prog = prog

    def trigger(self, fault, /, **options):
        options = {
            "shell": self.shell,
            "fancy": self.fancy,
            "colorful": self.colorful,
            "deferred": self.deferred,
        } | ({"prog": self.prog} if self.prog is not Unset else {}) | options
        trigger(fault, **options)

    def __call__(self, line, /):
        """
        Decode one line; blank lines are ignored (None).

        Returns
        - Resolved(registration, value), or None when the line was blank or a
          fault was printed in deferred shell mode.
        """
        if not isinstance(line, str):
            raise TypeError("Prompt() argument must be a string")
        if not line.strip():
            return None

        if not self.shell:
            return resolve_line(line, self.registry, decoder=self.decoder)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", LineWarning)
            try:
                resolved = resolve_line(line, self.registry, decoder=self.decoder)
            except LineException as fault:
                resolved = fault

        for warning in caught:
            if isinstance(warning.message, LineWarning):
                self.trigger(warning.message)
            else:
                warnings.warn_explicit(warning.message, warning.category, warning.filename, warning.lineno)

        if isinstance(resolved, LineException):
            self.trigger(resolved)
            return None
        return resolved

    def loop(self, reader=builtins.input, /):
        """
        Yield one result per line read from `reader` until it raises EOFError.
        """
        while True:
            try:
                line = reader()
            except EOFError:
                return
            yield self(line)


__all__ = (
    "Prompt",
)
