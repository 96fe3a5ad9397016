"""
Argot faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings), grouped by domain.
- ParseException / ParseWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- ParseExit: the group of every fatal fault collected during one parse.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).

UX goals
- Position-first messages: every message names the ordinal position of the token
  (“option '-n' at third position requires a value”).
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.

Integration
- The parser collects faults while resolving tokens and raises them together as a
  ParseExit once the token stream is exhausted (or at once on a conversion failure).
- In non-shell mode, exceptions are raised and warnings go through the warnings module;
  in shell mode, both are rendered via rich on stderr.
"""
import copy
import inspect
import sys
import warnings
from abc import ABC
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
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - keys (1111x)
      • UNKNOWN_PACKED_KEY, UNEXPECTED_VALUE_GIVEN, MISSING_VALUE_FOR_OPTION,
        REQUIRED_VALUE_NOT_GIVEN
    - positionals (1112x)
      • UNEXPECTED_ARGUMENT
    - conversions (1113x)
      • CONVERSION_FAILURE
    - warnings (12xxx)
      • SHADOWED_KEY

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- key errors (111xx) ---
    UNKNOWN_PACKED_KEY          = 11112
    UNEXPECTED_VALUE_GIVEN      = 11113
    MISSING_VALUE_FOR_OPTION    = 11117
    REQUIRED_VALUE_NOT_GIVEN    = 11119

    # --- positional errors (111xx) ---
    UNEXPECTED_ARGUMENT         = 11121

    # --- conversion errors (111xx) ---
    CONVERSION_FAILURE          = 11131

    # --- warnings (12xxx) ---
    SHADOWED_KEY                = 12112

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _field(name, /):
    return property(lambda self: self.options.get(name), doc=f"the {name!r} carried by this fault")


def _renderer(self, palette):
    """
    Shared rich rendering for exceptions and warnings.

    The palette is merged with an optional __styles__ mapping found in __main__.
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = self.options.get("colorful", False)
    fancy = self.options.get("fancy", False)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    parser = self.options.get("parser")
    prog = text(getattr(main, "__prog__", getattr(parser, "prog", "<program>")), styler("prog-name"))
    code = self.options.get("code")

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code is not None else "?", styler("code")),
        " | ",
        text(str(self.options.get("title", "")).title(), styler("title")),
        " ]"
    )
    message = text(self.message, styler("message"))
    hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options.get("hint"), styler("hint")))

    if fancy:
        width = console.width - 4
        try:
            width = int(width * self.options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(message, hint), title=header, title_align="left", width=width)

    return Group(header, message, hint)


class ParseException(Exception):
    """
    Base type of every fatal parse fault.

    The message is a lowercase, position-first sentence. Options carry the
    structured context (key, token, value, code, title, hint, parser, ...) and are
    exposed read-only through `options`; subclasses publish the fields of their
    fault kind as properties.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RequiredValueNotGivenError(ParseException):
    key = _field("key")


class UnexpectedArgumentError(ParseException):
    token = _field("token")


class UnexpectedValueGivenError(ParseException):
    key = _field("key")
    value = _field("value")


class MissingValueForOptionError(ParseException):
    key = _field("key")


class ConversionFailureError(ParseException):
    key = _field("key")
    text = _field("text")
    target = _field("target")
    exception = _field("exception")


class UnknownPackedKeyError(ParseException):
    token = _field("token")
    key = _field("key")


class ParseWarning(ABC, Warning):
    """
    Base type of non-fatal parse notices.

    Outside shell mode they are emitted through warnings.warn; in shell mode they
    are printed with rich.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ShadowedKeyWarning(ParseWarning):
    key = _field("key")


class ParseExit(ExceptionGroup):
    """
    Every fatal fault of one parse, raised together.

    Use `except*` on a specific fault type, or inspect `exceptions`.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad parse", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad parse", tuple(exceptions))
        self.options = MappingProxyType(options)

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)

    def __rich__(self):
        main = __import__("__main__")
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        } | getattr(main, "__styles__", {}))
        colorful = self.options.get("colorful", False)

        def styler(style):
            return styles[style] if colorful else ""

        parser = self.options.get("parser")
        prog = Text(str(getattr(main, "__prog__", getattr(parser, "prog", "<program>"))), styler("prog-name"))
        header = Text.assemble("[ ", prog, " — ", Text(self.message.title(), styler("title")), " ]")

        renders = [copy.replace(exception, ratio=2/3) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise exceptions are raised
      and warnings are emitted.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "ParseException",
    "RequiredValueNotGivenError",
    "UnexpectedArgumentError",
    "UnexpectedValueGivenError",
    "MissingValueForOptionError",
    "ConversionFailureError",
    "UnknownPackedKeyError",
    "ParseWarning",
    "ShadowedKeyWarning",
    "ParseExit",
    "FaultCode",
    "trigger",
)
