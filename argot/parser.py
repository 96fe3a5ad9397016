"""
Argot parser: registry of declarations and the token-resolution loop.

What this module provides
- Config: read-only parse configuration (key-value syntax, packing, leftovers).
- Parser: owns the keyed and positional adapters of every attached declaration,
  resolves a token list against them once, and renders help.
- default_parser() and free functions (flag, option, parse, ...): a thin,
  optional convenience over one process-wide Parser.

Resolution order (first match wins, per token)
1. exact key: the token equals a key. Keys are looked up newest registration
   first, so a later declaration shadows an earlier one sharing a key. Options
   consume the next token as their value (whatever it looks like); flags are raised.
2. key-value: "key=value" when enabled; the left part must be a known key.
   An empty right part is an empty-string value. A flag given a value is a fault.
3. packed short keys: "-vxn5" when enabled. Every character c resolves the key
   prefix + c. A value-bearing option ends the pack and takes the rest of the
   token as its value (or the next token when nothing is left). Tokens whose
   characters resolve to nothing fall through, so "-5" can still be a positional;
   a partially resolvable pack is a fault and raises nothing.
4. positional: the token goes to the positional under the cursor, which advances
   unless that positional is multi-valued.
5. leftover: collected when Config.collect_leftovers is set, otherwise a fault.

Faults
- Structural and requiredness faults are collected for the whole token list and
  raised together as a ParseExit. A conversion failure stops the parse at once.
- shell=True prints faults and help with rich on stderr and exits with status 1.

Quick start
    from argot import Parser

    parser = Parser("greet")
    string = parser.option("-s", "--string").mark_required().help("a string to print")
    number = parser.option("-n", "--number", type=int).default(3).help("number of times to print the string")
    parser.parse(["-s", "hi"])
    assert (string.value, number.value) == ("hi", 3)

Thread-safety
- A parser is single-threaded: parse() must complete before another thread reads
  declaration values. Nothing enforces this at runtime.
"""
import copy
import functools
import os.path
import shlex
import sys
from collections import defaultdict, deque
from collections.abc import Iterable

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .adapters import KeyAdapter, adapt
from .arguments import Flag, MultiFlag, Option, MultiOption, Value, MultiValue
from .faults import *
from .utils import *


class Config:
    """
    Read-only parse configuration.

    Options
    - allow_key_value_syntax: accept "key<separator>value" tokens (default True).
    - key_value_separator: separator for the above (default "=").
    - allow_argument_packing: accept packed short keys such as "-vx" (default True).
    - pack_prefix: prefix shared by packed keys (default "-").
    - collect_leftovers: keep tokens no positional can take instead of reporting
      them as unexpected (default False); read them from Parser.leftovers.

    copy.replace(config, pack_prefix="+") builds a modified copy.
    """
    __introspectable__ = (
        "allow_key_value_syntax",
        "key_value_separator",
        "allow_argument_packing",
        "pack_prefix",
        "collect_leftovers",
    )

    allow_key_value_syntax = mirror("allow_key_value_syntax")
    key_value_separator = mirror("key_value_separator")
    allow_argument_packing = mirror("allow_argument_packing")
    pack_prefix = mirror("pack_prefix")
    collect_leftovers = mirror("collect_leftovers")

    def __init__(
            self,
            *,
            allow_key_value_syntax=True,
            key_value_separator="=",
            allow_argument_packing=True,
            pack_prefix="-",
            collect_leftovers=False,
    ):
        for name, object in (("key_value_separator", key_value_separator), ("pack_prefix", pack_prefix)):
            if not isinstance(object, str):
                raise TypeError(f"config {name!r} must be a string")
            elif not object:
                raise ValueError(f"config {name!r} cannot be empty")
            elif any(character.isspace() for character in object):
                raise ValueError(f"config {name!r} cannot contain whitespace")

        self._allow_key_value_syntax = bool(allow_key_value_syntax)
        self._key_value_separator = key_value_separator
        self._allow_argument_packing = bool(allow_argument_packing)
        self._pack_prefix = pack_prefix
        self._collect_leftovers = bool(collect_leftovers)

    def __repr__(self):
        return "config(%s)" % ", ".join("%s=%r" % (name, getattr(self, name)) for name in self.__introspectable__)

    def __eq__(self, other):
        if not isinstance(other, Config):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__introspectable__)

    def __hash__(self):
        return hash(tuple(getattr(self, name) for name in self.__introspectable__))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(**{name: getattr(self, name) for name in self.__introspectable__} | overrides)


class Parser:
    """
    Registry of declarations and the single-use resolution loop.

    Responsibilities
    - attach(): wrap declarations in adapters; keyed ones enter the keyed list,
      positional ones the positional list (declaration order is kept).
    - parse(): resolve one token list, store typed values through the adapters
      into the caller's handles, and surface every fault.
    - help(): render usage, options and positional arguments with rich.

    Lifecycle
    - Build, attach, parse once. A second parse() raises RuntimeError.
    """

    config = mirror("config")
    options = mirror("options")
    arguments = mirror("arguments")
    leftovers = mirror("leftovers")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def __init__(self, prog=Unset, /, config=Unset, *, shell=False, fancy=False, colorful=False):
        if not isinstance(prog, str | Unset):
            raise TypeError("parser 'prog' must be a string")
        elif isinstance(prog, str) and not (prog := prog.strip()):
            raise ValueError("parser 'prog' cannot be empty")
        if not isinstance(config, Config | Unset):
            raise TypeError("parser 'config' must be a Config instance")

        self._prog = prog
        self._config = coalesce(config) or Config()
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

        self._options = []
        self._arguments = []
        self._position = 0
        self._leftovers = []
        self._faults = []
        self._tokens = deque()
        self._index = 0
        self._parsed = False

    @property
    def prog(self):
        return coalesce(self._prog, "<program>")

    # --- registration -------------------------------------------------------

    def attach(self, declaration, /):
        """
        Register one declaration and return it unchanged.

        The parser keeps an adapter holding a copy of the handle; both share the
        same storage. A key already used by an earlier declaration is shadowed
        (the new declaration wins) and a ShadowedKeyWarning is emitted.

        Raises
        - TypeError: when the object is not a declaration or a keyed declaration
          has no key.
        """
        adapter = adapt(declaration)
        if not isinstance(adapter, KeyAdapter):
            self._arguments.append(adapter)
            return declaration

        for key in adapter.keys():
            if (shadowed := self._find(key)) is not None:
                self.trigger(ShadowedKeyWarning(
                    "key %r of %s shadows an earlier %s" % (
                        key, type(declaration).__typename__, type(shadowed.declaration).__typename__
                    ),
                    title="shadowed key",
                    code=FaultCode.SHADOWED_KEY,
                    key=key,
                    hint="the last declaration attached with %r receives its values" % key,
                ))
        self._options.append(adapter)
        return declaration

    def flag(self, *keys):
        return self.attach(Flag(*keys))

    def multi_flag(self, *keys):
        return self.attach(MultiFlag(*keys))

    def option(self, *keys, type=str):
        return self.attach(Option(*keys, type=type))

    def multi_option(self, *keys, type=str):
        return self.attach(MultiOption(*keys, type=type))

    def argument(self, metavar=Unset, /, type=str):
        return self.attach(Value(metavar, type=type))

    def multi_argument(self, metavar=Unset, /, type=str):
        return self.attach(MultiValue(metavar, type=type))

    # --- faults -------------------------------------------------------------

    def trigger(self, fault, /, **options):
        """
        Record a fault with this parser's runtime options.

        Warnings are surfaced immediately; exceptions are collected and raised
        together by _finalize().
        """
        fault = copy.replace(
            fault,
            **options,
            parser=self,
            shell=self.shell,
            fancy=self.fancy,
            colorful=self.colorful,
        )
        if isinstance(fault, ParseWarning):
            return trigger(fault)
        self._faults.append(fault)

    def _finalize(self):
        """
        Raise every collected fault as one ParseExit (or print and exit in shell mode).
        """
        if not self._faults:
            return
        if self.shell:
            self.help()
        trigger(
            ParseExit(self._faults),
            parser=self,
            shell=self.shell,
            fancy=self.fancy,
            colorful=self.colorful,
        )

    # --- resolution ---------------------------------------------------------

    def parse(self, tokens=Unset, /):
        """
        Resolve a token list against the attached declarations.

        Parameters
        - tokens:
          • Unset: read sys.argv[1:] (and take the program name from sys.argv[0]).
          • str: shell-like string, split with shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is (empty strings are values).

        Returns
        - tuple[str, ...]: the leftover tokens (empty unless Config.collect_leftovers).

        Raises
        - ParseExit: group of every fault found (not raised in shell mode, which exits).
        - TypeError: when tokens is not a string or an iterable of strings.
        - RuntimeError: when the parser already parsed once.
        """
        if self._parsed:
            raise RuntimeError("parser instances are single-use; build a new parser to parse again")

        if tokens is Unset:
            if self._prog is Unset and sys.argv and sys.argv[0]:
                self._prog = os.path.basename(sys.argv[0])
            tokens = sys.argv[1:]
        elif isinstance(tokens, str):
            tokens = shlex.split(tokens)
        elif isinstance(tokens, Iterable):
            tokens = list(tokens)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")

        self._parsed = True
        self._parseargs(deque(tokens))
        return self.leftovers

    def _parseargs(self, tokens):
        self._tokens = tokens
        self._index = 0

        while self._tokens:
            token = self._tokens.popleft()
            self._index += 1

            if (adapter := self._find(token)) is not None:
                self._resolve_key(adapter, token)
                continue

            if self._resolve_key_value(token):
                continue

            if self._resolve_pack(token):
                continue

            if self._position < len(self._arguments):
                self._resolve_argument(token)
                continue

            if self.config.collect_leftovers:
                self._leftovers.append(token)
                continue

            self.trigger(UnexpectedArgumentError(
                "unexpected argument %r at %s position" % (token, ordinal(self._index)),
                title="unexpected argument",
                code=FaultCode.UNEXPECTED_ARGUMENT,
                token=token,
                index=self._index,
                hint="remove this extra value or check the expected usage",
            ))

        self._sweep()
        self._finalize()

    def _find(self, key):
        # newest registration first: later declarations shadow earlier ones
        for adapter in reversed(self._options):
            if adapter.has_key(key):
                return adapter
        return None

    def _resolve_key(self, adapter, key):
        """
        Exact key match: raise a flag or feed the following token to an option.
        """
        if not adapter.has_argument():
            adapter.raise_()
            return

        start = self._index
        if not self._tokens:
            self._missing(adapter, key, start)
            return

        self._index += 1
        self._convert(adapter, key, self._tokens.popleft(), start)

    def _resolve_key_value(self, token):
        """
        Key-value syntax. Returns False when the token is not a known key-value pair.
        """
        if not self.config.allow_key_value_syntax:
            return False

        key, separator, value = token.partition(self.config.key_value_separator)
        if not separator or (adapter := self._find(key)) is None:
            return False

        if not adapter.has_argument():
            self.trigger(UnexpectedValueGivenError(
                "%s %r at %s position cannot take a value" % (
                    type(adapter.declaration).__typename__, key, ordinal(self._index)
                ),
                title="unexpected value",
                code=FaultCode.UNEXPECTED_VALUE_GIVEN,
                key=key,
                value=value,
                index=self._index,
                hint="remove everything from %r (for example: %s)" % (separator, key),
            ))
            return True

        self._convert(adapter, key, value, self._index)
        return True

    def _resolve_pack(self, token):
        """
        Packed short keys. Returns False when the token is not a pack.

        Every key is resolved before anything is raised, so a pack holding an
        unknown character has no side effect.
        """
        prefix = self.config.pack_prefix
        if not self.config.allow_argument_packing or not token.startswith(prefix):
            return False

        body = token[len(prefix):]
        if not body or prefix.startswith(body[0]):
            return False

        pack = []
        remainder = ""
        for offset, character in enumerate(body):
            adapter = self._find(key := prefix + character)
            pack.append((key, adapter))
            if adapter is not None and adapter.has_argument():
                remainder = body[offset + 1:]
                break

        unknown = [key for key, adapter in pack if adapter is None]
        if len(unknown) == len(pack):
            return False

        if unknown:
            self.trigger(UnknownPackedKeyError(
                "unknown key %r packed in %r at %s position" % (unknown[0], token, ordinal(self._index)),
                title="unknown packed key",
                code=FaultCode.UNKNOWN_PACKED_KEY,
                token=token,
                key=unknown[0],
                index=self._index,
                hint="split the pack or remove %r" % unknown[0][len(prefix):],
            ))
            return True

        start = self._index
        for key, adapter in pack:
            if not adapter.has_argument():
                adapter.raise_()
            elif remainder:
                self._convert(adapter, key, remainder, start)
            elif self._tokens:
                self._index += 1
                self._convert(adapter, key, self._tokens.popleft(), start)
            else:
                self._missing(adapter, key, start)
        return True

    def _resolve_argument(self, token):
        position = self._position
        adapter = self._arguments[position]
        if not adapter.multi():
            self._position += 1
        self._convert(adapter, self._label(adapter, position), token, self._index)

    def _missing(self, adapter, key, index):
        self.trigger(MissingValueForOptionError(
            "%s %r at %s position requires a value" % (type(adapter.declaration).__typename__, key, ordinal(index)),
            title="missing option value",
            code=FaultCode.MISSING_VALUE_FOR_OPTION,
            key=key,
            index=index,
            hint="provide a value (for example: %s <value>)" % key,
        ))

    def _convert(self, adapter, key, text, index):
        """
        Hand a raw token to an adapter; a conversion failure stops the parse.
        """
        try:
            adapter.add_value(text)
        except Exception as exception:
            target = getattr(adapter.declaration.type, "__name__", repr(adapter.declaration.type))
            if isinstance(adapter, KeyAdapter):
                message = "value %r for %s %r from %s position cannot be converted to %s" % (
                    text, type(adapter.declaration).__typename__, key, ordinal(index), target
                )
            else:
                message = "positional value %r at %s position cannot be converted to %s" % (
                    text, ordinal(index), target
                )
            self.trigger(ConversionFailureError(
                message,
                title="conversion error",
                code=FaultCode.CONVERSION_FAILURE,
                key=key,
                text=text,
                target=target,
                index=index,
                exception=exception,
                hint="use a valid %s for %s" % (target, key),
            ))
            self._finalize()

    def _sweep(self):
        """
        Report every required declaration that received nothing.
        """
        for adapter in self._options:
            if adapter.is_required() and not adapter.satisfied():
                key = adapter.first_key()
                self.trigger(RequiredValueNotGivenError(
                    "required %s %r was not given" % (type(adapter.declaration).__typename__, key),
                    title="required value not given",
                    code=FaultCode.REQUIRED_VALUE_NOT_GIVEN,
                    key=key,
                    hint="add %s <value>" % key,
                ))

        for position, adapter in enumerate(self._arguments):
            if adapter.is_required() and not adapter.satisfied():
                key = self._label(adapter, position)
                self.trigger(RequiredValueNotGivenError(
                    "required positional argument %r was not given" % key,
                    title="required value not given",
                    code=FaultCode.REQUIRED_VALUE_NOT_GIVEN,
                    key=key,
                    hint="add the %s positional argument" % ordinal(position + 1),
                ))

    @staticmethod
    def _label(adapter, position):
        return adapter.metavar() or "%s positional argument" % ordinal(position + 1)

    # --- rendering ----------------------------------------------------------

    def help(self, file=Unset, /):
        """
        Render help: a usage line, then the options and positional arguments lists.

        Output goes to `file` when given, otherwise to stdout (stderr once faults
        were collected). Required entries are shown bare, optional ones bracketed.

        Palette keys
        - usage-label, program-name, group-label, key, metavar, description
        Define a mapping named __styles__ in __main__ to override any entry; styles
        only apply when colorful=True.
        """
        console = Console(
            file=coalesce(file),
            stderr=file is Unset and bool(self._faults),
            highlight=False,
        )
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "group-label": "bold #FFFFFF",
            "key": "bold #00E6FF",
            "metavar": "bold #FFD600",
            "description": "#9CA3AF",
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self.colorful else ""

        def metavar(adapter):
            if label := adapter.metavar():
                return label
            if isinstance(adapter, KeyAdapter):
                longest = max(adapter.keys(), key=len)
                return longest.lstrip(self.config.pack_prefix[0]).upper().replace("-", "_") or "VALUE"
            return "ARG"

        def repeat(adapter):
            return " ..." if isinstance(adapter.declaration, MultiFlag | MultiOption | MultiValue) else ""

        def usage(adapter):
            if isinstance(adapter, KeyAdapter):
                segment = Text(adapter.first_key(), styler("key"))
                if adapter.has_argument():
                    segment.append(" ").append(metavar(adapter), styler("metavar"))
            else:
                segment = Text(metavar(adapter), styler("metavar"))
            segment.append(repeat(adapter))
            if adapter.is_required():
                return segment
            return Text.assemble("[", segment, "]")

        renders = []

        line = Text()
        line.append("usage", styler("usage-label")).append(": ")
        line.append(self.prog, styler("program-name"))
        for adapter in [*self._options, *self._arguments]:
            line.append(" ").append(usage(adapter))
        renders.append(line)

        def section(title, rows):
            padding = 2
            indent = min(max((len(name) for name, _ in rows), default=0) + padding * 2, 30)
            body = Text()
            body.append("\n").append(title, styler("group-label")).append(":")
            for name, descr in rows:
                body.append("\n").append(" " * padding).append(name)
                if not descr:
                    continue
                if len(name) + padding * 2 > indent:
                    body.append("\n").append(" " * indent)
                else:
                    body.append(" " * (indent - len(name) - padding))
                body.append(descr, styler("description"))
            return body

        if self._options:
            rows = []
            for adapter in self._options:
                name = Text(adapter.key_string(), styler("key"))
                if adapter.has_argument():
                    name.append(" ").append(metavar(adapter), styler("metavar"))
                rows.append((name, adapter.help()))
            renders.append(section("options", rows))

        if self._arguments:
            rows = []
            for adapter in self._arguments:
                name = Text(metavar(adapter), styler("metavar")).append(repeat(adapter))
                rows.append((name, adapter.help()))
            renders.append(section("positional arguments", rows))

        renderable = Group(*renders)
        if self.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[ ", f"{self.prog} help".upper(), " ]", style=styler("panel-title")),
                title_align="left",
            )

        console.print(renderable)


@functools.cache
def default_parser():
    """
    Return the process-wide convenience parser, created on first use.

    The core never relies on it: prefer an explicit Parser in libraries. It
    shares the single-use rule of every parser.
    """
    return Parser()


def attach(declaration, /):
    return default_parser().attach(declaration)


def flag(*keys):
    return default_parser().flag(*keys)


def multi_flag(*keys):
    return default_parser().multi_flag(*keys)


def option(*keys, type=str):
    return default_parser().option(*keys, type=type)


def multi_option(*keys, type=str):
    return default_parser().multi_option(*keys, type=type)


def argument(metavar=Unset, /, type=str):
    return default_parser().argument(metavar, type=type)


def multi_argument(metavar=Unset, /, type=str):
    return default_parser().multi_argument(metavar, type=type)


def parse(tokens=Unset, /):
    return default_parser().parse(tokens)


def help(file=Unset, /):
    """
    Render the help of the default parser (kept out of __all__ so star-imports
    do not shadow the builtin).
    """
    return default_parser().help(file)


__all__ = (
    # Public API surface for consumers of argot.parser.
    # These names are re-exported from the package __init__.
    "Config",
    "Parser",
    "default_parser",
    "attach",
    "flag",
    "multi_flag",
    "option",
    "multi_option",
    "argument",
    "multi_argument",
    "parse",
)
