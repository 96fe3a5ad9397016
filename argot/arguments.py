r"""
Argot typed declarations.

Overview
- Keyed declarations (referenced by one or more keys such as -n/--number)
  • Flag: presence-only switch, reads as a bool.
  • MultiFlag: presence-only switch whose occurrences are counted (-vvv).
  • Option[_T]: takes exactly one value, converted to _T.
  • MultiOption[_T]: takes a value each time it appears, accumulated in order.
- Positional declarations (identified by position)
  • Value[_T]: takes exactly one positional token.
  • MultiValue[_T]: greedily takes every remaining positional token.

Handles and shared storage
- A declaration is a lightweight handle around a private storage object. Every
  shallow copy of a handle (copy.copy, or the copy an adapter keeps once the
  declaration is attached to a parser) shares that storage, so values stored by
  the parser are visible through the handle the caller kept. copy.deepcopy
  detaches a handle with its own storage.

Builder style
- Mutators return the same handle so calls chain:
    >>> number = Option(type=int).keys("-n", "--number").default(3).help("repeat count")
- keys(), help() and metavar() double as getters when called without arguments:
    >>> number.keys()
    ('-n', '--number')

Metadata (sanitized on assignment)
- keys: non-empty strings without whitespace, no duplicates.
- help/metavar: non-empty strings after trimming.
- type: any callable converting one raw token (see argot.utils.convert).

Public API
- Classes: Flag, MultiFlag, Option, MultiOption, Value, MultiValue
"""
import builtins
import functools
import operator
import re

from .utils import *
from .utils import _immortalize


class DeclarationType(type):
    """
    Metaclass giving every declaration a typename and stable representations.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and help output ("multi-option", "value", ...).
    - __introspectable__ lists the storage fields shown by __repr__/__rich_repr__.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {"__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower()},
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(keys=('-n', '--number'), help='repeat count', required=False, value=3)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers such as rich.
            """
            for name in type(self).__introspectable__:
                yield name, _immortalize(getattr(self._data, name))
        self.__rich_repr__ = __rich_repr__

        return self


class _Storage:
    """
    Mutable state shared by every shallow copy of a declaration handle.
    """
    __slots__ = ("keys", "help", "metavar", "required", "type", "value", "values", "count", "given")

    def __init__(self, type=str):
        self.keys = ()
        self.help = None
        self.metavar = None
        self.required = False
        self.type = type
        self.value = None
        self.values = []
        self.count = 0
        self.given = False


def _sanitize_text(cls, field, text, /):
    """
    Internal: validate a display string (help, metavar).

    Raises
    - TypeError: if text is not a string.
    - ValueError: if text is empty after trimming.
    """
    if not isinstance(text, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not (text := text.strip()):
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    return text


def _sanitize_keys(cls, keys, /):
    """
    Internal: validate and normalize the keys of a keyed declaration.

    Keys keep their declaration order; the first one is the canonical key used
    in usage lines and error messages.

    Raises
    - TypeError: when no key is given or a key is not a string.
    - ValueError: when a key is empty, contains whitespace, or is duplicated.
    """
    if not keys:
        raise TypeError(f"{cls.__typename__} must specify at least one key")

    sanitized = []
    for key in keys:
        if not isinstance(key, str):
            raise TypeError(f"{cls.__typename__} keys must be strings")
        elif not key:
            raise ValueError(f"{cls.__typename__} keys cannot be empty-strings")
        elif any(character.isspace() for character in key):
            raise ValueError(f"{cls.__typename__} keys cannot contain whitespace")
        elif key in sanitized:
            raise ValueError(f"{cls.__typename__} keys cannot contain duplicates")
        sanitized.append(key)
    return tuple(sanitized)


def _accessor(field, sanitize, /):
    """
    Internal: build a getter/setter method for a text field of the storage.

    - Called without arguments, the method returns the current value.
    - Called with one argument, it sanitizes and stores it, then returns the
      handle so calls can chain.
    """
    @rename(field)
    def accessor(self, *parameters):
        match len(parameters):
            case 0:
                return getattr(self._data, field)
            case 1:
                setattr(self._data, field, sanitize(type(self), field, *parameters))
                return self
            case _:
                raise TypeError(f"{field}() takes at most 1 argument but {len(parameters)} were given")
    return accessor


class Declaration(metaclass=DeclarationType):
    """
    Common base of the six declaration variants.
    """

    def __init__(self, type=str):
        if not callable(type):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must be callable")
        self._data = _Storage(type)

    help = _accessor("help", _sanitize_text)

    @property
    def given(self):
        """
        True once the parser stored a value into (or raised) this declaration.
        """
        return self._data.given


class Keyed:
    """
    Mixin for declarations referenced by keys.
    """

    def keys(self, *keys):
        if not keys:
            return self._data.keys
        self._data.keys = _sanitize_keys(type(self), keys)
        return self


class Parametric:
    """
    Mixin for value-bearing declarations (options and positionals).
    """

    metavar = _accessor("metavar", _sanitize_text)

    @property
    def type(self):
        return self._data.type

    def mark_required(self):
        self._data.required = True
        return self

    def is_required(self):
        return self._data.required


class Single:
    """
    Mixin for declarations holding one value.
    """

    @property
    def value(self):
        return self._data.value

    def default(self, value, /):
        self._data.value = value
        return self

    def _store(self, value):
        self._data.value = value
        self._data.given = True


class Multiple:
    """
    Mixin for declarations accumulating values in encounter order.

    The accumulated sequence is exposed read-only: values, iteration, len() and
    indexing. Defaults are replaced (not extended) by the first parsed value.
    """

    @property
    def values(self):
        return tuple(self._data.values)

    def default(self, values, /):
        if isinstance(values, str | bytes):
            raise TypeError(f"{type(self).__typename__} default must be an iterable of values, not a string")
        self._data.values = list(values)
        return self

    def _push(self, value):
        if not self._data.given:
            self._data.values = []
        self._data.values.append(value)
        self._data.given = True

    def __iter__(self):
        return iter(tuple(self._data.values))

    def __len__(self):
        return len(self._data.values)

    def __getitem__(self, index):
        return tuple(self._data.values)[index]


class Flag(Keyed, Declaration):
    """
    Presence-only switch (e.g., -v/--verbose).

    Reads as False until the parser raises it. A flag is never required: its
    absence simply means False.
    """
    __introspectable__ = ("keys", "help", "value")

    def __init__(self, *keys):
        super().__init__(bool)
        self._data.value = False
        if keys:
            self.keys(*keys)

    @property
    def value(self):
        return self._data.value

    def __bool__(self):
        return self._data.value

    def _raise(self):
        self._data.value = True
        self._data.given = True


class MultiFlag(Keyed, Declaration):
    """
    Presence-only switch whose occurrences are counted (e.g., -v -v, -vv).
    """
    __introspectable__ = ("keys", "help", "count")

    def __init__(self, *keys):
        super().__init__(int)
        if keys:
            self.keys(*keys)

    @property
    def count(self):
        return self._data.count

    def __int__(self):
        return self._data.count

    def __index__(self):
        return self._data.count

    def __bool__(self):
        return self._data.count > 0

    def _raise(self):
        self._data.count += 1
        self._data.given = True


class Option[_T](Single, Parametric, Keyed, Declaration):
    """
    Keyed argument taking exactly one value (e.g., -n 5, --number=5).

    The last occurrence wins when the key is repeated. Until a value is parsed,
    `value` holds the default (None unless default() was called).
    """
    __introspectable__ = ("keys", "help", "metavar", "required", "value")

    def __init__(self, *keys, type=str):
        super().__init__(type)
        if keys:
            self.keys(*keys)


class MultiOption[_T](Multiple, Parametric, Keyed, Declaration):
    """
    Keyed argument accumulating one value per occurrence (e.g., -I a -I b).
    """
    __introspectable__ = ("keys", "help", "metavar", "required", "values")

    def __init__(self, *keys, type=str):
        super().__init__(type)
        if keys:
            self.keys(*keys)


class Value[_T](Single, Parametric, Declaration):
    """
    Positional argument taking exactly one token.
    """
    __introspectable__ = ("help", "metavar", "required", "value")

    def __init__(self, metavar=Unset, /, type=str):
        super().__init__(type)
        if metavar is not Unset:
            self.metavar(metavar)


class MultiValue[_T](Multiple, Parametric, Declaration):
    """
    Positional argument greedily taking every remaining positional token.
    """
    __introspectable__ = ("help", "metavar", "required", "values")

    def __init__(self, metavar=Unset, /, type=str):
        super().__init__(type)
        if metavar is not Unset:
            self.metavar(metavar)


__all__ = (
    # Public API surface for consumers of argot.arguments.
    # These names are re-exported from the package __init__.
    "Declaration",
    "Flag",
    "MultiFlag",
    "Option",
    "MultiOption",
    "Value",
    "MultiValue",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del DeclarationType
