"""
Argot adapters: one uniform interface over heterogeneously-typed declarations.

Why adapters
- The resolution loop walks the token stream without knowing the value type of
  any declaration. Each declaration variant is wrapped by exactly one adapter
  that hides its payload type behind a small capability set.

Interfaces
- KeyAdapter (keyed declarations: Flag, MultiFlag, Option, MultiOption)
  • has_argument(): whether a value must follow the key.
  • is_required(), keys(), metavar(), help()
  • raise_(): presence signal for flags (raise is a keyword, hence the underscore).
  • add_value(text): convert and store a raw token for options.
  • first_key(), key_string(), has_key(token): lookup and rendering helpers.
- ArgumentAdapter (positional declarations: Value, MultiValue)
  • is_required(), metavar(), help(), multi(), add_value(text)

Both expose satisfied(): whether the declaration received a value (or was raised),
used for the requiredness sweep that follows the token loop.

Storage
- An adapter keeps a shallow copy of the declaration handle it wraps. The copy
  shares the caller's storage, so add_value()/raise_() are the only channel by
  which parse results reach the caller.

Conversion
- add_value() converts through argot.utils.convert(); converter exceptions
  propagate unchanged so the parser can attach positional context.
"""
import copy
from abc import ABC, abstractmethod

from .arguments import Flag, MultiFlag, Option, MultiOption, Value, MultiValue
from .utils import convert


class KeyAdapter(ABC):
    """
    Type-erased view of a keyed declaration.
    """

    def __init__(self, declaration, /):
        if not declaration.keys():
            raise TypeError(f"{type(declaration).__typename__} must specify at least one key before attachment")
        self._declaration = copy.copy(declaration)

    @property
    def declaration(self):
        return self._declaration

    @abstractmethod
    def has_argument(self): ...

    @abstractmethod
    def is_required(self): ...

    def keys(self):
        return self._declaration.keys()

    def metavar(self):
        return None

    def help(self):
        return self._declaration.help()

    def satisfied(self):
        return self._declaration.given

    def raise_(self):
        raise TypeError(f"{type(self._declaration).__typename__} {self.first_key()!r} cannot be raised, it takes a value")

    def add_value(self, text, /):
        raise TypeError(f"{type(self._declaration).__typename__} {self.first_key()!r} does not take a value")

    def first_key(self):
        return next(iter(self.keys()), "<no key>")

    def key_string(self, separator=", ", /):
        return separator.join(self.keys())

    def has_key(self, token, /):
        return token in self.keys()


class ArgumentAdapter(ABC):
    """
    Type-erased view of a positional declaration.
    """

    def __init__(self, declaration, /):
        self._declaration = copy.copy(declaration)

    @property
    def declaration(self):
        return self._declaration

    def is_required(self):
        return self._declaration.is_required()

    def metavar(self):
        return self._declaration.metavar()

    def help(self):
        return self._declaration.help()

    def satisfied(self):
        return self._declaration.given

    @abstractmethod
    def multi(self): ...

    @abstractmethod
    def add_value(self, text, /): ...


class FlagAdapter(KeyAdapter):
    def has_argument(self):
        return False

    def is_required(self):
        return False

    def raise_(self):
        self._declaration._raise()


class MultiFlagAdapter(KeyAdapter):
    def has_argument(self):
        return False

    def is_required(self):
        return False

    def raise_(self):
        self._declaration._raise()


class OptionAdapter(KeyAdapter):
    def has_argument(self):
        return True

    def is_required(self):
        return self._declaration.is_required()

    def metavar(self):
        return self._declaration.metavar()

    def add_value(self, text, /):
        self._declaration._store(convert(self._declaration.type, text))


class MultiOptionAdapter(KeyAdapter):
    def has_argument(self):
        return True

    def is_required(self):
        return self._declaration.is_required()

    def metavar(self):
        return self._declaration.metavar()

    def add_value(self, text, /):
        self._declaration._push(convert(self._declaration.type, text))


class ValueAdapter(ArgumentAdapter):
    def multi(self):
        return False

    def add_value(self, text, /):
        self._declaration._store(convert(self._declaration.type, text))


class MultiValueAdapter(ArgumentAdapter):
    def multi(self):
        return True

    def add_value(self, text, /):
        self._declaration._push(convert(self._declaration.type, text))


# Exact-type dispatch: each declaration variant maps to exactly one adapter.
_adapters = {
    Flag: FlagAdapter,
    MultiFlag: MultiFlagAdapter,
    Option: OptionAdapter,
    MultiOption: MultiOptionAdapter,
    Value: ValueAdapter,
    MultiValue: MultiValueAdapter,
}


def adapt(declaration, /):
    """
    Wrap a declaration in its adapter.

    Returns
    - KeyAdapter for Flag, MultiFlag, Option and MultiOption.
    - ArgumentAdapter for Value and MultiValue.

    Raises
    - TypeError: when the object is not a declaration, or a keyed declaration
      has no key yet.
    """
    for kind in type(declaration).__mro__:
        if (adapter := _adapters.get(kind)) is not None:
            return adapter(declaration)
    raise TypeError(f"adapt() argument must be a declaration, not {type(declaration).__name__!r}")


__all__ = (
    "KeyAdapter",
    "ArgumentAdapter",
    "FlagAdapter",
    "MultiFlagAdapter",
    "OptionAdapter",
    "MultiOptionAdapter",
    "ValueAdapter",
    "MultiValueAdapter",
    "adapt",
)
