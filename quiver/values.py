"""
Quiver option values: typed, parseable argument slots.

Overview
- OptionValue[_T]: the contract every slot honours. A slot is named, carries
  a usage token and a description, knows whether it is required, and consumes
  one or more tokens from the argument stream through parse().

- Concrete kinds (a closed set; each is sealed against subclassing)
  • Flag: presence-only boolean, e.g. --verbose.
  • Value[_T]: scalar converted by a callable 'type' (str, int, float, Path, ...).
  • Choice: one of a fixed set of strings, or a member of an enum.Enum.
  • Listing[_T]: comma-separated repetition of 'type' inside one token.

Parsing contract
- parse(tokens, position, named=False) -> position
  • named=False: tokens[position] is the first value token (a positional slot,
    or the synthetic one-token sequence of the "--key=value" form).
  • named=True: tokens[position] is the option's own key; the slot consumes
    whatever follows it (nothing for a Flag, one token for the others).
  • on success, is_set becomes True and the returned position is strictly
    greater than the given one.
  • on failure, InvalidArgumentError naming the slot is raised and the slot
    stays untouched.

Metadata (sanitized on construction)
- name: non-empty string (also the label used by MissingArgumentError for
  positional slots).
- usage: Unset | str, display token; each kind derives a default.
- descr: Unset | str | Text, short help; None when Unset.
- required: bool; only consulted for named options during validation.
- default: value reported before parse() succeeds.

Quick example:
    >>> threads = Value("threads", type=int, default=1)
    >>> threads.parse(["--threads", "4"], 0, named=True)
    2
    >>> threads.value
    4
"""
import builtins
import enum
import functools
import operator
import re
from collections.abc import Iterable, Set

from rich.text import Text

from .faults import InvalidArgumentError
from .utils import *


class ValueType(type):
    """
    Metaclass that turns slot classes into introspectable, optionally sealed kinds.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    - Seal concrete kinds (class keyword sealed=True) against subclassing to
      keep the set of value kinds closed.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
            yield "is_set", self.is_set
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the metadata shared by every kind.

    - name: required non-empty string after trimming.
    - usage: Unset or non-empty string after trimming (Unset is resolved later
      by the concrete kind).
    - descr: Unset, Text, or non-empty string after trimming; Unset becomes None.
    - required: coerced to bool.

    Mutates the metadata dict in place.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if not isinstance(usage := metadata["usage"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'usage' must be a string")
    elif isinstance(usage, str) and not (usage := usage.strip()):
        raise ValueError(f"{cls.__typename__} 'usage' cannot be empty")
    metadata["usage"] = usage

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    metadata["required"] = bool(metadata["required"])


def _metavar(name, /):
    # "output-dir" -> "OUTPUT_DIR"
    return re.sub(r"[\W_]+", "_", name).strip("_").upper() or "VALUE"


class OptionValue[_T](metaclass=ValueType):
    """
    A typed, named, describable argument slot.

    Lifecycle
    - Constructed once while the owning Command is built.
    - Mutated by a single successful parse() per run (reset() clears it).

    Subclass contract
    - _convert(token) -> _T turns one raw token into the slot's value and
      raises InvalidArgumentError when it cannot.
    - Kinds with a different token shape (Flag) override parse() itself.
    """

    __introspectable__ = (
        "name",
        "usage",
        "descr",
        "required",
        "default",
    )

    def __init__(self, name, /, usage=Unset, descr=Unset, *, default=None, required=False):
        metadata = {
            "name": name,
            "usage": usage,
            "descr": descr,
            "required": required,
            "default": default,
        }
        _sanitize_metadata(type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._usage = coalesce(self._usage, self._default_usage())
        self._value = self._default
        self._set = False

    def _default_usage(self):
        return _metavar(self._name)

    def _convert(self, token):
        raise NotImplementedError

    @property
    def value(self):
        """
        The parsed value, or the default while the slot is unset.
        """
        return self._value

    @property
    def is_set(self):
        return self._set

    def parse(self, tokens, position=0, /, *, named=False):
        """
        Consume this slot's value from tokens and return the next position.

        Parameters
        - tokens: Sequence[str]
        - position: int, index of the first token that belongs to this slot.
        - named: bool (keyword-only)
          True when tokens[position] is the option key itself, in which case
          the value is expected at position + 1.

        Raises
        - InvalidArgumentError when the value token is absent, is a reserved
          token (SEPARATOR or HELP after a key), or cannot be converted.
        """
        if named:
            position += 1
        try:
            token = tokens[position]
        except IndexError:
            raise InvalidArgumentError(self.name, "expects a value") from None
        # reserved tokens after a key are never taken as its value
        if named and token in (SEPARATOR, HELP):
            raise InvalidArgumentError(self.name, "expects a value")
        self._value = self._convert(token)
        self._set = True
        return position + 1

    def reset(self):
        """
        Restore the unset state so the slot can take part in a new run.
        """
        self._value = self._default
        self._set = False


class Flag(OptionValue[bool], sealed=True):
    """
    Presence-only boolean switch.

    - As a named option the key alone sets the flag (no value token).
    - The "--key=value" form and positional use accept boolean words:
      true/false, yes/no, on/off, 1/0 (case-insensitive).
    - Never required; its usage token is empty.
    """

    __truthy__ = frozenset({"true", "yes", "on", "1"})
    __falsy__ = frozenset({"false", "no", "off", "0"})

    def __init__(self, name, /, descr=Unset):
        super().__init__(name, descr=descr, default=False)
        self._usage = ""

    def _convert(self, token):
        if (lowered := token.strip().lower()) in self.__truthy__:
            return True
        if lowered in self.__falsy__:
            return False
        raise InvalidArgumentError(self.name, "expected a boolean, got %r" % token)

    def parse(self, tokens, position=0, /, *, named=False):
        if not named:
            return super().parse(tokens, position)
        self._value = True
        self._set = True
        return position + 1


class Value[_T](OptionValue[_T], sealed=True):
    """
    Scalar slot converted by a callable.

    Parameters
    - type: Callable[[str], _T], converter applied to the raw token. Its
      ValueError/TypeError is reported as InvalidArgumentError.
    - usage defaults to the upper-cased name (e.g. "FILE").
    """

    __introspectable__ = OptionValue.__introspectable__ + ("type",)

    def __init__(self, name, /, usage=Unset, descr=Unset, *, type=str, default=None, required=False):
        if not callable(type):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must be callable")
        self._type = type
        super().__init__(name, usage, descr, default=default, required=required)

    def _convert(self, token):
        try:
            return self._type(token)
        except (ValueError, TypeError):
            kind = getattr(self._type, "__name__", "value")
            raise InvalidArgumentError(self.name, "expected %s, got %r" % (kind, token)) from None


class Choice(OptionValue[str | enum.Enum], sealed=True):
    """
    Enumerated slot.

    Parameters
    - choices: Iterable[str] (duplicates rejected unless a Set) or an enum.Enum
      subclass. Enum members are matched by name, case-insensitively, and the
      member itself becomes the value.
    - usage defaults to "{a|b|c}".
    """

    __introspectable__ = OptionValue.__introspectable__ + ("choices",)

    def __init__(self, name, choices, /, usage=Unset, descr=Unset, *, default=None, required=False):
        if isinstance(choices, type) and issubclass(choices, enum.Enum):
            self._enum = choices
            choices = tuple(member.name.lower() for member in choices)
        elif isinstance(choices, Iterable) and not isinstance(choices, str):
            self._enum = None
            if not isinstance(choices, Set):
                sanitized = []
                for choice in choices:
                    if choice in sanitized:
                        raise ValueError(f"{type(self).__typename__} 'choices' cannot contain duplicates")
                    sanitized.append(choice)
                choices = tuple(sanitized)
            else:
                # Sets carry no order; sort for a stable usage token.
                choices = tuple(sorted(choices))
        else:
            raise TypeError(f"{type(self).__typename__} 'choices' must be iterable or an enum")

        if not choices:
            raise ValueError(f"{type(self).__typename__} 'choices' cannot be empty")
        if not all(isinstance(choice, str) for choice in choices):
            raise TypeError(f"{type(self).__typename__} 'choices' must be strings")
        self._choices = choices
        super().__init__(name, usage, descr, default=default, required=required)

    def _default_usage(self):
        return "{%s}" % "|".join(self._choices)

    def _convert(self, token):
        if self._enum is not None:
            for member in self._enum:
                if member.name.lower() == token.lower():
                    return member
        elif token in self._choices:
            return token
        raise InvalidArgumentError(self.name, "expected one of %s, got %r" % (", ".join(self._choices), token))


class Listing[_T](OptionValue[list[_T]], sealed=True):
    """
    Repeated slot: one token holding comma-separated elements.

    - Each element is converted by 'type'; empty elements are rejected.
    - The value is a list (a fresh copy on every read).
    - usage defaults to "NAME[,NAME...]".
    """

    __introspectable__ = OptionValue.__introspectable__ + ("type",)

    def __init__(self, name, /, usage=Unset, descr=Unset, *, type=str, default=(), required=False):
        if not callable(type):
            raise TypeError(f"{builtins.type(self).__typename__} 'type' must be callable")
        self._type = type
        super().__init__(name, usage, descr, default=list(default), required=required)

    def _default_usage(self):
        metavar = _metavar(self._name)
        return f"{metavar}[,{metavar}...]"

    @property
    def value(self):
        return list(self._value)

    def _convert(self, token):
        elements = []
        for element in token.split(","):
            if not (element := element.strip()):
                raise InvalidArgumentError(self.name, "empty element in %r" % token)
            try:
                elements.append(self._type(element))
            except (ValueError, TypeError):
                kind = getattr(self._type, "__name__", "value")
                raise InvalidArgumentError(self.name, "expected %s, got %r" % (kind, element)) from None
        return elements

    def reset(self):
        super().reset()
        self._value = list(self._default)


__all__ = (
    # Contract
    "OptionValue",

    # Concrete kinds
    "Flag",
    "Value",
    "Choice",
    "Listing",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ValueType
