"""
Quiver utilities shared by the values, commands and faults layers.

Contents
- Unset (UnsetType): sentinel for "argument not given", distinct from None.
  Falsey, prints as "Unset", sealed, one instance per process. Usable in
  isinstance() unions such as ``str | Unset``.
- coalesce(object, default): resolve Unset, keep every other value (even None).
- rename(...): give generated functions a readable __name__/__qualname__.
- mirror(name): read-only property over "_{name}" returning container copies.
- palette(defaults, colorful): style lookup for rich output, overridable by
  the host through __main__.__styles__.
- SEPARATOR, EQUAL_SIGN, HELP: reserved tokens, shared by the slots and the
  command loop (re-exported from quiver.commands).

Examples
    >>> coalesce(Unset, "--")
    '--'
    >>> coalesce(None, "--") is None
    True
"""
import builtins
import functools
from collections import defaultdict
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel.

    Parameters defaulting to Unset let a slot or command tell an omitted
    description/usage apart from one explicitly given. Calling UnsetType()
    always returns the same object.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    # "str | Unset" builds the union "str | UnsetType" for isinstance checks.
    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError(f"type {UnsetType.__name__!r} is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return 'default' when 'object' is Unset, otherwise 'object' unchanged.
    """
    if object is Unset:
        return default
    return object


def rename(*parameters):
    """
    Name a callable in place, or build a decorator that does.

    - rename(function, "name") -> function
    - @rename("name")

    TypeError is raised for a non-callable target, a non-string name, a
    callable whose names are read-only, or any other number of arguments.
    """
    if len(parameters) == 1:
        name, = parameters
        if not isinstance(name, str):
            raise TypeError("@rename() argument must be a string")

        def decorator(function):
            return rename(function, name)

        return rename(decorator, "rename")
    if len(parameters) != 2:
        raise TypeError("rename() takes 1 or 2 arguments but %d were given" % len(parameters))
    function, name = parameters
    if not builtins.callable(function):
        raise TypeError("rename() target must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        function.__name__ = function.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError(f"cannot rename {function!r}") from None
    return function


def _snapshot(object):
    # deep copy of nested containers; leaves (and strings) are shared
    match object:
        case str():
            return object
        case Mapping():
            return {key: _snapshot(value) for key, value in object.items()}
        case Set():
            return {_snapshot(value) for value in object}
        case Sequence():
            return [_snapshot(value) for value in object]
        case _:
            return object


def mirror(name, /):
    """
    Read-only property exposing the private attribute "_{name}".

    Containers come back as fresh lists/dicts/sets, so callers can inspect a
    command's slots without changing its shape.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    attribute = "_" + name
    return property(rename(lambda self: _snapshot(getattr(self, attribute)), name))


def palette(defaults, colorful, /):
    """
    Build a style lookup for rich renderers.

    Parameters
    - defaults: Mapping[str, str], style key -> rich style string.
    - colorful: bool; when False every key resolves to "".

    The host application may define __styles__ in __main__ to override any
    entry. Unknown keys resolve to "".
    """
    styles = defaultdict(str, defaults)
    styles.update(getattr(__import__("__main__"), "__styles__", {}))

    @rename("styler")
    def styler(key):
        return styles[key] if colorful else ""

    return styler


Unset = UnsetType()
"""Sentinel for "not provided" where None is a meaningful value."""

SEPARATOR = "--"
"""Token that forcibly ends parsing at the current command level."""

EQUAL_SIGN = "="
"""Binds a named option's key to its value within a single token (--key=value)."""

HELP = "--help"
"""Help marker, checked before any other interpretation at every position."""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "palette",

    # Types
    "UnsetType",

    # Constants
    "Unset",
    "SEPARATOR",
    "EQUAL_SIGN",
    "HELP",
)
