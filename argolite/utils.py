"""
Argolite utilities (internal helpers, carefully exposed)

Scope
- Core building blocks shared by the declaration, model, binder and help layers.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the higher-level arguments/commands layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks and help.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with fresh copies
    for containers to discourage accidental mutation of public API state.

- strip_dashes(name) / preferred_name(names)
  • Option name helpers: the bare (dash-stripped) form used by agent mode and ambiguity
    checks, and the canonical name used in error messages.

- parse_range(text)
  • Parse index/arity ranges such as "0", "1..3", "2..*" into (start, end) pairs.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> strip_dashes("--verbose")
    'verbose'
    >>> parse_range("1..*")
    (1, None)
    >>> preferred_name(("-n", "--name"))
    '--name'
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value, but the API needs a way
    to distinguish “not provided” from “provided as None”. A single instance,
    Unset, is exposed for use as the default in internal parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Resolve an internal Unset sentinel to a concrete default.

    This returns the given object unless it is the Unset sentinel, in which case
    the provided default is returned. Falsey values like None, 0, "", or [] are
    preserved as-is; they are not treated as “unset”.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None   # None is preserved, not replaced
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> (decorator)

    Notes
    - Only metadata changes; behavior is untouched.
    - Some built-in or C-implemented callables are not updatable and will
      raise TypeError.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                """Decorator wrapper that applies the new name to the target callable."""
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values, processing nested items.

    Behavior
    - tuple: returns a new tuple (tuples keep their type, names stay ordered).
    - other Sequence (non-string): returns a new list with each element processed.
    - Mapping: returns a new dict with processed values.
    - Set: returns a new frozenset with each element processed.
    - Anything else: returned as-is.
    """
    if isinstance(object, tuple):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads from an attribute named "_{name}" on the
    instance and returns a fresh copy for container types, so callers cannot
    mutate declaration state through the public API.

    Example
    - Given self._names, declare names = mirror("names") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def strip_dashes(name, /):
    """
    Return an option name without its leading one or two dashes.

    Only the first two dashes are removed, so "---x" becomes "-x" just like
    the reference parser does. Non-dashed input is returned unchanged.
    """
    if name.startswith("--"):
        return name[2:]
    if name.startswith("-"):
        return name[1:]
    return name


def preferred_name(names, /):
    """
    Canonical option name used in messages: the first "--long" name, else the first name.
    """
    for name in names:
        if name.startswith("--"):
            return name
    return names[0] if names else "<option>"


def is_short_name(name, /):
    """True for single-letter names such as "-v"."""
    return len(name) == 2 and name[0] == "-" and name[1].isalpha()


def parse_range(text, /):
    """
    Parse an index or arity range.

    Accepted forms
    - "N"      -> (N, N)
    - "N..M"   -> (N, M)
    - "N..*"   -> (N, None)   # unbounded

    Returns None for an empty string (meaning “not specified”).

    Raises
    - ValueError: when the text is not a valid range or the bounds are reversed.
    """
    if not isinstance(text, str):
        raise TypeError("parse_range() argument must be a string")
    if not (text := text.strip()):
        return None
    if not (match := re.fullmatch(r"(\d+)(?:\.\.(\d+|\*))?", text)):
        raise ValueError(f"invalid range {text!r}")
    start = int(match.group(1))
    match match.group(2):
        case None:
            end = start
        case "*":
            end = None
        case bound:
            end = int(bound)
    if end is not None and end < start:
        raise ValueError(f"invalid range {text!r}: end is lower than start")
    return start, end


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "strip_dashes",
    "preferred_name",
    "is_short_name",
    "parse_range",
)
