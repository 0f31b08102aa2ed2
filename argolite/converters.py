"""
Argolite value conversion and verification.

Conversion order for a raw string bound to a declaration
1. custom method: the declaration's converter names a method on the holder
   (the command or mixin instance owning the field).
2. custom class: the declaration's converter is a callable or an object with
   a convert(text) method.
3. registry: converters passed to the run, then the global registry filled by
   register(type, converter).
4. built-ins: str, int, float, bool, pathlib.Path, datetime.timedelta.
5. enums: case-insensitive match on member names.

Anything else raises UnsupportedFieldTypeError. Failures inside a converter are
left to the caller (the binder), which reports them as
"Invalid value for <name>: <raw>".

Verification runs after conversion. A verifier (method name, callable, or an
object with verify(value)) raises VerificationError to reject a value.
"""
import builtins
import enum
import logging
from datetime import timedelta
from pathlib import Path

from .faults import UnsupportedFieldTypeError, VerificationError

logger = logging.getLogger(__name__)

_registry = {}

# nanoseconds per unit
_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
    "d": 86_400_000_000_000,
}


def parse_boolean(text, /):
    """Only "true" (any case) is true; every other text is false."""
    return text.lower() == "true"


def looks_like_boolean(text, /):
    """True for the explicit literals "true"/"false" in any case."""
    return text.lower() in ("true", "false")


def parse_duration(text, /):
    """
    Parse a short human-readable duration into a timedelta.

    Forms: a decimal number followed by one of ns, us, µs, ms, s, m, h, d,
    e.g. "400ms", "4.5s", "2m", "1h", "1d". Sub-microsecond precision is
    rounded away by timedelta.

    Raises
    - ValueError: blank input, unknown unit, or a malformed number.
    """
    if not text or not text.strip():
        raise ValueError("Duration cannot be null or empty")
    text = text.strip()
    index = 0
    while index < len(text) and not ("a" <= text[index] <= "z" or text[index] == "µ"):
        index += 1
    number, unit = text[:index].strip(), text[index:].strip()
    try:
        scale = _DURATION_UNITS[unit]
    except KeyError:
        raise ValueError("Invalid duration unit: " + unit) from None
    return timedelta(microseconds=round(float(number) * scale) / 1_000)


_BUILTINS = {
    str: str,
    int: int,
    float: float,
    bool: parse_boolean,
    Path: Path,
    timedelta: parse_duration,
}


def register(type, converter, /):
    """
    Register a global converter for a target type.

    The registry sits below declaration-level converters and per-run
    converters, and above the built-ins, so it can override e.g. int.
    """
    if not isinstance(type, builtins.type):
        raise TypeError("register() first argument must be a type")
    if not callable(converter):
        raise TypeError("register() second argument must be callable")
    logger.debug("registering converter %r for %s", converter, type.__qualname__)
    _registry[type] = converter
    return converter


def unregister(type, /):
    """Remove a global converter; unknown types are ignored."""
    if _registry.pop(type, None) is not None:
        logger.debug("unregistered converter for %s", type.__qualname__)


def is_supported(type, /, converters=None):
    """True when convert() could handle the type without a declaration converter."""
    return (
        type in (converters or {}) or
        type in _registry or
        type in _BUILTINS or
        (isinstance(type, builtins.type) and issubclass(type, enum.Enum))
    )


def _resolve(handler, holder, attribute, /):
    """
    Turn a declaration converter/verifier into a plain callable.

    A string names a method on the holder; objects exposing the attribute
    (convert/verify) are used through it; other callables are used directly.
    """
    if isinstance(handler, str):
        return getattr(holder, handler)
    if callable(method := getattr(handler, attribute, None)):
        return method
    return handler


def convert(text, type, /, *, converter=None, holder=None, converters=None):
    """
    Convert one raw string to the target type (see module docstring for the order).
    """
    if converter is not None:
        return _resolve(converter, holder, "convert")(text)
    if converters and (custom := converters.get(type)) is not None:
        return custom(text)
    if (registered := _registry.get(type)) is not None:
        return registered(text)
    if (builtin := _BUILTINS.get(type)) is not None:
        return builtin(text)
    if isinstance(type, builtins.type) and issubclass(type, enum.Enum):
        for member in type:
            if member.name.lower() == text.lower():
                return member
        raise ValueError(f"{text!r} is not a member of {type.__name__}")
    raise UnsupportedFieldTypeError("Unsupported field type: " + getattr(type, "__qualname__", repr(type)), type=type)


def verify(value, verifier, /, *, holder=None):
    """
    Run a verifier against a converted value.

    VerificationError propagates unchanged; a ValueError raised by a verifier
    is reported as a VerificationError carrying the same message.
    """
    if verifier is None:
        return value
    try:
        _resolve(verifier, holder, "verify")(value)
    except VerificationError:
        raise
    except ValueError as exception:
        raise VerificationError(str(exception), value=value) from exception
    return value


def enum_candidates(type, /, separator=", ", *, descriptions=False):
    """
    Lower-cased enum member names joined by separator.

    With descriptions, members exposing a non-empty "description" attribute are
    rendered as "name (description)". Non-enum types give an empty string.
    """
    if not (isinstance(type, builtins.type) and issubclass(type, enum.Enum)):
        return ""
    candidates = []
    for member in type:
        name = member.name.lower()
        if descriptions and (description := getattr(member, "description", None)):
            name = f"{name} ({description})"
        candidates.append(name)
    return separator.join(candidates)


__all__ = (
    "register",
    "unregister",
    "is_supported",
    "convert",
    "verify",
    "parse_boolean",
    "looks_like_boolean",
    "parse_duration",
    "enum_candidates",
)
