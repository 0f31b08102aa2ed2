r"""
Argolite argument declarations.

Overview
- Declarations (class attributes of a command class)
  • Option[_T]: named option with one or more aliases (e.g., -o/--output).
  • Parameters[_T]: positional parameter bound by index range.
  • Mixin: embeds a reusable holder class whose options are merged into the command.
  • Spec: receives the CommandSpec of the running command (path, config, streams).

- Decorators
  • @ignore_options(...): filter the options a holder class contributes.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes
    selected fields via read-only properties declared in __introspectable__.

Binding
- Declarations are non-data descriptors. On the class they return themselves;
  on an instance they return the bound value once the binder stored one, and
  an empty value before that (None, False for boolean options, an empty
  list/tuple for multi-value fields).

Metadata (sanitized on construction)
- Shared
  • descr: Unset | str (short help), non-empty when provided.
  • metavar: Unset | str (label in help, defaults to "<field>").
  • type: Unset | type | list[X] | tuple[X, ...] (defaults to the annotation, else str).
  • default: any value; strings go through conversion, other values are used as-is.
  • converter / verifier: Unset | str (method name on the holder) | callable |
    object with convert()/verify().
  • hidden: bool (suppresses from help).
- Option only
  • names: one or more dash-prefixed names; duplicates rejected, order kept.
  • required, split, arity ("0..1" makes the value optional), show_default,
    default_template, default_on_new_line, show_enum_descriptions.
- Parameters only
  • index: "N", "N..M", "N..*" or an int; defaults to the declaration order.
  • arity: "N", "N..M", "N..*" or a (min, max) tuple.

Quick example:
    >>> from argolite import command, Option, Parameters
    >>> @command(name="greet", descr="Greet a person")
    ... class Greet:
    ...     name: str = Option("-n", "--name", descr="Name to greet", required=True)
    ...     count: int = Option("-c", "--count", default="1")
    ...     def run(self):
    ...         print(f"Hello, {self.name}!" * self.count)
"""
import builtins
import functools
import inspect
import operator
import re
from collections.abc import Iterable

from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns declarations into introspectable descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages (e.g., "option 'split' must be a string").
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            **options,
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(names=('-v', '--verbose'), field='verbose', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate metadata shared by every value-bearing declaration.

    Responsibilities
    - descr: Unset or a non-empty string after trimming (Unset becomes None).
    - metavar: Unset or a non-empty string after trimming (Unset becomes None).
    - converter/verifier: Unset, a method name, a callable, or an object exposing
      convert()/verify() (Unset becomes None).
    - hidden: coerced to bool.

    Raises
    - TypeError: wrong types.
    - ValueError: empty strings.

    Notes
    - The dict is mutated in place.
    - 'type' and 'default' are not validated here: the type may come from the
      annotation, which is only known once the command class is complete.
    """
    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)

    for name, attribute in (("converter", "convert"), ("verifier", "verify")):
        handler = metadata[name]
        if handler is Unset:
            metadata[name] = None
        elif isinstance(handler, str):
            if not handler.isidentifier():
                raise ValueError(f"{cls.__typename__} '{name}' must name a method")
        elif not callable(handler) and not callable(getattr(handler, attribute, None)):
            raise TypeError(f"{cls.__typename__} '{name}' must be callable or provide {attribute}()")

    metadata["hidden"] = bool(metadata["hidden"])


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate and normalize option names and option-only flags.

    Responsibilities
    - names: required. Each name must match r"--?[^\W\d_](?:[-_]?[^\W_]+)*"
      ("-x", "--long", "--long-name", "-long"). Duplicates are rejected and the
      declaration order is kept (the first "--" name is the canonical one, the
      last name is shown in the synopsis).
    - split: Unset or a non-empty delimiter (Unset becomes None).
    - arity: Unset, a range string, or a (min, max) tuple (Unset becomes None).
    - default_template: Unset or a string (Unset becomes None).

    Raises
    - TypeError: when names are missing or contain non-string entries.
    - ValueError: when a name fails validation or duplicates appear.
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](?:[-_]?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (got {name!r})")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = tuple(names)

    if not isinstance(split := metadata["split"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'split' must be a string")
    elif isinstance(split, str) and not split:
        raise ValueError(f"{cls.__typename__} 'split' cannot be empty")
    metadata["split"] = coalesce(split)

    metadata["arity"] = _sanitize_arity(cls, metadata["arity"])

    if not isinstance(template := metadata["default_template"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'default_template' must be a string")
    metadata["default_template"] = coalesce(template)

    for name in ("required", "show_default", "default_on_new_line", "show_enum_descriptions"):
        metadata[name] = bool(metadata[name])


def _sanitize_arity(cls, arity, /):
    """Internal: normalize an arity into (min, max|None), or None when unspecified."""
    if arity is Unset:
        return None
    if isinstance(arity, str):
        try:
            return parse_range(arity)
        except ValueError as exception:
            raise ValueError(f"{cls.__typename__} 'arity' is invalid: {exception}") from None
    if isinstance(arity, int) and not isinstance(arity, bool):
        if arity < 0:
            raise ValueError(f"{cls.__typename__} 'arity' must be a non-negative integer")
        return arity, arity
    if isinstance(arity, tuple) and len(arity) == 2:
        low, high = arity
        if (
            not isinstance(low, int) or low < 0 or
            not (high is None or isinstance(high, int)) or
            (high is not None and high < low)
        ):
            raise ValueError(f"{cls.__typename__} 'arity' must be (min, max) with 0 <= min <= max")
        return low, high
    raise TypeError(f"{cls.__typename__} 'arity' must be a string, an integer, or a (min, max) tuple")


def _sanitize_index(cls, index, /):
    """Internal: normalize a positional index into (start, end|None), or None for automatic."""
    if index is Unset:
        return None
    if isinstance(index, int) and not isinstance(index, bool):
        if index < 0:
            raise ValueError(f"{cls.__typename__} 'index' must be a non-negative integer")
        return index, index
    if isinstance(index, str):
        try:
            return parse_range(index)
        except ValueError as exception:
            raise ValueError(f"{cls.__typename__} 'index' is invalid: {exception}") from None
    raise TypeError(f"{cls.__typename__} 'index' must be a string or an integer")


class Declaration:
    """
    Descriptor plumbing shared by every class-attribute declaration.

    The attribute name is captured in __set_name__; a declaration object can be
    bound to a single attribute only.
    """

    _field = None
    _owner = None

    def __set_name__(self, owner, name):
        if self._field is not None and self._field != name:
            raise TypeError(
                f"{type(self).__typename__} is already bound to {self._owner.__qualname__}.{self._field}"
            )
        self._field = name
        self._owner = owner

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return self.__empty__()

    def __empty__(self):
        return None


class Option[_T](Declaration, metaclass=ArgumentType):
    """
    Named option declaration.

    Highlights
    - Generic over the payload type _T (taken from type=, else from the annotation).
    - Aliases via names (e.g., "-o", "--output"); order is significant for help.
    - Boolean options are flags: "--verbose" binds True, "--verbose=false" or
      "--verbose false" binds False.
    - list[X] and tuple[X, ...] types accumulate repeated occurrences (and split
      values when 'split' is given).
    - arity="0..1" lets the option appear without a value; the default is used then.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "names",
        "descr",
        "metavar",
        "type",
        "default",
        "required",
        "split",
        "arity",
        "converter",
        "verifier",
        "hidden",
        "show_default",
        "default_template",
        "default_on_new_line",
        "show_enum_descriptions",
        "field",
    )
    __displayable__ = (
        "names",
        "field",
        "type",
        "default",
        "required",
        "descr",
    )

    def __init__(
            self,
            *names,
            descr=Unset,
            metavar=Unset,
            type=Unset,
            default=Unset,
            required=False,
            split=Unset,
            arity=Unset,
            converter=Unset,
            verifier=Unset,
            hidden=False,
            show_default=True,
            default_template=Unset,
            default_on_new_line=False,
            show_enum_descriptions=False,
    ):
        """
        Construct an Option declaration.

        Parameters
        - names: one or more str, e.g. "-v", "--verbose".
        - descr: help text; supports ${DEFAULT-VALUE} and
          ${COMPLETION-CANDIDATES[:separator]} placeholders.
        - metavar: value label in help (defaults to "<field>").
        - type: payload type; defaults to the class annotation, else str.
        - default: value used when the option is absent (or given without a
          value under arity "0..1"). Strings are converted like user input.
        - required: absence is an error, whatever the default.
        - split: delimiter for multi-value options ("a,b" -> ["a", "b"]).
        - arity: "0..1" makes the value optional.
        - converter / verifier: custom conversion and validation.
        - hidden: hide from help and synopsis.
        - show_default: allow the automatic default-value suffix in help.
        - default_template: per-option template, must use ${DEFAULT-VALUE}.
        - default_on_new_line: put the default-value suffix on its own line.
        - show_enum_descriptions: annotate enum candidates with descriptions.
        """
        metadata = {
            "names": names,
            "descr": descr,
            "metavar": metavar,
            "type": type,
            "default": default,
            "required": required,
            "split": split,
            "arity": arity,
            "converter": converter,
            "verifier": verifier,
            "hidden": hidden,
            "show_default": show_default,
            "default_template": default_template,
            "default_on_new_line": default_on_new_line,
            "show_enum_descriptions": show_enum_descriptions,
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_named_metadata(builtins.type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def __empty__(self):
        return _empty_value(self._type, self._owner, self._field)


class Parameters[_T](Declaration, metaclass=ArgumentType):
    """
    Positional parameter declaration.

    Highlights
    - index selects the positional slot(s); by default parameters take the
      slots in declaration order.
    - list[X] / tuple[X, ...] types (or an unbounded index) make the parameter
      variadic: it consumes every remaining positional, honoring arity.
    - A single parameter is required unless its arity starts at 0 or it has a default.
    """

    __introspectable__ = (
        "index",
        "arity",
        "descr",
        "metavar",
        "type",
        "default",
        "converter",
        "verifier",
        "hidden",
        "field",
    )
    __displayable__ = (
        "field",
        "index",
        "arity",
        "type",
        "default",
        "descr",
    )

    def __init__(
            self,
            index=Unset,
            /,
            *,
            arity=Unset,
            descr=Unset,
            metavar=Unset,
            type=Unset,
            default=Unset,
            converter=Unset,
            verifier=Unset,
            hidden=False,
    ):
        metadata = {
            "index": index,
            "arity": arity,
            "descr": descr,
            "metavar": metavar,
            "type": type,
            "default": default,
            "converter": converter,
            "verifier": verifier,
            "hidden": hidden,
        }
        _sanitize_metadata(builtins.type(self), metadata)
        metadata["index"] = _sanitize_index(builtins.type(self), metadata["index"])
        metadata["arity"] = _sanitize_arity(builtins.type(self), metadata["arity"])

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def __empty__(self):
        return _empty_value(self._type, self._owner, self._field)


class Mixin(Declaration, metaclass=ArgumentType):
    """
    Embed a holder class whose Option declarations join the command's options.

    The holder is instantiated (without arguments) on first access, once per
    command instance, and the binder stores option values on it.
    """

    __introspectable__ = ("holder", "field")

    def __init__(self, holder, /):
        if not isinstance(holder, builtins.type):
            raise TypeError(f"{builtins.type(self).__typename__} holder must be a class")
        self._holder = holder

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        try:
            return instance.__dict__[self._field]
        except KeyError:
            holder = instance.__dict__[self._field] = self._holder()
            return holder


class Spec(Declaration, metaclass=ArgumentType):
    """
    Placeholder for the CommandSpec injected before the command body runs.

    Reads as None until the run driver assigns the spec.
    """

    __introspectable__ = ("field",)


class IgnoreRules(metaclass=ArgumentType):
    """Option filter attached to a holder class by @ignore_options."""

    __introspectable__ = ("exclude", "include", "ignore_all")

    def __init__(self, exclude=(), include=(), ignore_all=False):
        for name, rules in (("exclude", exclude), ("include", include)):
            if isinstance(rules, str) or not isinstance(rules, Iterable):
                raise TypeError(f"{builtins.type(self).__typename__} '{name}' must be an iterable of strings")
            rules = tuple(rules)
            if not all(isinstance(rule, str) and rule.strip() for rule in rules):
                raise ValueError(f"{builtins.type(self).__typename__} '{name}' must contain non-empty strings")
            setattr(self, "_" + name, rules)
        self._ignore_all = bool(ignore_all)

    @staticmethod
    def _matches(rule, field, names):
        if rule.startswith("field:"):
            return field == rule.removeprefix("field:")
        return rule in names

    def admits(self, field, names, /):
        """
        Decide whether an option (attribute name + option names) survives the filter.

        ignore_all keeps only explicitly included options; otherwise include
        wins over exclude.
        """
        included = any(self._matches(rule, field, names) for rule in self._include)
        if self._ignore_all:
            return included
        if included:
            return True
        return not any(self._matches(rule, field, names) for rule in self._exclude)


def ignore_options(*, exclude=(), include=(), ignore_all=False):
    """
    Class decorator filtering the options contributed by a holder (command or mixin class).

    Rules are option names ("--verbose") or "field:<attribute>". The filter
    applies to options declared on the decorated class and inherited from its
    bases; it is not inherited by subclasses.
    """
    rules = IgnoreRules(exclude, include, ignore_all)

    @rename("ignore_options")
    def wrapper(cls, /):
        if not isinstance(cls, builtins.type):
            raise TypeError("@ignore_options() must be applied to a class")
        cls.__ignore_options__ = rules
        return cls

    return wrapper


def _empty_value(type, owner, field, /):
    """The value a declaration reads as before anything was bound."""
    hint = type if type is not Unset else _annotation(owner, field)
    origin = getattr(hint, "__origin__", hint)
    if origin is list:
        return []
    if origin is tuple:
        return ()
    if hint is bool:
        return False
    return None


def _annotation(owner, field, /):
    """Best-effort lookup of a class annotation (string annotations are left unevaluated)."""
    if owner is None:
        return Unset
    for klass in owner.__mro__:
        if field in (annotations := inspect.get_annotations(klass)):
            return annotations[field]
    return Unset


__all__ = (
    "Option",
    "Parameters",
    "Mixin",
    "Spec",
    "ignore_options",
)
