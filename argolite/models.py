"""
Argolite command models.

A CommandModel is the resolved, read-only description of one command class:
its options (mixins merged, filters applied), its positional parameters, its
subcommands and its help metadata. The binder, the resolver and the help
renderer only ever look at models.

Construction (build_model)
1. options contributed by each Mixin, in declaration order, then the
   command's own options. Within one holder, base classes come first (oldest
   first) and a redeclared attribute replaces the inherited declaration in place.
2. @ignore_options filters are applied per holder class.
3. every dash-stripped name must map to a single binding target; a name shared
   by two targets raises AmbiguousOptionNameError right away.
4. parameters are sorted by start index; ranges must be contiguous, start at 0,
   and only the last one may be unbounded.
"""
import inspect
import logging
import types
import typing

from .arguments import ArgumentType, Option, Parameters, Mixin, Spec
from .faults import AmbiguousOptionNameError
from .utils import *

logger = logging.getLogger(__name__)


def _interpret(hint, owner, /):
    """
    Split a type hint into (container, element).

    - list[X] / list   -> (list, X / str)
    - tuple[X, ...]    -> (tuple, X)
    - X | None         -> interpretation of X
    - anything else    -> (None, hint)
    """
    if hint is Unset:
        return None, str
    origin, arguments = typing.get_origin(hint), typing.get_args(hint)
    if origin in (typing.Union, types.UnionType):
        members = [argument for argument in arguments if argument is not type(None)]
        if len(members) != 1:
            raise TypeError(f"{owner}: union types are not supported (got {hint!r})")
        return _interpret(members[0], owner)
    if hint is list or hint is tuple:
        return hint, str
    if origin is list:
        return list, arguments[0] if arguments else str
    if origin is tuple:
        if len(arguments) == 2 and arguments[1] is Ellipsis:
            return tuple, arguments[0]
        raise TypeError(f"{owner}: tuple types must be written as tuple[X, ...] (got {hint!r})")
    return None, hint


def _annotations(klass, /):
    """Merged annotations of a class and its bases (subclasses win)."""
    merged = {}
    for base in reversed(klass.__mro__):
        if base is object:
            continue
        merged.update(inspect.get_annotations(base, eval_str=True))
    return merged


def _declarations(klass, kind, /):
    """
    Declarations of a given kind, keyed by attribute name, oldest base first.

    A subclass attribute replaces the inherited one in place; assigning a
    non-declaration value removes it.
    """
    found = {}
    for base in reversed(klass.__mro__):
        if base is object:
            continue
        for name, value in vars(base).items():
            if isinstance(value, kind):
                found[name] = value
            elif name in found:
                del found[name]
    return found


class OptionSpec(metaclass=ArgumentType):
    """
    Resolved option: an Option declaration plus its binding target and type.

    kind is "boolean", "scalar" or "multi"; multi options carry their
    container (list or tuple) and accumulate elements of 'type'.
    """

    __introspectable__ = (
        "names",
        "field",
        "owner",
        "kind",
        "container",
        "type",
        "required",
        "default",
        "split",
        "arity",
        "converter",
        "verifier",
        "hidden",
        "metavar",
        "descr",
        "show_default",
        "default_template",
        "default_on_new_line",
        "show_enum_descriptions",
    )
    __displayable__ = ("names", "field", "owner", "kind", "type", "required", "default")

    def __init__(self, declaration, field, owner, hint, /):
        container, element = _interpret(hint, f"option {field!r}")
        self._names = declaration.names
        self._field = field
        self._owner = owner
        self._container = container
        self._type = element
        if container is not None:
            self._kind = "multi"
        elif element is bool and declaration.converter is None:
            self._kind = "boolean"
        else:
            self._kind = "scalar"
        self._required = declaration.required
        self._default = declaration.default
        self._split = declaration.split
        self._arity = declaration.arity
        self._converter = declaration.converter
        self._verifier = declaration.verifier
        self._hidden = declaration.hidden
        self._metavar = declaration.metavar
        self._descr = declaration.descr
        self._show_default = declaration.show_default
        self._default_template = declaration.default_template
        self._default_on_new_line = declaration.default_on_new_line
        self._show_enum_descriptions = declaration.show_enum_descriptions

    @property
    def identity(self):
        """Binding target: (mixin attribute or None, field name)."""
        return self._owner, self._field

    @property
    def label(self):
        return self._metavar or f"<{self._field}>"

    @property
    def preferred(self):
        return preferred_name(self._names)

    @property
    def boolean(self):
        return self._kind == "boolean"

    @property
    def multi(self):
        return self._kind == "multi"

    @property
    def optional_value(self):
        """True for arity "0..1": the option may appear without a value."""
        return self._arity == (0, 1)

    @property
    def has_short(self):
        return any(map(is_short_name, self._names))


class ParamSpec(metaclass=ArgumentType):
    """
    Resolved positional parameter.

    bounds is the effective (min, max) arity: the declared one, else
    (0, None) for varargs and (1, 1) for single parameters.
    """

    __introspectable__ = (
        "field",
        "index",
        "arity",
        "container",
        "type",
        "default",
        "converter",
        "verifier",
        "hidden",
        "metavar",
        "descr",
    )
    __displayable__ = ("field", "index", "arity", "type", "default")

    def __init__(self, declaration, field, index, hint, /):
        container, element = _interpret(hint, f"parameters {field!r}")
        self._field = field
        self._index = index
        self._arity = declaration.arity
        self._container = container
        self._type = element
        self._default = declaration.default
        self._converter = declaration.converter
        self._verifier = declaration.verifier
        self._hidden = declaration.hidden
        self._metavar = declaration.metavar
        self._descr = declaration.descr

    @property
    def varargs(self):
        return self._index[1] is None or self._container is not None

    @property
    def bounds(self):
        if self._arity is not None:
            return self._arity
        return (0, None) if self.varargs else (1, 1)

    @property
    def optional(self):
        return self.bounds[0] == 0

    @property
    def label(self):
        return self._metavar or f"<{self._field}>"

    @property
    def display_label(self):
        if self.varargs:
            return f"[{self.label}...]"
        if self._arity is not None and self._arity[0] == 0:
            return f"[{self.label}]"
        return self.label


class SubcommandRef(metaclass=ArgumentType):
    """Class-style subcommand: a nested command class with its own model."""

    __introspectable__ = ("name", "descr", "hidden")

    def __init__(self, command, /):
        model = command.__command__
        self._name = model.name
        self._descr = model.description[0] if model.description else ""
        self._hidden = model.hidden
        self.command = command

    @property
    def model(self):
        return self.command.__command__


class MethodSubcommandRef(metaclass=ArgumentType):
    """Method-style subcommand: a method of the parent command invoked directly."""

    __introspectable__ = ("name", "descr", "hidden", "method")

    def __init__(self, name, descr, hidden, method, /):
        self._name = name
        self._descr = descr
        self._hidden = hidden
        self._method = method


class CommandModel(metaclass=ArgumentType):
    """
    Read-only description of a command, built once per command class.

    Options keep declaration order (mixins first); display order is decided by
    the help renderer. options_by_name maps every dashed name to its option and
    options_by_bare maps dash-stripped names to the first option declaring them.
    """

    __introspectable__ = (
        "name",
        "version",
        "description",
        "header",
        "footer",
        "synopsis",
        "options",
        "options_by_name",
        "options_by_bare",
        "parameters",
        "subcommands",
        "method_subcommands",
        "mixins",
        "specs",
        "agent_mode_enabled",
        "hidden",
        "mixin_standard_help_options",
        "empty_line_after_usage",
        "empty_line_after_description",
        "show_default_values",
    )
    __displayable__ = ("name", "options", "parameters", "subcommands", "method_subcommands")

    def __init__(self, command, metadata, options, parameters, subcommands, methods, mixins, specs, /):
        self.command = command
        self._name = metadata["name"]
        self._version = metadata["version"]
        self._description = metadata["descr"]
        self._header = metadata["header"]
        self._footer = metadata["footer"]
        self._synopsis = metadata["synopsis"]
        self._agent_mode_enabled = metadata["agent_mode"]
        self._hidden = metadata["hidden"]
        self._mixin_standard_help_options = metadata["mixin_standard_help_options"]
        self._empty_line_after_usage = metadata["empty_line_after_usage"]
        self._empty_line_after_description = metadata["empty_line_after_description"]
        self._show_default_values = metadata["show_default_values"]
        self._options = tuple(options)
        self._parameters = tuple(parameters)
        self._subcommands = tuple(subcommands)
        self._method_subcommands = tuple(methods)
        self._mixins = tuple(mixins)
        self._specs = tuple(specs)

        self._options_by_name = {}
        self._options_by_bare = {}
        for option in self._options:
            for name in option.names:
                self._options_by_name[name] = option
                self._options_by_bare.setdefault(strip_dashes(name), option)

    @property
    def has_subcommands(self):
        return bool(self._subcommands or self._method_subcommands)

    def option(self, name, /):
        """The option declaring this dashed name, or None (no copying, hot path)."""
        return self._options_by_name.get(name)

    def holder(self, instance, option, /):
        """The object that stores the option's value: the command or one of its mixins."""
        return instance if option.owner is None else getattr(instance, option.owner)


def _collect_options(holder, owner, registry, /):
    """Register the options of one holder class into the identity-keyed registry."""
    rules = vars(holder).get("__ignore_options__")
    hints = _annotations(holder)
    for field, declaration in _declarations(holder, Option).items():
        if rules is not None and not rules.admits(field, declaration.names):
            logger.debug("option %s.%s filtered out by ignore_options", holder.__qualname__, field)
            continue
        hint = declaration.type if declaration.type is not Unset else hints.get(field, Unset)
        if isinstance(declaration.converter, str) and not callable(getattr(holder, declaration.converter, None)):
            raise TypeError(f"option {field!r} converter {declaration.converter!r} is not a method of {holder.__qualname__}")
        if isinstance(declaration.verifier, str) and not callable(getattr(holder, declaration.verifier, None)):
            raise TypeError(f"option {field!r} verifier {declaration.verifier!r} is not a method of {holder.__qualname__}")
        registry[owner, field] = OptionSpec(declaration, field, owner, hint)


def _check_ambiguity(options, /):
    """Reject dash-stripped names shared by different binding targets."""
    targets = {}
    for option in options:
        for name in option.names:
            targets.setdefault(strip_dashes(name), {}).setdefault(option.identity, []).append(name)
    for bare, identities in targets.items():
        if len(identities) > 1:
            names = [name for group in identities.values() for name in group]
            raise AmbiguousOptionNameError(
                f"Ambiguous option name '{bare}' (use distinct names): {', '.join(names)}",
                bare=bare,
                names=tuple(names),
            )


def _collect_parameters(command, /):
    """Resolve, index and validate the positional parameters of a command class."""
    hints = _annotations(command)
    parameters = []
    for position, (field, declaration) in enumerate(_declarations(command, Parameters).items()):
        hint = declaration.type if declaration.type is not Unset else hints.get(field, Unset)
        if isinstance(declaration.converter, str) and not callable(getattr(command, declaration.converter, None)):
            raise TypeError(f"parameters {field!r} converter {declaration.converter!r} is not a method of {command.__qualname__}")
        if isinstance(declaration.verifier, str) and not callable(getattr(command, declaration.verifier, None)):
            raise TypeError(f"parameters {field!r} verifier {declaration.verifier!r} is not a method of {command.__qualname__}")
        index = declaration.index
        if index is None:
            container, _ = _interpret(hint, f"parameters {field!r}")
            index = (position, None) if container is not None else (position, position)
        parameters.append(ParamSpec(declaration, field, index, hint))

    parameters.sort(key=lambda parameter: parameter.index[0])

    expected = 0
    for position, parameter in enumerate(parameters):
        start, end = parameter.index
        if start != expected:
            raise ValueError(
                f"{command.__qualname__}: parameter indexes must be contiguous from 0 "
                f"({parameter.field!r} starts at {start}, expected {expected})"
            )
        if end is None:
            if position != len(parameters) - 1:
                raise ValueError(f"{command.__qualname__}: only the last parameter may be unbounded ({parameter.field!r})")
        else:
            expected = end + 1
    return parameters


def _collect_methods(command, /):
    """Method-style subcommands declared with @command on methods (MRO order)."""
    methods = {}
    for base in reversed(command.__mro__):
        for attribute, value in vars(base).items():
            if (metadata := getattr(value, "__command__", None)) is not None and not isinstance(value, type):
                methods[attribute] = MethodSubcommandRef(metadata["name"], metadata["descr"], metadata["hidden"], attribute)
    return tuple(methods.values())


def build_model(command, metadata, /):
    """
    Build the CommandModel for a command class.

    Parameters
    - command: the command class.
    - metadata: sanitized @command(...) settings (name, version, descr, header,
      footer, synopsis, subcommands, agent_mode, hidden, mixin_standard_help_options,
      empty_line_after_usage, empty_line_after_description, show_default_values).

    Raises
    - AmbiguousOptionNameError: two binding targets share a dash-stripped name.
    - TypeError / ValueError: invalid declarations.
    """
    registry = {}
    mixins = []
    for field, mixin in _declarations(command, Mixin).items():
        mixins.append((field, mixin.holder))
        _collect_options(mixin.holder, field, registry)
    _collect_options(command, None, registry)

    options = list(registry.values())
    _check_ambiguity(options)

    parameters = _collect_parameters(command)
    subcommands = [SubcommandRef(subcommand) for subcommand in metadata["subcommands"]]
    methods = _collect_methods(command)
    specs = tuple(_declarations(command, Spec))

    model = CommandModel(command, metadata, options, parameters, subcommands, methods, mixins, specs)
    logger.debug(
        "built model %r: %d options, %d parameters, %d subcommands",
        model.name, len(options), len(parameters), len(subcommands) + len(methods),
    )
    return model


__all__ = (
    "CommandModel",
    "OptionSpec",
    "ParamSpec",
    "SubcommandRef",
    "MethodSubcommandRef",
    "build_model",
)
