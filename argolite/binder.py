"""
Argolite tokenizer and binder.

bind() walks the remaining tokens of a command line against one CommandModel
and stores converted values on the command instance (and its mixins).

Token loop
1. "--help"/"-h" and "--version"/"-V" interrupt parsing wherever they appear,
   even after "--".
2. the first "--" ends option parsing; later tokens are positionals.
3. dash tokens are options, split on the first "=" into name and value.
   - booleans: a bare flag binds True, unless the next token is "true" or
     "false" (any case), which is consumed as the value.
   - arity "0..1": a bare option is marked as seen; its default applies later.
   - others: the value is the "=" part or the next token.
   - multi-value fields accumulate raw strings (split on their delimiter);
     scalar fields are converted and verified right away.
4. anything else is a positional.

After the loop
- accumulated multi-value fields are converted element by element.
- defaults apply to options never seen, and to optional-value options seen
  without a value.
- required options never seen are an error, whatever their default.
- positionals bind to parameters in index order; a varargs parameter takes what
  is left within its arity bounds. Positionals left over are an error.
"""
import logging
from collections import deque

from .agent import normalize_interrupt
from .converters import convert, verify, looks_like_boolean
from .faults import *
from .models import ParamSpec
from .suggestions import unknown_option_message
from .utils import Unset

logger = logging.getLogger(__name__)

HELP_TOKENS = frozenset(("--help", "-h"))
VERSION_TOKENS = frozenset(("--version", "-V"))


def check_interrupt(token, /, *, agent_mode=False):
    """Raise HelpRequested/VersionRequested when token is a help or version sentinel."""
    if agent_mode:
        token = normalize_interrupt(token)
    if token in HELP_TOKENS:
        raise HelpRequested(token=token)
    if token in VERSION_TOKENS:
        raise VersionRequested(token=token)


class _Binder:
    """State of one bind() call."""

    def __init__(self, model, instance, tokens, config, converters, agent_mode):
        self.model = model
        self.instance = instance
        self.tokens = deque(tokens)
        self.config = config
        self.converters = converters
        self.agent_mode = agent_mode
        self.seen = set()
        self.seen_without_value = set()
        self.accumulated = {}
        self.positionals = []

    def run(self):
        accept_options = True
        while self.tokens:
            token = self.tokens.popleft()
            check_interrupt(token, agent_mode=self.agent_mode)
            if accept_options and token == "--":
                accept_options = False
            elif accept_options and token.startswith("-"):
                self.option(token)
            else:
                self.positionals.append(token)

        self.apply_accumulated()
        self.apply_defaults()
        self.check_required()
        self.bind_positionals()
        logger.debug(
            "bound %r: %d options seen, %d positionals",
            self.model.name, len(self.seen), len(self.positionals),
        )
        return self.instance

    def option(self, token):
        name, separator, value = token.partition("=")
        value = value if separator else None

        if (option := self.model.option(name)) is None:
            message, suggestion = unknown_option_message(name, self.model.options_by_name, self.config)
            raise UnknownOptionError(message, name=name, suggestion=suggestion)
        self.seen.add(option.identity)

        if value is None:
            if option.boolean:
                if not (self.tokens and looks_like_boolean(self.tokens[0])):
                    self.assign(option, True)
                    return
                value = self.tokens.popleft()
            elif option.optional_value:
                self.seen_without_value.add(option.identity)
                return
            elif not self.tokens:
                raise MissingOptionValueError("Missing value for option: " + name, name=name)
            else:
                value = self.tokens.popleft()

        if option.multi:
            values = self.accumulated.setdefault(option.identity, [])
            values.extend(value.split(option.split) if option.split else (value,))
        else:
            converted = self.convert(value, option, option.preferred)
            self.assign(option, verify(converted, option.verifier, holder=self.holder(option)))

    def holder(self, spec):
        if isinstance(spec, ParamSpec):
            return self.instance
        return self.model.holder(self.instance, spec)

    def assign(self, spec, value):
        setattr(self.holder(spec), spec.field, value)

    def convert(self, raw, spec, label):
        """Convert one raw string; failures become ConversionError naming the option or parameter."""
        try:
            return convert(
                raw,
                spec.type,
                converter=spec.converter,
                holder=self.holder(spec),
                converters=self.converters,
            )
        except CommandException:
            raise
        except ValueError as exception:
            raise ConversionError(f"Invalid value for {label}: {raw}", field=spec.field, value=raw) from exception

    def collect(self, raws, spec, label):
        """Convert several raw strings into the spec's container type."""
        return spec.container(self.convert(raw, spec, label) for raw in raws)

    def default(self, spec, label):
        """The value a default stands for: strings are converted, other objects used as-is."""
        default = spec.default
        if spec.container is not None:
            if isinstance(default, str):
                split = getattr(spec, "split", None)
                return self.collect(default.split(split) if split else (default,), spec, label)
            return spec.container(default)
        if isinstance(default, str):
            return self.convert(default, spec, label)
        return default

    def apply_accumulated(self):
        for option in self.model.options:
            if (raws := self.accumulated.get(option.identity)) is not None:
                values = self.collect(raws, option, option.preferred)
                self.assign(option, verify(values, option.verifier, holder=self.holder(option)))

    def apply_defaults(self):
        for option in self.model.options:
            if option.default is Unset:
                continue
            if option.identity not in self.seen or option.identity in self.seen_without_value:
                self.assign(option, self.default(option, option.preferred))

    def check_required(self):
        for option in self.model.options:
            if option.required and option.identity not in self.seen:
                raise MissingRequiredOptionError(
                    "Missing required option: " + option.preferred,
                    name=option.preferred,
                )

    def bind_positionals(self):
        positionals = self.positionals
        if not self.model.parameters:
            if positionals:
                raise UnexpectedParameterError("Unexpected parameter: " + positionals[0], value=positionals[0])
            return

        index = 0
        for parameter in self.model.parameters:
            if parameter.varargs:
                low, high = parameter.bounds
                if parameter.container is None:
                    high = 1 if high is None else min(high, 1)
                available = len(positionals) - index
                count = available if high is None else min(available, high)
                if count < low:
                    raise MissingRequiredParameterError(
                        "Missing required parameter: " + parameter.label,
                        label=parameter.label,
                    )
                values, index = positionals[index:index + count], index + count
                if not values and parameter.default is not Unset:
                    self.assign(parameter, self.default(parameter, parameter.label))
                elif parameter.container is not None:
                    collected = self.collect(values, parameter, parameter.label)
                    self.assign(parameter, verify(collected, parameter.verifier, holder=self.instance))
                elif values:
                    converted = self.convert(values[0], parameter, parameter.label)
                    self.assign(parameter, verify(converted, parameter.verifier, holder=self.instance))
            elif index < len(positionals):
                converted = self.convert(positionals[index], parameter, parameter.label)
                self.assign(parameter, verify(converted, parameter.verifier, holder=self.instance))
                index += 1
            elif parameter.default is not Unset:
                self.assign(parameter, self.default(parameter, parameter.label))
            elif not parameter.optional:
                raise MissingRequiredParameterError(
                    "Missing required parameter: " + parameter.label,
                    label=parameter.label,
                )

        if index < len(positionals):
            raise TooManyParametersError("Too many parameters: " + positionals[index], value=positionals[index])


def bind(model, instance, tokens, config, /, converters=None, *, agent_mode=False):
    """
    Bind tokens to a command instance according to its model.

    Parameters
    - model: CommandModel of the instance's class.
    - instance: the command object receiving values (mixins are reached through it).
    - tokens: iterable of strings (consumed into a private deque).
    - config: CommandConfig (suggestion settings).
    - converters: optional per-run {type: callable} converters.
    - agent_mode: also treat the bare words help/version as interrupts.

    Returns
    - the instance.

    Raises
    - HelpRequested / VersionRequested: a sentinel token was found.
    - UsageError subclasses: see the module docstring.
    - UnsupportedFieldTypeError: a field type has no converter.
    """
    return _Binder(model, instance, tokens, config, converters, agent_mode).run()


__all__ = (
    "bind",
    "check_interrupt",
    "HELP_TOKENS",
    "VERSION_TOKENS",
)
