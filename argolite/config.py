"""
Argolite global command configuration.

CommandConfig holds the defaults that complement per-command settings given
to @command(...). Instances are immutable: derive variants with
copy.replace(config, field=value) (or config.copy(field=value)).

Effective values
- mixin_standard_help_options, empty_line_after_usage and
  empty_line_after_description are OR-ed with the command's own flags.
- show_default_values_in_help is overridden by a command that sets
  show_default_values explicitly.
- a blank default_value_help_template falls back to DEFAULT_TEMPLATE.
"""
from .utils import Unset, mirror

DEFAULT_VALUE_PLACEHOLDER = "${DEFAULT-VALUE}"
SUGGESTION_PLACEHOLDER = "${SUGGESTION}"

DEFAULT_TEMPLATE = " (default ${DEFAULT-VALUE})"
DEFAULT_SUGGESTION_TEMPLATE = "\n  tip: a similar argument exists: '${SUGGESTION}'"


class CommandConfig:
    """
    Immutable set of global help/parsing settings.

    Fields (defaults in parentheses)
    - empty_line_after_usage (False): blank line after the synopsis.
    - empty_line_after_description (False): blank line after the description.
    - mixin_standard_help_options (True): show -h/--help and -V/--version.
    - show_default_values_in_help (True): append default values to option help.
    - default_value_help_template (DEFAULT_TEMPLATE): must contain ${DEFAULT-VALUE}.
    - default_value_on_new_line (False): put the default on its own line.
    - version (""): fallback version when no command declares one.
    - suggest_similar_options (True): add "did you mean" tips to unknown options.
    - similar_options_suggestion_template (DEFAULT_SUGGESTION_TEMPLATE): must contain ${SUGGESTION}.
    - help_exit_code (0): exit code returned after printing help.
    - usage_errors_to_stdout (False): print usage errors to stdout instead of stderr.
    """

    __introspectable__ = (
        "empty_line_after_usage",
        "empty_line_after_description",
        "mixin_standard_help_options",
        "show_default_values_in_help",
        "default_value_help_template",
        "default_value_on_new_line",
        "version",
        "suggest_similar_options",
        "similar_options_suggestion_template",
        "help_exit_code",
        "usage_errors_to_stdout",
    )

    empty_line_after_usage = mirror("empty_line_after_usage")
    empty_line_after_description = mirror("empty_line_after_description")
    mixin_standard_help_options = mirror("mixin_standard_help_options")
    show_default_values_in_help = mirror("show_default_values_in_help")
    default_value_help_template = mirror("default_value_help_template")
    default_value_on_new_line = mirror("default_value_on_new_line")
    version = mirror("version")
    suggest_similar_options = mirror("suggest_similar_options")
    similar_options_suggestion_template = mirror("similar_options_suggestion_template")
    help_exit_code = mirror("help_exit_code")
    usage_errors_to_stdout = mirror("usage_errors_to_stdout")

    def __init__(
            self,
            *,
            empty_line_after_usage=False,
            empty_line_after_description=False,
            mixin_standard_help_options=True,
            show_default_values_in_help=True,
            default_value_help_template=DEFAULT_TEMPLATE,
            default_value_on_new_line=False,
            version="",
            suggest_similar_options=True,
            similar_options_suggestion_template=DEFAULT_SUGGESTION_TEMPLATE,
            help_exit_code=0,
            usage_errors_to_stdout=False,
    ):
        for name, value in (
                ("empty_line_after_usage", empty_line_after_usage),
                ("empty_line_after_description", empty_line_after_description),
                ("mixin_standard_help_options", mixin_standard_help_options),
                ("show_default_values_in_help", show_default_values_in_help),
                ("default_value_on_new_line", default_value_on_new_line),
                ("suggest_similar_options", suggest_similar_options),
                ("usage_errors_to_stdout", usage_errors_to_stdout),
        ):
            if not isinstance(value, bool):
                raise TypeError(f"command-config '{name}' must be a boolean")
            setattr(self, "_" + name, value)

        for name, value, placeholder in (
                ("default_value_help_template", default_value_help_template, DEFAULT_VALUE_PLACEHOLDER),
                ("similar_options_suggestion_template", similar_options_suggestion_template, SUGGESTION_PLACEHOLDER),
        ):
            if not isinstance(value, str):
                raise TypeError(f"command-config '{name}' must be a string")
            if value.strip() and placeholder not in value:
                raise ValueError(f"command-config '{name}' must contain {placeholder}")
            setattr(self, "_" + name, value)

        if not isinstance(version, str):
            raise TypeError("command-config 'version' must be a string")
        self._version = version

        if not isinstance(help_exit_code, int) or isinstance(help_exit_code, bool):
            raise TypeError("command-config 'help_exit_code' must be an integer")
        self._help_exit_code = help_exit_code

    @property
    def effective_default_value_help_template(self):
        if not self._default_value_help_template.strip():
            return DEFAULT_TEMPLATE
        return self._default_value_help_template

    @property
    def effective_similar_options_suggestion_template(self):
        if not self._similar_options_suggestion_template.strip():
            return DEFAULT_SUGGESTION_TEMPLATE
        return self._similar_options_suggestion_template

    def effective_mixin_standard_help_options(self, model, /):
        return self._mixin_standard_help_options or model.mixin_standard_help_options

    def effective_empty_line_after_usage(self, model, /):
        return self._empty_line_after_usage or model.empty_line_after_usage

    def effective_empty_line_after_description(self, model, /):
        return self._empty_line_after_description or model.empty_line_after_description

    def effective_show_default_values(self, model, /):
        if model.show_default_values is not Unset:
            return model.show_default_values
        return self._show_default_values_in_help

    def copy(self, **overrides):
        """Return a new config with the given fields replaced."""
        return type(self)(**{name: getattr(self, name) for name in self.__introspectable__} | overrides)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return self.copy(**overrides)

    def __eq__(self, other):
        if not isinstance(other, CommandConfig):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__introspectable__)

    def __hash__(self):
        return hash(tuple(getattr(self, name) for name in self.__introspectable__))

    def __rich_repr__(self):
        for name in self.__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "command-config(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "CommandConfig",
    "DEFAULT_TEMPLATE",
    "DEFAULT_SUGGESTION_TEMPLATE",
    "DEFAULT_VALUE_PLACEHOLDER",
    "SUGGESTION_PLACEHOLDER",
)
