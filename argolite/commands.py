"""
Argolite commands: the @command decorator and the run driver.

Declaring commands
- @command(name=..., descr=..., ...) on a class builds its CommandModel right
  away, so invalid or ambiguous declarations fail at import time.
- @command(name=..., descr=...) on a method of a command class declares a
  method-style subcommand, invoked directly on the parent instance.
- The command body is the class's run(self) method (or the decorated method);
  it returns None (exit code 0) or an int exit code.

Running
- run(root, prompt) parses a token list (default: sys.argv[1:]; a string is
  split shell-style), walks the subcommand chain, binds the remaining tokens
  to the active command and invokes it.
- run_agent(root, text) does the same for a comma-separated agent string,
  rendering help in agent style and accepting bare option names.
- run_captured / run_agent_captured return RunResult(out, err, exit_code).

Exit codes
- 0: success, help (configurable through CommandConfig.help_exit_code), version.
- 1: the command body (or its construction) raised.
- 2: usage error; the message and the active command's help are printed.

Context
- ParseContext is an immutable value (path, config, agent mode, active model
  and instance, root model) replaced, never mutated, while the driver descends
  into subcommands. CommandSpec objects keep the context they were created with.
"""
import copy
import inspect
import io
import logging
import shlex
import sys
from collections import deque
from collections.abc import Iterable

from rich.console import Console
from rich.text import Text

from .agent import to_argv, normalize_bare
from .arguments import ArgumentType
from .binder import bind, check_interrupt
from .config import CommandConfig
from .faults import *
from .help import render
from .models import SubcommandRef, MethodSubcommandRef, build_model
from .resolver import resolve
from .utils import *

logger = logging.getLogger(__name__)


def _lines(name, lines, /):
    """Internal: normalize a str or an iterable of str into a tuple of lines."""
    if isinstance(lines, str):
        return (lines,)
    if not isinstance(lines, Iterable):
        raise TypeError(f"command '{name}' must be a string or an iterable of strings")
    lines = tuple(lines)
    if not all(isinstance(line, str) for line in lines):
        raise TypeError(f"command '{name}' must be a string or an iterable of strings")
    return lines


def _sanitize_name(name, /):
    if not isinstance(name, str):
        raise TypeError("command 'name' must be a string")
    if not (name := name.strip()) or name.startswith("-") or any(map(str.isspace, name)):
        raise ValueError(f"command 'name' must be a non-empty word not starting with a dash (got {name!r})")
    return name


def _sanitize_command(
        cls,
        /,
        *,
        name=Unset,
        descr=Unset,
        header=(),
        synopsis=(),
        footer=Unset,
        version="",
        subcommands=(),
        mixin_standard_help_options=False,
        empty_line_after_usage=False,
        empty_line_after_description=False,
        show_default_values=Unset,
        hidden=False,
        agent_mode=False,
):
    """
    Internal: validate @command(...) settings for a class.

    Raises
    - TypeError: unexpected keywords or wrong types.
    - ValueError: invalid names.
    """
    metadata = {
        "name": _sanitize_name(coalesce(name, cls.__name__.lower())),
        "descr": () if descr is Unset else _lines("descr", descr),
        "header": _lines("header", header),
        "synopsis": _lines("synopsis", synopsis),
    }

    if not isinstance(footer, str | Unset):
        raise TypeError("command 'footer' must be a string")
    metadata["footer"] = coalesce(footer)

    if not isinstance(version, str):
        raise TypeError("command 'version' must be a string")
    metadata["version"] = version

    if isinstance(subcommands, type) or not isinstance(subcommands, Iterable):
        raise TypeError("command 'subcommands' must be an iterable of command classes")
    for subcommand in (subcommands := tuple(subcommands)):
        if not isinstance(subcommand, type) or "__command__" not in vars(subcommand):
            raise TypeError(f"command 'subcommands' must contain @command classes (got {subcommand!r})")
    metadata["subcommands"] = subcommands

    for key, value in (
            ("mixin_standard_help_options", mixin_standard_help_options),
            ("empty_line_after_usage", empty_line_after_usage),
            ("empty_line_after_description", empty_line_after_description),
            ("hidden", hidden),
            ("agent_mode", agent_mode),
    ):
        if not isinstance(value, bool):
            raise TypeError(f"command '{key}' must be a boolean")
        metadata[key] = value

    if not isinstance(show_default_values, bool | Unset):
        raise TypeError("command 'show_default_values' must be a boolean")
    metadata["show_default_values"] = show_default_values

    return metadata


def _sanitize_method(function, /, *, name=Unset, descr=Unset, hidden=False):
    """Internal: validate @command(...) settings for a method subcommand."""
    descr = () if descr is Unset else _lines("descr", descr)
    return {
        "name": _sanitize_name(coalesce(name, function.__name__)),
        "descr": descr[0] if descr else "",
        "hidden": bool(hidden),
    }


def command(source=Unset, /, **metadata):
    """
    Declare a command class or a method subcommand, or return a decorator doing so.

    Class keywords
    - name: command name (default: the lower-cased class name).
    - descr: description, a string or lines; the first line is shown in help
      and in the parent's "Commands:" table.
    - header / synopsis: lines printed before / instead of the generated usage line.
    - footer: text printed after a blank line at the end of the help.
    - version: version string printed by --version.
    - subcommands: @command classes reachable by name.
    - mixin_standard_help_options: show -h/--help and -V/--version even when the
      configuration does not.
    - empty_line_after_usage / empty_line_after_description: layout switches.
    - show_default_values: Unset (inherit the configuration), True or False.
    - hidden: hide this command from its parent's "Commands:" table.
    - agent_mode: accept bare option names ("name=value", "flag") under run_agent().

    Method keywords
    - name (default: the method name), descr, hidden.

    Returns
    - the decorated class (with its model in __command__) or method, or a
      decorator when called without a source.
    """
    @rename("command")
    def wrapper(source, /):
        if isinstance(source, type):
            source.__command__ = build_model(source, _sanitize_command(source, **metadata))
            return source
        if inspect.isfunction(source):
            source.__command__ = _sanitize_method(source, **metadata)
            return source
        raise TypeError("@command() must be applied to a class or a method")

    return wrapper(source) if source is not Unset else wrapper


def model_of(command, /):
    """The CommandModel of a command class or instance."""
    cls = command if isinstance(command, type) else type(command)
    if (model := vars(cls).get("__command__")) is None:
        raise TypeError(f"{cls.__qualname__} is not a command class (missing @command)")
    return model


class ParseContext(metaclass=ArgumentType):
    """
    Immutable parse state threaded through the driver.

    path is the tuple of command names from the root to the active command;
    derive updated contexts with copy.replace(context, ...).
    """

    __introspectable__ = ("path", "config", "agent_mode", "model", "instance", "root")
    __displayable__ = ("path", "agent_mode")

    def __init__(self, path, config, agent_mode, model, instance, root):
        self._path = tuple(path)
        self._config = config
        self._agent_mode = agent_mode
        self._model = model
        self._instance = instance
        self._root = root

    @property
    def display_path(self):
        return ("," if self._agent_mode else " ").join(self._path)

    @property
    def version(self):
        """The active command's version, else the root's, else the configured one, else "unknown"."""
        return self._model.version or self._root.version or self._config.version or "unknown"

    def help(self):
        return render(self._model, self._path, self._config, agent_mode=self._agent_mode)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(**{name: getattr(self, "_" + name) for name in self.__introspectable__} | overrides)


class CommandSpec(metaclass=ArgumentType):
    """
    Runtime view handed to commands through a Spec() declaration.

    Attributes
    - command: the command instance.
    - path: command names from the root to this command.
    - config: the CommandConfig of the run.
    - out / err: rich consoles writing to the run's sinks.

    Methods
    - usage(console=None): print this command's help (to out by default).
    - version(): the version string --version would print.
    """

    __introspectable__ = ("command", "path", "config", "out", "err")
    __displayable__ = ("path",)

    def __init__(self, context, out, err, /):
        self._context = context
        self._command = context.instance
        self._path = context.path
        self._config = context.config
        self._out = out
        self._err = err

    def usage(self, console=None):
        (console or self._out).print(self._context.help(), end="")

    def version(self):
        return self._context.version


class RunResult(metaclass=ArgumentType):
    """Outcome of a captured run: the text written to out and err, and the exit code."""

    __introspectable__ = ("out", "err", "exit_code")

    def __init__(self, out, err, exit_code):
        self._out = out
        self._err = err
        self._exit_code = exit_code

    def __iter__(self):
        return iter((self._out, self._err, self._exit_code))


def _console(file, /, *, color=True):
    """A rich console that writes text verbatim (no markup, highlighting, emoji or wrapping)."""
    return Console(
        file=file,
        markup=False,
        highlight=False,
        emoji=False,
        soft_wrap=True,
        color_system="auto" if color else None,
    )


def _inject(context, out, err, /):
    """Assign a CommandSpec to every unset Spec() declaration of the active command."""
    for field in context.model.specs:
        if getattr(context.instance, field) is None:
            setattr(context.instance, field, CommandSpec(context, out, err))


def _invoke(body, /):
    """Call a command body and map its result to an exit code."""
    match body():
        case int() as code if not isinstance(code, bool):
            return code
        case _:
            return 0


def _tokens(prompt, /):
    """Normalize a prompt into a list of tokens (Unset means sys.argv[1:])."""
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("run() prompt must be a string or an iterable of strings")
        return tokens
    raise TypeError("run() prompt must be a string or an iterable of strings")


def _execute(root, prompt, /, *, config, converters, out, err, agent_mode):
    """
    Internal: resolve, bind and invoke; map every outcome to an exit code.
    """
    model = model_of(root)
    context = ParseContext((model.name,), config, agent_mode, model, root, model)

    try:
        if isinstance(root, type):
            context = copy.replace(context, instance=root())
        tokens = deque(to_argv(prompt) if agent_mode else _tokens(prompt))
        _inject(context, out, err)
        method = None

        while tokens:
            check_interrupt(tokens[0], agent_mode=agent_mode)
            if tokens[0].startswith("-"):
                break
            match resolve(context.model, tokens[0]):
                case SubcommandRef() as reference:
                    tokens.popleft()
                    context = copy.replace(
                        context,
                        path=context.path + (reference.name,),
                        model=reference.model,
                        instance=reference.command(),
                    )
                    _inject(context, out, err)
                case MethodSubcommandRef() as reference:
                    tokens.popleft()
                    context = copy.replace(context, path=context.path + (reference.name,))
                    method = reference
                    break
                case _:
                    break

        if method is not None:
            for token in tokens:
                check_interrupt(token, agent_mode=agent_mode)
            code = _invoke(getattr(context.instance, method.method))
        else:
            if agent_mode and context.model.agent_mode_enabled:
                tokens = normalize_bare(context.model, tokens)
            bind(context.model, context.instance, tokens, config, converters, agent_mode=agent_mode)
            if not callable(body := getattr(context.instance, "run", None)):
                raise TypeError(f"command '{context.model.name}' must define a run() method")
            code = _invoke(body)

    except HelpRequested:
        out.print(context.help(), end="")
        code = config.help_exit_code
    except VersionRequested:
        out.print(context.version)
        code = 0
    except UsageError as exception:
        console = out if config.usage_errors_to_stdout else err
        console.print(exception)
        console.print()
        console.print(context.help(), end="")
        code = exception.exit_code
    except Exception as exception:
        logger.debug("command %r failed", context.display_path, exc_info=True)
        err.print(Text.assemble(("Error: ", "bold red"), str(exception)))
        code = 1

    logger.debug("command %r exited with %d", context.display_path, code)
    return code


def _settings(config, converters, /):
    config = coalesce(config, CommandConfig())
    if not isinstance(config, CommandConfig):
        raise TypeError("run() 'config' must be a CommandConfig")
    converters = dict(coalesce(converters, {}))
    return config, converters


def run(root, prompt=Unset, /, *, config=Unset, converters=Unset, out=Unset, err=Unset):
    """
    Run a command with a token list and return its exit code.

    Parameters
    - root: a @command class (instantiated without arguments) or an instance.
    - prompt: Unset (sys.argv[1:]), a shell-like string, or an iterable of strings.
    - config: CommandConfig (default settings when Unset).
    - converters: {type: callable} converters for this run only.
    - out / err: text sinks (default: sys.stdout / sys.stderr).
    """
    config, converters = _settings(config, converters)
    return _execute(
        root,
        prompt,
        config=config,
        converters=converters,
        out=_console(coalesce(out, None)),
        err=_console(coalesce(err, None)),
        agent_mode=False,
    )


def run_agent(root, text, /, *, config=Unset, converters=Unset, out=Unset, err=Unset):
    """
    Run a command with a comma-separated agent string and return its exit code.

    The bare words help/version are accepted for every command. Bare option
    names ("output=x", "verbose") are accepted for commands declared with
    agent_mode=True; help is rendered in agent style. Syntax errors in the agent
    string are usage errors (exit code 2).
    """
    if not isinstance(text, str):
        raise TypeError("run_agent() second argument must be a string")
    config, converters = _settings(config, converters)
    return _execute(
        root,
        text,
        config=config,
        converters=converters,
        out=_console(coalesce(out, None)),
        err=_console(coalesce(err, None)),
        agent_mode=True,
    )


def _captured(root, prompt, /, *, config, converters, agent_mode):
    config, converters = _settings(config, converters)
    out, err = io.StringIO(), io.StringIO()
    code = _execute(
        root,
        prompt,
        config=config,
        converters=converters,
        out=_console(out, color=False),
        err=_console(err, color=False),
        agent_mode=agent_mode,
    )
    return RunResult(out.getvalue(), err.getvalue(), code)


def run_captured(root, prompt=Unset, /, *, config=Unset, converters=Unset):
    """Like run(), but capture the output in a RunResult."""
    return _captured(root, prompt, config=config, converters=converters, agent_mode=False)


def run_agent_captured(root, text, /, *, config=Unset, converters=Unset):
    """Like run_agent(), but capture the output in a RunResult."""
    if not isinstance(text, str):
        raise TypeError("run_agent_captured() second argument must be a string")
    return _captured(root, text, config=config, converters=converters, agent_mode=True)


__all__ = (
    "command",
    "model_of",
    "run",
    "run_agent",
    "run_captured",
    "run_agent_captured",
    "RunResult",
    "ParseContext",
    "CommandSpec",
)
