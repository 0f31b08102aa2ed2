"""
Argolite help rendering.

render() turns a CommandModel into usage/help text. The layout is part of the
command-line contract, so it is fixed and deterministic:

    Usage: myapp greet [-hV] --name=<name> [--count=<count>]
    Greet a person
      -c, --count=<count>    Count (default 1)
      -h, --help             Show this help message and exit.
      -n, --name=<name>      Name to greet (required)
      -V, --version          Print version information and exit.

Layout
- header lines, then the custom synopsis or a generated one wrapped to 80
  columns, then the first description line (classic mode only).
- parameter rows (index order), then option rows sorted by their label with
  leading dashes removed, lower-cased. The label column is
  max(12, longest label) wide and descriptions start 6 columns after it; rows
  with a short option are indented by 2, others by 6; a label that does not
  fit goes on its own line.
- a "Commands:" table of visible subcommands, then the footer.

Agent mode joins the path and the synopsis with commas, drops the dashes
from option names and prints an "Options:" heading instead of the description.
"""
import enum
import re

from .config import DEFAULT_VALUE_PLACEHOLDER
from .converters import enum_candidates
from .utils import *

MIN_LABEL_WIDTH = 12
MAX_LINE_WIDTH = 80

_CANDIDATES = re.compile(r"\$\{COMPLETION-CANDIDATES(?::([^}]*))?\}")

_STANDARD_ENTRIES = (
    ("-h, --help", "h, help", "Show this help message and exit."),
    ("-V, --version", "V, version", "Print version information and exit."),
)


def wrap_lines(text, width, /):
    """
    Split text into lines no wider than width.

    Newlines are honored and empty lines dropped; words are separated on single
    spaces and a word longer than width gets a line of its own. Returns [] for
    empty text, and [text] when nothing else would remain.
    """
    if not text:
        return []
    lines = []
    for line in text.split("\n"):
        if not line:
            continue
        if width <= 0 or len(line) <= width:
            lines.append(line)
            continue
        current = ""
        for word in line.split(" "):
            if not current:
                current = word
            elif len(current) + 1 + len(word) <= width:
                current += " " + word
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
    return lines or [text]


def wrap_block(text, width, indent, /):
    """Wrap text to width, indenting continuation lines by indent spaces."""
    if not text or width <= 0 or len(text) <= width:
        return text or ""
    return ("\n" + " " * max(0, indent)).join(wrap_lines(text, width))


def _display_default(default, /):
    if isinstance(default, enum.Enum):
        return default.name
    return str(default)


def _expand(text, option, /):
    """Expand ${DEFAULT-VALUE} and ${COMPLETION-CANDIDATES[:separator]} in an option description."""
    default = "none" if option.default is Unset else _display_default(option.default)
    text = text.replace(DEFAULT_VALUE_PLACEHOLDER, default)
    return _expand_candidates(text, option.type, option.show_enum_descriptions)


def _expand_candidates(text, type, descriptions, /):
    def substitute(match):
        separator = match.group(1)
        if separator is None:
            separator = ", "
        else:
            separator = separator.replace("\\n", "\n").replace("\\t", "\t")
        return enum_candidates(type, separator, descriptions=descriptions)

    return _CANDIDATES.sub(substitute, text)


def _with_default(description, option, config, model, /):
    """Append the rendered default-value template when the option shows its default."""
    if not config.effective_show_default_values(model) or not option.show_default:
        return description
    if option.default is Unset or option.default is None or not (default := _display_default(option.default)):
        return description
    if option.descr and DEFAULT_VALUE_PLACEHOLDER in option.descr:
        return description

    template = option.default_template
    if not template or not template.strip():
        template = config.effective_default_value_help_template
    if not (rendered := template.replace(DEFAULT_VALUE_PLACEHOLDER, default)).strip():
        return description

    if not description.strip():
        return rendered.lstrip()
    if option.default_on_new_line or config.default_value_on_new_line:
        return description + "\n" + rendered.lstrip()
    return description + rendered


def _option_label(option, agent_mode, /):
    names = sorted(option.names, key=len)
    if agent_mode:
        names = map(strip_dashes, names)
    label = ", ".join(names)
    if not option.boolean:
        label += "=" + option.label
    return label


def _sort_key(entry, /):
    return re.sub(r"^\s*-+", "", entry[0]).lower()


def _synopsis(model, path, standard, agent_mode, /):
    options = [option for option in model.options if not option.hidden]
    parameters = [parameter for parameter in model.parameters if not parameter.hidden]

    if agent_mode:
        parts = [path]
        if standard:
            parts.append("[hV]")
        for option in options:
            name = strip_dashes(option.names[-1])
            if not option.boolean:
                token = f"{name}={option.label}"
                parts.append(token if option.required else f"[{token}]")
            elif not option.required:
                parts.append(f"[{name}]")
        if model.has_subcommands:
            parts.append("[COMMAND]")
        parts.extend(parameter.display_label for parameter in parameters)
        return "Usage: " + ",".join(parts)

    synopsis = "Usage: " + path
    if standard:
        synopsis += " [-hV]"
    for option in options:
        name = option.names[-1]
        if not option.boolean:
            token = f"{name}={option.label}"
            synopsis += f" {token}" if option.required else f" [{token}]"
        elif not option.required:
            synopsis += f" [{name}]"
    if model.has_subcommands:
        synopsis += " [COMMAND]"
    for parameter in parameters:
        synopsis += " " + parameter.display_label
    return wrap_block(synopsis, MAX_LINE_WIDTH, len("Usage: ") + len(path) + 1)


def _aligned(label, description, width, short, /):
    """Rows of one table entry, padded to the description column."""
    prefix = "  " if short else "      "
    label = prefix + label
    column = width + 6
    lines = wrap_lines(description, MAX_LINE_WIDTH - column)

    if len(label) >= column:
        return [label, *(" " * column + line for line in lines)]
    if not lines:
        return [label]
    first, *rest = lines
    return [label.ljust(column) + first, *(" " * column + line for line in rest)]


def _entries(model, config, standard, agent_mode, /):
    entries = [
        (parameter.display_label, parameter.descr or "", False)
        for parameter in model.parameters
        if not parameter.hidden
    ]

    options = []
    if standard:
        for classic, agent, description in _STANDARD_ENTRIES:
            options.append((agent if agent_mode else classic, description, True))
    for option in model.options:
        if option.hidden:
            continue
        description = _with_default(_expand(option.descr or "", option), option, config, model)
        if option.required:
            description += " (required)"
        options.append((_option_label(option, agent_mode), description, option.has_short))

    lines = []
    if agent_mode and options:
        lines.append("Options:")

    entries.extend(sorted(options, key=_sort_key))
    if entries:
        width = max(MIN_LABEL_WIDTH, max(len(label) for label, _, _ in entries))
        for label, description, short in entries:
            lines.extend(_aligned(label, description, width, short))
    return lines


def _commands(model, /):
    rows = [(reference.name, reference.descr) for reference in model.subcommands if not reference.hidden]
    rows.extend((reference.name, reference.descr) for reference in model.method_subcommands if not reference.hidden)
    if not rows:
        return []
    width = max(len(name) for name, _ in rows) + 2
    return ["Commands:", *(f"  {name:<{width}}{description}" for name, description in rows if name)]


def render(model, path, config, /, agent_mode=False):
    """
    Render the help text of a command.

    Parameters
    - model: CommandModel to describe.
    - path: the command path, as a sequence of names or an already joined string.
    - config: CommandConfig with the global help settings.
    - agent_mode: render the comma-separated agent variant.

    Returns
    - the full text, each line terminated by a newline.
    """
    if not isinstance(path, str):
        path = ("," if agent_mode else " ").join(path)
    standard = config.effective_mixin_standard_help_options(model)

    lines = [*model.header]
    lines.extend(model.synopsis or [_synopsis(model, path, standard, agent_mode)])
    if config.effective_empty_line_after_usage(model):
        lines.append("")
    if not agent_mode and model.description:
        lines.append(model.description[0])
    if config.effective_empty_line_after_description(model):
        lines.append("")
    lines.extend(_entries(model, config, standard, agent_mode))
    lines.extend(_commands(model))

    text = "".join(line + "\n" for line in lines)
    if (footer := model.footer) and footer.strip():
        text += "\n" + (footer if footer.endswith(("\n", "\r")) else footer + "\n")
    return text


__all__ = (
    "render",
    "wrap_lines",
    "wrap_block",
)
