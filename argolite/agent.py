r"""
Argolite agent-mode token syntax.

Agent args are a single comma-separated string translated into the usual
argument vector, for hosts where spaces and shell quoting are awkward (attach
strings such as "start,interval=1ms", environment variables...).

Grammar
- tokens are separated by unescaped, unquoted commas.
- escapes: \\ (backslash), \, (comma), \= (equals); anything else is an error.
- a single quote toggles quoted mode, where commas and spaces are literal.
- each token is trimmed; empty tokens are rejected (use --opt= for an empty value).

Normalization
- once the active command is known, and only when it was declared with
  agent_mode=True, bare tokens are rewritten to option syntax:
  "help" -> "--help", "name=value" -> "--name=value", "verbose" -> "--verbose"
  for boolean options. Tokens already starting with a dash pass through.

Quick example:
    >>> to_argv(r"stop,jfr,output=file.jfr,verbose")
    ['stop', 'jfr', 'output=file.jfr', 'verbose']
"""
from .faults import AgentSyntaxError
from .utils import strip_dashes

_ESCAPABLE = frozenset("\\,=")

_BARE_INTERRUPTS = {
    "help": "--help",
    "version": "--version",
}


def _flush(tokens, buffer, /):
    if not (token := "".join(buffer).strip()):
        raise AgentSyntaxError("Empty token in agent args (did you use ',,' or a trailing comma?)")
    tokens.append(token)
    buffer.clear()


def to_argv(text, /):
    """
    Split an agent string into tokens.

    Returns an empty list for a blank string.

    Raises
    - TypeError: text is not a string.
    - AgentSyntaxError: invalid or dangling escape, unterminated quote, empty token.
    """
    if not isinstance(text, str):
        raise TypeError("to_argv() argument must be a string")
    if not text.strip():
        return []

    tokens, buffer = [], []
    escaping = quoted = False
    for index, character in enumerate(text):
        if escaping:
            if character not in _ESCAPABLE:
                raise AgentSyntaxError(
                    f"Invalid escape sequence: \\{character} at index {index}",
                    index=index,
                )
            buffer.append(character)
            escaping = False
        elif character == "\\":
            escaping = True
        elif character == "'":
            quoted = not quoted
        elif character == "," and not quoted:
            _flush(tokens, buffer)
        else:
            buffer.append(character)

    if escaping:
        raise AgentSyntaxError("Dangling escape at end of agent args")
    if quoted:
        raise AgentSyntaxError("Unterminated single quote in agent args")
    _flush(tokens, buffer)
    return tokens


def normalize_interrupt(token, /):
    """Map the bare words help/version to --help/--version; other tokens are unchanged."""
    return _BARE_INTERRUPTS.get(token, token)


def normalize_bare(model, tokens, /):
    """
    Rewrite bare agent tokens into option syntax for the given command model.

    - "-..." tokens pass through unchanged.
    - "help" / "version" become "--help" / "--version".
    - "name=value" becomes "<canonical>=value" when name is a known bare option
      name (the first option declaring it wins).
    - "name" becomes the matching dashed name when it names a boolean option.
    - anything else passes through (it is a positional or a subcommand).

    Returns a new list; ambiguity was already rejected when the model was built.
    """
    normalized = []
    for token in tokens:
        if token.startswith("-"):
            normalized.append(token)
            continue
        if (token := normalize_interrupt(token)).startswith("--"):
            normalized.append(token)
            continue
        bare, separator, value = token.partition("=")
        if separator and (option := model.options_by_bare.get(bare)) is not None:
            normalized.append(f"{option.preferred}={value}")
            continue
        if not separator and (flag := _boolean_flag(model, token)) is not None:
            normalized.append(flag)
            continue
        normalized.append(token)
    return normalized


def _boolean_flag(model, bare, /):
    for option in model.options:
        if option.boolean:
            for name in option.names:
                if strip_dashes(name) == bare:
                    return name
    return None


__all__ = (
    "to_argv",
    "normalize_bare",
    "normalize_interrupt",
)
