"""
Argolite faults (interrupts and errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fault the engine
  can raise. Codes are grouped by domain to keep logs/searches predictable.
- CommandException: base type carrying a message plus free-form options and
  knowing how to render itself through rich.
- CommandInterrupt: control-flow faults (help/version requests); never errors.
- UsageError: everything the user can fix by changing the command line. The
  run driver maps these to exit code 2 and reprints help.

Taxonomy
- interrupts:    HelpRequested, VersionRequested
- usage errors:  UnknownOptionError, MissingOptionValueError,
                 MissingRequiredOptionError, MissingRequiredParameterError,
                 TooManyParametersError (UnexpectedParameterError),
                 ConversionError, VerificationError, AgentSyntaxError
- build time:    AmbiguousOptionNameError (also a ValueError)
- programming:   UnsupportedFieldTypeError (also a TypeError)

Integration
- The binder raises faults with the final, user-facing message.
- copy.replace(fault, **options) enriches a fault with more context (for
  instance the command that was active when it happened).
"""
from enum import IntEnum
from types import MappingProxyType

from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - interrupts (1000x)
      • HELP_REQUESTED, VERSION_REQUESTED
    - options (1111x)
      • UNKNOWN_OPTION, MISSING_OPTION_VALUE, MISSING_REQUIRED_OPTION
    - parameters (1112x)
      • TOO_MANY_PARAMETERS, UNEXPECTED_PARAMETER, MISSING_REQUIRED_PARAMETER
    - values (1113x)
      • CONVERSION_FAILURE, VERIFICATION_FAILURE, UNSUPPORTED_FIELD_TYPE
    - agent syntax (1114x)
      • AGENT_SYNTAX
    - model construction (1190x)
      • AMBIGUOUS_OPTION_NAME
    """
    # --- interrupts (10xxx) ---
    HELP_REQUESTED             = 10001
    VERSION_REQUESTED          = 10002

    # --- option errors (111xx) ---
    UNKNOWN_OPTION             = 11112
    MISSING_OPTION_VALUE       = 11117
    MISSING_REQUIRED_OPTION    = 11119

    # --- parameter errors (112xx) ---
    TOO_MANY_PARAMETERS        = 11121
    UNEXPECTED_PARAMETER       = 11122
    MISSING_REQUIRED_PARAMETER = 11125

    # --- value errors (113xx) ---
    CONVERSION_FAILURE         = 11131
    VERIFICATION_FAILURE       = 11132
    UNSUPPORTED_FIELD_TYPE     = 11133

    # --- agent syntax errors (114xx) ---
    AGENT_SYNTAX               = 11141

    # --- model errors (119xx) ---
    AMBIGUOUS_OPTION_NAME      = 11901


class CommandException(Exception):
    """
    Base fault: a message plus read-only options.

    The options mapping carries structured context (the offending name, the
    suggestion, the raw value...) so tests and hosts can inspect a fault
    without parsing its message.
    """
    code = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, "")
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return Text.assemble(("Error: ", "bold red"), self.message)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class CommandInterrupt(CommandException):
    """Control-flow fault: stops parsing without being an error."""


class HelpRequested(CommandInterrupt):
    code = FaultCode.HELP_REQUESTED


class VersionRequested(CommandInterrupt):
    code = FaultCode.VERSION_REQUESTED


class UsageError(CommandException):
    """A command-line mistake; reported with help text and exit code 2."""
    exit_code = 2


class UnknownOptionError(UsageError):
    code = FaultCode.UNKNOWN_OPTION


class MissingOptionValueError(UsageError):
    code = FaultCode.MISSING_OPTION_VALUE


class MissingRequiredOptionError(UsageError):
    code = FaultCode.MISSING_REQUIRED_OPTION


class MissingRequiredParameterError(UsageError):
    code = FaultCode.MISSING_REQUIRED_PARAMETER


class TooManyParametersError(UsageError):
    code = FaultCode.TOO_MANY_PARAMETERS


class UnexpectedParameterError(TooManyParametersError):
    code = FaultCode.UNEXPECTED_PARAMETER


class ConversionError(UsageError):
    code = FaultCode.CONVERSION_FAILURE


class VerificationError(UsageError):
    """
    Raised by verifiers to reject a converted value.

    The message is shown to the user verbatim after "Error: ".
    """
    code = FaultCode.VERIFICATION_FAILURE


class AgentSyntaxError(UsageError):
    code = FaultCode.AGENT_SYNTAX


class AmbiguousOptionNameError(CommandException, ValueError):
    code = FaultCode.AMBIGUOUS_OPTION_NAME


class UnsupportedFieldTypeError(CommandException, TypeError):
    code = FaultCode.UNSUPPORTED_FIELD_TYPE


__all__ = (
    "FaultCode",
    "CommandException",
    "CommandInterrupt",
    "HelpRequested",
    "VersionRequested",
    "UsageError",
    "UnknownOptionError",
    "MissingOptionValueError",
    "MissingRequiredOptionError",
    "MissingRequiredParameterError",
    "TooManyParametersError",
    "UnexpectedParameterError",
    "ConversionError",
    "VerificationError",
    "AgentSyntaxError",
    "AmbiguousOptionNameError",
    "UnsupportedFieldTypeError",
)
