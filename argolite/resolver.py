"""
Argolite subcommand resolution.

A token names a subcommand when it matches the name of a class-style
subcommand (checked first) or of a method-style subcommand of the active
command. Tokens starting with a dash never name a subcommand.
"""
import logging

logger = logging.getLogger(__name__)


def resolve(model, token, /):
    """
    Return the SubcommandRef or MethodSubcommandRef named by token, or None.
    """
    if not token or token.startswith("-"):
        return None
    for reference in model.subcommands:
        if reference.name == token:
            logger.debug("resolved %r to subcommand class %s", token, reference.command.__qualname__)
            return reference
    for reference in model.method_subcommands:
        if reference.name == token:
            logger.debug("resolved %r to method subcommand %s", token, reference.method)
            return reference
    return None


__all__ = (
    "resolve",
)
