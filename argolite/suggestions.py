"""
Argolite "did you mean" suggestions.

The binder consults this module only after an option name failed to resolve.
Suggestions are advisory text: they never change the outcome of a parse.
"""
from .config import SUGGESTION_PLACEHOLDER


def levenshtein(first, second, /):
    """
    Case-sensitive edit distance between two strings (two-row dynamic programming).
    """
    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, 1):
        current = [i]
        for j, right in enumerate(second, 1):
            if left == right:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def suggest(name, candidates, /):
    """
    Return the candidate closest to name, or None.

    A candidate qualifies when its distance is at most max(2, len(name) // 2).
    Ties keep the first candidate in iteration order.
    """
    best, distance = None, None
    for candidate in candidates:
        current = levenshtein(name, candidate)
        if distance is None or current < distance:
            best, distance = candidate, current
    if best is None or distance > max(2, len(name) // 2):
        return None
    return best


def unknown_option_message(name, candidates, config, /):
    """
    Build the unknown-option message, decorated with a suggestion when enabled.

    Returns a (message, suggestion) pair; suggestion is None when nothing
    was suggested.
    """
    message = "Unknown option: " + name
    if not config.suggest_similar_options:
        return message, None
    if (suggestion := suggest(name, candidates)) is None:
        return message, None
    template = config.effective_similar_options_suggestion_template
    return message + "\n" + template.replace(SUGGESTION_PLACEHOLDER, suggestion), suggestion


__all__ = (
    "levenshtein",
    "suggest",
    "unknown_option_message",
)
