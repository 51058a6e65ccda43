class BracketError(Exception):
    """Base class for every error raised by the bracket engine."""


class InvalidInputError(BracketError, ValueError):
    """Caller supplied data the engine cannot work with (too few teams, bad score...)."""


class UnsupportedFormatError(BracketError, NotImplementedError):
    """Category format has no bracket generator."""

    def __init__(self, bracket_format):
        self.bracket_format = bracket_format
        super().__init__(f"Bracket generation for format '{bracket_format}' is not implemented.")


class MalformedSourceError(BracketError, RuntimeError):
    """
    A match references a match id that is not part of the bracket.
    This is a bug in graph construction, never a user error.
    """

    def __init__(self, match_id: str, referenced_id: str, reason: str = "references unknown match"):
        self.match_id = match_id
        self.referenced_id = referenced_id
        super().__init__(f"Consistency error: match {match_id} {reason} {referenced_id}.")
