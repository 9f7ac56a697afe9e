class NurbsError(Exception):
    """Base class for the errors raised by nurbsinterp."""


class InvalidInputError(NurbsError, ValueError):
    """The curve definition cannot be evaluated (missing or too few control points, bad order)."""
