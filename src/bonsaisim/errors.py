"""
Exception types raised by the simulation core.
"""


class BonsaiError(Exception):
    """Base class for all recoverable simulation errors."""


class InvalidArgumentError(BonsaiError, ValueError):
    """A caller supplied an argument that violates an operation's precondition."""


class DegenerateGeometryError(BonsaiError, ArithmeticError):
    """A geometric quantity is undefined, e.g. the direction of a zero-length edge."""
