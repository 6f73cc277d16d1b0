"""Typed errors raised by bracket and draw services. Routes map them to HTTP status codes."""


class BracketEngineError(Exception):
    """Base exception for bracket/draw operations"""

    pass


class NotFoundError(BracketEngineError):
    """Stage, tournament, draw, match or participant does not exist"""

    pass


class BadRequestError(BracketEngineError):
    """Input or state validation failed; nothing was written"""

    pass
