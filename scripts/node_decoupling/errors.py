"""
Error types raised while decoupling an INP mesh.
"""

from dataclasses import dataclass
from typing import Optional


class DecouplingError(Exception):
    """Base class for all decoupling failures."""


class MalformedDocument(DecouplingError):
    """A required section marker is missing from the input."""


class MalformedElement(DecouplingError):
    """An element line cannot be rewritten safely."""

    def __init__(self, message: str, line_number: Optional[int] = None,
                 line: Optional[str] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


@dataclass
class UnrecognizedBlockComment:
    """Non-fatal: a keyword line in the element section that is neither a
    block header nor the ELSET terminator. The line is passed through."""
    line_number: int
    line: str

    def __str__(self) -> str:
        return f"Unrecognized keyword line {self.line_number}: {self.line.rstrip()}"
