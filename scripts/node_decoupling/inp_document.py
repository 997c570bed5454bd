"""
INP Document Reader
===================
Line-oriented access to an Abaqus input file for node decoupling.

The document is split into four regions:

    preamble     everything above the *Node line (copied verbatim)
    node list    the *Node line and the node lines that follow it
    elements     from the first *Element line up to the *Elset line
    postlude     the *Elset line and everything after it (copied verbatim)

Line endings are kept on every line so regions can be written back
byte-for-byte.
"""

import io
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import MalformedDocument, MalformedElement


# =============================================================================
# SECTION MARKERS
# =============================================================================

@dataclass
class SectionMarkers:
    """Keyword prefixes that delimit the sections of an INP file."""
    node: str = "*Node"
    element: str = "*Elem"
    elset: str = "*Elset"
    element_type_offset: int = 16

    def is_elset(self, line: str) -> bool:
        return line.lower().startswith(self.elset.lower())

    def is_element_header(self, line: str) -> bool:
        return line.lower().startswith(self.element.lower())


def parse_declared_nodes(header: str, offset: int = 16) -> Optional[int]:
    """
    Read the node count declared in an element header.

    Element types are not column aligned, so the header is scanned from
    `offset` onward and the first run of digits is taken, e.g.
    "*Element, type=CPS4R" -> 4.
    """
    for i in range(offset, len(header)):
        if header[i].isdigit():
            j = i
            while j < len(header) and header[j].isdigit():
                j += 1
            return int(header[i:j])
    return None


def split_line_ending(line: str) -> Tuple[str, str]:
    """Split a line into its content and its line ending."""
    body = line.rstrip("\r\n")
    return body, line[len(body):]


# =============================================================================
# DOCUMENT
# =============================================================================

class InpDocument:
    """Positional reader over the lines of an INP file."""

    def __init__(self, lines: List[str], markers: Optional[SectionMarkers] = None,
                 source: str = "<memory>"):
        self.lines = lines
        self.markers = markers or SectionMarkers()
        self.source = source

        self.node_marker_index: Optional[int] = None
        self.element_start_index: Optional[int] = None
        self.node_lines: List[str] = []

    @classmethod
    def from_file(cls, filename: str, markers: Optional[SectionMarkers] = None) -> "InpDocument":
        if not os.path.exists(filename):
            raise FileNotFoundError(f"INP file not found: {filename}")

        # newline='' keeps \r\n intact for byte-faithful pass-through
        with open(filename, 'r', newline='') as f:
            lines = f.readlines()

        return cls(lines, markers=markers, source=filename)

    @classmethod
    def from_text(cls, text: str, markers: Optional[SectionMarkers] = None) -> "InpDocument":
        # same line splitting as from_file: only \n, \r and \r\n end a line
        return cls(io.StringIO(text, newline='').readlines(), markers=markers)

    # -------------------------------------------------------------------------
    # Section location
    # -------------------------------------------------------------------------

    def locate_header(self) -> List[str]:
        """Find the node marker line and return the preamble above it."""
        marker = self.markers.node
        for i, line in enumerate(self.lines):
            if line.startswith(marker):
                self.node_marker_index = i
                return self.lines[:i]

        raise MalformedDocument(
            f"{self.source}: no node list marker '{marker}' found"
        )

    def locate_initial_nodes(self) -> Tuple[int, List[str]]:
        """
        Collect the node lines between the node marker and the first
        element marker.

        Returns
        -------
        Tuple of (node_count, node_lines)
        """
        if self.node_marker_index is None:
            raise MalformedDocument("locate_header() must run before locate_initial_nodes()")

        marker = self.markers.element
        for i in range(self.node_marker_index + 1, len(self.lines)):
            if self.lines[i].startswith(marker):
                self.element_start_index = i
                self.node_lines = self.lines[self.node_marker_index + 1:i]
                return len(self.node_lines), self.node_lines

        raise MalformedDocument(
            f"{self.source}: no element marker '{marker}' found after the node list"
        )

    @property
    def node_marker_line(self) -> str:
        return self.lines[self.node_marker_index]

    @property
    def node_count(self) -> int:
        return len(self.node_lines)

    def element_section(self) -> List[str]:
        """All lines from the first element header to the end of input."""
        if self.element_start_index is None:
            raise MalformedDocument("locate_initial_nodes() must run before reading elements")
        return self.lines[self.element_start_index:]

    @property
    def element_start_line_number(self) -> int:
        """1-based line number of the first element header."""
        return self.element_start_index + 1

    # -------------------------------------------------------------------------
    # Node lookup
    # -------------------------------------------------------------------------

    def node_line(self, node_ordinal: int) -> str:
        """Return the raw text of the Nth node line (1-based)."""
        if node_ordinal < 1 or node_ordinal > len(self.node_lines):
            raise MalformedElement(
                f"reference to node {node_ordinal}, but the node list holds "
                f"{len(self.node_lines)} nodes"
            )
        return self.node_lines[node_ordinal - 1]

    def fetch_node_text(self, node_ordinal: int) -> str:
        """
        Return the coordinate payload of the Nth node line: everything after
        its first comma, verbatim, including the line ending.
        """
        line = self.node_line(node_ordinal)
        _, sep, payload = line.partition(',')
        if not sep:
            raise MalformedDocument(
                f"{self.source}: node line {node_ordinal} has no coordinate fields: {line.rstrip()}"
            )
        return payload
