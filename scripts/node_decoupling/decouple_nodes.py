"""
Node Decoupler for Abaqus INP Meshes
====================================
Rewrites an INP mesh so that no two elements share a node.

Walks the element section in file order. The first element to reference a
node keeps it; every later reference (in any block, including repeated
references inside one element) is replaced by a freshly created duplicate
node with the same coordinates. Duplicates are appended to the end of the
node list, so the rewritten elements are buffered until the final node
list is known.

Output layout:
    preamble -> node list (+ duplicates) -> rewritten elements -> postlude

Author: Node Decoupling Pipeline
"""

import io
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, TextIO, Tuple

from .errors import MalformedDocument, MalformedElement, UnrecognizedBlockComment
from .inp_document import (
    InpDocument, SectionMarkers, parse_declared_nodes, split_line_ending
)


NODE_TOKEN = re.compile(r'\s*(\d+)\s*')


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class DuplicateRecord:
    """One node created by decoupling."""
    new_id: int
    original_id: int
    element_id: str


@dataclass
class ElementBlock:
    """A run of elements below one *Element header."""
    header: str
    declared_nodes: Optional[int] = None
    n_elements: int = 0


@dataclass
class DecouplingResult:
    """Bookkeeping of a decoupling run."""
    input_path: str = ""
    output_path: str = ""
    n_original_nodes: int = 0
    n_final_nodes: int = 0
    n_elements: int = 0
    blocks: List[ElementBlock] = field(default_factory=list)
    duplicates: List[DuplicateRecord] = field(default_factory=list)
    warnings: List[UnrecognizedBlockComment] = field(default_factory=list)
    connectivity: List[List[int]] = field(default_factory=list, repr=False)

    @property
    def n_duplicates(self) -> int:
        return len(self.duplicates)


# =============================================================================
# OCCURRENCE REGISTRY
# =============================================================================

class OccurrenceRegistry:
    """
    Original node ids already referenced by a processed element.

    Lives for a whole run and is never reset, so "first use wins" holds
    across every element block of the document.
    """

    def __init__(self):
        self._seen: Dict[int, bool] = {}

    def seen(self, node_id: int) -> bool:
        return self._seen.get(node_id, False)

    def mark_seen(self, node_id: int) -> None:
        self._seen[node_id] = True

    def __contains__(self, node_id: int) -> bool:
        return self.seen(node_id)

    def __len__(self) -> int:
        return len(self._seen)


# =============================================================================
# NODE STORE
# =============================================================================

class NodeStore:
    """Original node list plus the duplicates appended during a run."""

    def __init__(self, document: InpDocument):
        self.document = document
        self.count = document.node_count
        self.new_lines: List[str] = []
        self.records: List[DuplicateRecord] = []

    @property
    def n_original(self) -> int:
        return self.document.node_count

    def duplicate(self, original_id: int, element_id: str = "") -> int:
        """
        Append a copy of node `original_id` under the next free id.

        The coordinate payload is copied verbatim from the original node
        line; only the id changes.
        """
        original_line = self.document.node_line(original_id)
        payload = self.document.fetch_node_text(original_id)
        indent = original_line[:len(original_line) - len(original_line.lstrip(' \t'))]

        self.count += 1
        new_id = self.count

        self.new_lines.append(f"{indent}{new_id},{payload}")
        self.records.append(DuplicateRecord(
            new_id=new_id, original_id=original_id, element_id=element_id
        ))
        return new_id

    def node_lines(self) -> List[str]:
        """Node marker, original node lines, then duplicates in creation order."""
        return ([self.document.node_marker_line]
                + list(self.document.node_lines)
                + self.new_lines)


# =============================================================================
# ELEMENT REWRITER
# =============================================================================

class ElementRewriter:
    """Rewrites the connectivity of single element lines."""

    def __init__(self, registry: OccurrenceRegistry, node_store: NodeStore):
        self.registry = registry
        self.node_store = node_store

    def rewrite(self, line: str, line_number: Optional[int] = None) -> Tuple[str, List[int]]:
        """
        Rewrite one element line.

        Returns
        -------
        Tuple of (rewritten_line, original_node_ids)
        """
        body, ending = split_line_ending(line)
        tokens = [t for t in body.split(',') if t.strip()]
        if not tokens:
            return line, []

        element_id = tokens[0]
        out = [element_id]
        original_nodes = []

        for token in tokens[1:]:
            match = NODE_TOKEN.fullmatch(token)
            if match is None:
                raise MalformedElement(
                    f"node reference '{token.strip()}' is not a non-negative integer",
                    line_number=line_number, line=line
                )
            node_id = int(match.group(1))
            original_nodes.append(node_id)

            if not self.registry.seen(node_id):
                self.registry.mark_seen(node_id)
                out.append(str(node_id))
            else:
                try:
                    new_id = self.node_store.duplicate(node_id, element_id.strip())
                except MalformedElement as e:
                    raise MalformedElement(str(e), line_number=line_number, line=line) from e
                out.append(str(new_id))

        return ", ".join(out) + ending, original_nodes


# =============================================================================
# DECOUPLING PASS
# =============================================================================

class PassState(Enum):
    READING_TYPE_COMMENT = "reading_type_comment"
    READING_ELEMENT_LINE = "reading_element_line"
    DONE = "done"


class DecouplingPass:
    """State machine over the element section of a located document."""

    def __init__(self, document: InpDocument):
        self.document = document
        self.markers = document.markers

        self.registry = OccurrenceRegistry()
        self.node_store = NodeStore(document)
        self.rewriter = ElementRewriter(self.registry, self.node_store)

        self.state = PassState.READING_TYPE_COMMENT
        self.element_lines: List[str] = []
        self.postlude: List[str] = []
        self.elements_read = 0
        self.blocks: List[ElementBlock] = []
        self.warnings: List[UnrecognizedBlockComment] = []
        self.connectivity: List[List[int]] = []

    def run(self) -> "DecouplingPass":
        section = self.document.element_section()
        first_line_number = self.document.element_start_line_number

        for offset, line in enumerate(section):
            line_number = first_line_number + offset

            if line.startswith('*'):
                if self.markers.is_elset(line):
                    self.postlude = section[offset:]
                    self.state = PassState.DONE
                    break
                self._handle_keyword(line, line_number)
            elif not line.strip():
                self.element_lines.append(line)
            else:
                self._handle_element(line, line_number)

        if self.state is not PassState.DONE:
            raise MalformedDocument(
                f"{self.document.source}: element section has no "
                f"'{self.markers.elset}' terminator"
            )
        return self

    def _handle_keyword(self, line: str, line_number: int) -> None:
        self.element_lines.append(line)

        if self.markers.is_element_header(line):
            declared = parse_declared_nodes(line, self.markers.element_type_offset)
            self.blocks.append(ElementBlock(header=line.rstrip('\r\n'), declared_nodes=declared))
            self.state = PassState.READING_TYPE_COMMENT
            return

        warning = UnrecognizedBlockComment(line_number=line_number, line=line)
        self.warnings.append(warning)
        print(f"  Warning: {warning}")

    def _handle_element(self, line: str, line_number: int) -> None:
        rewritten, original_nodes = self.rewriter.rewrite(line, line_number)
        self.element_lines.append(rewritten)
        self.connectivity.append(original_nodes)
        self.elements_read += 1
        if self.blocks:
            self.blocks[-1].n_elements += 1
        self.state = PassState.READING_ELEMENT_LINE

    def result(self) -> DecouplingResult:
        return DecouplingResult(
            input_path=self.document.source,
            n_original_nodes=self.node_store.n_original,
            n_final_nodes=self.node_store.count,
            n_elements=self.elements_read,
            blocks=self.blocks,
            duplicates=list(self.node_store.records),
            warnings=self.warnings,
            connectivity=self.connectivity,
        )


# =============================================================================
# ASSEMBLER
# =============================================================================

def assemble_output(preamble: List[str], node_lines: List[str],
                    element_lines: List[str], postlude: List[str],
                    sink: TextIO) -> None:
    """Write the four document regions to `sink` in order."""
    for region in (preamble, node_lines, element_lines, postlude):
        for line in region:
            sink.write(line)


def write_decoupled_inp(preamble: List[str], decoupling: DecouplingPass,
                        filename: str) -> None:
    """Write the decoupled document to `filename`."""
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, 'w', newline='') as f:
        assemble_output(preamble, decoupling.node_store.node_lines(),
                        decoupling.element_lines, decoupling.postlude, f)

    print(f"  Written: {filename}")


# =============================================================================
# MAIN DECOUPLING FUNCTIONS
# =============================================================================

def run_decoupling(document: InpDocument, verbose: bool = True) -> Tuple[List[str], DecouplingPass]:
    """Locate the sections of `document` and run the decoupling pass."""
    preamble = document.locate_header()
    n_nodes, _ = document.locate_initial_nodes()
    if verbose:
        print(f"  Preamble: {len(preamble)} lines")
        print(f"  Original nodes: {n_nodes}")

    decoupling = DecouplingPass(document).run()
    if verbose:
        print(f"  Elements: {decoupling.elements_read} in {len(decoupling.blocks)} block(s)")
        print(f"  Duplicated nodes: {len(decoupling.node_store.records)}")
        print(f"  Final nodes: {decoupling.node_store.count}")

    return preamble, decoupling


def decouple_text(text: str, markers: Optional[SectionMarkers] = None,
                  verbose: bool = False) -> Tuple[str, DecouplingResult]:
    """Decouple an INP document held in memory."""
    document = InpDocument.from_text(text, markers=markers)
    preamble, decoupling = run_decoupling(document, verbose=verbose)

    buffer = io.StringIO(newline='')
    assemble_output(preamble, decoupling.node_store.node_lines(),
                    decoupling.element_lines, decoupling.postlude, buffer)
    return buffer.getvalue(), decoupling.result()


def decouple_file(input_path: str, output_path: str,
                  markers: Optional[SectionMarkers] = None,
                  verbose: bool = True) -> DecouplingResult:
    """
    Main function: decouple the mesh in `input_path` into `output_path`.

    Nothing is written unless the whole element section was processed.

    Returns
    -------
    DecouplingResult : counts, blocks, duplicates and warnings of the run
    """
    print("\n" + "=" * 70)
    print("NODE DECOUPLING")
    print("=" * 70)

    print(f"\n1. Reading: {input_path}")
    document = InpDocument.from_file(input_path, markers=markers)
    print(f"   {len(document.lines)} lines")

    print("\n2. Decoupling elements...")
    preamble, decoupling = run_decoupling(document, verbose=verbose)

    print("\n3. Writing decoupled INP...")
    write_decoupled_inp(preamble, decoupling, output_path)

    result = decoupling.result()
    result.output_path = output_path

    print("\n" + "=" * 70)
    print("DECOUPLING COMPLETE")
    print("=" * 70)
    print(f"\nNodes:    {result.n_original_nodes} -> {result.n_final_nodes}")
    print(f"Elements: {result.n_elements}")
    if result.warnings:
        print(f"Warnings: {len(result.warnings)}")
    print("=" * 70)

    return result
