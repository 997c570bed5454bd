"""
Node decoupling modules for Abaqus INP meshes.
"""

from .errors import (
    DecouplingError,
    MalformedDocument,
    MalformedElement,
    UnrecognizedBlockComment
)

from .inp_document import (
    InpDocument,
    SectionMarkers,
    parse_declared_nodes
)

from .decouple_nodes import (
    decouple_file,
    decouple_text,
    run_decoupling,
    assemble_output,
    DecouplingPass,
    ElementRewriter,
    NodeStore,
    OccurrenceRegistry,
    DecouplingResult,
    DuplicateRecord,
    ElementBlock
)

from .export_report import (
    compute_valence_statistics,
    export_report,
    export_to_csv,
    export_to_json,
    print_results
)

__all__ = [
    # Errors
    'DecouplingError',
    'MalformedDocument',
    'MalformedElement',
    'UnrecognizedBlockComment',

    # Reader
    'InpDocument',
    'SectionMarkers',
    'parse_declared_nodes',

    # Decoupling
    'decouple_file',
    'decouple_text',
    'run_decoupling',
    'assemble_output',
    'DecouplingPass',
    'ElementRewriter',
    'NodeStore',
    'OccurrenceRegistry',
    'DecouplingResult',
    'DuplicateRecord',
    'ElementBlock',

    # Report
    'compute_valence_statistics',
    'export_report',
    'export_to_csv',
    'export_to_json',
    'print_results'
]
