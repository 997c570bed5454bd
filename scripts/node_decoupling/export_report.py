"""
Decoupling Report with Export
=============================
Summarizes a decoupling run and exports it.

Features:
- Node valence statistics (how many element references each node had)
- Exports the list of created nodes to CSV and/or JSON
- Console summary table

Author: Node Decoupling Pipeline
"""

import os
import csv
import json
import numpy as np
from dataclasses import asdict
from datetime import datetime
from typing import Dict, Any

from .decouple_nodes import DecouplingResult


# =============================================================================
# STATISTICS
# =============================================================================

def compute_valence_statistics(result: DecouplingResult) -> Dict[str, Any]:
    """
    Count element references per original node.

    Returns
    -------
    dict with n_referenced, n_shared, max_valence, mean_valence and
    histogram (valence -> number of nodes)
    """
    refs = [n for nodes in result.connectivity for n in nodes]
    if not refs:
        return {
            'n_referenced': 0,
            'n_shared': 0,
            'max_valence': 0,
            'mean_valence': 0.0,
            'histogram': {}
        }

    _, valence = np.unique(np.asarray(refs, dtype=np.int64), return_counts=True)
    levels, counts = np.unique(valence, return_counts=True)

    return {
        'n_referenced': int(valence.size),
        'n_shared': int(np.count_nonzero(valence > 1)),
        'max_valence': int(valence.max()),
        'mean_valence': float(valence.mean()),
        'histogram': {int(v): int(c) for v, c in zip(levels, counts)}
    }


# =============================================================================
# EXPORT FUNCTIONS
# =============================================================================

def export_to_csv(result: DecouplingResult, filepath: str) -> None:
    """Export the created nodes to a CSV file."""

    os.makedirs(os.path.dirname(filepath) or '.', exist_ok=True)
    stats = compute_valence_statistics(result)

    with open(filepath, 'w', newline='') as f:
        writer = csv.writer(f)

        # Header section
        writer.writerow(['# Node Decoupling Report'])
        writer.writerow(['# ' + '=' * 60])
        writer.writerow(['# Timestamp', datetime.now().isoformat()])
        writer.writerow(['# Input', result.input_path])
        writer.writerow(['# Output', result.output_path])
        writer.writerow(['#'])
        writer.writerow(['# Counts'])
        writer.writerow(['# Elements', result.n_elements])
        writer.writerow(['# Nodes (original)', result.n_original_nodes])
        writer.writerow(['# Nodes (final)', result.n_final_nodes])
        writer.writerow(['# Duplicates', result.n_duplicates])
        writer.writerow(['#'])
        writer.writerow(['# Valence'])
        writer.writerow(['# Shared nodes', stats['n_shared']])
        writer.writerow(['# Max valence', stats['max_valence']])
        writer.writerow(['# Mean valence', f"{stats['mean_valence']:.4f}"])
        writer.writerow(['# ' + '=' * 60])
        writer.writerow([])

        # Data header
        writer.writerow(['New_Node_ID', 'Original_Node_ID', 'Element_ID'])

        for record in result.duplicates:
            writer.writerow([record.new_id, record.original_id, record.element_id])

    print(f"  Exported CSV: {filepath}")


def export_to_json(result: DecouplingResult, filepath: str) -> None:
    """Export the decoupling report to a JSON file."""

    os.makedirs(os.path.dirname(filepath) or '.', exist_ok=True)

    data = {
        'metadata': {
            'timestamp': datetime.now().isoformat(),
            'input': result.input_path,
            'output': result.output_path
        },
        'counts': {
            'n_elements': result.n_elements,
            'n_original_nodes': result.n_original_nodes,
            'n_final_nodes': result.n_final_nodes,
            'n_duplicates': result.n_duplicates
        },
        'statistics': compute_valence_statistics(result),
        'blocks': [asdict(block) for block in result.blocks],
        'duplicates': [asdict(record) for record in result.duplicates],
        'warnings': [str(w) for w in result.warnings]
    }

    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)

    print(f"  Exported JSON: {filepath}")


def export_report(result: DecouplingResult, csv_path: str, json_path: str,
                  fmt: str = "both") -> None:
    """Export in the configured format(s)."""
    if fmt in ("csv", "both"):
        export_to_csv(result, csv_path)
    if fmt in ("json", "both"):
        export_to_json(result, json_path)


# =============================================================================
# CONSOLE OUTPUT
# =============================================================================

def print_results(result: DecouplingResult, max_rows: int = 20) -> None:
    """Print formatted results to console."""

    stats = compute_valence_statistics(result)

    print("\n" + "=" * 70)
    print("NODE DECOUPLING RESULTS")
    print("=" * 70)

    print(f"\nInput:  {result.input_path}")
    print(f"Output: {result.output_path}")

    print(f"\nBlocks:")
    for block in result.blocks:
        declared = block.declared_nodes if block.declared_nodes is not None else "?"
        print(f"  {block.header:<40} {block.n_elements:>8} elements, {declared} nodes each")

    print(f"\nNodes:")
    print(f"  Original:   {result.n_original_nodes}")
    print(f"  Duplicated: {result.n_duplicates}")
    print(f"  Final:      {result.n_final_nodes}")
    print(f"  Shared in input: {stats['n_shared']} (max valence {stats['max_valence']})")

    if result.duplicates:
        print("\n" + "-" * 70)
        print(f"{'New ID':^12} {'Original ID':^14} {'Element':^14}")
        print("-" * 70)
        for record in result.duplicates[:max_rows]:
            print(f"{record.new_id:^12} {record.original_id:^14} {record.element_id:^14}")
        if len(result.duplicates) > max_rows:
            print(f"  ... {len(result.duplicates) - max_rows} more")
        print("-" * 70)

    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  {warning}")

    print("=" * 70)
