"""
Tests for the decoupling report: valence statistics, CSV/JSON export and plot.
"""

import csv
import json

import pytest

from node_decoupling.decouple_nodes import decouple_text, DecouplingResult
from node_decoupling.export_report import (
    compute_valence_statistics, export_report, export_to_csv, export_to_json,
    print_results
)
from node_decoupling.plot_report import plot_valence_histogram

from test_decouple_nodes import PLATE


@pytest.fixture
def plate_result():
    _, result = decouple_text(PLATE)
    result.input_path = "plate.inp"
    result.output_path = "plate_out.inp"
    return result


def test_valence_statistics(plate_result):
    """
    2x2 quad plate: the centre node is used by all four elements, the edge
    midpoints by two, the corners by one.
    """
    stats = compute_valence_statistics(plate_result)

    assert stats['n_referenced'] == 9
    assert stats['n_shared'] == 5
    assert stats['max_valence'] == 4
    assert stats['mean_valence'] == pytest.approx(16 / 9)
    assert stats['histogram'] == {1: 4, 2: 4, 4: 1}


def test_valence_statistics_empty():
    stats = compute_valence_statistics(DecouplingResult())

    assert stats['n_referenced'] == 0
    assert stats['histogram'] == {}


def test_export_to_csv(plate_result, tmp_path):
    path = tmp_path / "report.csv"
    export_to_csv(plate_result, str(path))

    with open(path, newline='') as f:
        rows = [row for row in csv.reader(f) if row and not row[0].startswith('#')]

    assert rows[0] == ['New_Node_ID', 'Original_Node_ID', 'Element_ID']
    assert rows[1] == ['10', '2', '2']
    assert len(rows) == 1 + 7


def test_export_to_json(plate_result, tmp_path):
    path = tmp_path / "nested" / "report.json"
    export_to_json(plate_result, str(path))

    data = json.loads(path.read_text())
    assert data['counts'] == {
        'n_elements': 4,
        'n_original_nodes': 9,
        'n_final_nodes': 16,
        'n_duplicates': 7
    }
    assert data['statistics']['n_shared'] == 5
    assert data['statistics']['histogram'] == {'1': 4, '2': 4, '4': 1}
    assert data['blocks'] == [
        {'header': '*Element, type=CPS4R', 'declared_nodes': 4, 'n_elements': 4}
    ]
    assert data['duplicates'][-1] == {'new_id': 16, 'original_id': 8, 'element_id': '4'}
    assert data['metadata']['input'] == "plate.inp"


@pytest.mark.parametrize("fmt, csv_written, json_written", [
    ("csv", True, False),
    ("json", False, True),
    ("both", True, True),
])
def test_export_report_formats(plate_result, tmp_path, fmt, csv_written, json_written):
    csv_path = tmp_path / "r.csv"
    json_path = tmp_path / "r.json"

    export_report(plate_result, str(csv_path), str(json_path), fmt=fmt)

    assert csv_path.exists() == csv_written
    assert json_path.exists() == json_written


def test_print_results(plate_result, capsys):
    print_results(plate_result, max_rows=3)
    out = capsys.readouterr().out

    assert "NODE DECOUPLING RESULTS" in out
    assert "... 4 more" in out


def test_plot_valence_histogram(plate_result, tmp_path):
    path = tmp_path / "plots" / "valence.png"

    assert plot_valence_histogram(plate_result, str(path)) == str(path)
    assert path.stat().st_size > 0
