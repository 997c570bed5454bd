"""
End-to-end tests of the command line runner.
"""

import json
import os

import pytest

import main
from test_decouple_nodes import PLATE, SHARED_MESH, POSTLUDE


def write_config(tmp_path, extra=""):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("paths:\n  report_dir: reports\n" + extra)
    return str(cfg)


def test_main_decouples_input(tmp_path):
    mesh = tmp_path / "plate.inp"
    mesh.write_text(PLATE)
    cfg = write_config(tmp_path)

    with pytest.raises(SystemExit) as exc:
        main.main(["-c", cfg, "-i", str(mesh)])

    assert exc.value.code == 0
    out = tmp_path / "plate_out.inp"
    assert out.exists()
    assert "      16,           1.,           2.\n" in out.read_text()

    report = json.loads((tmp_path / "reports" / "plate_decoupling.json").read_text())
    assert report['counts']['n_duplicates'] == 7
    assert not (tmp_path / "reports" / "notchedcrack_decoupling.json").exists()


def test_main_explicit_output_and_plot(tmp_path):
    mesh = tmp_path / "corner.inp"
    mesh.write_text(SHARED_MESH)
    cfg = write_config(tmp_path)
    out = tmp_path / "result" / "decoupled.inp"

    with pytest.raises(SystemExit) as exc:
        main.main(["-c", cfg, "-i", str(mesh), "-o", str(out), "--plot", "--no-report"])

    assert exc.value.code == 0
    assert "E2, 5, 6, 5, 6\n" in out.read_text()
    assert (tmp_path / "reports" / "corner_valence.png").exists()
    assert not (tmp_path / "reports" / "corner_decoupling.csv").exists()


def test_main_malformed_mesh(tmp_path, capsys):
    mesh = tmp_path / "broken.inp"
    mesh.write_text(SHARED_MESH.replace(POSTLUDE, ""))
    cfg = write_config(tmp_path)

    with pytest.raises(SystemExit) as exc:
        main.main(["-c", cfg, "-i", str(mesh)])

    assert exc.value.code == 1
    assert not (tmp_path / "broken_out.inp").exists()
    assert "Malformed mesh" in capsys.readouterr().out


def test_main_missing_input(tmp_path):
    cfg = write_config(tmp_path)

    with pytest.raises(SystemExit) as exc:
        main.main(["-c", cfg])

    assert exc.value.code == 1


def test_input_override_renames_reports(tmp_path):
    """-i mesh.inp names the problem, reports and plot after mesh."""
    config = main.load_config(write_config(tmp_path))
    args = main.parse_arguments(["-i", str(tmp_path / "bracket.inp")])

    main.apply_overrides(config, args)

    reports = str(tmp_path / "reports")
    assert config.problem.name == "bracket"
    assert config.paths.output_inp == str(tmp_path / "bracket_out.inp")
    assert config.paths.report_csv == os.path.join(reports, "bracket_decoupling.csv")
    assert config.paths.report_json == os.path.join(reports, "bracket_decoupling.json")
    assert config.paths.valence_plot == os.path.join(reports, "bracket_valence.png")
