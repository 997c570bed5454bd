"""
Tests for the YAML configuration loader.
"""

import os

import pytest

from decoupling_utils.config_loader import (
    load_config, create_directories, find_project_root
)


def test_defaults_without_config(tmp_path, monkeypatch):
    """No config.yaml: notchedcrack.inp -> notchedcrack_out.inp in the working directory."""
    monkeypatch.chdir(tmp_path)

    config = load_config(start_path=str(tmp_path))

    assert config.problem.name == "notchedcrack"
    assert config.paths.input_inp == os.path.join(str(tmp_path), "notchedcrack.inp")
    assert config.paths.output_inp == os.path.join(str(tmp_path), "notchedcrack_out.inp")
    assert config.markers.node == "*Node"
    assert config.markers.element_type_offset == 16
    assert config.output.format == "both"
    assert config.plotting.enabled is False


def test_values_from_yaml(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "problem:\n"
        "  name: bracket\n"
        "paths:\n"
        "  input_dir: meshes\n"
        "  output_dir: out\n"
        "  output_postfix: _dc\n"
        "  report_dir: reports\n"
        "markers:\n"
        "  element_type_offset: 12\n"
        "output:\n"
        "  format: json\n"
        "plotting:\n"
        "  enabled: true\n"
    )

    config = load_config(str(cfg))

    assert config.paths.input_inp == os.path.join(str(tmp_path), "meshes", "bracket.inp")
    assert config.paths.output_inp == os.path.join(str(tmp_path), "out", "bracket_dc.inp")
    assert config.paths.report_json == os.path.join(str(tmp_path), "reports", "bracket_decoupling.json")
    assert config.markers.element_type_offset == 12
    assert config.markers.elset == "*Elset"
    assert config.output.format == "json"
    assert config.plotting.enabled is True


def test_empty_yaml_uses_defaults(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("")

    config = load_config(str(cfg))

    assert config.problem.name == "notchedcrack"


def test_missing_explicit_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_unknown_report_format(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("output:\n  format: xlsx\n")

    with pytest.raises(ValueError, match="xlsx"):
        load_config(str(cfg))


def test_create_directories(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("paths:\n  output_dir: out\n  report_dir: reports\n")
    config = load_config(str(cfg))

    create_directories(config)

    assert (tmp_path / "out").is_dir()
    assert (tmp_path / "reports").is_dir()


PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def test_project_config_found_from_other_directory(tmp_path, monkeypatch):
    """The search starts next to the code, not in the working directory."""
    monkeypatch.chdir(tmp_path)

    assert find_project_root() == PROJECT_ROOT

    config = load_config()
    assert config.paths.project_root == PROJECT_ROOT
    assert config.paths.input_inp == os.path.join(PROJECT_ROOT, "notchedcrack.inp")


def test_find_project_root_falls_back_to_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert find_project_root(str(tmp_path)) == os.getcwd()
