"""
Configuration Loader for Node Decoupling Pipeline
=================================================
Loads config.yaml and computes all paths automatically.
Without a config file the conventional defaults apply:
notchedcrack.inp -> notchedcrack_out.inp in the project root.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any


REPORT_FORMATS = ("csv", "json", "both")


@dataclass
class PathConfig:
    """All paths used in the pipeline."""
    project_root: str
    input_dir: str
    output_dir: str
    report_dir: str

    input_inp: str
    output_inp: str

    report_csv: str
    report_json: str
    valence_plot: str


@dataclass
class ProblemConfig:
    """Problem selection."""
    name: str = "notchedcrack"        # base name of the input file
    input_extension: str = ".inp"
    output_postfix: str = "_out"


@dataclass
class MarkerConfig:
    """Keyword prefixes that delimit the INP sections."""
    node: str = "*Node"
    element: str = "*Elem"
    elset: str = "*Elset"
    element_type_offset: int = 16


@dataclass
class OutputConfig:
    """Report options."""
    export_report: bool = True
    format: str = "both"  # "csv", "json", or "both"


@dataclass
class PlottingConfig:
    """Plotting options."""
    enabled: bool = False
    dpi: int = 100


@dataclass
class Config:
    """Complete configuration container."""
    problem: ProblemConfig
    markers: MarkerConfig
    output: OutputConfig
    plotting: PlottingConfig
    paths: PathConfig

    # Store raw dict for access to any custom fields
    _raw: Dict[str, Any] = field(default_factory=dict, repr=False)


def find_project_root(start_path: Optional[str] = None) -> str:
    """
    Find project root by looking for config.yaml or main.py.

    Parameters
    ----------
    start_path : str, optional
        Starting path for search. If None, uses this file's location.

    Returns
    -------
    str : Absolute path to project root (the current working directory
          if nothing was found, e.g. for an installed package)
    """
    if start_path is None:
        # Start from this file's location and go up
        start_path = os.path.dirname(os.path.abspath(__file__))

    current = os.path.abspath(start_path)

    # Search up to 5 levels
    for _ in range(5):
        if os.path.exists(os.path.join(current, "config.yaml")):
            return current

        if (os.path.exists(os.path.join(current, "main.py")) and
                os.path.exists(os.path.join(current, "scripts"))):
            return current

        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent

    return os.getcwd()


def compute_paths(project_root: str, problem: ProblemConfig,
                  paths_raw: Dict[str, Any]) -> PathConfig:
    """
    Compute all paths based on project root and problem configuration.

    Relative directories in the config are taken relative to project_root.
    """
    def resolve(directory: str) -> str:
        if os.path.isabs(directory):
            return directory
        return os.path.normpath(os.path.join(project_root, directory))

    input_dir = resolve(paths_raw.get('input_dir', '.'))
    output_dir = resolve(paths_raw.get('output_dir', '.'))
    report_dir = resolve(paths_raw.get('report_dir', 'output_files'))

    name = problem.name
    input_inp = os.path.join(input_dir, f"{name}{problem.input_extension}")
    output_inp = os.path.join(
        output_dir, f"{name}{problem.output_postfix}{problem.input_extension}"
    )

    return PathConfig(
        project_root=project_root,
        input_dir=input_dir,
        output_dir=output_dir,
        report_dir=report_dir,
        input_inp=input_inp,
        output_inp=output_inp,
        report_csv=os.path.join(report_dir, f"{name}_decoupling.csv"),
        report_json=os.path.join(report_dir, f"{name}_decoupling.json"),
        valence_plot=os.path.join(report_dir, f"{name}_valence.png")
    )


def load_config(config_path: Optional[str] = None,
                start_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Parameters
    ----------
    config_path : str, optional
        Path to config.yaml. If None, searches for it automatically and
        falls back to the defaults when there is none.
    start_path : str, optional
        Where the search for the project root begins. If None, starts
        from this file's location.

    Returns
    -------
    Config : Complete configuration object
    """
    raw: Dict[str, Any] = {}

    if config_path is None:
        project_root = find_project_root(start_path)
        candidate = os.path.join(project_root, "config.yaml")
        if os.path.exists(candidate):
            config_path = candidate
    else:
        config_path = os.path.abspath(config_path)
        project_root = os.path.dirname(config_path)
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_path is not None:
        print(f"Loading configuration from: {config_path}")
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    else:
        print("No config.yaml found, using default file names")

    problem_raw = raw.get('problem', {}) or {}
    paths_raw = raw.get('paths', {}) or {}
    problem = ProblemConfig(
        name=problem_raw.get('name', 'notchedcrack'),
        input_extension=paths_raw.get('input_extension', '.inp'),
        output_postfix=paths_raw.get('output_postfix', '_out')
    )

    markers_raw = raw.get('markers', {}) or {}
    markers = MarkerConfig(
        node=markers_raw.get('node', '*Node'),
        element=markers_raw.get('element', '*Elem'),
        elset=markers_raw.get('elset', '*Elset'),
        element_type_offset=int(markers_raw.get('element_type_offset', 16))
    )

    output_raw = raw.get('output', {}) or {}
    output = OutputConfig(
        export_report=output_raw.get('export_report', True),
        format=output_raw.get('format', 'both')
    )
    if output.format not in REPORT_FORMATS:
        raise ValueError(
            f"Unknown report format '{output.format}'. "
            f"Available: {list(REPORT_FORMATS)}"
        )

    plotting_raw = raw.get('plotting', {}) or {}
    plotting = PlottingConfig(
        enabled=plotting_raw.get('enabled', False),
        dpi=int(plotting_raw.get('dpi', 100))
    )

    paths = compute_paths(project_root, problem, paths_raw)

    config = Config(
        problem=problem,
        markers=markers,
        output=output,
        plotting=plotting,
        paths=paths,
        _raw=raw
    )

    print(f"  Problem name: {config.problem.name}")
    print(f"  Input:  {config.paths.input_inp}")
    print(f"  Output: {config.paths.output_inp}")

    return config


def create_directories(config: Config) -> None:
    """Create the output and report directories."""
    directories = [config.paths.output_dir]
    if config.output.export_report or config.plotting.enabled:
        directories.append(config.paths.report_dir)

    for directory in directories:
        if not os.path.exists(directory):
            os.makedirs(directory)
            print(f"  Created: {directory}")


def print_config_summary(config: Config) -> None:
    """Print a summary of the configuration."""

    print("\n" + "=" * 70)
    print("CONFIGURATION SUMMARY")
    print("=" * 70)

    print(f"\nProblem:")
    print(f"  Name:            {config.problem.name}")

    print(f"\nSection markers:")
    print(f"  Nodes:           {config.markers.node}")
    print(f"  Elements:        {config.markers.element}")
    print(f"  Terminator:      {config.markers.elset}")
    print(f"  Type offset:     {config.markers.element_type_offset}")

    print(f"\nReport:")
    print(f"  Export:          {config.output.export_report} ({config.output.format})")
    print(f"  Plot:            {config.plotting.enabled}")

    print(f"\nPaths:")
    print(f"  Project root:    {config.paths.project_root}")
    print(f"  Input INP:       {config.paths.input_inp}")
    print(f"  Output INP:      {config.paths.output_inp}")
    print(f"  Report dir:      {config.paths.report_dir}")

    print("=" * 70)


# =============================================================================
# TEST / STANDALONE USAGE
# =============================================================================

if __name__ == "__main__":
    """Show the configuration the pipeline would use."""

    try:
        config = load_config()
        print_config_summary(config)

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
