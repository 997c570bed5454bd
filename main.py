"""
Node Decoupling Pipeline - Main Runner
======================================
One-click decoupling of an Abaqus INP mesh.

Workflow:
1. Load configuration from config.yaml (defaults if there is none)
2. Decouple shared nodes and write <name>_out.inp
3. Export the decoupling report to CSV/JSON
4. Plot node sharing (optional)

Usage:
    python main.py                    # notchedcrack.inp -> notchedcrack_out.inp
    python main.py -i mesh.inp        # Decouple another file
    python main.py --no-report        # Only write the decoupled INP
    python main.py --plot             # Also save the valence histogram
    python main.py --help             # Show help

Author: Node Decoupling Pipeline
"""

import os
import sys
import argparse
import time
from dataclasses import asdict
from datetime import datetime
from typing import Optional

# Add scripts directory to path
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(SCRIPT_DIR, 'scripts'))

from decoupling_utils.config_loader import (
    load_config, Config, create_directories, print_config_summary
)
from node_decoupling.errors import DecouplingError
from node_decoupling.inp_document import SectionMarkers
from node_decoupling.decouple_nodes import decouple_file, DecouplingResult
from node_decoupling.export_report import export_report, print_results


# =============================================================================
# PIPELINE STEPS
# =============================================================================

def step_decouple(config: Config) -> DecouplingResult:
    """
    Step 1: Decouple shared nodes.
    """
    print("\n")
    print("█" * 70)
    print("█  STEP 1: NODE DECOUPLING")
    print("█" * 70)

    markers = SectionMarkers(**asdict(config.markers))
    return decouple_file(config.paths.input_inp, config.paths.output_inp, markers=markers)


def step_report(config: Config, result: DecouplingResult) -> bool:
    """
    Step 2: Export the decoupling report.
    """
    print("\n")
    print("█" * 70)
    print("█  STEP 2: DECOUPLING REPORT")
    print("█" * 70)

    print_results(result)

    try:
        export_report(result, config.paths.report_csv, config.paths.report_json,
                      fmt=config.output.format)
        return True
    except OSError as e:
        print(f"Error during report export: {e}")
        return False


def step_plotting(config: Config, result: DecouplingResult) -> bool:
    """
    Step 3: Generate plots.
    """
    print("\n")
    print("█" * 70)
    print("█  STEP 3: GENERATING PLOTS")
    print("█" * 70)

    from node_decoupling.plot_report import generate_plots

    try:
        generate_plots(config, result)
        return True
    except OSError as e:
        print(f"Error during plotting: {e}")
        return False


# =============================================================================
# PIPELINE RUNNER
# =============================================================================

def run_pipeline(config: Config,
                 do_report: bool = True,
                 do_plotting: bool = False) -> dict:
    """
    Run the node decoupling pipeline.

    Parameters
    ----------
    config : Config
        Configuration object
    do_report : bool
        Whether to export the decoupling report
    do_plotting : bool
        Whether to generate plots

    Returns
    -------
    dict : Results summary with timing and status

    Raises
    ------
    DecouplingError
        If the input mesh is malformed. No output file is written then.
    """

    start_time = time.time()

    results = {
        'timestamp': datetime.now().isoformat(),
        'problem_name': config.problem.name,
        'steps': {},
        'success': False,
        'total_time': 0.0
    }

    print("\n")
    print("╔" + "═" * 68 + "╗")
    print("║" + " NODE DECOUPLING PIPELINE ".center(68) + "║")
    print("║" + f" Problem: {config.problem.name} ".center(68) + "║")
    print("║" + f" Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} ".center(68) + "║")
    print("╚" + "═" * 68 + "╝")

    print_config_summary(config)
    create_directories(config)

    # Step 1: Decoupling
    step_start = time.time()
    result = step_decouple(config)
    results['steps']['decoupling'] = {
        'success': True,
        'time': time.time() - step_start,
        'n_duplicates': result.n_duplicates,
        'n_warnings': len(result.warnings)
    }

    # Step 2: Report
    if do_report and config.output.export_report:
        step_start = time.time()
        report_ok = step_report(config, result)
        results['steps']['report'] = {
            'success': report_ok,
            'time': time.time() - step_start
        }
    else:
        print("\n⊘ Skipping report export")
        results['steps']['report'] = {'success': True, 'skipped': True}

    # Step 3: Plotting
    if do_plotting and config.plotting.enabled:
        step_start = time.time()
        plot_ok = step_plotting(config, result)
        results['steps']['plotting'] = {
            'success': plot_ok,
            'time': time.time() - step_start
        }
    else:
        print("\n⊘ Skipping plotting")
        results['steps']['plotting'] = {'success': True, 'skipped': True}

    results['total_time'] = time.time() - start_time
    results['success'] = all(
        step.get('success', False)
        for step in results['steps'].values()
    )

    print_final_summary(config, results)

    return results


def print_final_summary(config: Config, results: dict) -> None:
    """Print final pipeline summary."""

    print("\n")
    print("╔" + "═" * 68 + "╗")
    print("║" + " PIPELINE COMPLETE ".center(68) + "║")
    print("╚" + "═" * 68 + "╝")

    print(f"\n  Problem: {config.problem.name}")

    print("\n  Step Summary:")
    print("  " + "-" * 50)

    step_names = {
        'decoupling': 'Node Decoupling',
        'report': 'Report Export',
        'plotting': 'Plot Generation'
    }

    for step_key, step_name in step_names.items():
        step = results['steps'].get(step_key, {})

        if step.get('skipped', False):
            status = "⊘ SKIPPED"
            time_str = ""
        elif step.get('success', False):
            status = "✓ SUCCESS"
            time_str = f" ({step.get('time', 0):.2f}s)"
        else:
            status = "✗ FAILED"
            time_str = f" ({step.get('time', 0):.2f}s)"

        print(f"    {step_name:<25} {status}{time_str}")

    print("  " + "-" * 50)
    print(f"    {'Total Time':<25} {results['total_time']:.2f} seconds")

    decoupling = results['steps'].get('decoupling', {})
    if decoupling.get('n_warnings'):
        print(f"\n  {decoupling['n_warnings']} unrecognized keyword line(s) were passed through.")

    print("\n  Output Files:")
    print(f"    Decoupled INP: {config.paths.output_inp}")
    print(f"    Reports:       {config.paths.report_dir}")

    print("\n" + "=" * 70)


# =============================================================================
# COMMAND LINE INTERFACE
# =============================================================================

def parse_arguments(argv: Optional[list] = None):
    """Parse command line arguments."""

    parser = argparse.ArgumentParser(
        description="Node Decoupling Pipeline - give every element its own nodes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                     Decouple notchedcrack.inp
  python main.py -i mesh.inp         Decouple mesh.inp into mesh_out.inp
  python main.py -i a.inp -o b.inp   Explicit input and output
  python main.py --config other.yaml Use different config file
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Input INP file (overrides the configured name)"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output INP file (default: <input>_out.inp)"
    )

    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Skip report export"
    )

    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save the node sharing plot"
    )

    return parser.parse_args(argv)


def apply_overrides(config: Config, args) -> None:
    """Apply --input/--output/--plot to a loaded config.

    An --input file also renames the problem, so the reports and the plot
    are named after it.
    """

    if args.input:
        input_path = os.path.abspath(args.input)
        base, ext = os.path.splitext(input_path)
        name = os.path.basename(base)
        config.problem.name = name
        config.paths.input_dir = os.path.dirname(input_path)
        config.paths.input_inp = input_path
        config.paths.output_inp = f"{base}{config.problem.output_postfix}{ext}"
        config.paths.output_dir = os.path.dirname(input_path)

        report_dir = config.paths.report_dir
        config.paths.report_csv = os.path.join(report_dir, f"{name}_decoupling.csv")
        config.paths.report_json = os.path.join(report_dir, f"{name}_decoupling.json")
        config.paths.valence_plot = os.path.join(report_dir, f"{name}_valence.png")

    if args.output:
        config.paths.output_inp = os.path.abspath(args.output)
        config.paths.output_dir = os.path.dirname(config.paths.output_inp)

    if args.plot:
        config.plotting.enabled = True


def main(argv: Optional[list] = None):
    """Main entry point."""

    args = parse_arguments(argv)

    try:
        config = load_config(args.config, start_path=SCRIPT_DIR)
        apply_overrides(config, args)

        results = run_pipeline(
            config,
            do_report=not args.no_report,
            do_plotting=config.plotting.enabled
        )

        if results['success']:
            sys.exit(0)
        else:
            sys.exit(1)

    except FileNotFoundError as e:
        print(f"\n✗ Error: {e}")
        sys.exit(1)

    except DecouplingError as e:
        print(f"\n✗ Malformed mesh: {e}")
        print("  No output file was written.")
        sys.exit(1)

    except ValueError as e:
        print(f"\n✗ Configuration error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        print("\n\n⊘ Pipeline interrupted by user.")
        sys.exit(130)


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    main()
