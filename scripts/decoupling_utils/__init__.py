"""
Utility modules for the Node Decoupling Pipeline.
"""

from .config_loader import (
    load_config,
    Config,
    PathConfig,
    ProblemConfig,
    MarkerConfig,
    OutputConfig,
    PlottingConfig,
    create_directories,
    print_config_summary,
    find_project_root
)

__all__ = [
    'load_config',
    'Config',
    'PathConfig',
    'ProblemConfig',
    'MarkerConfig',
    'OutputConfig',
    'PlottingConfig',
    'create_directories',
    'print_config_summary',
    'find_project_root'
]
