"""
Utility functions for the Staff Roster Dashboard project

Common functions used by the pipeline scripts.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union
import pandas as pd
import yaml

logger = logging.getLogger(__name__)


def save_yaml_config(data: dict, config_path: Union[str, Path]):
    """
    Save a dictionary as a YAML file

    Args:
        data: Dictionary to save
        config_path: Where to save the file
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def get_project_root() -> Path:
    """
    Get the project root directory

    Returns:
        Path to project root
    """
    # Assumes this file is in infrastructure/utilities/
    return Path(__file__).parent.parent.parent


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Set up logging configuration

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to write logs to

    Returns:
        Configured logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default if division would fail

    Args:
        numerator: Top number
        denominator: Bottom number
        default: Value to return if division fails

    Returns:
        Result of division or default value
    """
    if pd.isna(numerator) or pd.isna(denominator) or denominator == 0:
        return default

    return numerator / denominator


def format_number(value: Union[int, float], decimals: int = 0) -> str:
    """
    Format a number with thousands separators

    Args:
        value: Number to format
        decimals: Number of decimal places

    Returns:
        Formatted string

    Examples:
        >>> format_number(1234567)
        '1,234,567'
        >>> format_number(1234.567, 2)
        '1,234.57'
    """
    if pd.isna(value):
        return "N/A"

    return f"{value:,.{decimals}f}"


def create_data_lineage_file(
    output_path: Path,
    source_files: List[Path],
    processing_steps: List[str],
    additional_info: Optional[Dict] = None
) -> Path:
    """
    Create a metadata file documenting data lineage

    Args:
        output_path: Where the processed data was saved
        source_files: List of source extracts used
        processing_steps: List of processing steps applied
        additional_info: Additional metadata to include

    Returns:
        Path to the lineage file
    """
    lineage_path = output_path.parent / f"{output_path.stem}_lineage.yaml"

    lineage = {
        'output_file': str(output_path),
        'created': pd.Timestamp.now().isoformat(),
        'source_files': [str(f) for f in source_files],
        'processing_steps': processing_steps,
    }

    if additional_info:
        lineage.update(additional_info)

    save_yaml_config(lineage, lineage_path)
    logger.info(f"Data lineage saved: {lineage_path}")
    return lineage_path


def find_latest_extract(
    directory: Path,
    pattern: str = "*.csv"
) -> Optional[Path]:
    """
    Get the most recently modified extract matching a pattern

    Summary sheets are exported monthly (e.g. Dashboard_Summary_202509.csv),
    so the newest file is the one to reconcile against.

    Args:
        directory: Directory to search
        pattern: Glob pattern to match

    Returns:
        Path to most recent file or None if no files found
    """
    dir_path = Path(directory)

    if not dir_path.exists():
        logger.warning(f"Directory does not exist: {directory}")
        return None

    files = sorted(dir_path.glob(pattern))
    if not files:
        return None

    # Most recent first; name breaks mtime ties
    files.sort(key=lambda f: (f.stat().st_mtime, f.name), reverse=True)
    return files[0]
