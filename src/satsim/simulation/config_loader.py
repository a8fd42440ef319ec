"""
===============================================================================
SATSIM - Satellite Configuration Loader
===============================================================================
Reads satellite definitions from YAML or JSON files.  JSON is a subset of
YAML, so both go through ``yaml.safe_load``.

A file holds either a single satellite mapping or a list of them::

    - Name: "Sat-A"
      Semimajor Axis: 7000.0
      ...
    - Name: "Sat-B"
      ...
===============================================================================
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from satsim.core.exceptions import ConfigurationError
from satsim.simulation.satellite import Satellite

logger = logging.getLogger(__name__)


def load_satellite_configs(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Load every satellite mapping from *path*.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or parsed, or does not hold mappings.
    """
    path = Path(path)
    logger.info("Loading satellite configuration from: %s", path)
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse configuration file {path}: {exc}") from exc

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not data or not all(isinstance(d, dict) for d in data):
        raise ConfigurationError(
            f"{path}: expected a satellite mapping or a non-empty list of mappings"
        )
    return data


def load_satellite_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a file holding exactly one satellite mapping."""
    configs = load_satellite_configs(path)
    if len(configs) != 1:
        raise ConfigurationError(f"{path}: expected one satellite, found {len(configs)}")
    return configs[0]


def load_satellites(path: Union[str, Path], **kwargs) -> List[Satellite]:
    """Build a Satellite for every mapping in *path*; *kwargs* go to the constructor."""
    return [Satellite(cfg, **kwargs) for cfg in load_satellite_configs(path)]
