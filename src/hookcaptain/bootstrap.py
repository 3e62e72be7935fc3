"""Bootstrap file handling.

A configured ``bootstrap`` file is a Python script executed once before a hook
runs, e.g. to extend ``sys.path`` for in-process actions. Relative paths are
relative to the configuration file.
"""

import logging
import runpy
from pathlib import Path

from hookcaptain.config import Configuration
from hookcaptain.errors import BootstrapError

logger = logging.getLogger(__name__)


def is_bootstrap_required(config: Configuration) -> bool:
    return bool(config.get_bootstrap())


def validate_bootstrap_path(config: Configuration) -> Path:
    """Return the absolute path of the bootstrap file.

    Raises:
        BootstrapError: If the file does not exist
    """
    bootstrap = Path(config.get_bootstrap())
    path = bootstrap if bootstrap.is_absolute() else config.path.parent / bootstrap
    if not path.is_file():
        raise BootstrapError(f"bootstrap file not found: {path}")
    return path


def handle_bootstrap(config: Configuration) -> None:
    """Run the bootstrap file if one is configured.

    Raises:
        BootstrapError: If the file is missing or raises while running
    """
    if not is_bootstrap_required(config):
        return
    path = validate_bootstrap_path(config)
    logger.debug("Loading bootstrap file %s", path)
    try:
        runpy.run_path(str(path), run_name="__hookcaptain_bootstrap__")
    except Exception as e:
        raise BootstrapError(f"Loading bootstrap file failed: {path}\n{e}") from e
