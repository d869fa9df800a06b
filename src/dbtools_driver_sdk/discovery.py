from importlib.metadata import entry_points
from typing import Dict, Type

from dbtools_driver_sdk.common.logger import get_logger
from dbtools_driver_sdk.driver import AbstractDriver

logger = get_logger(__name__)

ENTRY_POINT_GROUP = "dbtools.drivers"


def discover_drivers() -> Dict[str, Type[AbstractDriver]]:
    """Discovers installed drivers via 'dbtools.drivers' entry points.

    Returns:
        Dict[str, Type[AbstractDriver]]: Dict mapping the lower-cased driver
            kind (e.g., 'sqlite') to the driver class.
    """
    drivers = {}
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        try:
            drivers[ep.name.lower()] = ep.load()
        except Exception as e:
            logger.error(f"Failed to load driver {ep.name}: {e}")

    return drivers
