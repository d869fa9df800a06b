from __future__ import annotations

from typing import Dict, List, Optional, Type

from dbtools_driver_sdk.capabilities import HostCapability
from dbtools_driver_sdk.common.logger import get_logger
from dbtools_driver_sdk.dependencies import ModuleResolver
from dbtools_driver_sdk.driver import AbstractDriver
from dbtools_driver_sdk.errors import DriverConflictError, DriverNotFoundError
from dbtools_driver_sdk.models import Credentials

logger = get_logger(__name__)


class DriverRegistry:
    """
    Keeps one driver instance per active connection.

    Driver classes come from entry point discovery unless an explicit mapping
    is given. The host capability and module resolver are handed to every
    driver the registry creates.
    """

    def __init__(
        self,
        host: Optional[HostCapability] = None,
        resolver: Optional[ModuleResolver] = None,
        drivers: Optional[Dict[str, Type[AbstractDriver]]] = None,
    ):
        self._host = host
        self._resolver = resolver
        self._driver_classes = (
            {name.lower(): cls for name, cls in drivers.items()} if drivers is not None else None
        )
        self._instances: Dict[str, AbstractDriver] = {}

    def available_drivers(self) -> Dict[str, Type[AbstractDriver]]:
        if self._driver_classes is None:
            from dbtools_driver_sdk.discovery import discover_drivers

            self._driver_classes = discover_drivers()
        return self._driver_classes

    def register(self, credentials: Credentials) -> AbstractDriver:
        """
        Returns the driver for ``credentials.id``, creating it on first use.

        Registering an id again with equal credentials returns the existing
        driver.

        Raises:
            DriverNotFoundError: No installed driver handles ``credentials.driver``.
            DriverConflictError: The id is already bound to other credentials.
        """
        existing = self._instances.get(credentials.id)
        if existing is not None:
            if existing.credentials != credentials:
                raise DriverConflictError(
                    f"Connection '{credentials.id}' is already registered with other "
                    f"credentials; unregister it first."
                )
            return existing

        available = self.available_drivers()
        kind = credentials.driver.lower()
        if kind not in available:
            raise DriverNotFoundError(
                f"No driver found for '{credentials.driver}'. "
                f"Available: {sorted(available.keys())}."
            )

        driver = available[kind](credentials, host=self._host, resolver=self._resolver)
        self._instances[credentials.id] = driver
        logger.info(f"Registered driver {driver}")
        return driver

    def get(self, connection_id: str) -> AbstractDriver:
        if connection_id not in self._instances:
            raise DriverNotFoundError(f"Unknown connection ID: {connection_id}")
        return self._instances[connection_id]

    def list_ids(self) -> List[str]:
        return list(self._instances.keys())

    async def unregister(self, connection_id: str) -> None:
        """Closes and forgets the driver for ``connection_id``, if any."""
        driver = self._instances.pop(connection_id, None)
        if driver is not None:
            await driver.close()

    async def close_all(self) -> None:
        for connection_id in self.list_ids():
            await self.unregister(connection_id)
