"""Service catalog with durations and post-service buffers."""

import logging
from typing import Iterable, Optional

from barber_booking.schemas.booking_schema import Service

logger = logging.getLogger(__name__)

DEFAULT_SERVICES: list[Service] = [
    Service(id="haircut", name="Classic Haircut", duration_minutes=30, buffer_minutes=10),
    Service(id="beard-trim", name="Beard Trim", duration_minutes=20, buffer_minutes=5),
    Service(id="haircut-beard", name="Haircut & Beard", duration_minutes=50, buffer_minutes=10),
    Service(id="kids-cut", name="Kids Cut", duration_minutes=25, buffer_minutes=5),
    Service(id="hot-towel-shave", name="Hot Towel Shave", duration_minutes=40, buffer_minutes=15),
]


class InMemoryServiceCatalog:
    """ServiceCatalog over a fixed set of services, keyed by id."""

    def __init__(self, services: Optional[Iterable[Service]] = None) -> None:
        source = DEFAULT_SERVICES if services is None else services
        self._services: dict[str, Service] = {s.id: s for s in source}

    async def find_by_id(self, service_id: str) -> Optional[Service]:
        service = self._services.get(service_id)
        if service is None:
            logger.debug("Unknown service id: %s", service_id)
        return service

    def all_services(self) -> list[Service]:
        """Return all services, in catalog order."""
        return list(self._services.values())

    def add(self, service: Service) -> None:
        """Add or replace a service. Administrative use only."""
        self._services[service.id] = service
        logger.info("Service saved: %s (%d min + %d min buffer)",
                    service.id, service.duration_minutes, service.buffer_minutes)
