"""
Ads Event Publishers

Records domain events in a bounded audit log and forwards them to the
event bus when one is configured.
"""

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from .models import AdsEventType, DomainEventRecord

logger = logging.getLogger(__name__)

DEFAULT_LOG_SIZE = 1000


class AdsEventPublisher:
    """Event recorder for ads service events"""

    def __init__(
        self,
        event_bus=None,
        max_records: int = DEFAULT_LOG_SIZE,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.event_bus = event_bus
        self.source = "ads_service"
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: Deque[DomainEventRecord] = deque(maxlen=max_records)

    @property
    def records(self) -> List[DomainEventRecord]:
        return list(self._records)

    def records_for(self, entity_id: str) -> List[DomainEventRecord]:
        return [record for record in self._records if record.entity_id == entity_id]

    async def record(
        self,
        entity_type: str,
        entity_id: str,
        event_type: Union[AdsEventType, str],
        payload: Dict[str, Any],
        performed_by: Optional[str] = None,
    ) -> bool:
        """
        Append a domain event to the audit log and publish it.

        Args:
            entity_type: Kind of entity the event is about
            entity_id: Entity identifier
            event_type: The event type
            payload: Event data payload
            performed_by: Actor ID, None for system transitions

        Returns:
            True if published to the bus, False otherwise
        """
        event_name = event_type.value if isinstance(event_type, AdsEventType) else str(event_type)
        record = DomainEventRecord(
            entity_type=entity_type,
            entity_id=str(entity_id),
            event_type=event_name,
            payload=payload or {},
            performed_by=performed_by,
            source=self.source,
            timestamp=self.clock(),
        )
        self._records.append(record)

        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_name}")
            return False

        try:
            await self.event_bus.publish_event(record.model_dump(mode="json"))
            logger.debug(f"Published event: {event_name}")
            return True
        except Exception as e:
            logger.error(f"Failed to publish event {event_name}: {e}")
            return False


__all__ = ["AdsEventPublisher"]
