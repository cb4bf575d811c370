"""Domain events and the outbound notification port.

The settlement core emits events and never waits on delivery; a separate
component turns them into buyer/seller e-mails.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from src.mp_common.datetime_utils import utc_now
from src.mp_common.id_generator import generate_id

ORDER_SETTLED = "order.settled"
ORDER_CANCELLED = "order.cancelled"
WITHDRAWAL_REQUESTED = "withdrawal.requested"
WITHDRAWAL_STATUS_CHANGED = "withdrawal.status_changed"


@dataclass
class DomainEvent:
    name: str
    payload: dict[str, Any]
    id: str = field(default_factory=generate_id)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }


class NotificationPort(Protocol):
    async def publish(self, event: DomainEvent) -> None: ...
