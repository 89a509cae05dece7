"""Agent status register and its change notifications."""

from __future__ import annotations

import logging

from .events import STATUS_CHANGED, EventBus
from .models import AgentStatus

LOGGER = logging.getLogger(__name__)


class StatusRegister:
    """Hold exactly one AgentStatus and publish every overwrite.

    ``set`` never validates transition legality; callers own the state
    machine. All access happens on the event loop thread, so a read followed
    by a write without an intervening ``await`` is atomic.
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or EventBus()
        self._status = AgentStatus.IDLE

    def get(self) -> AgentStatus:
        """Return the current status."""
        return self._status

    @property
    def is_idle(self) -> bool:
        """Return True when a new submission is allowed."""
        return self._status is AgentStatus.IDLE

    def set(self, status: AgentStatus) -> AgentStatus:
        """Overwrite the status unconditionally and notify observers."""
        previous = self._status
        self._status = AgentStatus(status)
        LOGGER.debug(
            "agent.status.transition",
            extra={
                "event": "agent.status.transition",
                "from_status": previous.value,
                "to_status": self._status.value,
            },
        )
        self._bus.publish(
            STATUS_CHANGED,
            {"previous": previous, "current": self._status},
            source="status",
        )
        return self._status

    def transition_if(self, expected: AgentStatus, new_status: AgentStatus) -> bool:
        """Transition only when the current status matches ``expected``."""
        if self._status is not expected:
            return False
        self.set(new_status)
        return True
