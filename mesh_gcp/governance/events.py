from __future__ import annotations

from typing import List, Optional

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import GovernanceClient, StateRepository
from mesh_gcp.core.model import PlatformEvent

LAST_EVENT_KEY = "lastEventId"


class EventPoller:
    """Reads the platform event feed from the last acknowledged event id."""

    def __init__(self, client: GovernanceClient, state: StateRepository, logger: Optional[PrintLogger] = None) -> None:
        self.client = client
        self.state = state
        self.logger = logger

    @property
    def last_event_id(self) -> Optional[str]:
        value = self.state.get_state().get(LAST_EVENT_KEY)
        return str(value) if value is not None else None

    def poll(self) -> List[PlatformEvent]:
        docs = self.client.get_events(self.last_event_id)
        events = [PlatformEvent.from_document(doc) for doc in docs]
        if events and self.logger:
            self.logger.debug("events_polled", count=len(events), after=self.last_event_id)
        return events

    def acknowledge(self, event: PlatformEvent) -> None:
        current = self.state.get_state()
        current[LAST_EVENT_KEY] = event.id
        self.state.save_state(current)
