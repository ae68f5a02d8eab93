from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import GovernanceClient
from mesh_gcp.core.model import AclRole, PlatformEvent
from mesh_gcp.events import EventCategory, EventType, emit_event

from .acl import AclOutcome, AclReconciler
from .identity import IdentityResolver, ProviderResolver

PERMISSION_GRANTED_TAG = "permission-granted-on-gcp"

ACCESS_ACTIVATED_EVENT = "AccessActivatedEvent"
ACCESS_DEACTIVATED_EVENT = "AccessDeactivatedEvent"


class AccessAction(str, Enum):
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


class HandlerStatus(str, Enum):
    GRANTED = "granted"
    REVOKED = "revoked"
    ABANDONED = "abandoned"
    IGNORED = "ignored"


@dataclass
class HandlerOutcome:
    access_id: Optional[str]
    action: Optional[AccessAction]
    status: HandlerStatus
    reason: Optional[str] = None
    acl: Optional[AclOutcome] = None
    tag_changed: bool = False


class AccessReconciliationHandler:
    """Turns access activation/deactivation into dataset ACL changes.

    An access is ``granted`` while it carries PERMISSION_GRANTED_TAG. Any
    resolution failure abandons the event quietly: the ACL and the tag stay
    as they were.
    """

    def __init__(
        self,
        client: GovernanceClient,
        providers: ProviderResolver,
        identities: IdentityResolver,
        acl: AclReconciler,
        role: AclRole,
        logger: PrintLogger,
        *,
        emitter=None,
        tag: str = PERMISSION_GRANTED_TAG,
    ) -> None:
        self.client = client
        self.providers = providers
        self.identities = identities
        self.acl = acl
        self.role = role
        self.logger = logger
        self.emitter = emitter
        self.tag = tag

    def handle(self, event: PlatformEvent) -> HandlerOutcome:
        kind = event.short_type
        if kind == ACCESS_ACTIVATED_EVENT:
            action = AccessAction.ACTIVATE
        elif kind == ACCESS_DEACTIVATED_EVENT:
            action = AccessAction.DEACTIVATE
        else:
            self.logger.debug("event_ignored", event_id=event.id, event_type=event.type)
            return HandlerOutcome(event.access_id, None, HandlerStatus.IGNORED, reason=f"unhandled event type {kind}")
        if not event.access_id:
            return self._abandon(None, action, f"event {event.id} carries no access id")
        return self._reconcile(event.access_id, action)

    def on_access_activated(self, access_id: str) -> HandlerOutcome:
        return self._reconcile(access_id, AccessAction.ACTIVATE)

    def on_access_deactivated(self, access_id: str) -> HandlerOutcome:
        return self._reconcile(access_id, AccessAction.DEACTIVATE)

    def _reconcile(self, access_id: str, action: AccessAction) -> HandlerOutcome:
        self.logger.info("access_event_processing", access_id=access_id, action=action.value)
        grant = self.client.get_access(access_id)
        if grant is None:
            return self._abandon(access_id, action, "access not found")

        container = self.providers.resolve(grant)
        if not container.ok:
            return self._abandon(access_id, action, container.reason)

        principal = self.identities.resolve(grant.consumer)
        if not principal.ok:
            return self._abandon(access_id, action, principal.reason)

        if action is AccessAction.ACTIVATE:
            outcome = self.acl.grant(container.value, principal.value, self.role)
            if outcome is AclOutcome.CONTAINER_MISSING:
                return HandlerOutcome(
                    access_id, action, HandlerStatus.ABANDONED, reason="dataset does not exist", acl=outcome
                )
            changed = self._set_tag(access_id, present=True)
            status = HandlerStatus.GRANTED
            event_type = EventType.ACCESS_GRANTED
        else:
            outcome = self.acl.revoke(container.value, principal.value, self.role)
            changed = self._set_tag(access_id, present=False)
            status = HandlerStatus.REVOKED
            event_type = EventType.ACCESS_REVOKED

        emit_event(
            self.emitter,
            EventCategory.ACCESS,
            event_type,
            access_id=access_id,
            dataset=str(container.value),
            principal=principal.value.iam_member,
            role=self.role.value,
            acl=outcome.value,
        )
        return HandlerOutcome(access_id, action, status, acl=outcome, tag_changed=changed)

    def _set_tag(self, access_id: str, *, present: bool) -> bool:
        # re-read so the write back carries the platform's latest copy
        grant = self.client.get_access(access_id)
        if grant is None:
            self.logger.warn("access_tag_skipped", access_id=access_id, reason="access not found")
            return False
        changed = grant.add_tag(self.tag) if present else grant.remove_tag(self.tag)
        if changed:
            self.client.put_access(grant)
            self.logger.info("access_tag_updated", access_id=access_id, tag=self.tag, present=present)
        return changed

    def _abandon(self, access_id: Optional[str], action: AccessAction, reason: Optional[str]) -> HandlerOutcome:
        self.logger.info("access_abandoned", access_id=access_id, action=action.value, reason=reason)
        emit_event(
            self.emitter,
            EventCategory.ACCESS,
            EventType.ACCESS_ABANDONED,
            access_id=access_id,
            action=action.value,
            reason=reason,
        )
        return HandlerOutcome(access_id, action, HandlerStatus.ABANDONED, reason=reason)
