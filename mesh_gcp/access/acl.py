from __future__ import annotations

import dataclasses
from enum import Enum
from typing import List

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import WarehouseClient
from mesh_gcp.core.model import AclEntry, DatasetRef, Principal, role_name


class AclOutcome(str, Enum):
    GRANTED = "granted"
    ALREADY_GRANTED = "already_granted"
    REVOKED = "revoked"
    ALREADY_REVOKED = "already_revoked"
    CONTAINER_MISSING = "container_missing"


class AclReconciler:
    """Idempotent grant/revoke of one (role, principal) pair on a dataset ACL.

    The warehouse only accepts full-list replacement, so both operations load
    the current list, edit it locally and write the whole list back against
    the version that was read. A list never ends up with more than one entry
    per (role, principal).
    """

    def __init__(self, warehouse: WarehouseClient, logger: PrintLogger) -> None:
        self.warehouse = warehouse
        self.logger = logger

    def grant(self, container: DatasetRef, principal: Principal, role) -> AclOutcome:
        acl = self.warehouse.get_dataset_acl(container)
        if acl is None:
            self.logger.info("acl_grant_skipped", reason="dataset_missing", dataset=str(container))
            return AclOutcome.CONTAINER_MISSING
        entries = list(acl.entries)
        if any(entry.matches(role, principal) for entry in entries):
            self.logger.info(
                "acl_already_granted",
                dataset=str(container),
                principal=principal.iam_member,
                role=role_name(role),
            )
            return AclOutcome.ALREADY_GRANTED
        entries.append(AclEntry(role=role_name(role), principal=principal))
        self.warehouse.update_dataset_acl(dataclasses.replace(acl, entries=entries))
        self.logger.info("acl_granted", dataset=str(container), principal=principal.iam_member, role=role_name(role))
        return AclOutcome.GRANTED

    def revoke(self, container: DatasetRef, principal: Principal, role) -> AclOutcome:
        acl = self.warehouse.get_dataset_acl(container)
        if acl is None:
            self.logger.info("acl_revoke_skipped", reason="dataset_missing", dataset=str(container))
            return AclOutcome.CONTAINER_MISSING
        remaining: List[AclEntry] = [entry for entry in acl.entries if not entry.matches(role, principal)]
        removed = len(acl.entries) - len(remaining)
        if removed == 0:
            self.logger.info(
                "acl_already_revoked",
                dataset=str(container),
                principal=principal.iam_member,
                role=role_name(role),
            )
            return AclOutcome.ALREADY_REVOKED
        self.warehouse.update_dataset_acl(dataclasses.replace(acl, entries=remaining))
        self.logger.info(
            "acl_revoked",
            dataset=str(container),
            principal=principal.iam_member,
            role=role_name(role),
            removed=removed,
        )
        return AclOutcome.REVOKED
