import unittest

from google.api_core.exceptions import PreconditionFailed

from mesh_gcp.access import AclOutcome, AclReconciler
from mesh_gcp.core.model import AclEntry, AclRole, DatasetRef, Principal, PrincipalKind

from support import FakeWarehouse, quiet_logger

ALICE = Principal(PrincipalKind.USER, "alice@example.com")
ANALYSTS = Principal(PrincipalKind.GROUP, "analysts@example.com")
BOB = Principal(PrincipalKind.USER, "bob@example.com")


class RacingWarehouse(FakeWarehouse):
    """Another admin edits the ACL right after every read."""

    def get_dataset_acl(self, ref):
        acl = super().get_dataset_acl(ref)
        if acl is not None:
            self.change_acl_elsewhere(ref, self.acl(ref) + [AclEntry("WRITER", BOB)])
        return acl


class AclReconcilerTest(unittest.TestCase):
    def setUp(self):
        self.warehouse = FakeWarehouse()
        self.ref = self.warehouse.add_dataset("proj", "sales", last_modified=1, acl=[])
        self.acl = AclReconciler(self.warehouse, quiet_logger())

    def _matching(self, role, principal):
        return [e for e in self.warehouse.acl(self.ref) if e.matches(role, principal)]

    def test_grant_adds_entry_once(self):
        self.assertEqual(self.acl.grant(self.ref, ALICE, AclRole.READER), AclOutcome.GRANTED)
        self.assertEqual(self.acl.grant(self.ref, ALICE, AclRole.READER), AclOutcome.ALREADY_GRANTED)
        self.assertEqual(len(self._matching("READER", ALICE)), 1)
        self.assertEqual(len(self.warehouse.acl_updates), 1)

    def test_revoke_removes_every_duplicate(self):
        self.warehouse.datasets[self.ref]["acl"] = [
            AclEntry("READER", ALICE),
            AclEntry("READER", ALICE),
            AclEntry("READER", ANALYSTS),
        ]
        self.assertEqual(self.acl.revoke(self.ref, ALICE, AclRole.READER), AclOutcome.REVOKED)
        self.assertEqual(self._matching("READER", ALICE), [])
        self.assertEqual(len(self.warehouse.acl(self.ref)), 1)

    def test_revoke_absent_entry_is_noop(self):
        self.assertEqual(self.acl.revoke(self.ref, ALICE, AclRole.READER), AclOutcome.ALREADY_REVOKED)
        self.assertEqual(self.warehouse.acl_updates, [])

    def test_missing_dataset(self):
        ghost = DatasetRef("proj", "ghost")
        self.assertEqual(self.acl.grant(ghost, ALICE, AclRole.READER), AclOutcome.CONTAINER_MISSING)
        self.assertEqual(self.acl.revoke(ghost, ALICE, AclRole.READER), AclOutcome.CONTAINER_MISSING)
        self.assertEqual(self.warehouse.acl_updates, [])

    def test_unrelated_entries_preserved(self):
        special = AclEntry("OWNER", None, native={"specialGroup": "projectOwners"})
        self.warehouse.datasets[self.ref]["acl"] = [special, AclEntry("WRITER", ALICE)]

        self.acl.grant(self.ref, ALICE, AclRole.READER)
        self.acl.revoke(self.ref, ALICE, AclRole.READER)

        entries = self.warehouse.acl(self.ref)
        self.assertEqual(len(entries), 2)
        self.assertIs(entries[0].native, special.native)
        self.assertEqual(len(self._matching("WRITER", ALICE)), 1)

    def test_roles_are_distinct(self):
        self.warehouse.datasets[self.ref]["acl"] = [AclEntry("WRITER", ALICE)]
        self.assertEqual(self.acl.grant(self.ref, ALICE, AclRole.READER), AclOutcome.GRANTED)
        self.assertEqual(len(self.warehouse.acl(self.ref)), 2)

    def test_string_and_enum_roles_match(self):
        self.warehouse.datasets[self.ref]["acl"] = [AclEntry("READER", ALICE)]
        self.assertEqual(self.acl.grant(self.ref, ALICE, "READER"), AclOutcome.ALREADY_GRANTED)
        self.assertEqual(self.acl.grant(self.ref, ALICE, AclRole.READER), AclOutcome.ALREADY_GRANTED)

    def test_concurrent_edit_is_not_overwritten(self):
        warehouse = RacingWarehouse()
        ref = warehouse.add_dataset("proj", "sales", last_modified=1, acl=[])

        with self.assertRaises(PreconditionFailed):
            AclReconciler(warehouse, quiet_logger()).grant(ref, ALICE, AclRole.READER)

        self.assertEqual(warehouse.acl(ref), [AclEntry("WRITER", BOB)])
        self.assertEqual(warehouse.acl_updates, [])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
