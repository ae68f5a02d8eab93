from .acl import AclOutcome, AclReconciler
from .handler import (
    PERMISSION_GRANTED_TAG,
    AccessAction,
    AccessReconciliationHandler,
    HandlerOutcome,
    HandlerStatus,
)
from .identity import IdentityResolver, ProviderResolver

__all__ = [
    "AccessAction",
    "AccessReconciliationHandler",
    "AclOutcome",
    "AclReconciler",
    "HandlerOutcome",
    "HandlerStatus",
    "IdentityResolver",
    "PERMISSION_GRANTED_TAG",
    "ProviderResolver",
]
