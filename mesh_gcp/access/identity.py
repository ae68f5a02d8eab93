from __future__ import annotations

from typing import Dict, Optional

from mesh_gcp.common import PrintLogger
from mesh_gcp.core.interfaces import GovernanceClient
from mesh_gcp.core.model import AccessGrant, Consumer, DatasetRef, Principal, PrincipalKind
from mesh_gcp.core.result import Resolution

SERVICE_ACCOUNT_PREFIX = "serviceAccount:"
GROUP_PREFIX = "group:"


def custom_value(custom: Optional[Dict[str, str]], key: str) -> Optional[str]:
    if not custom:
        return None
    value = custom.get(key)
    return value if value else None


class IdentityResolver:
    """Maps an access consumer onto a warehouse principal.

    Precedence is fixed: data product, then team, then user. The first
    reference present decides the outcome; a data product without a usable
    custom field does not fall through to the team.
    """

    def __init__(
        self,
        client: GovernanceClient,
        *,
        team_custom_field: str,
        data_product_custom_field: str,
        logger: Optional[PrintLogger] = None,
    ) -> None:
        self.client = client
        self.team_custom_field = team_custom_field
        self.data_product_custom_field = data_product_custom_field
        self.logger = logger

    def resolve(self, consumer: Optional[Consumer]) -> Resolution[Principal]:
        if consumer is None:
            return Resolution.unresolved("no consumer is available")
        if consumer.data_product_id:
            return self._resolve_data_product(consumer.data_product_id)
        if consumer.team_id:
            return self._resolve_team(consumer.team_id)
        if consumer.user_id:
            # user ids are the user's email address
            return Resolution.resolved(Principal(PrincipalKind.USER, consumer.user_id))
        return Resolution.unresolved("consumer has no data product, team or user reference")

    def _resolve_data_product(self, data_product_id: str) -> Resolution[Principal]:
        data_product = self.client.get_data_product(data_product_id)
        if data_product is None:
            return Resolution.unresolved(f"consumer data product {data_product_id} not found")
        value = custom_value(data_product.custom, self.data_product_custom_field)
        if value is None or not value.startswith(SERVICE_ACCOUNT_PREFIX):
            return Resolution.unresolved(
                f"data product {data_product_id} has no {SERVICE_ACCOUNT_PREFIX} value "
                f"in custom field {self.data_product_custom_field}"
            )
        return Resolution.resolved(Principal(PrincipalKind.USER, value[len(SERVICE_ACCOUNT_PREFIX):]))

    def _resolve_team(self, team_id: str) -> Resolution[Principal]:
        team = self.client.get_team(team_id)
        if team is None:
            return Resolution.unresolved(f"consumer team {team_id} not found")
        value = custom_value(team.custom, self.team_custom_field)
        if value is None or not value.startswith(GROUP_PREFIX):
            return Resolution.unresolved(
                f"team {team_id} has no {GROUP_PREFIX} value in custom field {self.team_custom_field}"
            )
        return Resolution.resolved(Principal(PrincipalKind.GROUP, value[len(GROUP_PREFIX):]))


class ProviderResolver:
    """Finds the dataset an access grants on, via the provider's output port."""

    def __init__(self, client: GovernanceClient) -> None:
        self.client = client

    def resolve(self, grant: AccessGrant) -> Resolution[DatasetRef]:
        provider = grant.provider
        if provider is None or not provider.data_product_id:
            return Resolution.unresolved("no provider is available")
        data_product = self.client.get_data_product(provider.data_product_id)
        if data_product is None:
            return Resolution.unresolved(f"provider data product {provider.data_product_id} not found")
        if not data_product.output_ports:
            return Resolution.unresolved("no output port is available")
        port = data_product.output_port(provider.output_port_id)
        if port is None:
            return Resolution.unresolved(f"no output port found for id {provider.output_port_id}")
        server = port.server
        if server is None:
            return Resolution.unresolved("no server is available")
        if not server.project:
            return Resolution.unresolved("no project is available")
        if not server.dataset:
            return Resolution.unresolved("no dataset is available")
        return Resolution.resolved(DatasetRef(server.project, server.dataset))
