from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PrincipalKind(str, Enum):
    USER = "user"
    GROUP = "group"


class AclRole(str, Enum):
    READER = "READER"
    WRITER = "WRITER"
    OWNER = "OWNER"

    @classmethod
    def parse(cls, name: str) -> "AclRole":
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            raise ValueError(f"Unsupported ACL role: {name!r}") from None


def role_name(role: Any) -> str:
    if isinstance(role, Enum):
        return str(role.value)
    return str(role)


@dataclass(frozen=True)
class Principal:
    """Warehouse IAM identity authorised through an ACL entry."""

    kind: PrincipalKind
    identifier: str

    @property
    def iam_member(self) -> str:
        return f"{self.kind.value}:{self.identifier}"

    def __str__(self) -> str:
        return self.iam_member


@dataclass
class AclEntry:
    """One dataset ACL entry.

    ``principal`` is ``None`` for entries the connector does not model (special
    groups, authorised views, domains). ``native`` carries the warehouse object
    so such entries are written back untouched.
    """

    role: str
    principal: Optional[Principal]
    native: Any = field(default=None, compare=False, repr=False)

    def matches(self, role: str, principal: Principal) -> bool:
        return self.principal is not None and role_name(self.role) == role_name(role) and self.principal == principal


@dataclass
class DatasetAcl:
    """ACL of one dataset as read, with the version it was read at.

    ``etag`` and ``native`` identify the read, so a write back fails instead
    of overwriting changes made since.
    """

    ref: DatasetRef
    entries: List[AclEntry] = field(default_factory=list)
    etag: Optional[str] = None
    native: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DatasetRef:
    project: str
    dataset: str

    def __str__(self) -> str:
        return f"{self.project}.{self.dataset}"


@dataclass(frozen=True)
class TableRef:
    project: str
    dataset: str
    table: str

    @property
    def dataset_ref(self) -> DatasetRef:
        return DatasetRef(self.project, self.dataset)

    def __str__(self) -> str:
        return f"{self.project}.{self.dataset}.{self.table}"


@dataclass
class SchemaFieldDescriptor:
    name: str
    type: str
    description: Optional[str] = None


@dataclass
class DatasetDescriptor:
    """Full dataset metadata as returned by the warehouse."""

    ref: DatasetRef
    generated_id: Optional[str] = None
    friendly_name: Optional[str] = None
    description: Optional[str] = None
    last_modified: Optional[int] = None  # epoch millis


@dataclass
class TableDescriptor:
    """Full table metadata as returned by the warehouse."""

    ref: TableRef
    generated_id: Optional[str] = None
    friendly_name: Optional[str] = None
    description: Optional[str] = None
    definition_type: Optional[str] = None  # TABLE, VIEW, MATERIALIZED_VIEW, EXTERNAL, ...
    last_modified: Optional[int] = None  # epoch millis
    fields: List[SchemaFieldDescriptor] = field(default_factory=list)


@dataclass
class AssetColumn:
    name: str
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass
class Asset:
    """Generic asset document published to the governance platform."""

    id: str
    name: Optional[str]
    qualified_name: str
    type: Optional[str]
    description: Optional[str] = None
    status: str = "active"
    source: str = "gcp"
    columns: List[AssetColumn] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "info": {
                "name": self.name,
                "source": self.source,
                "qualifiedName": self.qualified_name,
                "type": self.type,
                "status": self.status,
                "description": self.description,
            },
            "columns": [
                {"name": col.name, "type": col.type, "description": col.description}
                for col in self.columns
            ],
            "properties": dict(self.properties),
        }


@dataclass
class Provider:
    data_product_id: Optional[str] = None
    output_port_id: Optional[str] = None


@dataclass
class Consumer:
    data_product_id: Optional[str] = None
    team_id: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class AccessGrant:
    """Platform access record.

    ``document`` keeps the raw payload so a write back preserves fields this
    connector does not model.
    """

    id: str
    provider: Optional[Provider] = None
    consumer: Optional[Consumer] = None
    tags: List[str] = field(default_factory=list)
    document: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AccessGrant":
        provider = doc.get("provider")
        consumer = doc.get("consumer")
        return cls(
            id=str(doc["id"]),
            provider=Provider(
                data_product_id=provider.get("dataProductId"),
                output_port_id=provider.get("outputPortId"),
            )
            if isinstance(provider, dict)
            else None,
            consumer=Consumer(
                data_product_id=consumer.get("dataProductId"),
                team_id=consumer.get("teamId"),
                user_id=consumer.get("userId"),
            )
            if isinstance(consumer, dict)
            else None,
            tags=list(doc.get("tags") or []),
            document=dict(doc),
        )

    def to_document(self) -> Dict[str, Any]:
        doc = dict(self.document)
        doc["id"] = self.id
        doc["tags"] = list(self.tags)
        return doc

    def add_tag(self, tag: str) -> bool:
        if tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def remove_tag(self, tag: str) -> bool:
        if tag not in self.tags:
            return False
        self.tags = [t for t in self.tags if t != tag]
        return True


@dataclass
class Server:
    project: Optional[str] = None
    dataset: Optional[str] = None


@dataclass
class OutputPort:
    id: str
    server: Optional[Server] = None


@dataclass
class DataProduct:
    id: str
    custom: Dict[str, str] = field(default_factory=dict)
    output_ports: List[OutputPort] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "DataProduct":
        ports: List[OutputPort] = []
        for port in doc.get("outputPorts") or []:
            server = port.get("server")
            ports.append(
                OutputPort(
                    id=str(port.get("id")),
                    server=Server(project=server.get("project"), dataset=server.get("dataset"))
                    if isinstance(server, dict)
                    else None,
                )
            )
        return cls(id=str(doc["id"]), custom=dict(doc.get("custom") or {}), output_ports=ports)

    def output_port(self, port_id: Optional[str]) -> Optional[OutputPort]:
        for port in self.output_ports:
            if port.id == port_id:
                return port
        return None


@dataclass
class Team:
    id: str
    custom: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Team":
        return cls(id=str(doc["id"]), custom=dict(doc.get("custom") or {}))


@dataclass
class PlatformEvent:
    """CloudEvents envelope delivered by the platform's event feed."""

    id: str
    type: str
    access_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PlatformEvent":
        data = doc.get("data") if isinstance(doc.get("data"), dict) else {}
        return cls(id=str(doc["id"]), type=str(doc.get("type", "")), access_id=data.get("id"))

    @property
    def short_type(self) -> str:
        return self.type.rsplit(".", 1)[-1]
