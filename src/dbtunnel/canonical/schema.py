from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Optional

from dbtunnel.canonical.property import PropertySchema


@dataclass
class ContainerSchema:
    """
    Inferred schema of one document container.
    """
    name: str
    properties: List[PropertySchema] = field(default_factory=list)
    partition_key_path: str = "/id"

    @property
    def has_business_properties(self) -> bool:
        return any(not p.is_system_property for p in self.properties)

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "partitionKeyPath": self.partition_key_path,
            "properties": [p.to_dict() for p in self.properties],
            "propertyCount": len(self.properties),
            "hasBusinessProperties": self.has_business_properties,
        }


@dataclass
class DatabaseSchema:
    """
    Schema of a document database: every container with its
    inferred properties.

    Recomputed on every request, never persisted.
    """
    name: str
    containers: List[ContainerSchema] = field(default_factory=list)
    retrieved_at_utc: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def total_properties(self) -> int:
        return sum(len(c.properties) for c in self.containers)

    def get_container(self, name: str) -> Optional[ContainerSchema]:
        for container in self.containers:
            if container.name == name:
                return container
        return None

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "containers": [c.to_dict() for c in self.containers],
            "retrievedAtUtc": self.retrieved_at_utc.isoformat(),
            "containerCount": len(self.containers),
            "totalProperties": self.total_properties,
        }
