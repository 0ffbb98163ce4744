from dataclasses import dataclass
from typing import Dict, Any

from dbtunnel.standards.system_columns import is_system_column


@dataclass(frozen=True)
class PropertySchema:
    """
    Inferred schema of one document property.

    json_type follows the type descriptor grammar:
    scalar (null, string, integer, long, decimal, number, boolean, object),
    array / array<T> / array<T1|T2>, or a sorted union T1|T2.
    """
    name: str
    json_type: str
    nullable: bool

    @property
    def is_system_property(self) -> bool:
        return is_system_column(self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "jsonType": self.json_type,
            "isNullable": self.nullable,
            "isSystemProperty": self.is_system_property,
        }


@dataclass(frozen=True)
class ColumnDescriptor:
    """
    One display column of a normalized result table.

    type is the coarse kind of the first row's value
    (string, number, boolean, array, object, null, unknown).
    """
    name: str
    type: str
    nullable: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "isNullable": self.nullable,
        }
