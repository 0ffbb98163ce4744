from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dbtunnel.canonical.property import ColumnDescriptor


@dataclass
class QueryResult:
    """
    Raw rows returned by a backend for one query, plus execution details.

    Rows are already decoded into plain mappings of semi-structured values.
    """
    rows: List[Dict[str, Any]]
    execution_time_ms: int = 0
    request_charge: float = 0.0
    activity_id: Optional[str] = None


@dataclass
class QueryData:
    """
    Normalized table: ordered columns and converted rows.
    """
    columns: List[ColumnDescriptor] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "columns": [c.to_dict() for c in self.columns],
            "rows": self.rows,
        }


@dataclass
class QueryResponse:
    """
    Generic response envelope shared by every query endpoint.
    """
    description: str
    data: QueryData
    conclusion: str
    source: str
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "description": self.description,
            "data": self.data.to_dict(),
            "conclusion": self.conclusion,
            "metadata": {
                "source": self.source,
                "properties": self.properties,
            },
        }
