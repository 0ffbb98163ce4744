import json
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from dbtunnel.observability.logger import logger


class AuditLogger:
    """
    Builds and emits one audit record per schema or query request.

    Connection strings never enter the record; only the logical target
    (database / container) does.
    """
    def build_record(
        self,
        request_id: str,
        action: str,
        backend: str,
        decision: str,
        database: Optional[str] = None,
        container: Optional[str] = None,
        row_count: int = 0,
        duration_seconds: float = 0.0,
    ) -> Dict:
        return {
            "audit_id": str(uuid.uuid4()),
            "request_id": request_id,
            "action": action,
            "backend": backend,
            "database": database,
            "container": container,
            "decision": decision,
            "row_count": row_count,
            "duration_seconds": duration_seconds,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def persist(self, record: Dict):
        """
        For now: structured log output on the service logger.
        """
        logger.info(json.dumps({"AUDIT_EVENT": record}, default=str))
