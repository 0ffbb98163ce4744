from datetime import datetime, timezone
from typing import Dict, Optional

from dbtunnel.config.settings import get_settings


class HealthService:
    def __init__(self, service_name: Optional[str] = None):
        self.service_name = service_name or get_settings().service_name

    def check_health(self) -> Dict:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
        }
