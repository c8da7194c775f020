"""
Health checks for liveness and readiness probes.
"""
import os
from datetime import datetime, timezone
from typing import Dict, Any
import psutil
from .logging import get_logger

logger = get_logger()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _graded(available: float, minimum: float) -> str:
    """ok above twice the minimum, warning above it, error below."""
    if available < minimum:
        return "error"
    if available < minimum * 2:
        return "warning"
    return "ok"


class HealthChecker:
    """
    Health checker for the EventLens service.

    Provides:
    - Liveness checks (is the service running?)
    - Readiness checks (can the configured stores answer queries?)
    """

    def __init__(
        self,
        service_name: str = "eventlens",
        version: str = "0.1.0",
        data_path: str = "/",
        min_disk_gb: float = 1.0,
        min_memory_mb: float = 50.0,
    ):
        self.service_name = service_name
        self.version = version
        self.data_path = data_path
        self.min_disk_gb = min_disk_gb
        self.min_memory_mb = min_memory_mb

    @classmethod
    def from_settings(cls, settings, service_name: str, version: str) -> "HealthChecker":
        """Probe the directory of the DuckDB file, or the root volume without one."""
        data_path = "/"
        if settings.DUCKDB_PATH and settings.DUCKDB_PATH != ":memory:":
            data_path = os.path.dirname(os.path.abspath(settings.DUCKDB_PATH))
        return cls(
            service_name=service_name,
            version=version,
            data_path=data_path,
            min_disk_gb=settings.HEALTH_MIN_DISK_GB,
            min_memory_mb=settings.HEALTH_MIN_MEMORY_MB,
        )

    def liveness(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "service": self.service_name,
            "version": self.version,
            "timestamp": _now(),
        }

    async def readiness(self, query_service=None) -> Dict[str, Any]:
        """
        Readiness check - comprehensive health check.

        Checks:
        - Connectivity of every configured event store
        - Disk space availability
        - Memory availability

        Args:
            query_service: QueryService whose stores are probed (None if
                no store could be opened)

        Returns:
            dict: Readiness status with detailed check results
        """
        checks = {"stores": await self._check_stores(query_service)}
        overall_status = "ready" if checks["stores"]["status"] == "ok" else "not_ready"

        checks["disk_space"] = self._check_disk_space()
        checks["memory"] = self._check_memory()
        for name in ("disk_space", "memory"):
            if checks[name]["status"] == "error":
                overall_status = "not_ready"

        return {
            "status": overall_status,
            "service": self.service_name,
            "version": self.version,
            "timestamp": _now(),
            "checks": checks,
        }

    async def _check_stores(self, query_service) -> Dict[str, Any]:
        if query_service is None or not query_service.stores:
            return {
                "status": "error",
                "message": "No event store configured",
            }

        results = await query_service.health()
        healthy = [store for store, ok in results.items() if ok]
        return {
            # One reachable store is enough to serve traffic
            "status": "ok" if healthy else "error",
            "stores": {store: "ok" if ok else "error" for store, ok in results.items()},
        }

    def _check_disk_space(self) -> Dict[str, Any]:
        """Free space on the volume holding the columnar store file."""
        try:
            disk = psutil.disk_usage(self.data_path)
        except OSError as e:
            logger.warning("disk_health_check_failed", path=self.data_path, error=str(e))
            return {"status": "error", "path": self.data_path, "error": str(e)}

        available_gb = disk.free / (1024**3)
        return {
            "status": _graded(available_gb, self.min_disk_gb),
            "path": self.data_path,
            "available_gb": round(available_gb, 2),
            "total_gb": round(disk.total / (1024**3), 2),
            "used_percent": disk.percent,
        }

    def _check_memory(self) -> Dict[str, Any]:
        """Available memory; DuckDB scans are memory bound."""
        try:
            memory = psutil.virtual_memory()
        except OSError as e:
            logger.warning("memory_health_check_failed", error=str(e))
            return {"status": "error", "error": str(e)}

        available_mb = memory.available / (1024**2)
        return {
            "status": _graded(available_mb, self.min_memory_mb),
            "available_mb": round(available_mb, 2),
            "total_mb": round(memory.total / (1024**2), 2),
            "used_percent": memory.percent,
        }
