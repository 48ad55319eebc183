from greenrun.db.repositories.execution_repository import ExecutionRepository
from greenrun.db.repositories.status_store import StatusStore

__all__ = ["ExecutionRepository", "StatusStore"]
