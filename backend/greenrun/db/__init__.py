from greenrun.db.repositories import ExecutionRepository, StatusStore

__all__ = ["ExecutionRepository", "StatusStore"]
