from greenrun.services.shutdown.coordinator import ShutdownCoordinator, ShutdownOutcome

__all__ = ["ShutdownCoordinator", "ShutdownOutcome"]
