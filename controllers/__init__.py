"""Controllers module - Application-level controllers for coordinating business logic."""

from controllers.display_sync_coordinator import DisplaySyncCoordinator, create_display_sync

__all__ = ["DisplaySyncCoordinator", "create_display_sync"]
