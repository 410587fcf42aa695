from src.shared.domain.activity import ActivityEntry, ActivityLogRepository, ActivityRecorder

__all__ = ["ActivityEntry", "ActivityLogRepository", "ActivityRecorder"]
