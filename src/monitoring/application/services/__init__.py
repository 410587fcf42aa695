from src.monitoring.application.services.health_service import HealthService

__all__ = ["HealthService"]
