from src.console.domain.entities.impersonation import ImpersonationSession, ImpersonationStatus

__all__ = ["ImpersonationSession", "ImpersonationStatus"]
