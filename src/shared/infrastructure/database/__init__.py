from src.shared.infrastructure.database.base_model import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.shared.infrastructure.database.session import DatabaseSessionFactory
from src.shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork

__all__ = [
    "Base",
    "DatabaseSessionFactory",
    "IUnitOfWork",
    "SQLAlchemyUnitOfWork",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
