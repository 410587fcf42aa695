# src/shared/model_loader.py
"""
Centralized, side-effect-only imports so SQLAlchemy mappers are registered
without circular imports between model modules.
"""
import importlib

MODEL_MODULES = (
    "src.tenancy.infrastructure.models",
    "src.marketplace.infrastructure.models",
    "src.billing.infrastructure.models",
    "src.console.infrastructure.models",
    "src.shared.infrastructure.activity_log",
)


def import_all_models() -> None:
    """Import model modules for their side-effects (mapper registration)."""
    for path in MODEL_MODULES:
        importlib.import_module(path)
