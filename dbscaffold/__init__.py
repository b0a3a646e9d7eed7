"""dbscaffold - reverse-engineer a database schema into SQLAlchemy model code."""

from .core import ReverseEngineerScaffolder, ScaffoldingServices
from .errors import (
    ScaffoldingError,
    ConfigurationError,
    IntrospectionError,
    ModelBuildError,
    SaveConflictError,
)

__version__ = "0.1.0"

__all__ = [
    "ReverseEngineerScaffolder",
    "ScaffoldingServices",
    "ScaffoldingError",
    "ConfigurationError",
    "IntrospectionError",
    "ModelBuildError",
    "SaveConflictError",
]
