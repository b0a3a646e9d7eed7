"""Core scaffolding logic."""

from .scaffolder import ReverseEngineerScaffolder, ScaffoldingServices

__all__ = ["ReverseEngineerScaffolder", "ScaffoldingServices"]
