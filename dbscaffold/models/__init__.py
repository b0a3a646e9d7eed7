"""Data models for dbscaffold."""

from .schema import (
    SCAFFOLDING_CONNECTION_STRING,
    DatabaseSchema,
    DatabaseTable,
    DatabaseColumn,
    DatabasePrimaryKey,
    DatabaseForeignKey,
    DatabaseUniqueConstraint,
    DatabaseIndex,
)
from .entity import EntityModel, EntityType, EntityProperty, EntityForeignKey, EntityIndex, Navigation
from .artifacts import ScaffoldedFile, ScaffoldedModel, SavedModelFiles, GeneratedArtifactSet, WriteResult
from .options import IntrospectionOptions, ReverseEngineerOptions, CodeGenerationOptions

__all__ = [
    "SCAFFOLDING_CONNECTION_STRING",
    "DatabaseSchema",
    "DatabaseTable",
    "DatabaseColumn",
    "DatabasePrimaryKey",
    "DatabaseForeignKey",
    "DatabaseUniqueConstraint",
    "DatabaseIndex",
    "EntityModel",
    "EntityType",
    "EntityProperty",
    "EntityForeignKey",
    "EntityIndex",
    "Navigation",
    "ScaffoldedFile",
    "ScaffoldedModel",
    "SavedModelFiles",
    "GeneratedArtifactSet",
    "WriteResult",
    "IntrospectionOptions",
    "ReverseEngineerOptions",
    "CodeGenerationOptions",
]
