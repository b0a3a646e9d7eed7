"""Services for dbscaffold."""

from .base import ConnectionResolver, SchemaIntrospector, ModelBuilder, CodeGenerator
from .connection_resolver import NamedConnectionStringResolver
from .schema_introspector import SqlAlchemySchemaIntrospector, DatabaseType
from .model_builder import RelationalModelBuilder
from .code_generator import Jinja2CodeGenerator, default_context_name
from .artifact_writer import ArtifactWriter

__all__ = [
    "ConnectionResolver",
    "SchemaIntrospector",
    "ModelBuilder",
    "CodeGenerator",
    "NamedConnectionStringResolver",
    "SqlAlchemySchemaIntrospector",
    "DatabaseType",
    "RelationalModelBuilder",
    "Jinja2CodeGenerator",
    "default_context_name",
    "ArtifactWriter",
]
