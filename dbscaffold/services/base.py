"""Capability interfaces for each stage of the scaffolding pipeline."""

import re
from abc import ABC, abstractmethod

from ..models import (
    DatabaseSchema,
    EntityModel,
    ScaffoldedModel,
    IntrospectionOptions,
    ReverseEngineerOptions,
    CodeGenerationOptions,
)

NAMED_REFERENCE_PATTERN = re.compile(r'^\s*name\s*=\s*(?P<name>[^;=]+?)\s*;?\s*$', re.IGNORECASE)


class ConnectionResolver(ABC):
    """Turns a possibly symbolic connection reference into a connection string."""

    @abstractmethod
    def resolve(self, reference: str) -> str:
        """Return the concrete connection string for ``reference``."""
        pass

    def is_named(self, reference: str) -> bool:
        """Whether ``reference`` is a symbolic ``Name=<key>`` reference."""
        return NAMED_REFERENCE_PATTERN.match(reference or "") is not None


class SchemaIntrospector(ABC):
    """Reads a database schema into a ``DatabaseSchema`` snapshot."""

    @abstractmethod
    def introspect(self, connection_string: str, options: IntrospectionOptions) -> DatabaseSchema:
        """Read the schema reachable through ``connection_string``."""
        pass


class ModelBuilder(ABC):
    """Transforms a schema snapshot into an entity model."""

    @abstractmethod
    def build(self, schema: DatabaseSchema, options: ReverseEngineerOptions) -> EntityModel:
        """Build the entity model for ``schema``."""
        pass


class CodeGenerator(ABC):
    """Renders an entity model into source files."""

    @abstractmethod
    def generate(self,
                 entity_model: EntityModel,
                 schema: DatabaseSchema,
                 options: CodeGenerationOptions) -> ScaffoldedModel:
        """Generate the context file and per-entity files."""
        pass
