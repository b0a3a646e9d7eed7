"""Provider-neutral snapshot of a database schema."""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

# Annotation carrying a connection string discovered during introspection.
# When present it replaces the caller's reference in generated code.
SCAFFOLDING_CONNECTION_STRING = "Scaffolding:ConnectionString"


@dataclass
class DatabaseColumn:
    """A column of a table or view."""
    name: str
    store_type: str
    nullable: bool = True
    default_sql: Optional[str] = None
    computed_sql: Optional[str] = None
    autoincrement: Optional[bool] = None
    comment: Optional[str] = None


@dataclass
class DatabasePrimaryKey:
    """Primary key constraint."""
    columns: List[str]
    name: Optional[str] = None


@dataclass
class DatabaseForeignKey:
    """Foreign key constraint pointing at a principal table."""
    columns: List[str]
    principal_table: str
    principal_columns: List[str]
    principal_schema: Optional[str] = None
    name: Optional[str] = None
    on_delete: Optional[str] = None


@dataclass
class DatabaseUniqueConstraint:
    """Unique constraint."""
    columns: List[str]
    name: Optional[str] = None


@dataclass
class DatabaseIndex:
    """Index over one or more columns."""
    columns: List[str]
    name: Optional[str] = None
    unique: bool = False


@dataclass
class DatabaseTable:
    """A table or view with its columns and constraints."""
    name: str
    schema: Optional[str] = None
    comment: Optional[str] = None
    is_view: bool = False
    columns: List[DatabaseColumn] = field(default_factory=list)
    primary_key: Optional[DatabasePrimaryKey] = None
    foreign_keys: List[DatabaseForeignKey] = field(default_factory=list)
    unique_constraints: List[DatabaseUniqueConstraint] = field(default_factory=list)
    indexes: List[DatabaseIndex] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name

    def find_column(self, name: str) -> Optional[DatabaseColumn]:
        return next((c for c in self.columns if c.name == name), None)


@dataclass
class DatabaseSchema:
    """Snapshot of a database produced by introspection.

    Tables are unique by ``(schema, name)``. Annotations hold provider
    specific values keyed by name; see ``SCAFFOLDING_CONNECTION_STRING``.
    """
    database_name: Optional[str] = None
    default_schema: Optional[str] = None
    tables: List[DatabaseTable] = field(default_factory=list)
    annotations: Dict[str, Any] = field(default_factory=dict)

    def add_table(self, table: DatabaseTable) -> DatabaseTable:
        """Add a table, rejecting duplicates."""
        if self._lookup(table.name, table.schema) is not None:
            raise ValueError(f"Table '{table.qualified_name}' already exists in the schema")
        self.tables.append(table)
        return table

    def find_table(self, name: str, schema: Optional[str] = None) -> Optional[DatabaseTable]:
        """Find a table by name, treating a missing schema as the default schema."""
        table = self._lookup(name, schema)
        if table is None and schema is not None and schema == self.default_schema:
            table = self._lookup(name, None)
        if table is None and schema is None and self.default_schema is not None:
            table = self._lookup(name, self.default_schema)
        return table

    def _lookup(self, name: str, schema: Optional[str]) -> Optional[DatabaseTable]:
        return next((t for t in self.tables if t.name == name and t.schema == schema), None)

    @property
    def connection_string_override(self) -> Optional[str]:
        """Connection string found during introspection, if any."""
        value = self.annotations.get(SCAFFOLDING_CONNECTION_STRING)
        return value or None
