"""Code generation model built from a database schema."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class EntityProperty:
    """A mapped column attribute."""
    name: str
    column_name: str
    sa_type: str
    python_type: str
    nullable: bool = True
    primary_key: bool = False
    autoincrement: Optional[bool] = None
    server_default: Optional[str] = None
    computed_sql: Optional[str] = None
    comment: Optional[str] = None


@dataclass
class EntityForeignKey:
    """Foreign key between two entities, expressed with column names."""
    properties: List[str]
    columns: List[str]
    principal_entity: str
    principal_table: str
    principal_schema: Optional[str]
    principal_columns: List[str]
    name: Optional[str] = None
    on_delete: Optional[str] = None
    is_unique: bool = False


@dataclass
class EntityIndex:
    """Index to declare in ``__table_args__``."""
    name: str
    columns: List[str]
    unique: bool = False


@dataclass
class Navigation:
    """Relationship attribute on one end of a foreign key."""
    name: str
    target_entity: str
    back_populates: str
    is_collection: bool
    dependent_entity: str = ""
    foreign_key_properties: List[str] = field(default_factory=list)


@dataclass
class EntityType:
    """An entity rendered into its own module."""
    class_name: str
    table_name: str
    module_name: str
    collection_name: str
    schema: Optional[str] = None
    comment: Optional[str] = None
    is_view: bool = False
    is_keyless: bool = False
    properties: List[EntityProperty] = field(default_factory=list)
    foreign_keys: List[EntityForeignKey] = field(default_factory=list)
    indexes: List[EntityIndex] = field(default_factory=list)
    navigations: List[Navigation] = field(default_factory=list)

    @property
    def primary_key(self) -> List[EntityProperty]:
        return [p for p in self.properties if p.primary_key]

    def find_property(self, column_name: str) -> Optional[EntityProperty]:
        return next((p for p in self.properties if p.column_name == column_name), None)


@dataclass
class EntityModel:
    """Everything the code generator needs, ordered deterministically."""
    database_name: Optional[str] = None
    entities: List[EntityType] = field(default_factory=list)

    def find_entity(self, class_name: str) -> Optional[EntityType]:
        return next((e for e in self.entities if e.class_name == class_name), None)
