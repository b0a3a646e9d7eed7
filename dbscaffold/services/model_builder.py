"""Builds the entity model used for code generation from a schema snapshot."""

import logging
import re
from typing import List, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ..errors import ModelBuildError
from ..models import (
    DatabaseSchema,
    DatabaseTable,
    DatabaseForeignKey,
    EntityModel,
    EntityType,
    EntityProperty,
    EntityForeignKey,
    EntityIndex,
    Navigation,
    ReverseEngineerOptions,
)
from .base import ModelBuilder
from .naming import (
    UniqueNamer,
    pluralize,
    sanitize_identifier,
    singularize,
    to_pascal_case,
    to_snake_case,
)
from .type_mapping import map_store_type

logger = logging.getLogger(__name__)

# Attribute names the declarative base already uses.
RESERVED_ATTRIBUTE_NAMES = {"metadata", "registry", "query"}

# Class and module names the generated package already uses.
RESERVED_CLASS_NAMES = {"Base"}
RESERVED_MODULE_NAMES = {"base", "__init__"}

# Collections become properties of a Session subclass.
RESERVED_COLLECTION_NAMES = {name for name in dir(Session) if not name.startswith("_")}


class RelationalModelBuilder(ModelBuilder):
    """Maps tables to entities, columns to properties and foreign keys to navigations.

    A pure function of the schema and options: tables are processed in
    ``(schema, name)`` order and every name is assigned deterministically.
    """

    def build(self, schema: DatabaseSchema, options: ReverseEngineerOptions) -> EntityModel:
        tables = sorted(schema.tables, key=lambda t: (t.schema or "", t.name))
        for table in tables:
            self._validate_table(schema, table)

        included = [t for t in tables if self._is_included(t, options)]
        logger.info(f"Building entity model for {len(included)} of {len(tables)} tables")

        class_namer = UniqueNamer(RESERVED_CLASS_NAMES | set(options.reserved_class_names))
        module_namer = UniqueNamer(
            RESERVED_MODULE_NAMES | {to_snake_case(name) for name in options.reserved_class_names}
        )
        collection_namer = UniqueNamer(RESERVED_COLLECTION_NAMES)

        model = EntityModel(database_name=schema.database_name)
        entities_by_table: Dict[Tuple[str, str], EntityType] = {}

        for table in included:
            entity = self._build_entity(table, options, class_namer, module_namer, collection_namer)
            if not entity.properties:
                logger.warning(f"Skipping table {table.qualified_name}: none of its columns could be mapped")
                continue
            model.entities.append(entity)
            entities_by_table[self._table_key(schema, table.schema, table.name)] = entity

        for table in included:
            entity = entities_by_table.get(self._table_key(schema, table.schema, table.name))
            if entity is None:
                continue
            for fk in table.foreign_keys:
                self._add_foreign_key(schema, table, entity, fk, entities_by_table)

        self._add_navigations(model)
        return model

    def _validate_table(self, schema: DatabaseSchema, table: DatabaseTable) -> None:
        """Reject structurally invalid tables before anything is built."""
        column_names = {c.name for c in table.columns}

        def check_columns(columns: List[str], owner: str) -> None:
            for column in columns:
                if column not in column_names:
                    raise ModelBuildError(
                        f"{owner} on table '{table.qualified_name}' references missing column '{column}'",
                        object_name=f"{table.qualified_name}.{column}",
                    )

        if table.primary_key is not None:
            check_columns(table.primary_key.columns, "Primary key")
        for index in table.indexes:
            check_columns(index.columns, f"Index '{index.name}'")
        for uc in table.unique_constraints:
            check_columns(uc.columns, f"Unique constraint '{uc.name}'")

        for fk in table.foreign_keys:
            fk_name = fk.name or f"FK_{table.name}_{fk.principal_table}"
            check_columns(fk.columns, f"Foreign key '{fk_name}'")

            principal = schema.find_table(fk.principal_table, fk.principal_schema or table.schema)
            if principal is None:
                principal = schema.find_table(fk.principal_table, fk.principal_schema)
            if principal is None:
                raise ModelBuildError(
                    f"Foreign key '{fk_name}' on table '{table.qualified_name}' references "
                    f"table '{fk.principal_table}' which does not exist",
                    object_name=fk_name,
                )
            if len(fk.columns) != len(fk.principal_columns):
                raise ModelBuildError(
                    f"Foreign key '{fk_name}' on table '{table.qualified_name}' has "
                    f"{len(fk.columns)} column(s) but references {len(fk.principal_columns)}",
                    object_name=fk_name,
                )
            for column in fk.principal_columns:
                if principal.find_column(column) is None:
                    raise ModelBuildError(
                        f"Foreign key '{fk_name}' on table '{table.qualified_name}' references "
                        f"missing column '{principal.qualified_name}.{column}'",
                        object_name=fk_name,
                    )

    def _is_included(self, table: DatabaseTable, options: ReverseEngineerOptions) -> bool:
        """Apply the view and name pattern filters."""
        if table.is_view and not options.include_views:
            logger.debug(f"Excluding view {table.qualified_name}")
            return False

        names = [table.name, table.qualified_name]
        if options.included_tables_pattern:
            pattern = re.compile(options.included_tables_pattern)
            if not any(pattern.fullmatch(n) for n in names):
                logger.debug(f"Excluding {table.qualified_name}: not matched by include pattern")
                return False
        if options.excluded_tables_pattern:
            pattern = re.compile(options.excluded_tables_pattern)
            if any(pattern.fullmatch(n) for n in names):
                logger.debug(f"Excluding {table.qualified_name}: matched by exclude pattern")
                return False
        return True

    def _build_entity(self,
                      table: DatabaseTable,
                      options: ReverseEngineerOptions,
                      class_namer: UniqueNamer,
                      module_namer: UniqueNamer,
                      collection_namer: UniqueNamer) -> EntityType:
        if options.use_database_names:
            class_candidate = sanitize_identifier(table.name)
        else:
            class_candidate = to_pascal_case(table.name)
            if not options.no_pluralize:
                class_candidate = singularize(class_candidate)

        class_name = class_namer.get_name(class_candidate)
        module_name = module_namer.get_name(to_snake_case(class_name))
        collection = to_snake_case(class_name)
        if not options.no_pluralize:
            collection = pluralize(collection)
        collection_name = collection_namer.get_name(collection)

        entity = EntityType(
            class_name=class_name,
            table_name=table.name,
            module_name=module_name,
            collection_name=collection_name,
            schema=table.schema,
            comment=table.comment,
            is_view=table.is_view,
        )

        pk_columns = set(table.primary_key.columns) if table.primary_key else set()
        property_namer = UniqueNamer(RESERVED_ATTRIBUTE_NAMES | {class_name})

        for column in table.columns:
            mapping = map_store_type(column.store_type)
            if mapping is None:
                logger.warning(
                    f"Could not find type mapping for column '{table.qualified_name}.{column.name}' "
                    f"with data type '{column.store_type}'. Skipping column."
                )
                if column.name in pk_columns:
                    pk_columns = set()
                continue

            candidate = (sanitize_identifier(column.name) if options.use_database_names
                         else to_snake_case(column.name))
            entity.properties.append(EntityProperty(
                name=property_namer.get_name(candidate),
                column_name=column.name,
                sa_type=mapping.sa_type,
                python_type=mapping.python_type,
                nullable=column.nullable and column.name not in pk_columns,
                autoincrement=column.autoincrement,
                server_default=column.default_sql,
                computed_sql=column.computed_sql,
                comment=column.comment,
            ))

        if pk_columns:
            for prop in entity.properties:
                prop.primary_key = prop.column_name in pk_columns
        else:
            entity.is_keyless = True
            if not table.is_view:
                logger.warning(f"Table {table.qualified_name} has no usable primary key; generating a keyless table")

        mapped_columns = {p.column_name for p in entity.properties}
        for index in sorted(table.indexes, key=lambda i: i.name or ""):
            if not set(index.columns) <= mapped_columns:
                logger.debug(f"Skipping index {index.name} on {table.qualified_name}: unmapped columns")
                continue
            entity.indexes.append(EntityIndex(
                name=index.name or f"ix_{table.name}_{'_'.join(index.columns)}",
                columns=list(index.columns),
                unique=index.unique,
            ))

        return entity

    def _add_foreign_key(self,
                         schema: DatabaseSchema,
                         table: DatabaseTable,
                         entity: EntityType,
                         fk: DatabaseForeignKey,
                         entities_by_table: Dict[Tuple[str, str], EntityType]) -> None:
        principal = schema.find_table(fk.principal_table, fk.principal_schema or table.schema) \
            or schema.find_table(fk.principal_table, fk.principal_schema)
        principal_entity = entities_by_table.get(self._table_key(schema, principal.schema, principal.name))
        if principal_entity is None:
            logger.debug(f"Skipping foreign key {fk.name} on {table.qualified_name}: principal table excluded")
            return

        properties = [entity.find_property(c) for c in fk.columns]
        principal_properties = [principal_entity.find_property(c) for c in fk.principal_columns]
        if any(p is None for p in properties + principal_properties):
            logger.warning(f"Skipping foreign key {fk.name} on {table.qualified_name}: it uses unmapped columns")
            return

        unique_sets = [set(i.columns) for i in table.indexes if i.unique]
        unique_sets += [set(uc.columns) for uc in table.unique_constraints]
        if table.primary_key:
            unique_sets.append(set(table.primary_key.columns))

        entity.foreign_keys.append(EntityForeignKey(
            properties=[p.name for p in properties],
            columns=list(fk.columns),
            principal_entity=principal_entity.class_name,
            principal_table=principal.name,
            principal_schema=principal.schema,
            principal_columns=list(fk.principal_columns),
            name=fk.name,
            on_delete=fk.on_delete,
            is_unique=set(fk.columns) in unique_sets,
        ))

    def _add_navigations(self, model: EntityModel) -> None:
        """Create both ends of a relationship for every foreign key between mapped entities."""
        namers = {
            e.class_name: UniqueNamer(RESERVED_ATTRIBUTE_NAMES | {e.class_name} | {p.name for p in e.properties})
            for e in model.entities
        }

        for dependent in model.entities:
            if dependent.is_keyless:
                continue
            for fk in dependent.foreign_keys:
                principal = model.find_entity(fk.principal_entity)
                if principal is None or principal.is_keyless:
                    continue

                dependent_candidate = self._dependent_navigation_name(fk, principal)
                dependent_name = namers[dependent.class_name].get_name(dependent_candidate)

                principal_candidate = to_snake_case(dependent.class_name)
                if not fk.is_unique:
                    principal_candidate = pluralize(principal_candidate)
                if dependent is principal:
                    principal_candidate = f"inverse_{principal_candidate}"
                principal_name = namers[principal.class_name].get_name(principal_candidate)

                dependent.navigations.append(Navigation(
                    name=dependent_name,
                    target_entity=principal.class_name,
                    back_populates=principal_name,
                    is_collection=False,
                    dependent_entity=dependent.class_name,
                    foreign_key_properties=list(fk.properties),
                ))
                principal.navigations.append(Navigation(
                    name=principal_name,
                    target_entity=dependent.class_name,
                    back_populates=dependent_name,
                    is_collection=not fk.is_unique,
                    dependent_entity=dependent.class_name,
                    foreign_key_properties=list(fk.properties),
                ))

    def _dependent_navigation_name(self, fk: EntityForeignKey, principal: EntityType) -> str:
        """``customer_id`` -> ``customer``; otherwise the principal's name."""
        if len(fk.properties) == 1:
            match = re.match(r'^(.+)_(id|fk|key)$', to_snake_case(fk.properties[0]))
            if match:
                return match.group(1)
        return to_snake_case(principal.class_name)

    def _table_key(self, schema: DatabaseSchema, table_schema: Optional[str], name: str) -> Tuple[str, str]:
        return (table_schema or schema.default_schema or "", name)
