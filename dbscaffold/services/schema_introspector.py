"""Schema introspection for PostgreSQL, SQLite, SQL Server and MySQL via SQLAlchemy."""

import logging
import re
from enum import Enum
from typing import List, Dict, Any, Optional, Set, Tuple

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine, Inspector
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError

from ..errors import IntrospectionError
from ..models import (
    DatabaseSchema,
    DatabaseTable,
    DatabaseColumn,
    DatabasePrimaryKey,
    DatabaseForeignKey,
    DatabaseUniqueConstraint,
    DatabaseIndex,
    IntrospectionOptions,
)
from .base import SchemaIntrospector

logger = logging.getLogger(__name__)


class DatabaseType(Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MSSQL = "mssql"
    MYSQL = "mysql"


class SqlAlchemySchemaIntrospector(SchemaIntrospector):
    """Reads tables, views, keys and indexes with the SQLAlchemy inspector.

    The engine is created per call and disposed before returning, whether
    the call succeeds or fails.
    """

    def __init__(self, engine_options: Optional[Dict[str, Any]] = None):
        """Initialize with extra keyword arguments for ``create_engine``."""
        self.engine_options = dict(engine_options or {})

    def introspect(self, connection_string: str, options: IntrospectionOptions) -> DatabaseSchema:
        engine: Optional[Engine] = None
        try:
            engine = create_engine(connection_string, **self.engine_options)
            database_type = self.detect_database_type(connection_string)
            logger.info(f"Reading schema from {database_type.value if database_type else engine.dialect.name} database")

            with engine.connect() as conn:
                inspector = inspect(conn)
                schema = DatabaseSchema(
                    database_name=self._get_database_name(engine),
                    default_schema=inspector.default_schema_name,
                )
                self._read_tables(inspector, schema, options)

        except (SQLAlchemyError, ValueError, ImportError, NotImplementedError) as e:
            raise IntrospectionError(f"Failed to read the database schema: {e}") from e
        finally:
            if engine is not None:
                engine.dispose()

        logger.info(f"Read {len(schema.tables)} tables from database '{schema.database_name}'")
        return schema

    def _read_tables(self, inspector: Inspector, schema: DatabaseSchema, options: IntrospectionOptions) -> None:
        """Populate ``schema`` with every selected table and view."""
        schemas = list(options.schemas) or [None]
        selected: List[Tuple[Optional[str], str, bool]] = []

        for schema_name in schemas:
            for table_name in sorted(inspector.get_table_names(schema=schema_name)):
                selected.append((schema_name, table_name, False))
            for view_name in sorted(inspector.get_view_names(schema=schema_name)):
                selected.append((schema_name, view_name, True))

        default_schema = inspector.default_schema_name
        read_names = {(s or default_schema, n) for s, n, _ in selected}
        if options.tables:
            selected = self._filter_tables(selected, options.tables, default_schema)

        selected_names = {(s or default_schema, n) for s, n, _ in selected}
        # Principal tables that exist but were left out by the filters.
        excluded_names = read_names - selected_names
        read_schemas = {s or default_schema for s in schemas}

        for schema_name, table_name, is_view in selected:
            table = DatabaseTable(
                name=table_name,
                schema=schema_name,
                is_view=is_view,
                comment=self._get_table_comment(inspector, table_name, schema_name),
            )
            table.columns = self._get_columns(inspector, table_name, schema_name)

            if not is_view:
                pk = inspector.get_pk_constraint(table_name, schema=schema_name)
                if pk and pk.get('constrained_columns'):
                    table.primary_key = DatabasePrimaryKey(
                        columns=list(pk['constrained_columns']),
                        name=pk.get('name'),
                    )
                table.foreign_keys = self._get_foreign_keys(
                    inspector, table_name, schema_name, excluded_names, read_schemas
                )
                table.unique_constraints = [
                    DatabaseUniqueConstraint(columns=list(uc['column_names']), name=uc.get('name'))
                    for uc in self._safe_reflect(inspector.get_unique_constraints, table_name, schema_name)
                ]
                table.indexes = [
                    DatabaseIndex(
                        columns=[c for c in idx['column_names'] if c is not None],
                        name=idx.get('name'),
                        unique=bool(idx.get('unique')),
                    )
                    for idx in inspector.get_indexes(table_name, schema=schema_name)
                ]

            schema.add_table(table)
            logger.debug(f"Read {table.qualified_name} with {len(table.columns)} columns")

    def _filter_tables(self,
                       selected: List[Tuple[Optional[str], str, bool]],
                       requested: List[str],
                       default_schema: Optional[str]) -> List[Tuple[Optional[str], str, bool]]:
        """Keep only requested tables, warning about the ones that do not exist."""
        wanted: Set[Tuple[Optional[str], str]] = set()
        for entry in requested:
            if '.' in entry:
                schema_name, table_name = entry.split('.', 1)
                wanted.add((schema_name, table_name))
            else:
                wanted.add((None, entry))

        kept = []
        found: Set[Tuple[Optional[str], str]] = set()
        for schema_name, table_name, is_view in selected:
            actual_schema = schema_name or default_schema
            for key in ((actual_schema, table_name), (None, table_name)):
                if key in wanted:
                    kept.append((schema_name, table_name, is_view))
                    found.add(key)
                    break

        for schema_name, table_name in sorted(wanted - found, key=lambda k: (k[0] or '', k[1])):
            qualified = f"{schema_name}.{table_name}" if schema_name else table_name
            logger.warning(f"Unable to find a table in the database matching the selected table {qualified}")

        return kept

    def _get_columns(self, inspector: Inspector, table_name: str, schema_name: Optional[str]) -> List[DatabaseColumn]:
        columns = []
        for col in inspector.get_columns(table_name, schema=schema_name):
            computed = col.get('computed') or {}
            autoincrement = col.get('autoincrement')
            columns.append(DatabaseColumn(
                name=col['name'],
                store_type=str(col['type']),
                nullable=bool(col.get('nullable', True)),
                default_sql=col.get('default'),
                computed_sql=computed.get('sqltext') if computed else None,
                autoincrement=autoincrement if isinstance(autoincrement, bool) else None,
                comment=col.get('comment') or None,
            ))
        return columns

    def _get_foreign_keys(self,
                          inspector: Inspector,
                          table_name: str,
                          schema_name: Optional[str],
                          excluded_names: Set[Tuple[Optional[str], str]],
                          read_schemas: Set[Optional[str]]) -> List[DatabaseForeignKey]:
        """Foreign keys of a table, minus those pointing at filtered-out tables.

        A foreign key to a table that does not exist at all is kept so the
        model builder can report it.
        """
        foreign_keys = []
        for fk in inspector.get_foreign_keys(table_name, schema=schema_name):
            principal_schema = fk.get('referred_schema')
            principal_key = (principal_schema or inspector.default_schema_name, fk['referred_table'])
            if principal_key in excluded_names or principal_key[0] not in read_schemas:
                logger.warning(
                    f"Skipping foreign key {fk.get('name') or '(unnamed)'} on table {table_name}: "
                    f"principal table {fk['referred_table']} was not selected"
                )
                continue

            foreign_keys.append(DatabaseForeignKey(
                columns=list(fk['constrained_columns']),
                principal_table=fk['referred_table'],
                principal_columns=list(fk['referred_columns']),
                principal_schema=principal_schema,
                name=fk.get('name'),
                on_delete=(fk.get('options') or {}).get('ondelete'),
            ))
        return foreign_keys

    def _get_table_comment(self, inspector: Inspector, table_name: str, schema_name: Optional[str]) -> Optional[str]:
        try:
            return inspector.get_table_comment(table_name, schema=schema_name).get('text')
        except NotImplementedError:
            return None

    def _safe_reflect(self, method, table_name: str, schema_name: Optional[str]) -> List[Dict[str, Any]]:
        """Call an optional reflection method, treating unsupported as empty."""
        try:
            return method(table_name, schema=schema_name)
        except NotImplementedError:
            logger.debug(f"{method.__name__} is not supported by this dialect")
            return []

    def _get_database_name(self, engine: Engine) -> Optional[str]:
        database = engine.url.database
        if not database:
            return None
        if engine.dialect.name == 'sqlite':
            # File path; the database name is the file stem.
            database = re.split(r'[\\/]', database)[-1].rsplit('.', 1)[0]
        return database or None

    @classmethod
    def detect_database_type(cls, connection_string: str) -> Optional[DatabaseType]:
        """Database type for a SQLAlchemy URL, or None when unsupported."""
        try:
            backend = make_url(connection_string).get_backend_name()
        except (SQLAlchemyError, ValueError):
            return None
        try:
            return DatabaseType(backend)
        except ValueError:
            return None
