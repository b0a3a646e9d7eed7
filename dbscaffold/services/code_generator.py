"""Renders an entity model into SQLAlchemy model modules with Jinja2 templates."""

import logging
import posixpath
import re
from typing import List, Dict, Any, Optional, Set

from jinja2 import Environment, PackageLoader, StrictUndefined

from ..models import (
    DatabaseSchema,
    EntityModel,
    EntityType,
    EntityProperty,
    ScaffoldedFile,
    ScaffoldedModel,
    CodeGenerationOptions,
)
from .base import CodeGenerator
from .naming import to_pascal_case, to_snake_case

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_NAME = "ModelContext"


def default_context_name(database_name: Optional[str]) -> str:
    """``blogging`` -> ``BloggingContext``; ``ModelContext`` when unknown."""
    if not database_name:
        return DEFAULT_CONTEXT_NAME
    name = to_pascal_case(database_name)
    if not re.match(r'^[A-Za-z]', name):
        return DEFAULT_CONTEXT_NAME
    return name if name.endswith("Context") else f"{name}Context"


class Jinja2CodeGenerator(CodeGenerator):
    """Generates a context module, a declarative base and one module per entity."""

    def __init__(self, environment: Optional[Environment] = None):
        """Initialize with an optional preconfigured Jinja2 environment."""
        self.env = environment or Environment(
            loader=PackageLoader("dbscaffold", "templates"),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
        )
        self.env.filters.setdefault("pyrepr", _pyrepr)

    def generate(self,
                 entity_model: EntityModel,
                 schema: DatabaseSchema,
                 options: CodeGenerationOptions) -> ScaffoldedModel:
        context_name = options.context_name or default_context_name(entity_model.database_name)
        context_module = to_snake_case(context_name)
        model_namespace = options.model_namespace.strip(".")

        context_code = self.env.get_template("context.py.j2").render(
            context_name=context_name,
            database_name=entity_model.database_name,
            entities=entity_model.entities,
            model_namespace=model_namespace,
            connection_string=self._connection_string(schema, options),
        )
        context_path = f"{context_module}.py"
        if options.context_dir:
            context_path = posixpath.join(options.context_dir.replace("\\", "/"), context_path)

        additional_files = [
            ScaffoldedFile("base.py", self.env.get_template("base.py.j2").render(
                database_name=entity_model.database_name,
            ))
        ]
        for entity in entity_model.entities:
            additional_files.append(ScaffoldedFile(
                f"{entity.module_name}.py",
                self._render_entity(entity, model_namespace, options),
            ))

        logger.info(f"Generated {context_name} with {len(entity_model.entities)} entities")
        return ScaffoldedModel(context_file=ScaffoldedFile(context_path, context_code),
                               additional_files=additional_files)

    def _connection_string(self, schema: DatabaseSchema, options: CodeGenerationOptions) -> Optional[str]:
        """Connection string to embed, the schema override taking precedence."""
        if options.suppress_on_configuring:
            return None
        return schema.connection_string_override or options.connection_string

    def _render_entity(self,
                       entity: EntityType,
                       model_namespace: str,
                       options: CodeGenerationOptions) -> str:
        imports = _Imports()
        if entity.is_keyless:
            imports.sa("Table", "Column")
        else:
            imports.orm("Mapped", "mapped_column")

        fk_by_property = {}
        table_args = []
        for fk in entity.foreign_keys:
            target = self._fk_target(fk.principal_schema, fk.principal_table)
            ondelete = f", ondelete={_pyrepr(fk.on_delete)}" if fk.on_delete else ""
            if len(fk.columns) == 1:
                imports.sa("ForeignKey")
                fk_by_property[fk.properties[0]] = f"ForeignKey({_pyrepr(target + '.' + fk.principal_columns[0])}{ondelete})"
            else:
                imports.sa("ForeignKeyConstraint")
                local = ", ".join(_pyrepr(c) for c in fk.columns)
                remote = ", ".join(_pyrepr(f"{target}.{c}") for c in fk.principal_columns)
                name = f", name={_pyrepr(fk.name)}" if fk.name else ""
                table_args.append(f"ForeignKeyConstraint([{local}], [{remote}]{name}{ondelete})")

        for index in entity.indexes:
            imports.sa("Index")
            cols = ", ".join(_pyrepr(c) for c in index.columns)
            unique = ", unique=True" if index.unique else ""
            table_args.append(f"Index({_pyrepr(index.name)}, {cols}{unique})")

        table_kwargs = {}
        if entity.schema:
            table_kwargs["schema"] = entity.schema
        if options.use_data_annotations and entity.comment:
            table_kwargs["comment"] = entity.comment

        columns = [self._column(p, entity, fk_by_property.get(p.name), imports, options) for p in entity.properties]

        relationships = []
        for nav in entity.navigations:
            imports.orm("relationship")
            fks = ", ".join(f"{nav.dependent_entity}.{p}" for p in nav.foreign_key_properties)
            if nav.is_collection:
                imports.typing("List")
                annotation = f'Mapped[List["{nav.target_entity}"]]'
            else:
                imports.typing("Optional")
                annotation = f'Mapped[Optional["{nav.target_entity}"]]'
            relationships.append(
                f'{nav.name}: {annotation} = relationship('
                f'"{nav.target_entity}", back_populates={_pyrepr(nav.back_populates)}, '
                f'foreign_keys="[{fks}]")'
            )

        return self.env.get_template("entity.py.j2").render(
            entity=entity,
            imports=imports.render(),
            model_namespace=model_namespace,
            columns=columns,
            relationships=relationships,
            table_args=table_args,
            table_kwargs=table_kwargs,
        )

    def _column(self,
                prop: EntityProperty,
                entity: EntityType,
                foreign_key: Optional[str],
                imports: "_Imports",
                options: CodeGenerationOptions) -> str:
        sa_name = prop.sa_type.split("(", 1)[0]
        imports.sa(sa_name)
        args = []
        if entity.is_keyless or prop.name != prop.column_name:
            args.append(_pyrepr(prop.column_name))
        args.append(prop.sa_type)
        if foreign_key:
            args.append(foreign_key)
        if prop.computed_sql:
            imports.sa("Computed")
            args.append(f"Computed({_pyrepr(prop.computed_sql)})")

        if prop.primary_key:
            args.append("primary_key=True")
            if prop.autoincrement is False:
                args.append("autoincrement=False")
        elif entity.is_keyless:
            args.append(f"nullable={prop.nullable}")
        if options.use_data_annotations:
            if prop.server_default is not None and not prop.computed_sql:
                imports.sa("text")
                args.append(f"server_default=text({_pyrepr(prop.server_default)})")
            if prop.comment:
                args.append(f"comment={_pyrepr(prop.comment)}")

        if entity.is_keyless:
            return f"Column({', '.join(args)})"

        if "." in prop.python_type:
            imports.module(prop.python_type.rsplit(".", 1)[0])
        python_type = prop.python_type
        if prop.nullable:
            imports.typing("Optional")
            python_type = f"Optional[{python_type}]"
        return f"{prop.name}: Mapped[{python_type}] = mapped_column({', '.join(args)})"

    def _fk_target(self, schema: Optional[str], table: str) -> str:
        return f"{schema}.{table}" if schema else table


class _Imports:
    """Collects the imports an entity module needs, rendered in a stable order."""

    def __init__(self):
        self.modules: Set[str] = set()
        self.typing_names: Set[str] = set()
        self.sa_names: Set[str] = set()
        self.orm_names: Set[str] = set()

    def module(self, name: str) -> None:
        self.modules.add(name)

    def typing(self, *names: str) -> None:
        self.typing_names.update(names)

    def sa(self, *names: str) -> None:
        self.sa_names.update(names)

    def orm(self, *names: str) -> None:
        self.orm_names.update(names)

    def render(self) -> Dict[str, List[str]]:
        stdlib = [f"import {m}" for m in sorted(self.modules)]
        if self.typing_names:
            stdlib.append(f"from typing import {', '.join(sorted(self.typing_names))}")
        third_party = []
        if self.sa_names:
            third_party.append(f"from sqlalchemy import {', '.join(sorted(self.sa_names, key=_import_sort_key))}")
        if self.orm_names:
            third_party.append(f"from sqlalchemy.orm import {', '.join(sorted(self.orm_names, key=_import_sort_key))}")
        return {"stdlib": stdlib, "third_party": third_party}


def _import_sort_key(name: str):
    # CamelCase classes before lowercase functions, as isort's force_sort_within_sections does.
    return (name[:1].islower(), name)


def _pyrepr(value: Any) -> str:
    """Python literal for ``value``, always using double quotes for strings."""
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\r", "\\r")
        return f'"{escaped}"'
    return repr(value)
