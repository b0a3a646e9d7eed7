"""Orchestrates reverse engineering: resolve, introspect, build, generate, save."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..models import (
    ScaffoldedModel,
    SavedModelFiles,
    IntrospectionOptions,
    ReverseEngineerOptions,
    CodeGenerationOptions,
)
from ..services import (
    ConnectionResolver,
    SchemaIntrospector,
    ModelBuilder,
    CodeGenerator,
    NamedConnectionStringResolver,
    SqlAlchemySchemaIntrospector,
    RelationalModelBuilder,
    Jinja2CodeGenerator,
    ArtifactWriter,
    default_context_name,
)

logger = logging.getLogger(__name__)

SENSITIVE_INFORMATION_WARNING = (
    "The connection string is embedded in the generated code. To protect potentially "
    "sensitive information in your connection string, move it out of source code and "
    "use a named reference such as 'Name=<variable>'."
)


@dataclass
class ScaffoldingServices:
    """The collaborators used by the scaffolder, built once by the caller."""
    connection_resolver: ConnectionResolver
    schema_introspector: SchemaIntrospector
    model_builder: ModelBuilder
    code_generator: CodeGenerator
    artifact_writer: ArtifactWriter = field(default_factory=ArtifactWriter)

    @classmethod
    def default(cls, env_file: Optional[str] = None) -> "ScaffoldingServices":
        """Stock implementations: .env/environment names, SQLAlchemy, Jinja2."""
        return cls(
            connection_resolver=NamedConnectionStringResolver(env_file=env_file),
            schema_introspector=SqlAlchemySchemaIntrospector(),
            model_builder=RelationalModelBuilder(),
            code_generator=Jinja2CodeGenerator(),
        )


class ReverseEngineerScaffolder:
    """Runs the scaffolding pipeline on the services it is given."""

    def __init__(self, services: ScaffoldingServices):
        """Initialize with the pipeline collaborators."""
        self.services = services

    def scaffold_model(self,
                       connection_string: str,
                       introspect_options: IntrospectionOptions,
                       reverse_engineer_options: ReverseEngineerOptions,
                       code_generation_options: CodeGenerationOptions) -> ScaffoldedModel:
        """Generate the context and entity files for a database.

        ``connection_string`` may be a literal or a ``Name=<key>`` reference.
        The reference, not its resolved value, is embedded in the generated
        code unless introspection supplies a connection string of its own.
        Errors from any stage propagate unchanged.
        """
        resolved_connection_string = self.services.connection_resolver.resolve(connection_string)
        is_named = self.services.connection_resolver.is_named(connection_string)

        schema = self.services.schema_introspector.introspect(resolved_connection_string, introspect_options)

        override = schema.connection_string_override
        effective_connection_string = override if override is not None else connection_string
        suppress_warning = (
            code_generation_options.suppress_connection_string_warning
            or is_named
            or override is not None
        )
        if not suppress_warning and not code_generation_options.suppress_on_configuring:
            logger.warning(SENSITIVE_INFORMATION_WARNING)

        context_name = code_generation_options.context_name or default_context_name(schema.database_name)
        # Entities must not take the context module's name.
        build_options = reverse_engineer_options.model_copy(update={
            "reserved_class_names": [*reverse_engineer_options.reserved_class_names, context_name],
        })
        entity_model = self.services.model_builder.build(schema, build_options)

        code_options = code_generation_options.model_copy(update={
            "connection_string": effective_connection_string,
            "context_name": context_name,
        })

        logger.info(f"Generating code for {len(entity_model.entities)} entities as {code_options.context_name}")
        return self.services.code_generator.generate(entity_model, schema, code_options)

    def save(self,
             scaffolded_model: ScaffoldedModel,
             output_directory: str,
             overwrite_files: bool,
             context_output_directory: Optional[str] = None) -> SavedModelFiles:
        """Write generated files; see ``ArtifactWriter.save``."""
        return self.services.artifact_writer.save(
            scaffolded_model, output_directory, overwrite_files, context_output_directory
        )

    def scaffold_and_save(self,
                          connection_string: str,
                          output_directory: str,
                          introspect_options: Optional[IntrospectionOptions] = None,
                          reverse_engineer_options: Optional[ReverseEngineerOptions] = None,
                          code_generation_options: Optional[CodeGenerationOptions] = None,
                          overwrite_files: bool = False,
                          context_output_directory: Optional[str] = None) -> SavedModelFiles:
        """Scaffold a database and save the result in one call."""
        scaffolded_model = self.scaffold_model(
            connection_string,
            introspect_options or IntrospectionOptions(),
            reverse_engineer_options or ReverseEngineerOptions(),
            code_generation_options or CodeGenerationOptions(),
        )
        return self.save(scaffolded_model, output_directory, overwrite_files, context_output_directory)
