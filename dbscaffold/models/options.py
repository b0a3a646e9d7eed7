"""Immutable option records for each pipeline stage."""

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IntrospectionOptions(BaseModel):
    """Which parts of the database to read.

    Empty lists mean everything. ``tables`` entries may be qualified as
    ``schema.table``.
    """
    model_config = ConfigDict(frozen=True)

    schemas: List[str] = Field(default_factory=list)
    tables: List[str] = Field(default_factory=list)


class ReverseEngineerOptions(BaseModel):
    """Naming and filtering rules applied when building the entity model."""
    model_config = ConfigDict(frozen=True)

    use_database_names: bool = False
    no_pluralize: bool = False
    include_views: bool = True
    included_tables_pattern: Optional[str] = None
    excluded_tables_pattern: Optional[str] = None
    # Names the caller already uses in the generated package, such as the context class.
    reserved_class_names: List[str] = Field(default_factory=list)

    @field_validator("included_tables_pattern", "excluded_tables_pattern")
    @classmethod
    def _check_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"Invalid table pattern {value!r}: {e}") from e
        return value


class CodeGenerationOptions(BaseModel):
    """Options for rendering the context and entity modules."""
    model_config = ConfigDict(frozen=True)

    context_name: Optional[str] = None
    model_namespace: str = "models"
    context_dir: Optional[str] = None
    connection_string: Optional[str] = None
    suppress_connection_string_warning: bool = False
    suppress_on_configuring: bool = False
    use_data_annotations: bool = True
