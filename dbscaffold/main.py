"""Main entry point for dbscaffold, configured through environment variables."""

import logging
import os
import sys
from typing import List, Optional

from .core import ReverseEngineerScaffolder, ScaffoldingServices
from .errors import ScaffoldingError
from .models import IntrospectionOptions, ReverseEngineerOptions, CodeGenerationOptions

logger = logging.getLogger(__name__)


def _split(value: Optional[str]) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def main() -> int:
    """Scaffold the database named by DBSCAFFOLD_CONNECTION and save the files."""
    logging.basicConfig(
        level=os.getenv("DBSCAFFOLD_LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    connection = os.getenv("DBSCAFFOLD_CONNECTION")
    if not connection:
        logger.error("DBSCAFFOLD_CONNECTION environment variable must be set")
        return 1

    output_dir = os.getenv("DBSCAFFOLD_OUTPUT_DIR", "models")
    context_dir = os.getenv("DBSCAFFOLD_CONTEXT_DIR")

    scaffolder = ReverseEngineerScaffolder(ScaffoldingServices.default(env_file=os.getenv("DBSCAFFOLD_ENV_FILE")))
    try:
        result = scaffolder.scaffold_and_save(
            connection,
            output_dir,
            introspect_options=IntrospectionOptions(
                schemas=_split(os.getenv("DBSCAFFOLD_SCHEMAS")),
                tables=_split(os.getenv("DBSCAFFOLD_TABLES")),
            ),
            reverse_engineer_options=ReverseEngineerOptions(
                use_database_names=_flag(os.getenv("DBSCAFFOLD_USE_DATABASE_NAMES")),
                no_pluralize=_flag(os.getenv("DBSCAFFOLD_NO_PLURALIZE")),
            ),
            code_generation_options=CodeGenerationOptions(
                context_name=os.getenv("DBSCAFFOLD_CONTEXT_NAME") or None,
                model_namespace=os.getenv("DBSCAFFOLD_MODEL_NAMESPACE", "models"),
                suppress_on_configuring=_flag(os.getenv("DBSCAFFOLD_SUPPRESS_ON_CONFIGURING")),
            ),
            overwrite_files=_flag(os.getenv("DBSCAFFOLD_FORCE")),
            context_output_directory=context_dir,
        )
    except ScaffoldingError as e:
        logger.error(str(e))
        return 1

    print(f"Context: {result.context_file}")
    for path in result.additional_files:
        print(f"Model:   {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
