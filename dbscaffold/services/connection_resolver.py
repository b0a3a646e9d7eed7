"""Resolution of named connection strings such as ``Name=DefaultConnection``."""

import logging
import os
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from ..errors import ConfigurationError
from .base import ConnectionResolver, NAMED_REFERENCE_PATTERN

logger = logging.getLogger(__name__)

CONNECTION_STRINGS_PREFIX = "ConnectionStrings__"


class NamedConnectionStringResolver(ConnectionResolver):
    """Resolves ``Name=<key>`` references from a .env file and the environment.

    Environment variables win over values read from the .env file. For a key
    ``X`` the lookup tries ``ConnectionStrings__X`` first, then ``X``.
    Literal connection strings are returned unchanged.
    """

    def __init__(self, env_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        """Initialize with an optional .env path and environment mapping."""
        self.env_file = env_file
        self.environ = environ

    @staticmethod
    def is_named(reference: str) -> bool:
        """Whether ``reference`` is a symbolic ``Name=<key>`` reference."""
        return NAMED_REFERENCE_PATTERN.match(reference or "") is not None

    @staticmethod
    def get_name(reference: str) -> Optional[str]:
        match = NAMED_REFERENCE_PATTERN.match(reference or "")
        return match.group("name") if match else None

    def resolve(self, reference: str) -> str:
        name = self.get_name(reference)
        if name is None:
            return reference

        source = self._load_source()
        for key in (CONNECTION_STRINGS_PREFIX + name, name):
            value = source.get(key)
            if value:
                logger.info(f"Resolved named connection string '{name}' from '{key}'")
                return value

        raise ConfigurationError(
            f"A named connection string was used, but the name '{name}' was not found "
            f"in the application's configuration.",
            name=name,
        )

    def _load_source(self) -> Dict[str, str]:
        """Merge the .env values with the environment."""
        values: Dict[str, str] = {}

        env_file = self.env_file
        if env_file is None and os.path.exists(".env"):
            env_file = ".env"
        if env_file is not None:
            if os.path.exists(env_file):
                values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
            else:
                logger.warning(f"Configuration file {env_file} does not exist")

        values.update(self.environ if self.environ is not None else os.environ)
        return values
