"""Configuration for the contract indexer.

Two layers live here: ``Settings`` (process-level knobs read from the
environment) and the indexer configuration file, a YAML document that is
loaded into ``IndexerConfig`` and later handed to the engine.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from .errors import ConfigLoadError


# Install directory: the project root holding config/ and abi/
INSTALL_DIR = Path(__file__).resolve().parent.parent

DEFAULT_CONFIG_PATH = INSTALL_DIR / "config" / "config.yaml"
DEFAULT_ABI_PATH = INSTALL_DIR / "abi" / "Contract.json"

# ${VAR} or ${VAR:-default}
_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class Settings(BaseModel):
    """Process settings with environment variable support."""

    # Input locations
    config_path: Optional[str] = Field(default=None)
    abi_path: Optional[str] = Field(default=None)

    # Engine class or factory, as "package.module:attr"
    engine: Optional[str] = Field(default=None)

    service_name: str = Field(default="contract-indexer")

    # Health Check Configuration
    health_check_enabled: bool = Field(default=True)
    health_check_port: int = Field(default=8080)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    def __init__(self, **kwargs):
        # Load from environment variables
        env_values = {}

        env_mapping = {
            "CONFIG_PATH": "config_path",
            "ABI_PATH": "abi_path",
            "INDEXER_ENGINE": "engine",
            "SERVICE_NAME": "service_name",
            "HEALTH_CHECK_ENABLED": "health_check_enabled",
            "HEALTH_CHECK_PORT": "health_check_port",
            "LOG_LEVEL": "log_level",
            "LOG_FORMAT": "log_format",
        }

        for env_var, field_name in env_mapping.items():
            if env_var in os.environ:
                value = os.environ[env_var]

                # Convert types
                # Non-numeric ports are left for pydantic to reject
                if field_name == "health_check_port":
                    try:
                        value = int(value)
                    except ValueError:
                        pass
                elif field_name == "health_check_enabled":
                    value = value.lower() in ("true", "1", "yes", "on")

                env_values[field_name] = value

        # kwargs take precedence over the environment
        final_values = {**env_values, **kwargs}
        super().__init__(**final_values)

    def resolved_config_path(self) -> Path:
        return resolve_path(self.config_path, DEFAULT_CONFIG_PATH)

    def resolved_abi_path(self) -> Path:
        return resolve_path(self.abi_path, DEFAULT_ABI_PATH)


def resolve_path(override: Optional[str], default: Path) -> Path:
    """Return ``override`` when set, else ``default``. Empty counts as unset."""
    if override:
        return Path(override)
    return default


class IndexerConfig(BaseModel):
    """Indexer configuration record.

    Only the connection endpoint is modelled. When built with
    ``from_document`` the record handed to the engine is that document, keys
    exactly as written (``rpcUrl`` stays ``rpcUrl``).
    """

    model_config = ConfigDict(extra="allow")

    # Left untyped so a wrong type surfaces as a missing endpoint, not a
    # config parse failure.
    rpc_url: Any = Field(
        default=None,
        validation_alias=AliasChoices("rpc_url", "rpcUrl"),
    )

    _document: Optional[dict] = PrivateAttr(default=None)

    @classmethod
    def from_document(cls, document: dict) -> "IndexerConfig":
        config = cls.model_validate(document)
        config._document = copy.deepcopy(document)
        return config

    def as_record(self) -> dict[str, Any]:
        if self._document is not None:
            return copy.deepcopy(self._document)
        return self.model_dump()


def substitute_env(value: Any, environ: Optional[dict] = None) -> Any:
    """Expand ``${VAR}`` and ``${VAR:-default}`` markers in string values.

    Markers naming an unset variable without a default are left in place.
    """
    env = os.environ if environ is None else environ

    if isinstance(value, str):
        def _replace(match: re.Match) -> str:
            name, default = match.group(1), match.group(2)
            if name in env:
                return env[name]
            if default is not None:
                return default
            return match.group(0)

        return _PLACEHOLDER.sub(_replace, value)
    if isinstance(value, dict):
        return {key: substitute_env(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env(item, env) for item in value]
    return value


def load_config_from_file(path: Path | str) -> IndexerConfig:
    """Read, expand and validate the indexer configuration file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigLoadError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"Failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML in config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigLoadError(
            f"Config file {path} must contain a mapping, got {type(raw).__name__}"
        )

    try:
        return IndexerConfig.from_document(substitute_env(raw))
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid config in {path}: {e}") from e
