"""
Configuration schema and loading for schema_loader.

``LoaderConfig`` holds the options that shape a load (table filters,
naming overrides, mixin classes). ``ToolConfigSchema`` wraps it together
with the Django ``DATABASES`` settings for the command line tool, which
reads it from YAML.
"""

import logging
import re
from argparse import Namespace
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .constants import DefaultConfig
from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)

NameOverride = Union[Dict[str, str], Callable[[str], Optional[str]], None]


# --- Pydantic Models for Configuration Schema ---

class LoaderConfig(BaseModel):
    """Options controlling how a schema is loaded."""

    db_schema: Optional[str] = Field(
        default=None,
        description="Database schema to introspect (backend default when unset).",
    )
    constraint: Optional[str] = Field(
        default=None, description="Only load tables matching this regex."
    )
    exclude: Optional[str] = Field(
        default=None, description="Skip tables matching this regex."
    )
    moniker_map: NameOverride = Field(
        default=None,
        description="Table name -> moniker overrides (mapping or function).",
    )
    inflect_plural: NameOverride = Field(
        default=None,
        description="Overrides for pluralizing relationship names (mapping or function).",
    )
    inflect_singular: NameOverride = Field(
        default=None,
        description="Overrides for singularizing relationship names (mapping or function).",
    )
    left_base_classes: List[Any] = Field(
        default_factory=list,
        description="Classes (or dotted paths) placed leftmost in every generated class.",
    )
    components: List[Any] = Field(
        default_factory=list,
        description="Component mixins (or dotted paths) loaded into every generated class.",
    )
    additional_base_classes: List[Any] = Field(
        default_factory=list,
        description="Additional base classes (or dotted paths) for every generated class.",
    )
    relationships: bool = Field(
        default=DefaultConfig.RELATIONSHIPS,
        description="Infer relationships from foreign keys.",
    )
    best_effort: bool = Field(
        default=DefaultConfig.BEST_EFFORT,
        description="Skip relationships that fail to apply instead of aborting.",
    )
    strict_relationship_names: bool = Field(
        default=DefaultConfig.STRICT_RELATIONSHIP_NAMES,
        description="Fail when two relationships on one class share an accessor name.",
    )
    external_package: Optional[str] = Field(
        default=None,
        description="Package holding hand-written extensions, one module per moniker.",
    )
    debug: bool = Field(
        default=DefaultConfig.DEBUG,
        description="Log every generated declaration.",
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("constraint", "exclude", mode="before")
    @classmethod
    def check_regex(cls, v: Any) -> Optional[str]:
        """Accept compiled patterns and make sure strings compile."""
        if v is None or v == "":
            return None
        if isinstance(v, re.Pattern):
            return v.pattern
        if not isinstance(v, str):
            raise ValueError(f"Expected a regular expression string, got {type(v).__name__}")
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regular expression '{v}': {e}")
        return v

    @field_validator("left_base_classes", "components", "additional_base_classes", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> List[Any]:
        """Wrap a single class or dotted path in a list."""
        if v is None:
            return []
        if isinstance(v, (str, type)):
            v = [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"Expected a list of classes or dotted paths, got {type(v).__name__}")
        for index, item in enumerate(v):
            if not isinstance(item, (str, type)):
                raise ValueError(
                    f"Item at index {index} must be a class or dotted path, found: {type(item).__name__}"
                )
        return list(v)

    @property
    def constraint_re(self) -> Optional[re.Pattern]:
        return re.compile(self.constraint) if self.constraint else None

    @property
    def exclude_re(self) -> Optional[re.Pattern]:
        return re.compile(self.exclude) if self.exclude else None


class DatabaseSettings(BaseModel):
    """Schema for a single database connection within the DATABASES dict."""

    ENGINE: str = Field(
        ...,
        min_length=1,
        description="Django database engine (e.g., 'django.db.backends.postgresql').",
    )
    NAME: str = Field(..., min_length=1, description="Database name.")
    USER: Optional[str] = Field(default=None, description="Database user.")
    PASSWORD: Optional[str] = Field(default=None, description="Database password.")
    HOST: Optional[str] = Field(default=None, description="Database host address.")
    PORT: Optional[int] = Field(default=None, description="Database port number.")
    OPTIONS: Dict[str, Any] = Field(
        default_factory=dict, description="Database engine specific options."
    )

    model_config = ConfigDict(extra="allow")

    @field_validator("PORT", mode="before")
    @classmethod
    def validate_port(cls, v: Any) -> Optional[int]:
        """Ensure port is a number or string representation of one, and within range."""
        if v is None or v == "":
            return None
        if isinstance(v, bool):
            raise ValueError("Port must be an integer, got bool")
        if isinstance(v, int):
            port_num = v
        elif isinstance(v, str):
            if not v.isdigit():
                raise ValueError(
                    f"Port must be a number or string containing only digits, got '{v}'"
                )
            port_num = int(v)
        else:
            raise ValueError(
                f"Port must be an integer or string containing digits, got {type(v).__name__}"
            )

        if not 0 <= port_num <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {port_num}")
        return port_num


class ToolConfigSchema(BaseModel):
    """Configuration of the command line tool."""

    databases: Dict[str, DatabaseSettings] = Field(
        ...,
        description="Django DATABASES setting dictionary. Must contain a 'default' key.",
    )
    db_alias: str = Field(
        default=DefaultConfig.DB_ALIAS,
        min_length=1,
        description="Alias of the database to introspect.",
    )
    loader: LoaderConfig = Field(
        default_factory=LoaderConfig, description="Loader options."
    )
    output_format: Literal["yaml", "json"] = Field(
        default=DefaultConfig.OUTPUT_FORMAT,
        description="Format of the printed schema summary.",
    )

    # Internal field, usually added by load_config if not provided by user
    SECRET_KEY: Optional[str] = Field(
        default=None, description="Internal secret key for Django setup."
    )

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def check_database_aliases(self) -> "ToolConfigSchema":
        """Ensure the 'default' alias and the selected alias are configured."""
        if "default" not in self.databases:
            raise ValueError(
                "The 'databases' configuration dictionary must contain a 'default' key."
            )
        if self.db_alias not in self.databases:
            raise ValueError(
                f"db_alias '{self.db_alias}' is not one of the configured databases: "
                f"{', '.join(sorted(self.databases))}"
            )
        return self


# --- Validation Function ---

def validate_and_parse_config(config_dict: Dict[str, Any], config_file: Optional[str] = None) -> ToolConfigSchema:
    """
    Validates a raw configuration dictionary against the ToolConfigSchema.

    Raises:
        ConfigurationError: listing every validation problem found
    """
    try:
        validated_config = ToolConfigSchema.model_validate(config_dict)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            loc_parts = [str(loc_item) for loc_item in error.get("loc", ())]
            loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
            msg = error.get("msg", "Unknown validation error")
            logger.error(f"Configuration error at '{loc_str}': {msg}")
            problems.append(f"{loc_str}: {msg}")
        raise ConfigurationError(
            "Configuration validation failed",
            config_file=config_file,
            context={'errors': "; ".join(problems)},
        ) from e

    logger.debug("Configuration dictionary parsed and validated successfully against schema.")
    return validated_config


def read_config_file(config_path: str) -> Dict[str, Any]:
    """Read a YAML configuration file into a dictionary."""
    config_file = Path(config_path)
    if not config_file.is_file():
        raise ConfigurationError(f"Config file not found at {config_path}", config_file=config_path)

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing YAML file {config_path}: {e}", config_file=config_path) from e

    if yaml_config is None:
        return {}
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            f"Content in config file {config_path} is not a mapping", config_file=config_path
        )
    logger.debug(f"Loaded configuration from {config_path}")
    return yaml_config


def load_config(config_path: Optional[str], cli_args: Optional[Namespace] = None) -> ToolConfigSchema:
    """
    Loads configuration from YAML file, merges with CLI arguments,
    validates the result, and returns a validated Pydantic model instance.
    """
    raw_config: Dict[str, Any] = read_config_file(config_path) if config_path else {}

    # Override with CLI arguments (only those explicitly provided)
    overridden_keys = set()
    for key, value in vars(cli_args or Namespace()).items():
        if value is None or key in ("databases", "loader"):
            continue
        if key in ToolConfigSchema.model_fields:
            raw_config[key] = value
            overridden_keys.add(key)
        elif key in LoaderConfig.model_fields:
            raw_config["loader"] = {**(raw_config.get("loader") or {}), key: value}
            overridden_keys.add(key)
    if overridden_keys:
        logger.debug(f"Overridden config keys from CLI arguments: {sorted(overridden_keys)}")

    logger.info("Validating final configuration...")
    return validate_and_parse_config(raw_config, config_file=config_path)
