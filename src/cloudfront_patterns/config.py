"""
Configuration management for distribution patterns.

Loads pattern configuration from YAML files: a base.yaml plus optional
environments/<environment>.yaml overrides, validated against a JSON schema.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import jsonschema
import yaml

from .schema import PATTERN_CONFIG_SCHEMA

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV_VAR = "CLOUDFRONT_PATTERNS_CONFIG_DIR"


class ConfigurationError(ValueError):
    """Raised when a pattern configuration does not validate."""

    def __init__(self, environment: str, errors: List[str]):
        self.environment = environment
        self.errors = errors
        super().__init__(
            f"Invalid configuration for {environment}: {'; '.join(errors)}"
        )


class CloudFormationYAMLLoader(yaml.SafeLoader):
    """YAML loader that can handle CloudFormation intrinsic functions."""
    pass


def cfn_tag_constructor(loader, tag_suffix, node):
    """Generic constructor for CloudFormation tags."""
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node)
    elif isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node)
    else:
        raise yaml.constructor.ConstructorError(
            None, None,
            f"could not determine a constructor for the tag '!{tag_suffix}'",
            node.start_mark)


cfn_tags = [
    "Ref", "GetAtt", "GetAZs", "ImportValue", "Join", "Select",
    "Split", "Sub", "Base64", "Cidr", "FindInMap",
    "Condition", "Equals", "If", "Not", "And", "Or"
]

for tag in cfn_tags:
    CloudFormationYAMLLoader.add_constructor(
        f"!{tag}",
        lambda loader, node, tag=tag: cfn_tag_constructor(loader, tag, node)
    )


class PatternConfigLoader:
    """Loads and validates pattern configuration files."""

    def __init__(
        self,
        config_dir: Union[str, Path],
        schema: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the loader.

        Args:
            config_dir: Directory holding base.yaml and environments/
            schema: JSON schema to validate against
        """
        self.config_dir = Path(config_dir)
        self.schema = PATTERN_CONFIG_SCHEMA if schema is None else schema

    def load_config(self, config_path: Path) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            return yaml.load(f, Loader=CloudFormationYAMLLoader) or {}

    def merge_config(self, base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge override configuration into base configuration."""
        def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
            result = base.copy()

            for key, value in override.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value

            return result

        return deep_merge(base_config, override_config)

    def validate_config(self, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Validate configuration against the schema.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not self.schema:
            logger.warning("No schema available for validation")
            return True, []

        try:
            jsonschema.validate(config, self.schema)
            return True, []
        except jsonschema.ValidationError as e:
            errors.append(f"Configuration validation failed: {e.message}")
            errors.append(f"Failed at path: {' -> '.join(str(x) for x in e.absolute_path)}")
            return False, errors
        except jsonschema.SchemaError as e:
            errors.append(f"Schema validation failed: {e.message}")
            return False, errors

    def validate_environment(self, environment: str) -> Tuple[bool, Dict[str, Any]]:
        """Validate configuration for a specific environment.

        Returns:
            Tuple of (is_valid, validation_result)
        """
        result: Dict[str, Any] = {
            "environment": environment,
            "valid": False,
            "errors": [],
            "warnings": [],
            "merged_config": None
        }

        try:
            base_config_path = self.config_dir / "base.yaml"
            logger.info(f"Loading base configuration: {base_config_path}")
            base_config = self.load_config(base_config_path)

            env_config_path = self.config_dir / "environments" / f"{environment}.yaml"
            if env_config_path.exists():
                logger.info(f"Loading environment configuration: {env_config_path}")
                final_config = self.merge_config(base_config, self.load_config(env_config_path))
            else:
                result["warnings"].append(f"No environment-specific configuration found for {environment}")
                final_config = base_config

            result["merged_config"] = final_config

            logger.info(f"Validating configuration for environment: {environment}")
            is_valid, errors = self.validate_config(final_config)

            result["valid"] = is_valid
            result["errors"].extend(errors)

            return is_valid, result

        except (OSError, yaml.YAMLError) as e:
            result["errors"].append(f"Error during validation: {str(e)}")
            return False, result

    def load_environment(self, environment: str) -> Dict[str, Any]:
        """Load the validated configuration for an environment.

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        is_valid, result = self.validate_environment(environment)
        for warning in result["warnings"]:
            logger.warning(warning)
        if not is_valid:
            raise ConfigurationError(environment, result["errors"])
        return result["merged_config"]


def find_config_dir(config_dir: Optional[Union[str, Path]] = None) -> Path:
    """Find the configuration directory."""
    if config_dir is not None:
        return Path(config_dir)

    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir)

    return Path.cwd() / "config"


def get_pattern_config(
    environment: str, config_dir: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """Get the validated pattern configuration for an environment."""
    loader = PatternConfigLoader(find_config_dir(config_dir))
    return loader.load_environment(environment)
