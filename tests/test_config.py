"""
Tests for pattern configuration loading and validation.
"""

from pathlib import Path

import pytest
import yaml

from cloudfront_patterns.config import (
    CONFIG_DIR_ENV_VAR,
    ConfigurationError,
    PatternConfigLoader,
    find_config_dir,
    get_pattern_config,
)


def write_yaml(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False)


class TestPatternConfigLoader:
    """Test PatternConfigLoader."""

    @pytest.fixture(autouse=True)
    def config_dir(self, tmp_path):
        """Create a config directory with base and environment files."""
        self.config_dir = tmp_path / "config"
        write_yaml(
            self.config_dir / "base.yaml",
            {
                "s3": {"versioning": True},
                "cloudfront": {
                    "price_class": "PriceClass_100",
                    "comment": "base",
                    "logging": {"prefix": "cdn/"},
                },
            },
        )
        write_yaml(
            self.config_dir / "environments" / "prod.yaml",
            {"cloudfront": {"price_class": "PriceClass_All"}},
        )
        self.loader = PatternConfigLoader(self.config_dir)

    def test_load_environment_merges_deeply(self) -> None:
        """Test environment files override base values key by key."""
        config = self.loader.load_environment("prod")

        assert config["cloudfront"]["price_class"] == "PriceClass_All"
        assert config["cloudfront"]["comment"] == "base"
        assert config["cloudfront"]["logging"] == {"prefix": "cdn/"}
        assert config["s3"] == {"versioning": True}

    def test_missing_environment_file(self) -> None:
        """Test an environment without its own file uses the base config."""
        is_valid, result = self.loader.validate_environment("dev")

        assert is_valid is True
        assert result["merged_config"]["cloudfront"]["price_class"] == "PriceClass_100"
        assert result["warnings"] == [
            "No environment-specific configuration found for dev"
        ]

    def test_invalid_config_raises(self) -> None:
        """Test schema violations raise ConfigurationError."""
        write_yaml(
            self.config_dir / "environments" / "staging.yaml",
            {"cloudfront": {"price_class": "PriceClass_Cheap"}},
        )

        with pytest.raises(ConfigurationError) as exc_info:
            self.loader.load_environment("staging")

        assert exc_info.value.environment == "staging"
        assert any("cloudfront -> price_class" in e for e in exc_info.value.errors)

    def test_unknown_keys_rejected(self) -> None:
        """Test unknown cloudfront settings fail validation."""
        is_valid, errors = self.loader.validate_config(
            {"cloudfront": {"origin_shield": True}}
        )

        assert is_valid is False
        assert errors

    def test_missing_base_file(self, tmp_path) -> None:
        """Test a missing base file makes the environment invalid."""
        loader = PatternConfigLoader(tmp_path / "empty")

        is_valid, result = loader.validate_environment("prod")

        assert is_valid is False
        assert "Configuration file not found" in result["errors"][0]

    def test_cloudformation_tags(self) -> None:
        """Test CloudFormation intrinsic tags load as plain values."""
        path = self.config_dir / "tags.yaml"
        path.write_text("cloudfront:\n  web_acl_id: !Ref WebAcl\n")

        config = self.loader.load_config(path)

        assert config == {"cloudfront": {"web_acl_id": "WebAcl"}}

    def test_load_config_missing_file(self) -> None:
        """Test loading a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            self.loader.load_config(self.config_dir / "missing.yaml")

    def test_get_pattern_config_from_env_var(self, monkeypatch) -> None:
        """Test the config directory can come from the environment."""
        monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(self.config_dir))

        config = get_pattern_config("prod")

        assert config["cloudfront"]["price_class"] == "PriceClass_All"


class TestFindConfigDir:
    """Test find_config_dir."""

    def test_explicit_dir(self, tmp_path) -> None:
        """Test an explicit directory wins."""
        assert find_config_dir(tmp_path) == tmp_path

    def test_defaults_to_cwd(self, monkeypatch, tmp_path) -> None:
        """Test the fallback is ./config."""
        monkeypatch.delenv(CONFIG_DIR_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)

        assert find_config_dir() == tmp_path / "config"
