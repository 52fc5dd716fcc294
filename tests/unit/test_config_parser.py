"""
Unit tests for configuration parser.

Tests the YAML configuration parsing, validation, and error handling
functionality of the ConfigParser class, and building a Finder from a
parsed configuration.
"""

import pytest
import tempfile
import os
import shutil
import yaml
from pathlib import Path
from unittest.mock import patch

from rootfinder.config.parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    load_config,
    validate_config_file,
    create_config_template,
    build_finder
)
from rootfinder.models.config import FinderConfig
from rootfinder.tools.finder import Finder
from rootfinder.tools.handlers import FileHandler


class TestConfigParser:
    """Test cases for ConfigParser class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = os.path.realpath(tempfile.mkdtemp())
        os.makedirs(os.path.join(self.temp_dir, "themes", "dark"))
        os.makedirs(os.path.join(self.temp_dir, "themes", "base"))
        with open(os.path.join(self.temp_dir, "themes", "base", "config.json"), "w") as f:
            f.write("{}")

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write_config(self, data, name="rootfinder.yaml"):
        path = os.path.join(self.temp_dir, name)
        with open(path, "w") as f:
            if isinstance(data, str):
                f.write(data)
            else:
                yaml.dump(data, f)
        return path

    def test_init_default(self):
        """Test default initialization."""
        parser = ConfigParser()
        assert parser.strict_mode is False
        assert parser.DEFAULT_CONFIG_NAMES == [
            '.rootfinder.yaml',
            '.rootfinder.yml',
            'rootfinder.yaml',
            'rootfinder.yml'
        ]

    def test_init_strict_mode(self):
        """Test initialization with strict mode."""
        parser = ConfigParser(strict_mode=True)
        assert parser.strict_mode is True

    def test_load_config_with_valid_file(self):
        """Test loading configuration from valid YAML file."""
        path = self._write_config({
            'default_extension': 'json',
            'groups': {'theme': ['themes/dark', 'themes/base']},
        })

        result = ConfigParser().load_config(path)

        assert isinstance(result, ConfigParseResult)
        assert isinstance(result.config, FinderConfig)
        assert result.config_path == Path(path)
        assert result.is_default is False
        assert result.warnings == []

    def test_relative_roots_anchored_at_config_file(self):
        """Test that relative roots are resolved against the config file directory."""
        path = self._write_config({'groups': {'theme': ['themes/dark', './themes/base']}})

        result = ConfigParser().load_config(path)

        assert result.config.groups['theme'] == [
            os.path.join(self.temp_dir, "themes", "dark"),
            os.path.join(self.temp_dir, "themes", "base"),
        ]

    def test_load_config_file_not_found(self):
        """Test loading configuration from non-existent file."""
        parser = ConfigParser()

        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            parser.load_config("/nonexistent/config.yaml")

    def test_load_config_invalid_yaml(self):
        """Test loading configuration with invalid YAML syntax."""
        path = self._write_config("groups:\n  - invalid: [\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML syntax"):
            ConfigParser().load_config(path)

    def test_load_config_empty_file(self):
        """Test loading configuration from empty file."""
        path = self._write_config("")

        result = ConfigParser().load_config(path)

        assert isinstance(result.config, FinderConfig)
        assert result.config_path == Path(path)
        assert "No search roots configured" in result.warnings

    def test_load_config_non_dict_yaml(self):
        """Test loading configuration with non-dictionary YAML."""
        path = self._write_config("- item1\n- item2")

        with pytest.raises(ConfigurationError, match="must contain a YAML object"):
            ConfigParser().load_config(path)

    def test_load_config_validation_error(self):
        """Test loading configuration that fails validation."""
        path = self._write_config({'listing': {'depth': -1}})

        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            ConfigParser().load_config(path)

    def test_warnings_for_missing_roots(self):
        """Test that missing roots are reported as warnings."""
        path = self._write_config({'groups': ['missing']})

        result = ConfigParser().load_config(path)

        assert any("Root directory does not exist" in w for w in result.warnings)

    def test_strict_mode_raises_on_warnings(self):
        """Test that strict mode turns warnings into errors."""
        path = self._write_config({'groups': ['missing']})

        with pytest.raises(ConfigurationError, match="strict mode"):
            ConfigParser(strict_mode=True).load_config(path)

    def test_unlimited_depth_warning(self):
        """Test the parser warning about unlimited listings."""
        path = self._write_config({'groups': ['themes'], 'listing': {'depth': True}})

        result = ConfigParser().load_config(path)

        assert any("Unlimited listing depth" in w for w in result.warnings)

    def test_default_config_when_nothing_found(self):
        """Test falling back to defaults when no config file exists."""
        parser = ConfigParser()

        with patch.object(parser, '_find_and_load_config', return_value=(None, None)):
            result = parser.load_config()

        assert result.is_default is True
        assert result.config_path is None
        assert result.config.default_extension == "py"
        assert "No configuration file found, using default settings" in result.warnings

    def test_find_config_in_cwd(self):
        """Test discovering a config file in the current directory."""
        self._write_config({'groups': ['themes']}, name=".rootfinder.yaml")

        with patch('rootfinder.config.parser.Path.cwd', return_value=Path(self.temp_dir)):
            result = ConfigParser().load_config()

        assert result.is_default is False
        assert result.config_path == Path(self.temp_dir) / ".rootfinder.yaml"
        assert result.config.get_roots() == [os.path.join(self.temp_dir, "themes")]

    def test_save_config(self):
        """Test saving configuration to file."""
        config = FinderConfig(groups={'theme': ['/a', '/b']}, default_extension='json')
        output = os.path.join(self.temp_dir, "out", "saved.yaml")

        ConfigParser().save_config(config, output)

        with open(output) as f:
            content = f.read()
        assert "# rootfinder configuration" in content
        assert yaml.safe_load(content)['groups'] == {'theme': ['/a', '/b']}

    def test_get_config_template(self):
        """Test that the template is valid YAML for a FinderConfig."""
        template = ConfigParser().get_config_template()

        data = yaml.safe_load(template)
        config = FinderConfig.from_dict(data)
        assert 'theme' in config.groups
        assert config.listing.block_hidden is True

    def test_validate_config_file(self):
        """Test validating configuration files."""
        parser = ConfigParser()

        assert parser.validate_config_file(self._write_config({'groups': ['/x']})) == []

        bad = self._write_config({'default_extension': ''}, name="bad.yaml")
        errors = parser.validate_config_file(bad)
        assert len(errors) == 1
        assert "Configuration validation failed" in errors[0]

        errors = parser.validate_config_file(os.path.join(self.temp_dir, "none.yaml"))
        assert errors[0].startswith("Configuration file not found")

    def test_build_finder(self):
        """Test building a Finder from a configuration."""
        config = FinderConfig(
            groups={'theme': [os.path.join(self.temp_dir, "themes", "dark"),
                              os.path.join(self.temp_dir, "themes", "base")]},
            default_extension='json',
            containment_root=self.temp_dir
        )

        finder = ConfigParser().build_finder(config)

        assert isinstance(finder, Finder)
        assert finder.get_groups() == ['theme']
        assert finder.get_root() == os.path.join(self.temp_dir, "")
        assert finder.find_file('theme::config') == os.path.join(self.temp_dir, "themes", "base", "config.json")

    def test_build_finder_with_bad_root(self):
        """Test that unusable roots fail the build."""
        config = FinderConfig(groups=[os.path.join(self.temp_dir, "missing")])

        with pytest.raises(ConfigurationError, match="Cannot build finder"):
            ConfigParser().build_finder(config)

    def test_build_finder_outside_containment(self):
        """Test that roots outside the containment root fail the build."""
        config = FinderConfig(
            groups=[self.temp_dir],
            containment_root=os.path.join(self.temp_dir, "themes")
        )

        with pytest.raises(ConfigurationError, match="Cannot access path outside"):
            ConfigParser().build_finder(config)


class TestConvenienceFunctions:
    """Test cases for module-level helpers."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = os.path.realpath(tempfile.mkdtemp())
        os.makedirs(os.path.join(self.temp_dir, "conf"))
        with open(os.path.join(self.temp_dir, "conf", "app.yaml"), "w") as f:
            f.write("debug: true\n")

        self.config_path = os.path.join(self.temp_dir, "rootfinder.yaml")
        with open(self.config_path, "w") as f:
            yaml.dump({'groups': ['conf'], 'default_extension': 'yaml', 'return_handlers': True}, f)

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_load_config_function(self):
        """Test the load_config helper."""
        result = load_config(self.config_path)
        assert result.config.default_extension == 'yaml'

    def test_validate_config_file_function(self):
        """Test the validate_config_file helper."""
        assert validate_config_file(self.config_path) == []

    def test_create_config_template(self):
        """Test writing a template file."""
        output = os.path.join(self.temp_dir, "templates", "rootfinder.yaml")
        create_config_template(output)

        assert os.path.exists(output)
        assert validate_config_file(output) == []

    def test_build_finder_from_path(self):
        """Test building a Finder straight from a config file."""
        finder = build_finder(self.config_path)

        handler = finder.find_file('app')
        assert isinstance(handler, FileHandler)
        assert handler.get_contents() == "debug: true\n"

    def test_build_finder_from_parse_result(self):
        """Test building a Finder from a ConfigParseResult."""
        finder = build_finder(load_config(self.config_path))
        assert finder.find_file('app', as_handlers=False) == os.path.join(self.temp_dir, "conf", "app.yaml")
