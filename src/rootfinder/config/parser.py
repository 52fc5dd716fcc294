"""
YAML configuration parser for rootfinder.

This module loads, parses and validates rootfinder YAML configuration files
and turns a validated configuration into a ready-to-use Finder. It handles
configuration file discovery, default configuration and helpful error
messages for configuration issues.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
import logging
from dataclasses import dataclass
from pydantic import ValidationError

from ..errors import FinderError
from ..models.config import FinderConfig
from ..tools.finder import Finder


logger = logging.getLogger(__name__)


@dataclass
class ConfigParseResult:
    """
    Result of configuration parsing operation.

    Attributes:
        config: The parsed and validated configuration
        warnings: List of non-fatal warnings
        config_path: Path to the configuration file used
        is_default: Whether default configuration was used
    """
    config: FinderConfig
    warnings: List[str]
    config_path: Optional[Path]
    is_default: bool


class ConfigurationError(FinderError):
    """Raised when configuration parsing or validation fails."""
    pass


class ConfigParser:
    """
    YAML configuration parser with validation and error handling.

    This class loads YAML configuration files, validates their contents and
    converts them to FinderConfig objects. Relative roots are anchored at
    the directory holding the configuration file.
    """

    DEFAULT_CONFIG_NAMES = [
        '.rootfinder.yaml',
        '.rootfinder.yml',
        'rootfinder.yaml',
        'rootfinder.yml'
    ]

    SECTION_COMMENTS = [
        ("default_extension", "Extension appended to file queries that have none"),
        ("return_handlers", "Return handler objects instead of plain paths by default"),
        ("containment_root", "Optional directory every search root must live under"),
        ("groups", "Search root groups, queried as 'group::name' (roots are probed in order)"),
        ("listing", "Defaults for directory listings"),
    ]

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the configuration parser.

        Args:
            strict_mode: If True, treat warnings as errors
        """
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ConfigParseResult:
        """
        Load and parse configuration from file or use defaults.

        Args:
            config_path: Path to configuration file. If None, searches for default files.

        Returns:
            ConfigParseResult containing parsed configuration and metadata

        Raises:
            ConfigurationError: If configuration is invalid or file cannot be read
        """
        try:
            if config_path:
                config_path = Path(config_path)
                if not config_path.exists():
                    raise ConfigurationError(f"Configuration file not found: {config_path}", str(config_path))

                config_data = self._load_yaml_file(config_path)
                is_default = False
            else:
                config_path, config_data = self._find_and_load_config()
                is_default = config_data is None

                if is_default:
                    config_data = self._get_default_config()

            finder_config = self._validate_config_data(config_data)
            if config_path:
                finder_config = finder_config.resolve_relative(config_path.resolve().parent)

            warnings = finder_config.validate_configuration()
            warnings.extend(self._get_parser_warnings(finder_config, is_default))

            if self.strict_mode and warnings:
                raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

            self.logger.info(f"Configuration loaded successfully from {config_path or 'defaults'}")

            return ConfigParseResult(
                config=finder_config,
                warnings=warnings,
                config_path=config_path,
                is_default=is_default
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _find_and_load_config(self) -> tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """
        Find and load configuration file from default locations.

        Returns:
            Tuple of (config_path, config_data) or (None, None) if not found
        """
        search_paths = [
            Path.cwd(),
            Path.home(),
            Path.home() / '.config' / 'rootfinder',
        ]

        for search_path in search_paths:
            for config_name in self.DEFAULT_CONFIG_NAMES:
                config_file = search_path / config_name
                if config_file.exists() and config_file.is_file():
                    try:
                        config_data = self._load_yaml_file(config_file)
                        self.logger.info(f"Found configuration file: {config_file}")
                        return config_file, config_data
                    except ConfigurationError as e:
                        self.logger.warning(f"Failed to load {config_file}: {e}")
                        continue

        self.logger.info("No configuration file found, using defaults")
        return None, None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse YAML file.

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed YAML data as dictionary

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()

            if not content.strip():
                self.logger.warning(f"Configuration file is empty: {file_path}")
                return {}

            data = yaml.safe_load(content)

            if data is None:
                return {}

            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file must contain a YAML object, got {type(data).__name__}",
                    str(file_path)
                )

            return data

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}", str(file_path)) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}", str(file_path)) from e

    def _validate_config_data(self, config_data: Dict[str, Any]) -> FinderConfig:
        """
        Validate configuration data structure and values.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            return FinderConfig.from_dict(config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _get_default_config(self) -> Dict[str, Any]:
        """
        Get default configuration when no config file is found.

        Returns:
            Default configuration dictionary
        """
        return {
            'default_extension': 'py',
            'return_handlers': False,
            'containment_root': None,
            'groups': {},
            'listing': {
                'depth': 0,
                'entry_kind': 'all',
                'block_hidden': False,
                'extensions': [],
                'rules': []
            }
        }

    def _get_parser_warnings(self, config: FinderConfig, is_default: bool) -> List[str]:
        """
        Get parser-specific warnings.

        Args:
            config: The parsed configuration
            is_default: Whether default configuration was used

        Returns:
            List of warning messages
        """
        warnings = []

        if is_default:
            warnings.append("No configuration file found, using default settings")

        if len(config.groups) > 50:
            warnings.append(f"Large number of root groups ({len(config.groups)})")

        if config.listing.depth is True and not config.listing.block_hidden:
            warnings.append("Unlimited listing depth without hiding dot-directories may walk large trees")

        return warnings

    def save_config(self, config: FinderConfig, output_path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Raises:
            ConfigurationError: If file cannot be written
        """
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            yaml_content = self._generate_yaml_with_comments(config.to_dict())

            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(yaml_content)

            self.logger.info(f"Configuration saved to {output_path}")

        except OSError as e:
            raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}", str(output_path)) from e

    def _generate_yaml_with_comments(self, config_dict: Dict[str, Any]) -> str:
        """
        Generate YAML content with helpful comments.

        Args:
            config_dict: Configuration dictionary

        Returns:
            YAML content with comments
        """
        lines = [
            "# rootfinder configuration",
            "# Search roots, lookup defaults and listing defaults",
            "",
        ]

        for section_name, comment in self.SECTION_COMMENTS:
            if section_name in config_dict:
                lines.append(f"# {comment}")
                section_yaml = yaml.dump({section_name: config_dict[section_name]},
                                         default_flow_style=False,
                                         sort_keys=False)
                lines.append(section_yaml.rstrip())
                lines.append("")

        return "\n".join(lines)

    def validate_config_file(self, config_path: Union[str, Path]) -> List[str]:
        """
        Validate a configuration file without building a Finder.

        Args:
            config_path: Path to configuration file

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        try:
            config_path = Path(config_path)

            if not config_path.exists():
                errors.append(f"Configuration file not found: {config_path}")
                return errors

            config_data = self._load_yaml_file(config_path)
            self._validate_config_data(config_data)

        except ConfigurationError as e:
            errors.append(str(e))

        return errors

    def get_config_template(self) -> str:
        """
        Get a template configuration file with all options and comments.

        Returns:
            YAML template as string
        """
        template_config = {
            'default_extension': 'py',
            'return_handlers': False,
            'containment_root': None,
            'groups': {
                '__DEFAULT__': ['./config'],
                'theme': ['./themes/custom', './themes/base']
            },
            'listing': {
                'depth': 0,
                'entry_kind': 'all',
                'block_hidden': True,
                'extensions': [],
                'rules': []
            }
        }

        return self._generate_yaml_with_comments(template_config)

    def build_finder(self, config: FinderConfig) -> Finder:
        """
        Construct a Finder from a configuration.

        The containment root is applied first, then every group is
        registered in file order.

        Raises:
            ConfigurationError: If a root is missing or outside the containment root
        """
        try:
            finder = Finder(
                default_extension=config.default_extension,
                root=config.containment_root,
                return_handlers=config.return_handlers
            )
            for group, roots in config.groups.items():
                finder.set_paths(roots, clear_cache=False, group=group)
        except FinderError as e:
            raise ConfigurationError(f"Cannot build finder: {e}", e.path) from e

        self.logger.info(f"Finder ready: {finder}")
        return finder


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """
    Convenience function to load configuration.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    parser = ConfigParser(strict_mode=strict_mode)
    return parser.load_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> List[str]:
    """
    Convenience function to validate a configuration file.

    Returns:
        List of validation errors (empty if valid)
    """
    parser = ConfigParser()
    return parser.validate_config_file(config_path)


def create_config_template(output_path: Union[str, Path]) -> None:
    """
    Create a template configuration file.

    Raises:
        ConfigurationError: If template cannot be created
    """
    parser = ConfigParser()
    template_content = parser.get_config_template()

    try:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(template_content)

    except OSError as e:
        raise ConfigurationError(f"Cannot create template file {output_path}: {e}", str(output_path)) from e


def build_finder(config: Union[FinderConfig, ConfigParseResult, str, Path, None] = None) -> Finder:
    """
    Build a Finder from a configuration object, a parse result or a file path.

    With no argument the default configuration files are searched.
    """
    parser = ConfigParser()
    if isinstance(config, ConfigParseResult):
        config = config.config
    elif not isinstance(config, FinderConfig):
        config = parser.load_config(config).config
    return parser.build_finder(config)
