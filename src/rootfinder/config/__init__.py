"""
Configuration management package for rootfinder.

This package provides configuration parsing, validation, and turns a
configuration into a ready-to-use Finder.
"""

from .parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    load_config,
    validate_config_file,
    create_config_template,
    build_finder
)

__all__ = [
    'ConfigParser',
    'ConfigParseResult',
    'ConfigurationError',
    'load_config',
    'validate_config_file',
    'create_config_template',
    'build_finder'
]
