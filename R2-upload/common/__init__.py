"""
Common utilities for the R2 upload adapter.
"""

from .config_source import ConfigurationSource, EnvConfigurationSource, DictConfigurationSource
from .local_fs import LocalFilesystem

__all__ = ['ConfigurationSource', 'EnvConfigurationSource', 'DictConfigurationSource', 'LocalFilesystem']
