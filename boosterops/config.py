#!/usr/bin/env python3
"""
Configuration for boosterops.

Configuration is a nested dict built from the defaults, a user file
(JSON, TOML or YAML) and ``BOOSTEROPS_*`` environment overrides. Command
line flags are folded over it into an immutable Settings value that the
rest of the program receives explicitly.
"""

import os
import json
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import logging
import sys

import yaml

from .domain.booster import Selection
from .exit_codes import ConfigError

logger = logging.getLogger("boosterops")

LOG_FORMAT = "%(levelname)s: %(message)s"


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Send boosterops diagnostics to stderr."""
    root = logging.getLogger("boosterops")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else getattr(logging, str(level).upper(), logging.INFO))


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. BOOSTEROPS_CONFIG environment variable
    2. ~/.boosterops/ directory
    """
    if 'BOOSTEROPS_CONFIG' in os.environ:
        path = Path(os.environ['BOOSTEROPS_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.boosterops'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists():
            return path

    return config_dir / 'config.json'


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "general": {
            "remote": "upstream",
            "branches": ["master"],
            "primary_branch": "master",
            "github_query": "org:snowdrop+topic:booster",
            "boosters_dir": ".",
            "commit_prefix": "[booster-release]"
        },
        "naming": {
            "prefix": "spring-boot-",
            "suffix": "-booster"
        },
        "maven": {
            "settings": "",
            "extra_opts": ""
        },
        "release": {
            "allowed_qualifiers": ["redhat", "rhoar"],
            "production_qualifier": "redhat",
            "template_token": "BOOSTER_VERSION",
            "template_glob": "**/.openshiftio/application.yaml",
            "build_qualifier": "CR1",
            "bom_property": "spring-boot-bom.version",
            "platform_property": "spring-boot.version",
            "platform_suffix": ".RELEASE"
        },
        "catalog": {
            "staging_url": (
                "http://rcm-guest.app.eng.bos.redhat.com/rcm-guest/staging/rhoar/spring-boot/"
                "spring-boot-{base}.{qualifier}/extras/repository-artifact-list.txt"
            ),
            "bom_artifact": "spring-boot-bom",
            "timeout_seconds": 30,
            "repository": "git@github.com:snowdrop/launcher-booster-catalog.git",
            "upstream_repository": "git@github.com:fabric8-launcher/launcher-booster-catalog.git",
            "upstream_slug": "fabric8-launcher/launcher-booster-catalog",
            "upstream_branch": "master",
            "fork_owner": "snowdrop",
            "branch": "official",
            "runtime": "spring-boot",
            "branch_mapping": {
                "master": "current-community",
                "redhat": "current-redhat"
            },
            "booster_mapping": {
                "http": "rest-http",
                "http-secured": "rest-http-secured"
            },
            "version_labels": {
                "current-community": "Community",
                "current-redhat": "RHOAR"
            }
        },
        "openshift": {
            "initial_wait_seconds": 30,
            "poll_interval_seconds": 20,
            "build_timeout_seconds": 300,
            "namespace_poll_seconds": 5,
            "source_repository_base": "https://github.com/snowdrop"
        },
        "github": {
            "token": ""
        },
        "logging": {
            "level": "INFO"
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file.

    Raises:
        ConfigError: If the configuration file cannot be parsed
    """
    config_path = config_path or get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                # Default to JSON format
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)

    # Apply environment variable overrides
    return apply_env_overrides(config)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: BOOSTEROPS_SECTION_KEY
    For example: BOOSTEROPS_GENERAL_PRIMARY_BRANCH=main
    """
    env_prefix = "BOOSTEROPS_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if not matched_key:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                break

    return config


def _as_tuple(value: Any) -> Tuple[str, ...]:
    """Accept a list or a comma separated string."""
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(',')
    return tuple(str(v).strip() for v in value if str(v).strip())


@dataclass(frozen=True)
class ReleaseSettings:
    allowed_qualifiers: Tuple[str, ...] = ("redhat", "rhoar")
    production_qualifier: str = "redhat"
    template_token: str = "BOOSTER_VERSION"
    template_glob: str = "**/.openshiftio/application.yaml"
    build_qualifier: str = "CR1"
    bom_property: str = "spring-boot-bom.version"
    platform_property: str = "spring-boot.version"
    platform_suffix: str = ".RELEASE"


@dataclass(frozen=True)
class CatalogSettings:
    staging_url: str = ""
    bom_artifact: str = "spring-boot-bom"
    timeout_seconds: int = 30
    repository: str = ""
    upstream_repository: str = ""
    upstream_slug: str = ""
    upstream_branch: str = "master"
    fork_owner: str = ""
    branch: str = "official"
    runtime: str = "spring-boot"
    branch_mapping: Dict[str, str] = field(default_factory=dict)
    booster_mapping: Dict[str, str] = field(default_factory=dict)
    version_labels: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OpenShiftSettings:
    initial_wait_seconds: float = 30
    poll_interval_seconds: float = 20
    build_timeout_seconds: float = 300
    namespace_poll_seconds: float = 5
    source_repository_base: str = "https://github.com/snowdrop"


@dataclass(frozen=True)
class Settings:
    """
    Everything a run needs to know, resolved once at startup.

    ``dry_run`` disables both commits and pushes.
    """
    remote: str = "upstream"
    branches: Tuple[str, ...] = ("master",)
    primary_branch: str = "master"
    github_query: str = "org:snowdrop+topic:booster"
    boosters_dir: Path = Path(".")
    commit_prefix: str = "[booster-release]"
    naming_prefix: str = "spring-boot-"
    naming_suffix: str = "-booster"
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    dry_run: bool = False
    ignore_local_changes: bool = False
    confirmation_needed: bool = True
    run_tests: bool = True
    local_setup: bool = False
    maven_settings: Optional[str] = None
    maven_extra_opts: Optional[str] = None
    github_token: Optional[str] = None
    release: ReleaseSettings = field(default_factory=ReleaseSettings)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)
    openshift: OpenShiftSettings = field(default_factory=OpenShiftSettings)

    @property
    def commit_enabled(self) -> bool:
        return not self.dry_run

    @property
    def push_enabled(self) -> bool:
        return not self.dry_run

    @property
    def selection(self) -> Selection:
        """
        Raises:
            ValueError: If both include and exclude names are set
        """
        return Selection.from_lists(self.include, self.exclude)

    def with_branches(self, *branches: str) -> 'Settings':
        return replace(self, branches=tuple(branches))

    @classmethod
    def from_config(cls, config: Dict[str, Any], **overrides: Any) -> 'Settings':
        """
        Build settings from a config dict and command line overrides.

        Overrides set to None are ignored so unset flags keep the
        configured value.
        """
        general = config.get('general', {})
        naming = config.get('naming', {})
        maven = config.get('maven', {})
        release = config.get('release', {})
        catalog = config.get('catalog', {})
        openshift = config.get('openshift', {})
        github = config.get('github', {})

        values: Dict[str, Any] = {
            'remote': general.get('remote', 'upstream'),
            'branches': _as_tuple(general.get('branches', ['master'])),
            'primary_branch': general.get('primary_branch', 'master'),
            'github_query': general.get('github_query', cls.github_query),
            'boosters_dir': Path(general.get('boosters_dir', '.')).expanduser(),
            'commit_prefix': general.get('commit_prefix', cls.commit_prefix),
            'naming_prefix': naming.get('prefix', cls.naming_prefix),
            'naming_suffix': naming.get('suffix', cls.naming_suffix),
            'maven_settings': maven.get('settings') or None,
            'maven_extra_opts': maven.get('extra_opts') or None,
            'github_token': github.get('token') or None,
            'release': ReleaseSettings(
                allowed_qualifiers=_as_tuple(release.get('allowed_qualifiers', ReleaseSettings.allowed_qualifiers)),
                **{k: release[k] for k in (
                    'production_qualifier', 'template_token', 'template_glob', 'build_qualifier',
                    'bom_property', 'platform_property', 'platform_suffix'
                ) if k in release}
            ),
            'catalog': CatalogSettings(**{
                k: v for k, v in catalog.items() if k in CatalogSettings.__dataclass_fields__
            }),
            'openshift': OpenShiftSettings(**{
                k: v for k, v in openshift.items() if k in OpenShiftSettings.__dataclass_fields__
            }),
        }

        for key, value in overrides.items():
            if value is None:
                continue
            if key not in cls.__dataclass_fields__:
                raise ConfigError(f"Unknown setting: {key}")
            if key in ('branches', 'include', 'exclude'):
                value = _as_tuple(value)
            elif key == 'boosters_dir':
                value = Path(value).expanduser()
            values[key] = value

        return cls(**values)
