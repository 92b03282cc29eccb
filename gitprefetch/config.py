"""Runtime configuration for gitprefetch.

Settings are layered, lowest priority first:

    1. built-in defaults
    2. the optional config file ($XDG_CONFIG_HOME/gitprefetch/gitprefetch.cfg)
    3. environment variables (the same names nix-prefetch-git honours)
    4. command line flags

The result is a single frozen ``PrefetchConfig`` that is built once at startup
and handed to every component. Nothing below the CLI reads settings from
``os.environ``; subprocesses (git, nix, the checkout hook) inherit it as-is.
"""

import configparser
import logging
import os
import platform
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

APP_NAME = "gitprefetch"

DEFAULT_HASH_ALGO = "sha256"
DEFAULT_BRANCH_NAME = "fetchgit"
SUPPORTED_HASH_ALGOS = ("md5", "sha1", "sha256", "sha512")

logger = logging.getLogger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/gitprefetch").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for the optional configuration file.

    Missing files, sections or keys are not errors; the accessor simply
    returns the supplied default.

    Usage:
        config = ConfigAccessor()
        value = config.get('defaults', 'hash_algo', default='sha256')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = config_path

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            logger.debug(f"Reading configuration from {self.config_path}")
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default

    def getboolean(self, section: str, key: str, default: bool = False) -> bool:
        try:
            return self.config.getboolean(section, key, fallback=default)
        except ValueError:
            return default


class PrefetchConfig(BaseModel):
    """Immutable settings for one invocation."""

    model_config = ConfigDict(frozen=True)

    hash_algo: str = Field(DEFAULT_HASH_ALGO, description="Hash algorithm")
    deep_clone: bool = Field(False, description="Fetch complete history")
    leave_dot_git: bool = Field(False, description="Keep normalized .git dirs")
    fetch_submodules: bool = Field(False, description="Fetch submodules")
    builder: bool = Field(False, description="Builder mode, no store interaction")
    quiet: bool = Field(False, description="Only print the final result")
    print_path: bool = Field(False, description="Also print the store path")
    branch_name: str = Field(DEFAULT_BRANCH_NAME, description="Local branch name")
    http_proxy: Optional[str] = Field(None, description="Proxy for git over http")
    ssl_cainfo: Optional[str] = Field(None, description="CA bundle for git")
    checkout_hook: Optional[str] = Field(
        None, description="Shell snippet run after checkout"
    )
    out: Optional[Path] = Field(None, description="Output path (builder mode)")
    tmpdir: Optional[Path] = Field(None, description="Scratch directory root")

    @field_validator("hash_algo")
    @classmethod
    def validate_hash_algo(cls, v: str) -> str:
        if v not in SUPPORTED_HASH_ALGOS:
            raise ValueError(
                f"Unsupported hash algorithm '{v}', expected one of "
                f"{', '.join(SUPPORTED_HASH_ALGOS)}"
            )
        return v

    @field_validator("branch_name")
    @classmethod
    def validate_branch_name(cls, v: str) -> str:
        if not v or not v.strip():
            return DEFAULT_BRANCH_NAME
        return v

    def git_environment(self) -> dict:
        """Extra environment for git subprocesses."""
        env = {}
        if self.ssl_cainfo:
            env["GIT_SSL_CAINFO"] = self.ssl_cainfo
        return env

    @classmethod
    def from_sources(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        accessor: Optional[ConfigAccessor] = None,
        **overrides: Any,
    ) -> "PrefetchConfig":
        """Build the configuration from file, environment and explicit overrides.

        Environment flags follow shell conventions: any non-empty value
        enables the flag. Overrides whose value is None are ignored so that
        unset command line options do not mask lower layers.
        """
        if environ is None:
            environ = os.environ
        if accessor is None:
            accessor = ConfigAccessor()

        section = "defaults"
        values: dict = {
            "hash_algo": accessor.get(section, "hash_algo", DEFAULT_HASH_ALGO),
            "deep_clone": accessor.getboolean(section, "deep_clone"),
            "leave_dot_git": accessor.getboolean(section, "leave_dot_git"),
            "fetch_submodules": accessor.getboolean(section, "fetch_submodules"),
            "branch_name": accessor.get(section, "branch_name", DEFAULT_BRANCH_NAME),
            "http_proxy": accessor.get(section, "http_proxy"),
            "checkout_hook": accessor.get(section, "checkout_hook"),
        }

        env_strings = {
            "NIX_HASH_ALGO": "hash_algo",
            "NIX_PREFETCH_GIT_BRANCH_NAME": "branch_name",
            "NIX_PREFETCH_GIT_CHECKOUT_HOOK": "checkout_hook",
            "http_proxy": "http_proxy",
            "out": "out",
            "TMPDIR": "tmpdir",
        }
        for var, field in env_strings.items():
            if environ.get(var):
                values[field] = environ[var]

        env_flags = {
            "NIX_PREFETCH_GIT_DEEP_CLONE": "deep_clone",
            "NIX_PREFETCH_GIT_LEAVE_DOT_GIT": "leave_dot_git",
            "PRINT_PATH": "print_path",
            "QUIET": "quiet",
        }
        for var, field in env_flags.items():
            if environ.get(var):
                values[field] = True

        # NIX_GIT_SSL_CAINFO takes precedence over git's own variable
        cainfo = environ.get("NIX_GIT_SSL_CAINFO") or environ.get("GIT_SSL_CAINFO")
        if cainfo:
            values["ssl_cainfo"] = cainfo

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
