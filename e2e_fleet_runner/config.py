"""Configuration for the e2e fleet runner: .env file plus environment."""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_REPOS_DIR = "repos"
DEFAULT_TESTS_DIR = "tests"
DEFAULT_REPORT_PATH = "report.txt"
DEFAULT_TEST_SUBDIR = "test/e2e"
DEFAULT_GITHUB_API_URL = "https://api.github.com"

CONFIG_KEYS = [
    'GITHUB_TOKEN', 'GITHUB_API_URL', 'REPOS_DIR', 'TESTS_DIR', 'REPORT_PATH',
    'REPORT_TEMPLATE', 'TEST_SUBDIR', 'GINKGO_BIN', 'GINKGO_TAGS',
    'GINKGO_FLAKE_ATTEMPTS', 'GINKGO_PROCS', 'FASTMCP_PORT',
]


def load_config() -> dict:
    """Load config from environment variables and .env file.

    Environment variables take precedence over .env file values.
    """
    paths = [
        os.environ.get('E2E_FLEET_CONFIG'),
        Path.cwd() / '.env',
    ]
    config = {}
    for p in paths:
        if p and Path(p).exists():
            try:
                for line in Path(p).read_text(encoding='utf-8').splitlines():
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        config[key.strip()] = value.strip()
                break
            except OSError as e:
                logger.warning(f"Failed to read config file {p}: {e}")

    for key in CONFIG_KEYS:
        env_value = os.environ.get(key)
        if env_value is not None:
            config[key] = env_value

    return config


def _int_setting(config: dict, key: str, default: int) -> int:
    value = config.get(key)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class GinkgoSettings:
    """Fixed flag set for the ginkgo invocation."""
    binary: str = "ginkgo"
    tags: str = "e2e,osde2e"
    flake_attempts: int = 3
    procs: int = 4

    def command(self, output_dir: Path, json_report: str) -> list[str]:
        return [
            self.binary,
            f"--tags={self.tags}",
            f"--flake-attempts={self.flake_attempts}",
            f"--procs={self.procs}",
            "-vv",
            "--trace",
            f"--output-dir={output_dir}",
            f"--json-report={json_report}",
            ".",
        ]


@dataclass(frozen=True)
class PipelineConfig:
    """Settings shared by every pipeline stage, passed in explicitly."""
    github_token: str = ""
    github_api_url: str = DEFAULT_GITHUB_API_URL
    repos_dir: Path = Path(DEFAULT_REPOS_DIR)
    tests_dir: Path = Path(DEFAULT_TESTS_DIR)
    report_path: Path = Path(DEFAULT_REPORT_PATH)
    template_path: Optional[Path] = None
    test_subdir: str = DEFAULT_TEST_SUBDIR
    ginkgo: GinkgoSettings = field(default_factory=GinkgoSettings)

    @classmethod
    def from_env(cls, require_token: bool = True, **overrides) -> "PipelineConfig":
        """Build the config from .env/environment, then apply non-None overrides.

        Raises:
            ConfigError: GITHUB_TOKEN is required but not set, or a numeric
                setting is not an integer.
        """
        config = load_config()
        token = config.get('GITHUB_TOKEN', '')
        if require_token and not token:
            raise ConfigError("GITHUB_TOKEN must be set in the environment")

        template = config.get('REPORT_TEMPLATE')
        result = cls(
            github_token=token,
            github_api_url=config.get('GITHUB_API_URL', DEFAULT_GITHUB_API_URL),
            repos_dir=Path(config.get('REPOS_DIR', DEFAULT_REPOS_DIR)),
            tests_dir=Path(config.get('TESTS_DIR', DEFAULT_TESTS_DIR)),
            report_path=Path(config.get('REPORT_PATH', DEFAULT_REPORT_PATH)),
            template_path=Path(template) if template else None,
            test_subdir=config.get('TEST_SUBDIR', DEFAULT_TEST_SUBDIR),
            ginkgo=GinkgoSettings(
                binary=config.get('GINKGO_BIN', "ginkgo"),
                tags=config.get('GINKGO_TAGS', "e2e,osde2e"),
                flake_attempts=_int_setting(config, 'GINKGO_FLAKE_ATTEMPTS', 3),
                procs=_int_setting(config, 'GINKGO_PROCS', 4),
            ),
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(result, **overrides) if overrides else result

    def provision_dirs(self):
        """Create the clone and results directories."""
        for path in (self.repos_dir, self.tests_dir):
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigError(f"Failed to create directory {path}: {e}") from e


def get_mcp_port() -> int:
    return _int_setting(load_config(), 'FASTMCP_PORT', 8978)
