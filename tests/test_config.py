from pathlib import Path

import pytest

from e2e_fleet_runner.config import PipelineConfig, get_mcp_port, load_config
from e2e_fleet_runner.errors import ConfigError


@pytest.mark.usefixtures("clean_env")
class TestPipelineConfigFromEnv:
    def test_missing_token_raises(self) -> None:
        with pytest.raises(ConfigError, match="GITHUB_TOKEN must be set"):
            PipelineConfig.from_env()

    def test_token_not_required(self) -> None:
        config = PipelineConfig.from_env(require_token=False)
        assert config.github_token == ""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp-test")
        config = PipelineConfig.from_env()
        assert config.github_token == "ghp-test"
        assert config.github_api_url == "https://api.github.com"
        assert config.repos_dir == Path("repos")
        assert config.tests_dir == Path("tests")
        assert config.report_path == Path("report.txt")
        assert config.template_path is None
        assert config.test_subdir == "test/e2e"
        assert config.ginkgo.flake_attempts == 3
        assert config.ginkgo.procs == 4

    def test_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text(
            "# runner settings\n"
            "GITHUB_TOKEN=from-file\n"
            "TESTS_DIR=results\n"
            "GINKGO_PROCS=8\n"
        )
        config = PipelineConfig.from_env()
        assert config.github_token == "from-file"
        assert config.tests_dir == Path("results")
        assert config.ginkgo.procs == 8

    def test_environment_overrides_dotenv(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".env").write_text("GITHUB_TOKEN=from-file\nREPORT_PATH=file-report.txt\n")
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        config = PipelineConfig.from_env()
        assert config.github_token == "from-env"
        assert config.report_path == Path("file-report.txt")

    def test_config_file_from_variable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        other = tmp_path / "runner.env"
        other.write_text("GITHUB_TOKEN=from-other\n")
        monkeypatch.setenv("E2E_FLEET_CONFIG", str(other))
        assert load_config()["GITHUB_TOKEN"] == "from-other"

    def test_overrides_ignore_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp-test")
        monkeypatch.setenv("REPOS_DIR", "env-repos")
        config = PipelineConfig.from_env(repos_dir=None, report_path=Path("out/report.txt"))
        assert config.repos_dir == Path("env-repos")
        assert config.report_path == Path("out/report.txt")

    def test_template_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REPORT_TEMPLATE", "layouts/short.yaml")
        config = PipelineConfig.from_env(require_token=False)
        assert config.template_path == Path("layouts/short.yaml")

    def test_non_integer_setting(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp-test")
        monkeypatch.setenv("GINKGO_FLAKE_ATTEMPTS", "three")
        with pytest.raises(ConfigError, match="GINKGO_FLAKE_ATTEMPTS"):
            PipelineConfig.from_env()

    def test_mcp_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert get_mcp_port() == 8978
        monkeypatch.setenv("FASTMCP_PORT", "9000")
        assert get_mcp_port() == 9000


class TestProvisionDirs:
    def test_creates_directories(self, tmp_path: Path) -> None:
        config = PipelineConfig(repos_dir=tmp_path / "a" / "repos", tests_dir=tmp_path / "b" / "tests")
        config.provision_dirs()
        assert config.repos_dir.is_dir()
        assert config.tests_dir.is_dir()

    def test_existing_directories(self, tmp_path: Path) -> None:
        config = PipelineConfig(repos_dir=tmp_path, tests_dir=tmp_path)
        config.provision_dirs()

    def test_failure_is_config_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        config = PipelineConfig(repos_dir=blocker / "repos", tests_dir=tmp_path / "tests")
        with pytest.raises(ConfigError, match="Failed to create directory"):
            config.provision_dirs()
