"""Unit tests for the OpenClaw config and skills backends."""

from pathlib import Path

import pytest
import yaml

from suibhne.config import AccessPolicy
from suibhne.exceptions import (
    BackendError,
    ConfigFileNotFoundError,
    InvalidArgumentError,
    PermissionDeniedError,
)
from suibhne.services.authorization import AccessGate
from suibhne.services.openclaw import (
    ConfigFileService,
    SkillsService,
    get_nested_value,
    set_nested_value,
)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Create an OpenClaw config file."""
    path = tmp_path / "openclaw" / "config.yaml"
    path.parent.mkdir()
    path.write_text("gateway:\n  port: 8080\n  host: localhost\nmodel: sonnet\n", encoding="utf-8")
    return path


def allow(resource: str) -> AccessGate:
    return AccessGate.from_policy(resource, AccessPolicy.ALLOW)


class TestNestedValues:
    """Tests for dotted key helpers."""

    def test_get_nested(self) -> None:
        """Dotted keys walk nested mappings."""
        data = {"a": {"b": {"c": 1}}}
        assert get_nested_value(data, "a.b.c") == 1
        assert get_nested_value(data, "a.x") is None
        assert get_nested_value(data, "a.b.c.d") is None

    def test_set_nested_creates_parents(self) -> None:
        """Missing parents are created."""
        data: dict = {"a": 1}
        set_nested_value(data, "a.b", 2)
        set_nested_value(data, "x.y.z", 3)
        assert data == {"a": {"b": 2}, "x": {"y": {"z": 3}}}


class TestConfigFileService:
    """Tests for ConfigFileService."""

    def test_get_whole_file(self, config_file: Path) -> None:
        """get without a key returns content and parsed values."""
        result = ConfigFileService(config_file, allow("config")).get()
        assert result["path"] == str(config_file)
        assert "port: 8080" in result["content"]
        assert result["values"]["gateway"]["port"] == 8080

    def test_get_key(self, config_file: Path) -> None:
        """get with a key returns one value."""
        result = ConfigFileService(config_file, allow("config")).get("gateway.host")
        assert result == {"path": str(config_file), "key": "gateway.host", "value": "localhost"}

    def test_get_missing_file(self, tmp_path: Path) -> None:
        """A missing config file is reported with its path."""
        path = tmp_path / "missing.yaml"
        with pytest.raises(ConfigFileNotFoundError) as exc_info:
            ConfigFileService(path, allow("config")).get()
        assert str(exc_info.value) == f"File not found: {path}"

    def test_set_key(self, config_file: Path) -> None:
        """set updates one key and keeps a backup."""
        service = ConfigFileService(config_file, allow("config"))
        result = service.set("gateway.port", 9090)

        assert result == {"path": str(config_file), "key": "gateway.port", "value": 9090, "previous": 8080}
        values = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        assert values["gateway"] == {"port": 9090, "host": "localhost"}
        assert values["model"] == "sonnet"
        backup = config_file.with_name("config.yaml.bak")
        assert "port: 8080" in backup.read_text(encoding="utf-8")

    def test_set_creates_file(self, tmp_path: Path) -> None:
        """set creates a missing config file."""
        path = tmp_path / "new" / "config.yaml"
        ConfigFileService(path, allow("config")).set("skills.enabled", ["a", "b"])
        assert yaml.safe_load(path.read_text(encoding="utf-8")) == {"skills": {"enabled": ["a", "b"]}}

    def test_failed_write_keeps_original(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A write that fails before the rename leaves the old file and no temp files."""
        original = config_file.read_text(encoding="utf-8")

        def fail_replace(src: str, dst: Path) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("suibhne.services.openclaw.os.replace", fail_replace)

        with pytest.raises(BackendError, match="disk full"):
            ConfigFileService(config_file, allow("config")).set("gateway.port", 9090)

        assert config_file.read_text(encoding="utf-8") == original
        assert list(config_file.parent.glob(".config-*")) == []

    @pytest.mark.parametrize("key", ["", ".", "a..b", "a."])
    def test_set_invalid_key(self, config_file: Path, key: str) -> None:
        """Keys must be non-empty dotted paths."""
        with pytest.raises(InvalidArgumentError, match="Invalid argument: key"):
            ConfigFileService(config_file, allow("config")).set(key, 1)

    def test_denied(self, config_file: Path) -> None:
        """A denied gate blocks reads."""
        service = ConfigFileService(config_file, AccessGate.from_policy("config", AccessPolicy.DENY))
        with pytest.raises(PermissionDeniedError):
            service.get()


class TestSkillsService:
    """Tests for SkillsService."""

    def test_list_skills(self, tmp_path: Path) -> None:
        """Skill directories under every root are listed."""
        first = tmp_path / "one"
        second = tmp_path / "two"
        (first / "weather").mkdir(parents=True)
        (first / "Calendar").mkdir()
        (first / ".hidden").mkdir()
        (first / "README.md").write_text("not a skill", encoding="utf-8")
        (second / "notes").mkdir(parents=True)

        skills = SkillsService([first, second, tmp_path / "absent"], allow("skills")).list_skills()

        assert [s["name"] for s in skills] == ["Calendar", "weather", "notes"]
        assert skills[0]["path"] == str(first / "Calendar")

    def test_no_roots(self, tmp_path: Path) -> None:
        """Missing roots yield an empty list."""
        assert SkillsService([tmp_path / "absent"], allow("skills")).list_skills() == []
