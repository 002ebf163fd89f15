"""OpenClaw configuration and skills backends."""

import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any

import yaml

from suibhne.exceptions import BackendError, ConfigFileNotFoundError, InvalidArgumentError
from suibhne.services.authorization import AccessGate

logger = logging.getLogger(__name__)


def get_nested_value(d: dict[str, Any], key: str) -> Any:
    """Get a nested value from a dictionary using dot notation.

    Args:
        d: The dictionary to search.
        key: Dot-separated key path, e.g. "gateway.port".

    Returns:
        The value if found, None otherwise.
    """
    current: Any = d
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def set_nested_value(d: dict[str, Any], key: str, value: Any) -> None:
    """Set a nested value in a dictionary using dot notation.

    Intermediate mappings are created; a non-mapping in the way is replaced.
    """
    parts = key.split(".")
    current = d
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


class ConfigFileService:
    """Read and edit the OpenClaw YAML config file."""

    def __init__(self, path: Path, gate: AccessGate) -> None:
        self.path = path
        self.gate = gate
        self._lock = threading.Lock()

    def _read(self) -> tuple[str, dict[str, Any]]:
        if not self.path.exists():
            raise ConfigFileNotFoundError(str(self.path))
        try:
            content = self.path.read_text(encoding="utf-8")
            values = yaml.safe_load(content) or {}
        except (OSError, yaml.YAMLError) as e:
            raise BackendError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(values, dict):
            raise BackendError(f"Config {self.path} is not a mapping")
        return content, values

    def get(self, key: str | None = None) -> dict[str, Any]:
        """Get the whole config file or one dotted key.

        Returns:
            ``{path, content, values}`` for the whole file, or
            ``{path, key, value}`` for a single key (value None if unset).

        Raises:
            ConfigFileNotFoundError: If the config file does not exist.
        """
        self.gate.ensure_authorized()

        with self._lock:
            content, values = self._read()

        if key:
            return {"path": str(self.path), "key": key, "value": get_nested_value(values, key)}
        return {"path": str(self.path), "content": content, "values": values}

    def set(self, key: str, value: Any) -> dict[str, Any]:
        """Set one dotted key, keeping a ``.bak`` copy of the previous file.

        A missing config file is created.

        Returns:
            ``{path, key, value, previous}``.
        """
        self.gate.ensure_authorized()

        if not key.strip() or any(not part for part in key.split(".")):
            raise InvalidArgumentError("key", "must be a dot-separated path")

        with self._lock:
            if self.path.exists():
                _, values = self._read()
            else:
                values = {}

            previous = get_nested_value(values, key)
            set_nested_value(values, key, value)

            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                if self.path.exists():
                    shutil.copy2(self.path, self.path.with_name(self.path.name + ".bak"))
                fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".config-")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        yaml.safe_dump(values, f, sort_keys=False, allow_unicode=True)
                    os.replace(tmp_name, self.path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as e:
                raise BackendError(f"Failed to write {self.path}: {e}") from e

        logger.info("Set config key %s in %s", key, self.path)
        return {"path": str(self.path), "key": key, "value": value, "previous": previous}


class SkillsService:
    """Discover installed skills."""

    def __init__(self, roots: list[Path], gate: AccessGate) -> None:
        self.roots = roots
        self.gate = gate

    def list_skills(self) -> list[dict[str, str]]:
        """List skill directories under every configured root.

        Missing roots are skipped, as are hidden entries.
        """
        self.gate.ensure_authorized()

        skills: list[dict[str, str]] = []
        for root in self.roots:
            if not root.is_dir():
                logger.debug("Skills root does not exist: %s", root)
                continue
            try:
                entries = sorted(root.iterdir(), key=lambda p: p.name.lower())
            except OSError as e:
                raise BackendError(f"Failed to list {root}: {e}") from e
            for entry in entries:
                if entry.name.startswith(".") or not entry.is_dir():
                    continue
                skills.append({"name": entry.name, "path": str(entry)})

        return skills
