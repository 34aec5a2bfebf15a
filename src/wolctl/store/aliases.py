"""YAML-backed alias store."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any, Optional

import yaml

from wolctl.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Alias:
    """A named machine: MAC address plus an optional broadcast interface."""

    name: str
    mac: str
    # Empty string means "let the OS pick the interface".
    iface: str = ""


def _alias_from_raw(name: Any, raw: Any) -> Alias:
    if not isinstance(name, str) or not name:
        raise StorageError(f"invalid alias name {name!r}")
    if not isinstance(raw, dict) or not raw.get("mac"):
        raise StorageError(f"alias '{name}': entry must be a mapping with a 'mac'")
    iface = raw.get("iface") or ""
    return Alias(name=name, mac=str(raw["mac"]), iface=str(iface))


def _alias_to_raw(alias: Alias) -> dict[str, str]:
    return {"mac": alias.mac, "iface": alias.iface}


class AliasStore:
    """
    Durable mapping from alias name to :class:`Alias`.

    The whole file is loaded on open and rewritten atomically after every
    change, so a crash never loses an acknowledged write or leaves a
    half-written file behind.

    Use it as a context manager, or call :meth:`close` exactly once when done.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._aliases: dict[str, Alias] = {}
        self._closed = False
        self._load()

    @classmethod
    def open(cls, path: Path) -> "AliasStore":
        return cls(path)

    def __enter__(self) -> "AliasStore":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()

    # ── Public operations ────────────────────────────────────────────────────

    def add(self, name: str, mac: str, iface: str = "") -> Alias:
        """
        Insert or overwrite the alias ``name``.

        Args:
            name: Alias name (case-sensitive, non-empty)
            mac: MAC address of the machine (non-empty, not validated)
            iface: Network interface to broadcast on ("" for the default)

        Returns:
            The stored Alias

        Raises:
            ValidationError: If name or mac is empty
            StorageError: If the file cannot be written
        """
        self._check_open()
        if not name:
            raise ValidationError("alias name must not be empty")
        if not mac:
            raise ValidationError(f"alias '{name}' requires a <mac>")

        alias = Alias(name=name, mac=mac, iface=iface or "")
        previous = self._aliases.get(name)
        self._aliases[name] = alias
        try:
            self._save()
        except StorageError:
            if previous is None:
                del self._aliases[name]
            else:
                self._aliases[name] = previous
            raise
        logger.debug("Stored alias %s → %s %s", name, mac, iface)
        return alias

    def get(self, name: str) -> Alias:
        """Return the alias named ``name`` or raise NotFoundError."""
        self._check_open()
        try:
            return self._aliases[name]
        except KeyError:
            raise NotFoundError(f"alias '{name}' not found") from None

    def list_aliases(self) -> dict[str, Alias]:
        """Return every alias keyed by name, sorted by name."""
        self._check_open()
        return {name: self._aliases[name] for name in sorted(self._aliases)}

    def delete(self, name: str) -> None:
        """
        Remove the alias ``name``.

        Raises:
            NotFoundError: If no such alias exists (the store is left untouched)
            StorageError: If the file cannot be written
        """
        self._check_open()
        if name not in self._aliases:
            raise NotFoundError(f"alias '{name}' not found")

        removed = self._aliases.pop(name)
        try:
            self._save()
        except StorageError:
            self._aliases[name] = removed
            raise
        logger.debug("Removed alias %s", name)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closed alias store %s", self.path)

    @property
    def closed(self) -> bool:
        return self._closed

    # ── File handling ────────────────────────────────────────────────────────

    def _check_open(self) -> None:
        if self._closed:
            raise StorageError(f"alias store {self.path} is closed")

    def _load(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not self.path.exists():
                logger.debug("No alias file at %s yet, starting empty", self.path)
                return
            with open(self.path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise StorageError(f"cannot read alias file {self.path}: {exc}") from exc

        if raw is None:
            return
        if not isinstance(raw, dict):
            raise StorageError(f"alias file {self.path} is corrupt: root must be a mapping")

        entries = raw.get("aliases") or {}
        if not isinstance(entries, dict):
            raise StorageError(f"alias file {self.path} is corrupt: 'aliases' must be a mapping")

        for name, entry in entries.items():
            alias = _alias_from_raw(name, entry)
            self._aliases[alias.name] = alias
        logger.debug("Loaded %d alias(es) from %s", len(self._aliases), self.path)

    def _save(self) -> None:
        data = {
            "aliases": {
                name: _alias_to_raw(self._aliases[name]) for name in sorted(self._aliases)
            }
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except (OSError, yaml.YAMLError) as exc:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"cannot write alias file {self.path}: {exc}") from exc
