"""Lecture et écriture des instantanés de configuration du médium.

Les instantanés sont de simples dictionnaires ; ce module ne fait que les
persister en YAML (``.yaml``/``.yml``) ou en JSON (``.json``).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Invalid configuration value, parameter, or snapshot."""


_YAML_SUFFIXES = {".yaml", ".yml"}
_JSON_SUFFIXES = {".json"}


def _suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in _YAML_SUFFIXES | _JSON_SUFFIXES:
        raise ConfigError(f"Unsupported snapshot format: {path.name}")
    return suffix


def load_snapshot(path: str | Path) -> Dict[str, Any]:
    """Charge un instantané depuis ``path``.

    Un fichier vide donne un dictionnaire vide ; un contenu qui n'est pas un
    mapping lève :class:`ConfigError`.
    """
    path = Path(path)
    suffix = _suffix(path)
    with path.open("r", encoding="utf-8") as handle:
        try:
            if suffix in _YAML_SUFFIXES:
                data = yaml.safe_load(handle)
            else:
                data = json.load(handle)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Snapshot {path} must contain a mapping")
    logger.debug(f"Loaded snapshot {path} ({len(data)} sections)")
    return data


def save_snapshot(path: str | Path, data: Dict[str, Any]) -> Path:
    """Écrit ``data`` dans ``path`` et retourne le chemin."""
    path = Path(path)
    suffix = _suffix(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        if suffix in _YAML_SUFFIXES:
            yaml.safe_dump(data, handle, sort_keys=False)
        else:
            json.dump(data, handle, indent=2)
    return path


__all__ = ["ConfigError", "load_snapshot", "save_snapshot"]
