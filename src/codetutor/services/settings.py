"""Settings dataclass and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from ..analysis.fallback import DEFAULT_BOILERPLATE_PATTERNS
from ..analysis.line_matcher import DEFAULT_PREFIX_LENGTH
from ..analysis.models import ProficiencyLevel
from ..editor.block_locator import DEFAULT_SCAN_LIMIT

__all__ = ["Settings", "SettingsStore"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".codetutor"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "CODETUTOR_PROFICIENCY_LEVEL": "proficiency_level",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "CODETUTOR_ENABLED": "enabled",
    "CODETUTOR_AUTO_ANALYZE_ON_SAVE": "auto_analyze_on_save",
    "CODETUTOR_SHOW_INLINE_DECORATIONS": "show_inline_decorations",
    "CODETUTOR_DEBUG_LOGGING": "debug_logging",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "CODETUTOR_MATCH_PREFIX_LENGTH": "match_prefix_length",
    "CODETUTOR_BLOCK_SCAN_LIMIT": "block_scan_limit",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    proficiency_level: str = ProficiencyLevel.MEDIUM.value
    enabled: bool = True
    auto_analyze_on_save: bool = False
    show_inline_decorations: bool = True
    match_prefix_length: int = DEFAULT_PREFIX_LENGTH
    block_scan_limit: int = DEFAULT_SCAN_LIMIT
    boilerplate_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_BOILERPLATE_PATTERNS))
    debug_logging: bool = False

    @property
    def level(self) -> ProficiencyLevel:
        return ProficiencyLevel.parse(self.proficiency_level)


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying runtime/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = Settings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()
            LOGGER.debug("Settings loaded from %s: %s", self._path, sorted(data))

        if bool(payload) and payload.get("version") != _SETTINGS_VERSION:
            try:
                self.save(settings)
            except OSError as exc:  # pragma: no cover - depends on filesystem
                LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="runtime")

        settings = self._apply_env_overrides(settings)
        return _normalize(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = self._serialize(settings)
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _serialize(self, settings: Settings) -> Dict[str, Any]:
        data = asdict(settings)
        data["version"] = _SETTINGS_VERSION
        return data

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            payload = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain a JSON object", self._path)
            return {}
        return payload

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {field.name for field in fields(Settings)}
        filtered: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in allowed or value is None:
                continue
            filtered[key] = value
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)}
    result: Dict[str, Any] = {}
    for key, value in payload.items():
        if key not in allowed:
            continue
        result[key] = value
    return result


def _normalize(settings: Settings) -> Settings:
    updates: Dict[str, Any] = {}
    try:
        level = ProficiencyLevel.parse(settings.proficiency_level).value
    except ValueError as exc:
        LOGGER.warning("%s; falling back to %s", exc, ProficiencyLevel.MEDIUM.value)
        level = ProficiencyLevel.MEDIUM.value
    if level != settings.proficiency_level:
        updates["proficiency_level"] = level
    if settings.match_prefix_length < 1:
        updates["match_prefix_length"] = DEFAULT_PREFIX_LENGTH
    if settings.block_scan_limit < 0:
        updates["block_scan_limit"] = DEFAULT_SCAN_LIMIT
    if not isinstance(settings.boilerplate_patterns, list):
        updates["boilerplate_patterns"] = list(DEFAULT_BOILERPLATE_PATTERNS)
    if updates:
        settings = replace(settings, **updates)
    return settings
