"""
Parser configuration for OBOStream.

Provides:
- Combinable parse option flags
- A serializable parser configuration
- Loading configuration from JSON or YAML files
- Configuration validation
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import IntFlag
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from obostream.storage.progress import DEFAULT_PROGRESS_INTERVAL

logger = logging.getLogger(__name__)


class ParseOptions(IntFlag):
    """Parse option flags, combinable with ``|``."""
    NONE = 0
    DEFINITIONS = 1 << 0        # Keep def: texts
    XREFS = 1 << 1              # Keep xref: entries
    INTERSECTIONS = 1 << 2      # Keep intersection_of: entries
    NAME_FROM_ID = 1 << 3       # Use the id as name
    IGNORE_SYNONYMS = 1 << 4    # Drop synonym: entries

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "ParseOptions":
        """Build flags from names such as ``["definitions", "xrefs"]``."""
        options = cls.NONE
        for name in names:
            key = name.strip().upper().replace("-", "_")
            try:
                options |= cls[key]
            except KeyError:
                raise ConfigValidationError(f"Unknown parse option: {name}") from None
        return options

    def to_names(self) -> List[str]:
        return [flag.name.lower() for flag in ParseOptions if flag and flag in self]


class ConfigValidationError(Exception):
    """Configuration validation error."""
    pass


@dataclass
class ParserConfig:
    """
    Complete configuration for a parse run.

    ``filename_label`` overrides the file name shown in diagnostics.
    """
    options: ParseOptions = ParseOptions.NONE
    progress_interval_seconds: float = DEFAULT_PROGRESS_INTERVAL
    filename_label: Optional[str] = None

    def __post_init__(self):
        self.options = ParseOptions(int(self.options))

    @property
    def keep_definitions(self) -> bool:
        return bool(self.options & ParseOptions.DEFINITIONS)

    @property
    def keep_xrefs(self) -> bool:
        return bool(self.options & ParseOptions.XREFS)

    @property
    def keep_intersections(self) -> bool:
        return bool(self.options & ParseOptions.INTERSECTIONS)

    @property
    def name_from_id(self) -> bool:
        return bool(self.options & ParseOptions.NAME_FROM_ID)

    @property
    def ignore_synonyms(self) -> bool:
        return bool(self.options & ParseOptions.IGNORE_SYNONYMS)

    def validate(self) -> None:
        """Raise ConfigValidationError on invalid settings."""
        if self.progress_interval_seconds < 0:
            raise ConfigValidationError("progress_interval_seconds must be >= 0")
        if int(self.options) & ~int(_ALL_OPTIONS):
            raise ConfigValidationError(f"Unknown option bits: {int(self.options)}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "options": self.options.to_names(),
            "progress_interval_seconds": self.progress_interval_seconds,
            "filename_label": self.filename_label
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        raw_options = data.get("options", 0)
        if isinstance(raw_options, int):
            options = ParseOptions(raw_options)
        elif isinstance(raw_options, str):
            options = ParseOptions.from_names(raw_options.split(","))
        else:
            options = ParseOptions.from_names(raw_options)

        config = cls(
            options=options,
            progress_interval_seconds=float(
                data.get("progress_interval_seconds", DEFAULT_PROGRESS_INTERVAL)
            ),
            filename_label=data.get("filename_label")
        )
        config.validate()
        return config

    @classmethod
    def from_options(cls, options: Union[int, ParseOptions, "ParserConfig", None]) -> "ParserConfig":
        """Normalize the ``options`` argument accepted by the parser."""
        if isinstance(options, ParserConfig):
            return options
        return cls(options=ParseOptions(int(options or 0)))


_ALL_OPTIONS = ParseOptions(0)
for _flag in ParseOptions:
    _ALL_OPTIONS |= _flag


def load_config(path: Union[str, Path]) -> ParserConfig:
    """
    Load a ParserConfig from a JSON or YAML file.

    The format is chosen by suffix: ``.json`` is read as JSON, anything
    else as YAML (a superset of JSON).
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigValidationError(f"{path}: expected a mapping, got {type(data).__name__}")

    # Allow the settings to live under a "parser" section
    if isinstance(data.get("parser"), dict):
        data = data["parser"]

    config = ParserConfig.from_dict(data)
    logger.debug(f"Loaded parser config from {path}: {config.to_dict()}")
    return config
