"""Inclusion policy: merged configuration plus the path-level decisions built on it."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from code_cartographer.config import (
    CONFIG_FILE_NAME,
    CONFIG_LOCATIONS,
    IGNORE_FILE_NAME,
    CartographerConfig,
    DocumentationType,
    OutputFormat,
)
from code_cartographer.exceptions import ConfigFileError
from code_cartographer.ignore import load_ignore_file, never_ignored
from code_cartographer.logging import get_logger
from code_cartographer.matching import is_match

if TYPE_CHECKING:
    import structlog

    from code_cartographer.ignore import IgnorePredicate
    from code_cartographer.settings import Settings

logger = get_logger("policy")


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a configuration file (JSON, or YAML for ``.yaml``/``.yml``).

    Args:
        path (Path): the configuration file

    Raises:
        ConfigFileError: if the file cannot be read or does not hold a mapping.

    Returns:
        dict[str, Any]: the raw configuration mapping
    """
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigFileError(path=path, message=f"cannot parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigFileError(path=path, message=f"{path.name} must contain an object")
    return data


def settings_overlay(settings: Settings | None) -> dict[str, Any]:
    """Translate host settings into a partial configuration mapping."""
    if settings is None:
        return {}
    overlay: dict[str, Any] = {}
    documentation: dict[str, Any] = {}
    if settings.format:
        documentation["format"] = settings.format
    if settings.documentation_type:
        documentation["type"] = settings.documentation_type
    if documentation:
        overlay["documentation"] = documentation
    if settings.max_file_size is not None:
        overlay["maxFileSize"] = settings.max_file_size
    if settings.ignore_patterns:
        overlay["exclude"] = [*CartographerConfig().exclude, *settings.ignore_patterns]
    return overlay


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Shallow merge preferring ``override``; ``documentation`` is merged key by key."""
    merged = {**base, **override}
    docs = override.get("documentation")
    if isinstance(docs, dict):
        merged["documentation"] = {**base.get("documentation", {}), **docs}
    return merged


def layer_settings(
    settings: Settings | None,
    *,
    log: structlog.BoundLogger | None = None,
) -> tuple[dict[str, Any], CartographerConfig]:
    """Merge host settings over the built-in defaults.

    Settings that do not validate (an unknown format or documentation type)
    are logged and dropped; the defaults are used instead.

    Returns:
        tuple[dict[str, Any], CartographerConfig]: the raw layered mapping and
            its validated configuration
    """
    defaults = CartographerConfig().model_dump(by_alias=True, mode="json")
    layered = merge_config(defaults, settings_overlay(settings))
    try:
        return layered, CartographerConfig.model_validate(layered)
    except ValidationError as exc:
        (log or logger).error("settings_invalid", error=str(exc))
        return defaults, CartographerConfig()


def build_config(
    root: Path,
    settings: Settings | None = None,
    *,
    log: structlog.BoundLogger | None = None,
) -> CartographerConfig:
    """Merge defaults, host settings and the first usable project config file.

    Priority is ascending: built-in defaults, then settings, then the file.
    A file that cannot be parsed or validated is logged and skipped.

    Args:
        root (Path): the project root
        settings (Settings | None): host-environment settings
        log (structlog.BoundLogger | None): logger to report fallbacks to

    Returns:
        CartographerConfig: the merged configuration
    """
    log = log or logger
    layered, base = layer_settings(settings, log=log)

    if settings is not None and not settings.use_config_file:
        return base

    for location in CONFIG_LOCATIONS:
        path = root / location
        if not path.is_file():
            continue
        try:
            raw = read_config_file(path)
            config = CartographerConfig.model_validate(merge_config(layered, raw))
        except (ConfigFileError, ValidationError) as exc:
            log.error("config_file_invalid", path=str(path), error=str(exc))
            continue
        log.info("config_loaded", path=str(path))
        return config

    return base


class InclusionPolicy:
    """Answers, for every candidate path, whether and how it is documented.

    Exclusion (exclude globs and ignore-file rules) is evaluated first and
    always wins. Include globs come next, and override include lists are a
    fallback inclusion channel only.
    """

    def __init__(
        self,
        root: Path,
        config: CartographerConfig | None = None,
        *,
        ignore: IgnorePredicate | None = None,
        settings: Settings | None = None,
        log: structlog.BoundLogger | None = None,
    ) -> None:
        self.root = Path(os.path.abspath(root))
        self.settings = settings
        self.log = log or logger
        self._config = config or CartographerConfig()
        self._ignore = ignore or never_ignored

    @classmethod
    def load(
        cls,
        root: Path,
        settings: Settings | None = None,
        *,
        log: structlog.BoundLogger | None = None,
    ) -> InclusionPolicy:
        """Build the policy for ``root`` from settings, config files and ``.gitignore``."""
        root = Path(os.path.abspath(root))
        log = log or logger
        config = build_config(root, settings, log=log)
        ignore = load_ignore_file(root / IGNORE_FILE_NAME, log=log)
        return cls(root, config, ignore=ignore, settings=settings, log=log)

    @property
    def config(self) -> CartographerConfig:
        return self._config

    def relative(self, path: Path | str) -> str | None:
        """Return ``path`` relative to the root with POSIX separators, or None if outside."""
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            rel = Path(os.path.abspath(candidate)).relative_to(self.root).as_posix()
        except ValueError:
            return None
        return rel

    def is_excluded(self, path: Path | str, *, is_dir: bool = False) -> bool:
        """Check the exclusion phase alone.

        Directories are also tried with a trailing slash, so ``build/**``
        excludes ``build`` itself and the walker can prune it. The root
        ``.gitignore`` is never documented.

        Args:
            path (Path | str): absolute or root-relative path
            is_dir (bool): whether ``path`` is a directory

        Returns:
            bool: True if exclude globs or ignore rules match
        """
        rel = self.relative(path)
        if rel is None:
            return True
        if rel == ".":
            return False
        if rel == IGNORE_FILE_NAME:
            return True
        excludes = self._config.exclude
        if is_match(rel, excludes) or (is_dir and is_match(rel + "/", excludes)):
            return True
        return self._ignore(self.root / rel, is_dir=is_dir)

    def should_include(self, path: Path | str) -> bool:
        """Decide whether a file path belongs to the snapshot.

        Args:
            path (Path | str): absolute or root-relative path

        Returns:
            bool: False when excluded; otherwise True when an include glob or
                an override include glob matches
        """
        if self.is_excluded(path):
            return False
        rel = self.relative(path)
        if rel is None:
            return False
        if is_match(rel, self._config.include):
            return True
        return any(is_match(rel, rule.include) for rule in self._config.custom_files.values())

    def max_size_for(self, path: Path | str) -> int:
        """Effective size limit: first matching override defining one, else the global limit."""
        rel = self.relative(path)
        if rel is not None:
            for rule in self._config.custom_files.values():
                if rule.max_size is not None and is_match(rel, rule.include):
                    return rule.max_size
        return self._config.max_file_size

    def skip_binary(self) -> bool:
        return self._config.skip_binary_files

    def skip_generated(self) -> bool:
        return self._config.skip_generated_files

    def documentation_type(self) -> DocumentationType:
        return self._config.documentation.type

    def output_format(self) -> OutputFormat:
        return self._config.documentation.format

    def output_path(self) -> Path:
        """Configured output path; relative paths are resolved against the root."""
        configured = Path(self._config.documentation.output_path)
        if configured.is_absolute():
            return configured
        return Path(os.path.normpath(self.root / configured))

    def regenerate_defaults(self) -> CartographerConfig:
        """Replace the configuration wholesale with defaults merged with settings."""
        _, self._config = layer_settings(self.settings, log=self.log)
        self.log.info("config_regenerated", root=str(self.root))
        return self._config

    def save_config(self, path: Path | None = None) -> Path:
        """Write the current configuration as pretty-printed JSON.

        Args:
            path (Path | None): destination; defaults to ``<root>/cartographer.config.json``

        Returns:
            Path: the written file
        """
        target = path or self.root / CONFIG_FILE_NAME
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self._config.model_dump(by_alias=True, mode="json", exclude_none=True)
        target.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        self.log.info("config_saved", path=str(target))
        return target
