"""Configuration management for cargoscript."""

from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, ClassVar

from cargoscript.config.file_ops import write_text_file
from cargoscript.config.paths import default_config_path
from cargoscript.platform.logging import DEFAULT_LOG_FILE, logger


def _path_field(default: Path | None = None) -> Any:
    """Create a field for Path objects with proper conversion.

    Args:
        default: Default value for the field.

    Returns:
        Field with proper metadata for path handling.
    """
    return field(default=default, metadata={"path": True})


@dataclass
class Config:
    """Application configuration."""

    # External toolchain commands
    cargo: str = "cargo"
    rustc: str = "rustc"

    # Build defaults for synthesized packages
    default_profile: str = "release"
    edition: str = "2021"

    # Seconds to wait for another process's build lock before giving up
    lock_timeout: float = 600.0

    # Entries unused for longer than this are removed by ``clear-cache``
    max_cache_age_days: int = 7

    # Cache root override (platform cache directory when unset)
    cache_dir: Path | None = _path_field()

    # Log file path
    log_file: Path | None = _path_field()

    _instance: ClassVar["Config | None"] = None
    _loaded_from: ClassVar[Path | None] = None

    def __post_init__(self) -> None:
        """Convert string paths to ``Path`` objects using field metadata."""
        for f in fields(self):
            if not f.metadata.get("path", False):
                continue
            value = getattr(self, f.name)
            if isinstance(value, str):
                setattr(self, f.name, Path(value).expanduser() if value.strip() else None)

    def save(self, target: Path | None = None) -> Path:
        """Save configuration to file.

        Args:
            target: Destination file. Defaults to ``default_config_path()``.

        Returns:
            Path: The file that was written.
        """
        config_dict = asdict(self)

        for key, value in config_dict.items():
            if isinstance(value, Path):
                config_dict[key] = str(value)

        destination = target or default_config_path()
        try:
            write_text_file(destination, self._render_toml(config_dict))
        except OSError as e:
            logger.error("Failed to save configuration: %s", e)
            raise
        logger.info("Configuration saved to %s", destination)
        return destination

    def _render_toml(self, config: dict[str, Any]) -> str:
        """Render configuration as TOML with inline guidance."""

        lines: list[str] = []

        lines.append("# cargoscript configuration file")
        lines.append("")

        lines.append("# Commands used to build scripts and identify the toolchain")
        lines.append(f"cargo = {self._format_toml_value(config['cargo'])}")
        lines.append(f"rustc = {self._format_toml_value(config['rustc'])}")
        lines.append("")

        lines.append('# Build profile used when neither the script nor the command line picks one')
        lines.append('# One of "debug" or "release"')
        lines.append(f"default_profile = {self._format_toml_value(config['default_profile'])}")
        lines.append("")

        lines.append("# Rust edition written into synthesized packages")
        lines.append(f"edition = {self._format_toml_value(config['edition'])}")
        lines.append("")

        lines.append("# Seconds to wait for a concurrent build of the same script")
        lines.append(f"lock_timeout = {self._format_toml_value(config['lock_timeout'])}")
        lines.append("")

        lines.append("# Days an unused cache entry survives `cargoscript clear-cache`")
        lines.append(
            f"max_cache_age_days = {self._format_toml_value(config['max_cache_age_days'])}"
        )
        lines.append("")

        lines.append("# Cache directory (optional)")
        lines.append('# Example: cache_dir = "/tmp/cargoscript-cache"')
        if config["cache_dir"] is not None:
            lines.append(f"cache_dir = {self._format_toml_value(config['cache_dir'])}")
        lines.append("")

        lines.append("# Log file path (optional)")
        lines.append(f"# Example: log_file = {self._format_toml_value(DEFAULT_LOG_FILE)}")
        if config["log_file"] is not None:
            lines.append(f"log_file = {self._format_toml_value(config['log_file'])}")
        lines.append("")

        return "\n".join(lines)

    def _format_toml_value(self, value: Any) -> str:
        """Format a value for TOML serialization.

        Args:
            value: Value to format

        Returns:
            str: Formatted value
        """
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (str, Path)):
            escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return str(value)

    @classmethod
    def load(cls, config_file: Path | None = None) -> "Config":
        """Load configuration from file.

        Args:
            config_file: Explicit file to read. Defaults to ``default_config_path()``.

        Returns:
            Config: Loaded configuration object, or defaults when no file exists.
        """
        if cls._instance is not None and (config_file is None or config_file == cls._loaded_from):
            return cls._instance

        source = config_file or default_config_path()

        if not source.exists():
            logger.debug("No configuration file at %s; using defaults", source)
            instance = cls()
        else:
            try:
                with open(source, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.error("Failed to load configuration from %s: %s", source, e)
                raise

            known = {f.name for f in fields(cls)}
            unknown = sorted(set(config_dict) - known)
            for key in unknown:
                logger.warning("Ignoring unknown configuration key '%s' in %s", key, source)
                del config_dict[key]

            logger.debug("Configuration loaded from %s", source)
            instance = cls(**config_dict)

        cls._instance = instance
        cls._loaded_from = source
        return instance

    @classmethod
    def reset(cls) -> None:
        """Forget the cached instance so the next ``load`` re-reads the file."""
        cls._instance = None
        cls._loaded_from = None


__all__ = ["Config"]
