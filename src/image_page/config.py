"""Load configuration from a YAML file, with environment overrides."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from image_page.navigate import IMAGE_EXTENSIONS
from image_page.output import DEFAULT_ICON_DIR, DEFAULT_STYLESHEET
from image_page.trace import TraceConfig, parse_level

CONFIG_NAME = "image-page.yaml"
PREFIX_ENV = "PREFIX"


@dataclass
class PageConfig:
    """Settings for serving pages."""

    prefix: str = ""
    stylesheet: str = DEFAULT_STYLESHEET
    icon_dir: str = DEFAULT_ICON_DIR
    extensions: frozenset[str] = IMAGE_EXTENSIONS
    trace: TraceConfig = field(default_factory=TraceConfig)
    loaded_from: Path | None = None


def _find_project_root() -> Path:
    """Find project root by looking for pyproject.toml, walking up from cwd."""
    cwd = Path.cwd()
    current = cwd
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return cwd


def _config_paths(override: Path | None) -> list[Path]:
    """Return search order for config file."""
    if override is not None:
        return [override]
    project_root = _find_project_root()
    return [
        project_root / "conf" / CONFIG_NAME,
        Path.home() / ".config" / "image-page" / CONFIG_NAME,
    ]


def _parse_extensions(raw: object, path: Path) -> frozenset[str]:
    """Validate the extensions list. Each entry must start with '.'."""
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"Invalid {path}: extensions must be a non-empty list.")
    extensions = set()
    for idx, ext in enumerate(raw):
        if not isinstance(ext, str) or not ext.startswith(".") or len(ext) < 2:
            raise ValueError(
                f"Invalid {path}: extensions[{idx}] must be a string like '.jpg'. Got {ext!r}."
            )
        extensions.add(ext.lower())
    return frozenset(extensions)


def _parse_levels(raw: object, name: str, path: Path) -> dict[str, int]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid {path}: debug.{name} must be a mapping of name to level.")
    try:
        return {str(k): parse_level(v) for k, v in raw.items()}
    except ValueError as e:
        raise ValueError(f"Invalid {path}: debug.{name}: {e}") from e


def _parse_trace(raw: object, path: Path) -> TraceConfig:
    """Build a TraceConfig from the debug section. Relative paths are kept as given."""
    if raw is None:
        return TraceConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid {path}: debug must be a mapping.")
    defaults = TraceConfig()
    try:
        return TraceConfig(
            level=parse_level(raw.get("level", defaults.level)),
            default_package_level=parse_level(
                raw.get("default_package_level", defaults.default_package_level)
            ),
            default_function_level=parse_level(
                raw.get("default_function_level", defaults.default_function_level)
            ),
            package_levels=_parse_levels(raw.get("package_levels"), "package_levels", path),
            function_levels=_parse_levels(raw.get("function_levels"), "function_levels", path),
            dump_dir=Path(str(raw.get("dump_dir", defaults.dump_dir))),
            log_file=Path(str(raw.get("log_file", defaults.log_file))),
        )
    except ValueError as e:
        if str(path) in str(e):
            raise
        raise ValueError(f"Invalid {path}: debug: {e}") from e


def _parse_config(data: dict, path: Path) -> PageConfig:
    for key in ("prefix", "stylesheet", "icon_dir"):
        if key in data and not isinstance(data[key], str):
            raise ValueError(
                f"Invalid {path}: {key} must be a string. Got {type(data[key]).__name__}."
            )
    extensions = IMAGE_EXTENSIONS
    if "extensions" in data:
        extensions = _parse_extensions(data["extensions"], path)
    return PageConfig(
        prefix=data.get("prefix", ""),
        stylesheet=data.get("stylesheet", DEFAULT_STYLESHEET),
        icon_dir=data.get("icon_dir", DEFAULT_ICON_DIR),
        extensions=extensions,
        trace=_parse_trace(data.get("debug"), path),
        loaded_from=path,
    )


def load_config(config_path: Path | None = None, environ: dict[str, str] | None = None) -> PageConfig:
    """Load config from YAML, falling back to defaults when no file exists.

    The ``PREFIX`` environment variable, when set, overrides the file's prefix.

    Raises:
        FileNotFoundError: When config_path is given explicitly and does not exist.
        ValueError: When the file contains invalid YAML or invalid values.
    """
    env = os.environ if environ is None else environ
    config = None
    for path in _config_paths(config_path):
        if path.exists():
            with path.open() as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as exc:
                    raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise ValueError(f"Invalid {path}: file must contain a YAML mapping.")
            config = _parse_config(data, path)
            break

    if config is None:
        if config_path is not None:
            raise FileNotFoundError(f"Config not found: {config_path}")
        config = PageConfig()

    if PREFIX_ENV in env:
        config.prefix = env[PREFIX_ENV]
    return config
