"""YAML loader and validation for supervisor configuration files."""
from __future__ import annotations

import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml
from jsonschema import Draft7Validator

from pagetest.supervisor.sources import DEFAULT_TIMEOUT_S

REPORT_FORMATS = ("terminal", "json")


class ConfigError(ValueError):
    """Raised when a configuration file or option set is invalid."""


@dataclass(frozen=True)
class TargetConfig:
    page: Optional[Path] = None
    url: Optional[str] = None
    command: Tuple[str, ...] = ()

    @property
    def kind(self) -> str:
        if self.command:
            return "command"
        if self.url:
            return "url"
        return "page"


@dataclass(frozen=True)
class ReportConfig:
    format: str = "terminal"
    path: Optional[Path] = None


@dataclass(frozen=True)
class SupervisorConfig:
    target: TargetConfig
    root: Path
    base_dir: Path
    timeout: float = DEFAULT_TIMEOUT_S
    headless: bool = True
    wait_for_completion: bool = True
    env: Mapping[str, str] = field(default_factory=dict)
    report: ReportConfig = field(default_factory=ReportConfig)
    junit: Optional[Path] = None


@dataclass(frozen=True)
class SuperviseOptions:
    """Command-line overrides; ``None`` keeps the configured value."""

    page: Optional[str] = None
    url: Optional[str] = None
    command: Tuple[str, ...] = ()
    root: Optional[str] = None
    timeout: Optional[float] = None
    headed: bool = False
    no_wait: bool = False
    report_format: Optional[str] = None
    report_path: Optional[str] = None
    junit: Optional[str] = None


def load_config(path: str) -> SupervisorConfig:
    """Load and validate a configuration file."""

    config_path = Path(path).expanduser().resolve()
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError("Config file must contain a mapping at the top level")
    errors = sorted(_validator.iter_errors(raw), key=lambda e: [str(part) for part in e.path])
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise ConfigError(f"Config schema validation failed: {messages}")
    base = config_path.parent
    report_raw = raw.get("report") or {}
    report_path = report_raw.get("path")
    junit = raw.get("junit")
    return SupervisorConfig(
        target=_parse_target(raw["target"], base),
        root=_resolve(base, raw.get("root", ".")),
        base_dir=base,
        timeout=float(raw.get("timeout", DEFAULT_TIMEOUT_S)),
        headless=bool(raw.get("headless", True)),
        wait_for_completion=bool(raw.get("wait_for_completion", True)),
        env={str(key): str(value) for key, value in (raw.get("env") or {}).items()},
        report=ReportConfig(
            format=str(report_raw.get("format", "terminal")),
            path=_resolve(base, report_path) if report_path else None,
        ),
        junit=_resolve(base, junit) if junit else None,
    )


def resolve_config(config: Optional[SupervisorConfig], options: SuperviseOptions) -> SupervisorConfig:
    """Apply command-line overrides on top of an optional configuration file."""

    cwd = Path.cwd()
    targets = [bool(options.page), bool(options.url), bool(options.command)]
    if sum(targets) > 1:
        raise ConfigError("Choose only one of --page, --url or --command")
    if config is None:
        if not any(targets):
            raise ConfigError("No target given: pass --config, --page, --url or --command")
        config = SupervisorConfig(target=TargetConfig(), root=cwd, base_dir=cwd)
    if any(targets):
        target = TargetConfig(
            page=_resolve(cwd, options.page) if options.page else None,
            url=options.url,
            command=tuple(options.command),
        )
        config = replace(config, target=target)
    if options.root:
        config = replace(config, root=_resolve(cwd, options.root))
    elif config.target.page is not None and config.target.page.parent != config.root:
        if not _is_relative_to(config.target.page, config.root):
            config = replace(config, root=config.target.page.parent)
    if options.timeout is not None:
        if options.timeout <= 0:
            raise ConfigError("timeout must be positive")
        config = replace(config, timeout=float(options.timeout))
    if options.headed:
        config = replace(config, headless=False)
    if options.no_wait:
        config = replace(config, wait_for_completion=False)
    if options.report_format or options.report_path:
        report = ReportConfig(
            format=options.report_format or config.report.format,
            path=_resolve(cwd, options.report_path) if options.report_path else config.report.path,
        )
        config = replace(config, report=report)
    if options.junit:
        config = replace(config, junit=_resolve(cwd, options.junit))
    if config.report.format not in REPORT_FORMATS:
        raise ConfigError(f"report format must be one of {', '.join(REPORT_FORMATS)}")
    return config


def _parse_target(raw: Mapping[str, Any], base: Path) -> TargetConfig:
    if "command" in raw:
        return TargetConfig(command=_normalize_command(raw["command"]))
    if "url" in raw:
        return TargetConfig(url=str(raw["url"]).strip())
    return TargetConfig(page=_resolve(base, raw["page"]))


def _normalize_command(raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, str):
        parts = tuple(shlex.split(raw))
    else:
        parts = tuple(str(part) for part in raw)
    if not parts:
        raise ConfigError("target.command cannot be empty")
    return parts


def _resolve(base: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _is_relative_to(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


CONFIG_SCHEMA = {
    "type": "object",
    "required": ["target"],
    "additionalProperties": False,
    "properties": {
        "target": {
            "type": "object",
            "additionalProperties": False,
            "minProperties": 1,
            "maxProperties": 1,
            "properties": {
                "page": {"type": "string", "minLength": 1},
                "url": {"type": "string", "pattern": "^https?://"},
                "command": {
                    "oneOf": [
                        {"type": "string", "minLength": 1},
                        {"type": "array", "minItems": 1, "items": {"type": ["string", "number"]}},
                    ]
                },
            },
        },
        "root": {"type": "string"},
        "timeout": {"type": "number", "exclusiveMinimum": 0},
        "headless": {"type": "boolean"},
        "wait_for_completion": {"type": "boolean"},
        "env": {"type": "object", "additionalProperties": {"type": ["string", "number", "boolean"]}},
        "report": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "format": {"enum": list(REPORT_FORMATS)},
                "path": {"type": "string"},
            },
        },
        "junit": {"type": "string"},
    },
}
_validator = Draft7Validator(CONFIG_SCHEMA)
