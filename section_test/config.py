"""Run configuration for section-test.

Values are resolved from, lowest priority first: built-in defaults, a YAML
config file, the environment, and CLI options.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .exceptions import ConfigurationError

DEFAULT_PRINT_LENGTH = 80
DEFAULT_TIMEOUT = 60.0
CONFIG_FILE_NAME = "section-test.yaml"
PRINT_LENGTH_ENV = "SECTION_TEST_PRINT_LENGTH"


@dataclass
class RunConfig:
    """Configuration consumed by the execution engine and reporter."""
    print_length: int = DEFAULT_PRINT_LENGTH
    debug: bool = False
    isolated: bool = False
    timeout: float = DEFAULT_TIMEOUT
    color: bool = True
    report_file: Optional[Path] = None
    json_output: bool = False

    def merged(self, **overrides: Any) -> "RunConfig":
        """Return a copy with every non-None override applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return RunConfig(**values)


@dataclass
class ValidationError:
    """A single config validation error."""
    path: str
    message: str


@dataclass
class ValidationResult:
    """Result of config validation."""
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    def __str__(self) -> str:
        if self.valid:
            return "Valid"
        return "; ".join(f"{e.path}: {e.message}" for e in self.errors)


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Look for ``section-test.yaml`` in ``start`` (default: cwd)."""
    candidate = Path(start or Path.cwd()) / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def parse_config_data(data: dict, source: str = "<inline>") -> RunConfig:
    """Build a RunConfig from an already-loaded mapping.

    Raises:
        ConfigurationError: If the mapping has unknown keys or invalid values.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config must be a YAML mapping, got {type(data).__name__} in {source}"
        )

    known = {f.name for f in fields(RunConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown config key(s) {', '.join(unknown)} in {source}"
        )

    values = dict(data)
    if values.get("report_file") is not None:
        values["report_file"] = Path(values["report_file"])
    config = RunConfig(**values)

    validation = validate_config(config)
    if not validation.valid:
        raise ConfigurationError(f"Invalid config in {source}: {validation}")
    return config


def load_config(
    file_path: Optional[Union[str, Path]] = None,
    environ: Optional[dict] = None,
) -> RunConfig:
    """Load the run configuration from a YAML file and the environment.

    Args:
        file_path: Explicit config file. None = look for ``section-test.yaml``
            in the working directory; a missing default file is not an error.
        environ: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigurationError: If an explicit file is missing or a value is invalid.
    """
    environ = os.environ if environ is None else environ

    if file_path is not None:
        file_path = Path(file_path)
        if not file_path.is_file():
            raise ConfigurationError(f"Config file not found: {file_path}")
    else:
        file_path = find_config_file()

    config = RunConfig()
    if file_path is not None:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is not None:
            config = parse_config_data(data, source=str(file_path))

    env_length = environ.get(PRINT_LENGTH_ENV)
    if env_length:
        try:
            config.print_length = int(env_length)
        except ValueError:
            raise ConfigurationError(
                f"{PRINT_LENGTH_ENV} must be an integer, got '{env_length}'"
            ) from None

    return config


def validate_config(config: RunConfig) -> ValidationResult:
    """Validate value ranges and types of a RunConfig."""
    errors: list[ValidationError] = []

    if not isinstance(config.print_length, int) or isinstance(config.print_length, bool):
        errors.append(ValidationError(
            path="print_length",
            message=f"Must be an integer, got {config.print_length!r}.",
        ))
    elif config.print_length <= 0:
        errors.append(ValidationError(
            path="print_length",
            message=f"Must be positive, got {config.print_length}.",
        ))

    if not isinstance(config.timeout, (int, float)) or config.timeout <= 0:
        errors.append(ValidationError(
            path="timeout",
            message=f"Must be a positive number of seconds, got {config.timeout!r}.",
        ))

    for name in ("debug", "isolated", "color", "json_output"):
        if not isinstance(getattr(config, name), bool):
            errors.append(ValidationError(
                path=name,
                message=f"Must be true or false, got {getattr(config, name)!r}.",
            ))

    return ValidationResult(valid=len(errors) == 0, errors=errors)
