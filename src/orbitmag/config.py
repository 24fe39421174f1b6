from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from orbitmag.exceptions import ConfigurationError
from orbitmag.utils.time import EPOCH_RESOLUTION_S, parse_epoch
from orbitmag.utils.validation import validate_dict_keys, validate_range, validate_type

FIELD_MODELS = ('dipole', 'igrf')
FIELD_EPOCH_POLICIES = ('start', 'per_sample')


def _home() -> str:
    return str(Path.home())


@dataclass(frozen=True)
class InputConfig:
    # Satellite designator: catalog number with classification, number or name
    satellite: str = "39412U"
    tle_dir: str = field(default_factory=_home)
    tle_file: str = "ardusat.tle"
    # Inline element set, takes precedence over the file when given
    tle: Optional[Tuple[str, ...]] = None

    @property
    def tle_path(self) -> Path:
        return Path(self.tle_dir).expanduser() / self.tle_file


@dataclass(frozen=True)
class RunConfig:
    duration_s: float = 6000.0
    timestep_s: float = 20.0
    # None means the selected element set's own epoch
    start: Optional[datetime] = None
    skip_bad_samples: bool = False


@dataclass(frozen=True)
class GeomagConfig:
    model: str = 'dipole'  # or 'igrf'
    epoch: str = 'start'  # or 'per_sample'
    max_altitude_km: float = 600.0  # validity bound of the field models


@dataclass(frozen=True)
class OutputConfig:
    dir: str = field(default_factory=_home)
    file: str = "ardusat_geomagnetic_field.dat"
    # Reproduce the historical table that printed Y in the Z column
    legacy_z_column: bool = False

    @property
    def path(self) -> Path:
        return Path(self.dir).expanduser() / self.file


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass(frozen=True)
class Config:
    """Main configuration class."""
    input: InputConfig = field(default_factory=InputConfig)
    run: RunConfig = field(default_factory=RunConfig)
    geomag: GeomagConfig = field(default_factory=GeomagConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# YAML key -> dataclass attribute, per section
_SECTION_KEYS = {
    'input': {'satellite': 'satellite', 'tle_dir': 'tle_dir', 'dir': 'tle_dir',
              'tle_file': 'tle_file', 'file': 'tle_file', 'tle': 'tle'},
    'run': {'duration': 'duration_s', 'timestep': 'timestep_s', 'start': 'start',
            'skip_bad_samples': 'skip_bad_samples'},
    'geomag': {'model': 'model', 'epoch': 'epoch', 'max_altitude_km': 'max_altitude_km'},
    'output': {'dir': 'dir', 'file': 'file', 'legacy_z_column': 'legacy_z_column'},
    'logging': {'level': 'level', 'file': 'file'},
}
_TOP_LEVEL_SHORTCUTS = {'duration': 'run', 'timestep': 'run', 'start': 'run'}

_SECTION_TYPES = {
    'input': InputConfig,
    'run': RunConfig,
    'geomag': GeomagConfig,
    'output': OutputConfig,
    'logging': LoggingConfig,
}


def _coerce(section: str, name: str, value: Any, errors: List[str]) -> Any:
    """Convert a raw YAML value to the attribute's type, recording failures."""
    key = f"{section}.{name}"
    if value is None:
        return None
    try:
        if name in ('duration_s', 'timestep_s', 'max_altitude_km'):
            if validate_type(value, bool):
                raise TypeError("booleans are not numbers")
            return float(value)
        if name == 'start':
            return parse_epoch(value)
        if name in ('skip_bad_samples', 'legacy_z_column'):
            if not validate_type(value, bool):
                raise TypeError("expected true or false")
            return value
        if name == 'tle':
            if validate_type(value, str):
                value = value.splitlines()
            lines = tuple(str(line).rstrip() for line in value if str(line).strip())
            return lines
        if name in ('tle_dir', 'dir'):
            return str(Path(str(value)).expanduser())
        return str(value)
    except (TypeError, ValueError) as e:
        errors.append(f"Invalid value for {key}: {value!r} ({e})")
        return None


def config_from_dict(data: Optional[Dict[str, Any]]) -> Config:
    """Build and validate a configuration from nested mappings."""
    data = dict(data or {})
    errors: List[str] = []

    allowed = list(_SECTION_KEYS) + list(_TOP_LEVEL_SHORTCUTS)
    for key in validate_dict_keys(data, allowed):
        errors.append(f"Unknown configuration key: {key}")

    sections: Dict[str, Dict[str, Any]] = {name: {} for name in _SECTION_KEYS}
    for name, keys in _SECTION_KEYS.items():
        raw = data.get(name) or {}
        if not validate_type(raw, dict):
            errors.append(f"Configuration section '{name}' must be a mapping")
            continue
        for key in validate_dict_keys(raw, list(keys)):
            errors.append(f"Unknown configuration key: {name}.{key}")
        for key, value in raw.items():
            if key in keys:
                attr = keys[key]
                coerced = _coerce(name, attr, value, errors)
                if coerced is not None:
                    sections[name][attr] = coerced

    for key, section in _TOP_LEVEL_SHORTCUTS.items():
        if key in data:
            attr = _SECTION_KEYS[section][key]
            coerced = _coerce(section, attr, data[key], errors)
            if coerced is not None:
                sections[section][attr] = coerced

    if errors:
        raise ConfigurationError("Configuration validation failed:", errors)

    config = Config(**{name: _SECTION_TYPES[name](**values)
                       for name, values in sections.items()})
    _raise_on_errors(config)
    return config


def validate_config(config: Config) -> List[str]:
    """
    Validate configuration values.
    Returns list of validation errors, empty if valid.
    """
    errors = []

    # Run window
    if not validate_range(config.run.duration_s, min_val=0.0):
        errors.append("Duration must be a non-negative number of seconds")
    if not validate_range(config.run.timestep_s, min_val=0.0, inclusive=False):
        errors.append("Timestep must be a positive number of seconds")
    elif config.run.timestep_s < EPOCH_RESOLUTION_S:
        errors.append(f"Timestep must be at least {EPOCH_RESOLUTION_S} s")
    if 0 < config.run.duration_s < EPOCH_RESOLUTION_S:
        errors.append(f"Duration must be zero or at least {EPOCH_RESOLUTION_S} s")

    # Element set
    if config.input.tle is not None and len(config.input.tle) < 2:
        errors.append("Inline element set needs two lines")
    if config.input.tle is None and not config.input.tle_file:
        errors.append("An element set file or inline element set is required")

    # Field model
    if config.geomag.model not in FIELD_MODELS:
        errors.append(f"Field model must be one of {', '.join(FIELD_MODELS)}")
    if config.geomag.epoch not in FIELD_EPOCH_POLICIES:
        errors.append(f"Field epoch must be one of {', '.join(FIELD_EPOCH_POLICIES)}")
    if not validate_range(config.geomag.max_altitude_km, min_val=0.0, inclusive=False):
        errors.append("Maximum field model altitude must be positive")

    # Output
    if not config.output.file:
        errors.append("Output file name cannot be empty")

    return errors


def _raise_on_errors(config: Config) -> None:
    errors = validate_config(config)
    if errors:
        raise ConfigurationError("Configuration validation failed:", errors)


def load_config(config_file: Optional[str] = None) -> Config:
    """Load and validate configuration from a YAML file."""
    if config_file is None:
        config = Config()
        _raise_on_errors(config)
        return config

    path = Path(config_file).expanduser()
    try:
        with open(path, 'r', encoding='utf-8') as fh:
            data = yaml.safe_load(fh)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed configuration file {path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return config_from_dict(data)


def with_overrides(config: Config, **overrides: Any) -> Config:
    """
    Return a copy of config with command line overrides applied.

    Keys are '<section>_<attribute>' names, e.g. run_timestep_s; None values
    are ignored.
    """
    sections = {name: getattr(config, name) for name in _SECTION_TYPES}
    for key, value in overrides.items():
        if value is None:
            continue
        section, _, attr = key.partition('_')
        if section not in sections or not hasattr(sections[section], attr):
            raise ConfigurationError(f"Unknown configuration override: {key}")
        sections[section] = replace(sections[section], **{attr: value})

    updated = Config(**sections)
    _raise_on_errors(updated)
    return updated
