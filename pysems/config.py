"""
Scan settings.

A YAML file holds any subset of the `ScanConfig` fields; command line flags
override it through `ScanConfig.merged`.
"""

from dataclasses import asdict, dataclass, fields, replace
from typing import Optional

import yaml

from .exceptions import ValidationError
from ._backends import BACKENDS, METHODS


@dataclass
class ScanConfig:
    backend: str = "auto"
    use_fp64: Optional[bool] = None
    method: str = "inverse"
    n_individual: Optional[int] = None
    n_marker: Optional[int] = None
    n_trait: Optional[int] = None
    log_level: str = "INFO"
    float_format: str = "%f"

    def __post_init__(self):
        if self.backend not in BACKENDS:
            raise ValidationError(f"backend must be one of {BACKENDS}, got {self.backend!r}")
        if self.method not in METHODS:
            raise ValidationError(f"method must be one of {METHODS}, got {self.method!r}")
        for name in ("n_individual", "n_marker", "n_trait"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or value < 1):
                raise ValidationError(f"{name} must be a positive integer, got {value!r}")

    def merged(self, **overrides) -> "ScanConfig":
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path: str) -> ScanConfig:
    """Load a YAML config from path into a ScanConfig."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Cannot parse configuration file {path}: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError("Configuration file must contain a mapping at the top level.")
    known = {f.name for f in fields(ScanConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValidationError(f"Unknown configuration keys: {', '.join(unknown)}")
    return ScanConfig(**raw)


def config_to_dict(cfg: ScanConfig) -> dict:
    """Convert ScanConfig to a serializable dict."""
    return asdict(cfg)
