from .io import apply_overrides, dump_yaml_config, load_yaml_config
from .schema import (
    SolverConfig,
    StructrackConfig,
    TrackTrainerConfig,
    validate_count,
    validate_positive,
)

__all__ = [
    "StructrackConfig",
    "TrackTrainerConfig",
    "SolverConfig",
    "validate_positive",
    "validate_count",
    "load_yaml_config",
    "dump_yaml_config",
    "apply_overrides",
]
