# src/runtime/config.py

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"
DEFAULT_CONFIG_PATH = CONFIG_ROOT / "ksdump.yaml"

LOG_LEVELS = ("info", "warn", "error", "oneline")

# Overrides the compiler command from config / CLI defaults.
COMPILER_ENV_VAR = "KSDUMP_COMPILER"


@dataclass
class DumpConfig:
    """Options for one ksdump run (YAML defaults, then CLI overrides)."""

    format: Path = field(default_factory=lambda: Path("./formats"))
    binary: Path = field(default_factory=lambda: Path("./binaries"))
    out: Path = field(default_factory=lambda: Path("./jsons"))
    parser: Path = field(default_factory=lambda: Path("./parsers"))

    # 0 means compact output
    spaces: int = 0
    log_level: str = "info"
    max_workers: int = 4
    compiler: str = "kaitai-struct-compiler"

    def __post_init__(self) -> None:
        self.format = Path(self.format)
        self.binary = Path(self.binary)
        self.out = Path(self.out)
        self.parser = Path(self.parser)
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level '{self.log_level}', expected one of {LOG_LEVELS}"
            )
        if self.spaces < 0:
            raise ValueError(f"spaces must be >= 0, got {self.spaces}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DumpConfig":
        """Convenience constructor from a plain dict (e.g. YAML)."""
        defaults = cls()
        return cls(
            format=data.get("format", defaults.format),
            binary=data.get("binary", defaults.binary),
            out=data.get("out", defaults.out),
            parser=data.get("parser", defaults.parser),
            spaces=int(data.get("spaces", defaults.spaces) or 0),
            log_level=str(data.get("log_level", defaults.log_level)),
            max_workers=int(data.get("max_workers", defaults.max_workers)),
            compiler=str(data.get("compiler", defaults.compiler)),
        )

    def with_overrides(self, **overrides: Any) -> "DumpConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise KeyError(f"Unknown config keys: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file. Empty files load as {}."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def load_config(path: Optional[Path] = None) -> DumpConfig:
    """
    Load a DumpConfig.

    Without an explicit path the bundled config/ksdump.yaml is used when
    present, otherwise the dataclass defaults. The KSDUMP_COMPILER
    environment variable wins over the file's `compiler` entry.
    """
    if path is not None:
        raw = _load_yaml(Path(path))
    elif DEFAULT_CONFIG_PATH.exists():
        raw = _load_yaml(DEFAULT_CONFIG_PATH)
    else:
        raw = {}

    config = DumpConfig.from_dict(raw)

    compiler = os.getenv(COMPILER_ENV_VAR)
    if compiler:
        config = config.with_overrides(compiler=compiler)
    return config


def check_environment(config: DumpConfig) -> List[str]:
    """
    Problems that would stop a run before any binary is parsed.

    Returns human-readable messages; an empty list means the configuration
    is usable.
    """
    problems: List[str] = []
    if not config.format.exists():
        problems.append(f"Format path does not exist: {config.format}")
    if shutil.which(config.compiler) is None:
        problems.append(f"Compiler not found on PATH: {config.compiler}")
    try:
        import kaitaistruct  # noqa: F401
    except ImportError:
        problems.append("Python package 'kaitaistruct' is not installed")
    return problems
