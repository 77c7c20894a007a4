"""Terrain configuration loading from TOML files."""

import tomllib
from pathlib import Path

from .terrain.config import TerrainConfig


def load_config(config_path: Path) -> TerrainConfig:
    """Load terrain configuration from a TOML file.

    Missing sections and keys fall back to the model defaults.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed TerrainConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If a value has the wrong type.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return TerrainConfig.model_validate(data)


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator
    2. configs/{name}.toml
    3. configs/{name}

    Args:
        name: Config name or path.

    Returns:
        Path to the config file.

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()

    config_path = configs_dir / f"{name}.toml"
    if config_path.exists():
        return config_path

    config_path = configs_dir / name
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"
