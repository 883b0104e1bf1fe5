"""JSON config file loading utilities."""

import json
from pathlib import Path
from typing import Any, Union

from simpleskin.constants import CONFIG_DIR


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path) as f:
        return json.load(f)


def load_config(name: str) -> Any:
    """Load a config file from assets/config/."""
    return load_json(CONFIG_DIR / name)


def load_scene_config(name_or_path: Union[str, Path]) -> Any:
    """Load a scene description by bundled name or by filesystem path."""
    path = Path(name_or_path)
    if path.is_file():
        return load_json(path)
    return load_config(str(name_or_path))
