"""Shared constants and paths for simpleskin."""

from pathlib import Path

import numpy as np

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"
CONFIG_DIR = ASSETS_DIR / "config"

DEFAULT_SCENE_CONFIG = "simple_skin.json"

# Skinning
MAX_JOINT_INFLUENCES = 4  # joint index / weight slots per vertex
WEIGHT_SUM_TOLERANCE = 1e-3

# Streaming AABB accumulator seeds
FLOAT_MAX = float(np.finfo(np.float64).max)
FLOAT_MIN = float(np.finfo(np.float64).min)

# Frame timing
TARGET_FPS = 60
MAX_DELTA_TIME = 0.1  # clamp huge frame gaps (debugger pauses, window drags)
