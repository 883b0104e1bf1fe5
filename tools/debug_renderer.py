"""Headless debug view of skinned vertices and their bounding box.

Draws what the interactive viewer shows as debug cubes: one marker per
world-space vertex, the triangle wireframe, and the 12 edges of the AABB,
into a PNG with PIL.

Usage::

    from tools.debug_renderer import render_skinned

    img = render_skinned(
        positions, triangles, aabb,
        output_path="results/frame_0001.png",
        title="frame 1",
    )
"""

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from simpleskin.skinning.aabb import Aabb

# ── Camera presets (Y up) ──────────────────────────────────────────────

CAMERA_PRESETS = {
    "front":  {"azimuth": 0,  "elevation": 0},
    "right":  {"azimuth": 90, "elevation": 0},
    "3q":     {"azimuth": 30, "elevation": 20},
    "top":    {"azimuth": 0,  "elevation": 89},
}

VERTEX_COLOR = (250, 200, 60)
WIRE_COLOR = (120, 140, 170)
AABB_COLOR = (90, 230, 120)


# ── Projection ─────────────────────────────────────────────────────────

def orthographic_project(
    positions: np.ndarray,
    azimuth: float = 0,
    elevation: float = 0,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Project 3D positions to 2D screen coordinates.

    Y is vertical; azimuth 0 looks down -Z (the XY plane faces the camera).

    Returns
    -------
    screen_x, screen_y, depth : (V,) float arrays
    """
    az = np.radians(azimuth)
    el = np.radians(elevation)
    ca, sa = np.cos(az), np.sin(az)
    ce, se = np.cos(el), np.sin(el)

    x, y, z = positions[:, 0], positions[:, 1], positions[:, 2]

    # Rotate around Y (vertical) by azimuth
    x1 = x * ca + z * sa
    z1 = -x * sa + z * ca

    # Tilt around screen-X by elevation
    screen_x = x1
    screen_y = y * ce - z1 * se
    depth = y * se + z1 * ce

    return screen_x, screen_y, depth


def aabb_corners(aabb: Aabb) -> np.ndarray:
    """(8, 3) corners; bit k of the row index selects max on axis k."""
    lo, hi = aabb.min, aabb.max
    return np.array([
        [hi[0] if i & 1 else lo[0], hi[1] if i & 2 else lo[1], hi[2] if i & 4 else lo[2]]
        for i in range(8)
    ], dtype=np.float64)


# Corner pairs differing in exactly one bit
AABB_EDGES = [(a, a | (1 << k)) for a in range(8) for k in range(3) if not a & (1 << k)]


# ── Core render function ───────────────────────────────────────────────

def render_skinned(
    positions: np.ndarray,
    triangles: np.ndarray | None = None,
    aabb: Aabb | None = None,
    azimuth: float = 0,
    elevation: float = 0,
    width: int = 640,
    height: int = 640,
    output_path: str | Path | None = None,
    title: str = "",
    view_bounds: tuple | None = None,
    marker_size: int = 4,
    bg_color: tuple[int, int, int] = (30, 30, 40),
    margin: int = 40,
) -> Image.Image:
    """Render skinned vertices (and optional wireframe / AABB) to a PIL Image.

    Parameters
    ----------
    positions : (V, 3) world-space vertex positions
    triangles : (T, 3) int triangle indices, or None for points only
    aabb : box to outline, or None
    view_bounds : ((xmin, ymin), (xmax, ymax)) screen-space extent to keep the
        framing fixed across animation frames; fitted to the content if None
    output_path : save PNG here (None = don't save)
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    img = Image.new("RGB", (width, height), bg_color)
    draw = ImageDraw.Draw(img)

    content = positions
    if aabb is not None:
        content = np.concatenate([positions, aabb_corners(aabb)], axis=0)
    if len(content) == 0:
        if output_path:
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            img.save(str(output_path))
        return img

    sx, sy, _ = orthographic_project(content, azimuth, elevation)
    if view_bounds is None:
        xmin, xmax = float(sx.min()), float(sx.max())
        ymin, ymax = float(sy.min()), float(sy.max())
    else:
        (xmin, ymin), (xmax, ymax) = view_bounds
    x_range = max(xmax - xmin, 1e-6)
    y_range = max(ymax - ymin, 1e-6)
    scale = min((width - 2 * margin) / x_range, (height - 2 * margin) / y_range)

    x_off = margin + (width - 2 * margin - x_range * scale) / 2
    y_off = margin + (height - 2 * margin - y_range * scale) / 2
    px = (sx - xmin) * scale + x_off
    py = height - ((sy - ymin) * scale + y_off)  # flip Y for image coords

    n = len(positions)

    if triangles is not None and len(triangles):
        tris = np.asarray(triangles, dtype=np.int32).reshape(-1, 3)
        for v0, v1, v2 in tris:
            pts = [(px[v0], py[v0]), (px[v1], py[v1]), (px[v2], py[v2]), (px[v0], py[v0])]
            draw.line(pts, fill=WIRE_COLOR, width=1)

    if aabb is not None:
        for a, b in AABB_EDGES:
            draw.line([(px[n + a], py[n + a]), (px[n + b], py[n + b])], fill=AABB_COLOR, width=2)

    r = marker_size
    for i in range(n):
        draw.rectangle([px[i] - r, py[i] - r, px[i] + r, py[i] + r], fill=VERTEX_COLOR)

    if title:
        draw.text((10, 10), title, fill=(255, 255, 255))
    if aabb is not None:
        lo, hi = aabb.min, aabb.max
        draw.text(
            (10, height - 20),
            f"AABB min ({lo[0]:.2f}, {lo[1]:.2f}, {lo[2]:.2f})  "
            f"max ({hi[0]:.2f}, {hi[1]:.2f}, {hi[2]:.2f})",
            fill=AABB_COLOR,
        )

    if output_path:
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        img.save(str(output_path))
    return img
