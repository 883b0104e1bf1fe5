"""Tests for the headless debug renderer."""

import numpy as np
from PIL import Image

from simpleskin.skinning.aabb import Aabb
from tools.debug_renderer import AABB_EDGES, aabb_corners, orthographic_project, render_skinned


def test_front_view_is_xy_plane():
    pts = np.array([[1.0, 2.0, 3.0]])
    sx, sy, depth = orthographic_project(pts)
    assert sx[0] == 1.0
    assert sy[0] == 2.0
    assert depth[0] == 3.0


def test_aabb_corners_and_edges():
    box = Aabb.from_min_max([0, 0, 0], [1, 2, 3])
    corners = aabb_corners(box)
    assert corners.shape == (8, 3)
    np.testing.assert_array_equal(corners[0], [0, 0, 0])
    np.testing.assert_array_equal(corners[7], [1, 2, 3])
    assert len(AABB_EDGES) == 12
    for a, b in AABB_EDGES:
        # each edge changes exactly one coordinate
        assert np.count_nonzero(corners[a] != corners[b]) == 1


def test_render_writes_png(tmp_path):
    pts = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float64)
    out = tmp_path / "sub" / "frame.png"
    img = render_skinned(
        pts, np.array([[0, 1, 2]]), Aabb.from_min_max([0, 0, 0], [1, 1, 0]),
        width=200, height=150, output_path=out, title="test",
    )
    assert img.size == (200, 150)
    assert out.exists()
    with Image.open(out) as loaded:
        assert loaded.size == (200, 150)


def test_render_draws_vertices():
    pts = np.array([[0, 0, 0], [1, 1, 0]], dtype=np.float64)
    bg = (30, 30, 40)
    img = render_skinned(pts, width=100, height=100, bg_color=bg)
    arr = np.asarray(img)
    assert np.any(np.any(arr != bg, axis=2))


def test_render_empty_positions():
    img = render_skinned(np.zeros((0, 3)), width=64, height=64)
    assert img.size == (64, 64)
