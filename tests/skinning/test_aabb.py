"""Tests for AABB reduction."""

import numpy as np
import pytest

from simpleskin.skinning.aabb import Aabb, compute_aabb, merge_aabbs


def test_single_point_is_degenerate_box():
    box = compute_aabb(np.array([[1.0, -2.0, 3.0]]))
    np.testing.assert_array_equal(box.center, [1.0, -2.0, 3.0])
    np.testing.assert_array_equal(box.half_extents, [0.0, 0.0, 0.0])


def test_empty_input_has_no_box():
    assert compute_aabb(np.zeros((0, 3))) is None
    assert compute_aabb([]) is None
    assert compute_aabb(iter(())) is None


def test_min_max_of_points():
    pts = np.array([[0, 0, 0], [1, 2, 0], [-1, 1, 0.5]], dtype=np.float64)
    box = compute_aabb(pts)
    np.testing.assert_array_equal(box.min, [-1, 0, 0])
    np.testing.assert_array_equal(box.max, [1, 2, 0.5])
    np.testing.assert_array_equal(box.center, [0, 1, 0.25])
    np.testing.assert_array_equal(box.half_extents, [1, 1, 0.25])
    np.testing.assert_array_equal(box.size, [2, 2, 0.5])


def test_order_independent():
    rng = np.random.default_rng(3)
    pts = rng.normal(size=(200, 3))
    a = compute_aabb(pts)
    b = compute_aabb(pts[rng.permutation(len(pts))])
    assert a == b


def test_iterable_input_matches_array():
    rng = np.random.default_rng(11)
    pts = rng.uniform(-4, 4, (30, 3))
    from_list = compute_aabb([tuple(p) for p in pts])
    from_gen = compute_aabb(p for p in pts)
    from_array = compute_aabb(pts)
    assert from_list == from_array
    assert from_gen == from_array


def test_flat_array_input():
    box = compute_aabb(np.array([0, 0, 0, 2, 4, 6], dtype=np.float32))
    np.testing.assert_array_equal(box.max, [2, 4, 6])


def test_box_contains_every_point():
    rng = np.random.default_rng(5)
    pts = rng.uniform(-10, 10, (100, 3))
    box = compute_aabb(pts)
    assert all(box.contains(p) for p in pts)
    assert not box.contains(box.max + 1.0)


def test_merge_equals_whole():
    rng = np.random.default_rng(9)
    pts = rng.normal(size=(90, 3))
    parts = [compute_aabb(pts[i:i + 25]) for i in range(0, 90, 25)]
    merged = merge_aabbs(parts)
    np.testing.assert_allclose(merged.min, pts.min(axis=0))
    np.testing.assert_allclose(merged.max, pts.max(axis=0))


def test_merge_skips_missing_boxes():
    box = Aabb.from_min_max([0, 0, 0], [1, 1, 1])
    assert merge_aabbs([None, box, None]) == box
    assert merge_aabbs([]) is None
    assert merge_aabbs([None]) is None


def test_merge_pair():
    a = Aabb.from_min_max([0, 0, 0], [1, 1, 1])
    b = Aabb.from_min_max([-1, 0.5, 0], [0.5, 3, 0.5])
    m = a.merge(b)
    np.testing.assert_array_equal(m.min, [-1, 0, 0])
    np.testing.assert_array_equal(m.max, [1, 3, 1])


def test_equality_and_repr():
    a = Aabb.from_min_max([0, 0, 0], [2, 2, 2])
    b = Aabb(center=np.array([1.0, 1.0, 1.0]), half_extents=np.array([1.0, 1.0, 1.0]))
    assert a == b
    assert a != Aabb.from_min_max([0, 0, 0], [2, 2, 3])
    assert "min=" in repr(a)


@pytest.mark.parametrize("shape", [(4, 6), (5,), (2, 3, 3)])
def test_rejects_arrays_that_are_not_points(shape):
    with pytest.raises(ValueError):
        compute_aabb(np.zeros(shape))
