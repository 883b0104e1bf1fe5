"""Tests for inverse bind poses and skin bindings."""

import numpy as np
import pytest

from simpleskin.core.math_utils import mat4_translation, transform_point, vec3
from simpleskin.core.mesh import BufferGeometry, MeshInstance
from simpleskin.core.scene_graph import JointHierarchy, TransformPropagator
from simpleskin.skinning.binding import InverseBindPoseSet, SkinBinding


def _mesh():
    return MeshInstance(name="m", geometry=BufferGeometry(positions=np.zeros(3, dtype=np.float32)))


def test_from_rest_pose_inverts_world():
    h = JointHierarchy()
    a = h.add_joint("a", translation=(1, 0, 0))
    b = h.add_joint("b", a, translation=(0, 2, 0))
    ibp = InverseBindPoseSet.from_rest_pose(h, [a, b])
    world = TransformPropagator().propagate(h)

    assert len(ibp) == 2
    for slot, handle in enumerate((a, b)):
        np.testing.assert_allclose(world.lookup(handle) @ ibp[slot], np.eye(4), atol=1e-12)
    # joint b sits at (1, 2, 0); its inverse bind pose moves that point to the origin
    np.testing.assert_allclose(transform_point(ibp[1], vec3(1, 2, 0)), [0, 0, 0], atol=1e-12)


def test_from_rest_pose_unknown_joint():
    h = JointHierarchy()
    h.add_joint("a")
    with pytest.raises(ValueError):
        InverseBindPoseSet.from_rest_pose(h, [5])


def test_matrices_are_read_only():
    ibp = InverseBindPoseSet([mat4_translation(0, -1, 0)])
    with pytest.raises(ValueError):
        ibp.as_array()[0, 0, 0] = 2.0


def test_rejects_non_4x4():
    with pytest.raises(ValueError):
        InverseBindPoseSet([np.eye(3)])


def test_empty_set():
    assert len(InverseBindPoseSet([])) == 0
    assert InverseBindPoseSet([]).as_array().shape == (0, 4, 4)


def test_binding_length_mismatch():
    ibp = InverseBindPoseSet([np.eye(4)])
    with pytest.raises(ValueError, match="inverse bind poses"):
        SkinBinding(mesh=_mesh(), joints=(0, 1), inverse_bind_poses=ibp)


def test_binding_properties():
    ibp = InverseBindPoseSet([np.eye(4), np.eye(4)])
    binding = SkinBinding(mesh=_mesh(), joints=[np.int64(0), 1], inverse_bind_poses=ibp)
    assert binding.joints == (0, 1)
    assert binding.joint_count == 2
    assert binding.name == "m"
    # usable as a dict key even though the mesh is mutable
    assert {binding: 1}[binding] == 1
