"""Skin bindings: which joints deform a mesh and their inverse bind poses."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from simpleskin.core.math_utils import Mat4, as_mat4, mat4_inverse
from simpleskin.core.mesh import MeshInstance
from simpleskin.core.scene_graph import JointHandle, JointHierarchy, TransformPropagator, WorldTransforms

logger = logging.getLogger(__name__)


class InverseBindPoseSet:
    """Ordered, read-only table of inverse bind matrices (one per joint slot).

    Each matrix maps bind-pose mesh coordinates into that joint's local space.
    """

    def __init__(self, matrices: Iterable):
        stack = [as_mat4(m) for m in matrices]
        if stack:
            arr = np.stack(stack).astype(np.float64)
        else:
            arr = np.zeros((0, 4, 4), dtype=np.float64)
        arr.setflags(write=False)
        self._matrices = arr

    @classmethod
    def from_rest_pose(
        cls,
        hierarchy: JointHierarchy,
        joints: Sequence[JointHandle],
        rest_world: Optional[WorldTransforms] = None,
    ) -> "InverseBindPoseSet":
        """Invert each joint's rest world matrix.

        Uses the hierarchy's current local transforms as the bind pose
        unless a precomputed ``rest_world`` buffer is given.
        """
        if rest_world is None:
            rest_world = TransformPropagator().propagate(hierarchy)
        inverses = []
        for handle in joints:
            rest = rest_world.lookup(handle)
            if rest is None:
                raise ValueError(f"No rest transform for joint handle {handle}")
            inverses.append(mat4_inverse(rest))
        return cls(inverses)

    def __len__(self) -> int:
        return len(self._matrices)

    def __getitem__(self, index: int) -> Mat4:
        return self._matrices[index]

    def as_array(self) -> NDArray[np.float64]:
        """(N, 4, 4) read-only view."""
        return self._matrices


@dataclass(frozen=True, eq=False)
class SkinBinding:
    """Pairs a mesh with its joint slots and inverse bind poses.

    Slot ``i`` of ``joints`` and of ``inverse_bind_poses`` refer to the same
    joint; vertex joint indices address these slots.
    """
    mesh: MeshInstance
    joints: tuple[JointHandle, ...]
    inverse_bind_poses: InverseBindPoseSet

    def __post_init__(self):
        object.__setattr__(self, "joints", tuple(int(h) for h in self.joints))
        if len(self.joints) != len(self.inverse_bind_poses):
            raise ValueError(
                f"Skin binding for '{self.mesh.name}' has {len(self.joints)} joints "
                f"but {len(self.inverse_bind_poses)} inverse bind poses"
            )

    @property
    def joint_count(self) -> int:
        return len(self.joints)

    @property
    def name(self) -> str:
        return self.mesh.name
