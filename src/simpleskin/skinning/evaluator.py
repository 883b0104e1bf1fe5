"""Linear blend skinning of bind-pose vertices into world space.

Per frame and per binding:
  1. skin[i] = world[joints[i]] @ inverse_bind_pose[i]
  2. per vertex, blend the four referenced skin matrices by their weights
  3. apply the blended matrix to the bind-pose position
  4. reduce the resulting positions to an AABB

Weights are used exactly as authored (no renormalization).
"""

import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from simpleskin.constants import WEIGHT_SUM_TOLERANCE
from simpleskin.core.math_utils import batch_transform_points
from simpleskin.core.mesh import SkinningAttributes
from simpleskin.core.scene_graph import JointHierarchy, WorldTransforms
from simpleskin.skinning.aabb import Aabb, compute_aabb, merge_aabbs
from simpleskin.skinning.binding import SkinBinding
from simpleskin.skinning.errors import InvalidJointIndex, MissingJointTransform, SkinningError

logger = logging.getLogger(__name__)


@dataclass
class SkinningResult:
    """World-space output for one mesh for one frame."""
    mesh_name: str
    positions: NDArray[np.float64]  # (V, 3)
    aabb: Optional[Aabb]  # None when the mesh has no vertices
    frame: int = 0


def compute_skin_matrices(
    binding: SkinBinding,
    world: WorldTransforms,
    hierarchy: Optional[JointHierarchy] = None,
) -> NDArray[np.float64]:
    """(J, 4, 4) skin matrices in binding slot order.

    Raises MissingJointTransform if any bound joint has no world transform;
    nothing is substituted for it.
    """
    ibp = binding.inverse_bind_poses.as_array()
    skin = np.empty((binding.joint_count, 4, 4), dtype=np.float64)
    for slot, handle in enumerate(binding.joints):
        current = world.lookup(handle)
        if current is None:
            name = None
            if hierarchy is not None and handle in hierarchy:
                name = hierarchy.joint(handle).name
            raise MissingJointTransform(slot, handle, name)
        # inverse bind pose first, then the joint's current world transform
        skin[slot] = current @ ibp[slot]
    return skin


def blend_skin_matrices(
    skin_matrices: NDArray,
    joint_indices: NDArray,
    joint_weights: NDArray,
) -> NDArray[np.float64]:
    """Per-vertex weighted sum of skin matrices: (V, 4, 4)."""
    gathered = skin_matrices[np.asarray(joint_indices, dtype=np.intp)]  # (V, 4, 4, 4)
    w = np.asarray(joint_weights, dtype=np.float64)
    return np.einsum('vk,vkij->vij', w, gathered)


def check_joint_indices(attributes: SkinningAttributes, joint_count: int) -> None:
    if attributes.vertex_count == 0:
        return
    max_index = int(attributes.joint_indices.max())
    if max_index >= joint_count:
        raise InvalidJointIndex(max_index, joint_count)


def skin_positions(
    skin_matrices: NDArray,
    attributes: SkinningAttributes,
    start: int = 0,
    stop: Optional[int] = None,
) -> NDArray[np.float64]:
    """World-space positions for vertices ``start:stop``: (V, 3)."""
    sl = slice(start, stop)
    blended = blend_skin_matrices(
        skin_matrices, attributes.joint_indices[sl], attributes.joint_weights[sl],
    )
    return batch_transform_points(blended, attributes.positions[sl])


class LinearBlendSkinning:
    """Skins every registered binding against one frame's world transforms.

    Parameters
    ----------
    hierarchy : JointHierarchy, optional
        Only used to put joint names into error messages.
    chunk_size : int, optional
        Split vertices into partitions of this size; each partition is
        skinned and bounded on its own and the partial boxes are merged.
    executor : concurrent.futures.Executor, optional
        Runs partitions concurrently when given together with chunk_size.
    """

    def __init__(
        self,
        hierarchy: Optional[JointHierarchy] = None,
        chunk_size: Optional[int] = None,
        executor: Optional[Executor] = None,
    ):
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.hierarchy = hierarchy
        self.chunk_size = chunk_size
        self.executor = executor
        self.bindings: list[SkinBinding] = []
        self._attributes: dict[SkinBinding, SkinningAttributes] = {}

    def register(self, binding: SkinBinding) -> SkinningAttributes:
        """Validate a binding's mesh attributes and add it to the update set.

        Raises MissingVertexAttribute / InvalidJointIndex for authoring
        errors; the binding is not registered in that case.
        """
        attrs = binding.mesh.geometry.skinning_attributes()
        check_joint_indices(attrs, binding.joint_count)

        sums = attrs.weight_sums()
        off = np.abs(sums - 1.0) > WEIGHT_SUM_TOLERANCE
        if np.any(off):
            logger.warning(
                "Mesh '%s': %d of %d vertices have joint weights not summing to 1 "
                "(used as authored)", binding.name, int(off.sum()), attrs.vertex_count,
            )
        if np.any(attrs.joint_weights < 0):
            logger.warning("Mesh '%s' has negative joint weights", binding.name)

        self.bindings.append(binding)
        self._attributes[binding] = attrs
        return attrs

    def unregister(self, binding: SkinBinding) -> None:
        if binding in self._attributes:
            self.bindings.remove(binding)
            del self._attributes[binding]

    def attributes_for(self, binding: SkinBinding) -> SkinningAttributes:
        attrs = self._attributes.get(binding)
        if attrs is None:
            attrs = binding.mesh.geometry.skinning_attributes()
            check_joint_indices(attrs, binding.joint_count)
        return attrs

    def evaluate(self, binding: SkinBinding, world: WorldTransforms) -> SkinningResult:
        """Skin one binding.  Pure: does not touch the mesh or the buffer."""
        attrs = self.attributes_for(binding)
        skin = compute_skin_matrices(binding, world, self.hierarchy)

        n = attrs.vertex_count
        if self.chunk_size is None or n <= self.chunk_size:
            positions = skin_positions(skin, attrs)
            aabb = compute_aabb(positions)
        else:
            bounds = [(s, min(s + self.chunk_size, n)) for s in range(0, n, self.chunk_size)]

            def _partition(span):
                part = skin_positions(skin, attrs, span[0], span[1])
                return part, compute_aabb(part)

            if self.executor is not None:
                parts = list(self.executor.map(_partition, bounds))
            else:
                parts = [_partition(b) for b in bounds]
            positions = np.concatenate([p for p, _ in parts], axis=0)
            aabb = merge_aabbs(box for _, box in parts)

        return SkinningResult(
            mesh_name=binding.name, positions=positions, aabb=aabb, frame=world.frame,
        )

    def update(
        self, world: WorldTransforms,
    ) -> tuple[list[SkinningResult], dict[str, SkinningError]]:
        """Evaluate all registered bindings.

        A failing binding is skipped and reported; the others still run.
        Successful results are also stored on their meshes.
        """
        results: list[SkinningResult] = []
        failures: dict[str, SkinningError] = {}
        for binding in self.bindings:
            try:
                result = self.evaluate(binding, world)
            except SkinningError as e:
                logger.warning("Skipping mesh '%s' this frame: %s", binding.name, e)
                failures[binding.name] = e
                continue
            binding.mesh.store_skinned(result.positions)
            results.append(result)
        return results, failures
