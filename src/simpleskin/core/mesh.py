"""Mesh data structures for skinned geometry (no GL dependencies)."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from simpleskin.constants import MAX_JOINT_INFLUENCES
from simpleskin.skinning.errors import MissingVertexAttribute

ATTRIBUTE_POSITION = "position"
ATTRIBUTE_JOINT_INDEX = "joint_index"
ATTRIBUTE_JOINT_WEIGHT = "joint_weight"

# Joint slots are stored as uint16
JOINT_INDEX_MAX = int(np.iinfo(np.uint16).max)


def _frozen(a: NDArray) -> NDArray:
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class SkinningAttributes:
    """Validated per-vertex skinning inputs.

    positions: (V, 3) float32, bind-pose space
    joint_indices: (V, 4) uint16, slots into the skin binding
    joint_weights: (V, 4) float32
    """
    positions: NDArray[np.float32]
    joint_indices: NDArray[np.uint16]
    joint_weights: NDArray[np.float32]

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    def weight_sums(self) -> NDArray[np.float64]:
        return self.joint_weights.astype(np.float64).sum(axis=1)


@dataclass
class BufferGeometry:
    """Stores vertex attribute arrays for a mesh.

    All float arrays use float32.
    positions: Nx3 flat array (x,y,z per vertex)
    normals: Nx3 flat array, optional
    uvs: Nx2 flat array, optional
    indices: triangle index array (uint32), optional for non-indexed geometry
    joint_indices: Nx4 unsigned joint slots, optional (required for skinning)
    joint_weights: Nx4 float weights, optional (required for skinning)
    """
    positions: Optional[NDArray[np.float32]]
    normals: Optional[NDArray[np.float32]] = None
    uvs: Optional[NDArray[np.float32]] = None
    indices: Optional[NDArray[np.uint32]] = None
    joint_indices: Optional[NDArray[np.uint16]] = None
    joint_weights: Optional[NDArray[np.float32]] = None

    @property
    def vertex_count(self) -> int:
        if self.positions is None:
            return 0
        return len(self.positions) // 3 if np.ndim(self.positions) == 1 else len(self.positions)

    @property
    def triangle_count(self) -> int:
        if self.indices is not None:
            return len(self.indices) // 3
        return self.vertex_count // 3

    @property
    def has_indices(self) -> bool:
        return self.indices is not None and len(self.indices) > 0

    def triangles(self) -> NDArray[np.uint32]:
        """(T, 3) vertex triplets; empty when the geometry is not indexed."""
        if not self.has_indices:
            return np.zeros((0, 3), dtype=np.uint32)
        return np.asarray(self.indices, dtype=np.uint32).reshape(-1, 3)

    def compute_normals(self) -> None:
        """Compute per-vertex normals by accumulating indexed face normals."""
        pos = np.asarray(self.positions, dtype=np.float32).reshape(-1, 3)
        norms = np.zeros_like(pos)
        tris = self.triangles()
        if len(tris):
            v0, v1, v2 = pos[tris[:, 0]], pos[tris[:, 1]], pos[tris[:, 2]]
            face_n = np.cross(v1 - v0, v2 - v0)
            for k in range(3):
                np.add.at(norms, tris[:, k], face_n)

        lengths = np.linalg.norm(norms, axis=1, keepdims=True)
        lengths = np.maximum(lengths, 1e-10)
        norms /= lengths
        self.normals = norms.ravel().astype(np.float32)

    def skinning_attributes(self) -> SkinningAttributes:
        """Extract and validate the three skinning attribute arrays.

        Raises MissingVertexAttribute when an array is absent, has the wrong
        per-vertex width, or its length disagrees with the positions.
        """
        if self.positions is None:
            raise MissingVertexAttribute(ATTRIBUTE_POSITION)
        if self.joint_indices is None:
            raise MissingVertexAttribute(ATTRIBUTE_JOINT_INDEX)
        if self.joint_weights is None:
            raise MissingVertexAttribute(ATTRIBUTE_JOINT_WEIGHT)

        positions = _as_rows(self.positions, 3, ATTRIBUTE_POSITION, np.float32)
        indices = _as_rows(self.joint_indices, MAX_JOINT_INFLUENCES, ATTRIBUTE_JOINT_INDEX, None)
        weights = _as_rows(self.joint_weights, MAX_JOINT_INFLUENCES, ATTRIBUTE_JOINT_WEIGHT, np.float32)

        if not np.issubdtype(indices.dtype, np.integer):
            raise MissingVertexAttribute(ATTRIBUTE_JOINT_INDEX, f"integer dtype required, got {indices.dtype}")
        if indices.size and indices.min() < 0:
            raise MissingVertexAttribute(ATTRIBUTE_JOINT_INDEX, "negative joint index")
        if indices.size and indices.max() > JOINT_INDEX_MAX:
            raise MissingVertexAttribute(
                ATTRIBUTE_JOINT_INDEX, f"joint index {indices.max()} exceeds {JOINT_INDEX_MAX}",
            )

        v = len(positions)
        for name, arr in ((ATTRIBUTE_JOINT_INDEX, indices), (ATTRIBUTE_JOINT_WEIGHT, weights)):
            if len(arr) != v:
                raise MissingVertexAttribute(name, f"{len(arr)} entries for {v} vertices")

        return SkinningAttributes(
            positions=_frozen(positions.copy()),
            joint_indices=_frozen(indices.astype(np.uint16)),
            joint_weights=_frozen(weights.copy()),
        )


def _as_rows(values, width: int, name: str, dtype) -> NDArray:
    arr = np.asarray(values) if dtype is None else np.asarray(values, dtype=dtype)
    if arr.ndim == 1:
        if arr.size % width:
            raise MissingVertexAttribute(name, f"flat length {arr.size} is not a multiple of {width}")
        arr = arr.reshape(-1, width)
    if arr.ndim != 2 or arr.shape[1] != width:
        raise MissingVertexAttribute(name, f"expected {width} components per vertex, got shape {arr.shape}")
    return arr


@dataclass
class MeshInstance:
    """A named mesh.  ``positions`` holds the latest skinned result."""
    name: str
    geometry: BufferGeometry
    visible: bool = True
    # Flag for consumers that upload deformed positions
    needs_update: bool = True

    # World-space positions from the last successful skinning pass
    skinned_positions: Optional[NDArray[np.float32]] = None

    def store_skinned(self, positions: NDArray) -> None:
        self.skinned_positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        self.needs_update = True

    @property
    def rest_positions(self) -> Optional[NDArray[np.float32]]:
        if self.geometry.positions is None:
            return None
        return np.asarray(self.geometry.positions, dtype=np.float32).reshape(-1, 3)
