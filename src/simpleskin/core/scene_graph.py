"""Joint hierarchy with per-frame world transforms.

Joints live in a flat table addressed by integer handles; each joint stores
its parent handle (or ``None`` for roots) and a local TRS transform.  World
matrices are not stored on the joints: ``TransformPropagator.propagate()``
writes them into a fresh ``WorldTransforms`` buffer once per frame, root to
leaf, and the skinning phase only ever reads that buffer.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

import numpy as np

from simpleskin.core.math_utils import (
    Mat4, Vec3, Quat,
    as_mat4, mat4_compose, quat_identity, quat_normalize, vec3,
)

logger = logging.getLogger(__name__)

JointHandle = int


@dataclass
class Joint:
    """Identity and local transform of one joint.

    ``local_override`` replaces the TRS composition when set (e.g. a joint
    authored directly as a matrix).
    """
    name: str
    handle: JointHandle
    parent: Optional[JointHandle] = None
    translation: Vec3 = field(default_factory=vec3)
    rotation: Quat = field(default_factory=quat_identity)
    scale: Vec3 = field(default_factory=lambda: vec3(1, 1, 1))
    local_override: Optional[Mat4] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def local_matrix(self) -> Mat4:
        if self.local_override is not None:
            return self.local_override.copy()
        return mat4_compose(self.translation, self.rotation, self.scale)


class JointHierarchy:
    """Forest of joints stored as an arena of ``Joint`` records.

    Parents must exist before their children are added, so insertion order
    is already a valid root-to-leaf order.  ``set_parent`` may break that
    ordering; ``traversal_order()`` recomputes it on demand.
    """

    def __init__(self):
        self._joints: list[Joint] = []
        self._children: list[list[JointHandle]] = []
        self._by_name: dict[str, JointHandle] = {}
        self._order: Optional[list[JointHandle]] = None

    def __len__(self) -> int:
        return len(self._joints)

    def __iter__(self) -> Iterator[Joint]:
        return iter(self._joints)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, (int, np.integer)) and 0 <= handle < len(self._joints)

    def add_joint(
        self,
        name: str,
        parent: Optional[JointHandle] = None,
        translation=None,
        rotation=None,
        scale=None,
    ) -> JointHandle:
        """Append a joint and return its handle."""
        if parent is not None and parent not in self:
            raise ValueError(f"Unknown parent handle {parent} for joint '{name}'")
        if name in self._by_name:
            raise ValueError(f"Duplicate joint name '{name}'")

        handle = len(self._joints)
        joint = Joint(name=name, handle=handle, parent=parent)
        if translation is not None:
            joint.translation = np.asarray(translation, dtype=np.float64)
        if rotation is not None:
            joint.rotation = quat_normalize(np.asarray(rotation, dtype=np.float64))
        if scale is not None:
            joint.scale = np.asarray(scale, dtype=np.float64)

        self._joints.append(joint)
        self._children.append([])
        self._by_name[name] = handle
        if parent is not None:
            self._children[parent].append(handle)
        if self._order is not None:
            self._order.append(handle)
        return handle

    def joint(self, handle: JointHandle) -> Joint:
        if handle not in self:
            raise KeyError(f"Unknown joint handle {handle}")
        return self._joints[handle]

    def find(self, name: str) -> Optional[JointHandle]:
        """Handle of the joint with the given name, or None."""
        return self._by_name.get(name)

    def parent_of(self, handle: JointHandle) -> Optional[JointHandle]:
        return self.joint(handle).parent

    def children_of(self, handle: JointHandle) -> list[JointHandle]:
        self.joint(handle)
        return list(self._children[handle])

    def roots(self) -> list[JointHandle]:
        return [j.handle for j in self._joints if j.is_root]

    def set_parent(self, handle: JointHandle, parent: Optional[JointHandle]) -> None:
        """Re-parent a joint.  Rejects links that would create a cycle."""
        joint = self.joint(handle)
        if parent is not None:
            ancestor = parent
            while ancestor is not None:
                if ancestor == handle:
                    raise ValueError(
                        f"Parenting '{joint.name}' under handle {parent} would create a cycle"
                    )
                ancestor = self.joint(ancestor).parent

        if joint.parent is not None:
            self._children[joint.parent].remove(handle)
        joint.parent = parent
        if parent is not None:
            self._children[parent].append(handle)
        self._order = None

    # Local transform mutation (animation writes these)

    def set_translation(self, handle: JointHandle, x: float, y: float, z: float) -> None:
        self.joint(handle).translation = vec3(x, y, z)

    def set_rotation(self, handle: JointHandle, q: Quat) -> None:
        self.joint(handle).rotation = quat_normalize(np.asarray(q, dtype=np.float64))

    def set_scale(self, handle: JointHandle, x: float, y: float, z: float) -> None:
        self.joint(handle).scale = vec3(x, y, z)

    def set_local_matrix(self, handle: JointHandle, m: Optional[Mat4]) -> None:
        self.joint(handle).local_override = None if m is None else as_mat4(m).copy()

    def local_matrix(self, handle: JointHandle) -> Mat4:
        return self.joint(handle).local_matrix()

    def traversal_order(self) -> list[JointHandle]:
        """Handles ordered so every parent precedes its children."""
        if self._order is None:
            order: list[JointHandle] = []
            stack = list(reversed(self.roots()))
            while stack:
                h = stack.pop()
                order.append(h)
                stack.extend(reversed(self._children[h]))
            self._order = order
        return list(self._order)


class WorldTransforms:
    """Per-frame buffer of joint world matrices.

    A missing entry means the joint's world transform is not available this
    frame; ``lookup`` reports that with ``None`` rather than a fallback.
    """

    def __init__(self, frame: int = 0):
        self.frame = frame
        self._matrices: dict[JointHandle, Mat4] = {}

    def __len__(self) -> int:
        return len(self._matrices)

    def __contains__(self, handle: object) -> bool:
        return handle in self._matrices

    def set(self, handle: JointHandle, m: Mat4) -> None:
        self._matrices[handle] = m

    def lookup(self, handle: JointHandle) -> Optional[Mat4]:
        return self._matrices.get(handle)

    def discard(self, handle: JointHandle) -> None:
        """Drop one joint's transform (upstream did not produce it this frame)."""
        self._matrices.pop(handle, None)

    def position(self, handle: JointHandle) -> Optional[Vec3]:
        m = self._matrices.get(handle)
        return None if m is None else m[:3, 3].copy()


class TransformPropagator:
    """Computes world matrices: world[child] = world[parent] @ local[child]."""

    def __init__(self):
        self._frame = 0

    def propagate(self, hierarchy: JointHierarchy) -> WorldTransforms:
        """Walk the hierarchy root-to-leaf and return this frame's buffer."""
        self._frame += 1
        world = WorldTransforms(frame=self._frame)
        for handle in hierarchy.traversal_order():
            joint = hierarchy.joint(handle)
            local = joint.local_matrix()
            if joint.parent is None:
                world.set(handle, local)
            else:
                world.set(handle, world.lookup(joint.parent) @ local)
        logger.debug("Propagated %d joint transforms (frame %d)", len(world), world.frame)
        return world
