"""Skinning failure conditions.

All of these are local to one mesh for one frame: callers skip that mesh
and carry on with the rest of the scene.
"""

from typing import Optional


class SkinningError(Exception):
    """Base class for conditions that prevent skinning a mesh this frame."""


class MissingJointTransform(SkinningError):
    """A bound joint has no world transform for the current frame."""

    def __init__(self, slot: int, handle: int, joint_name: Optional[str] = None):
        self.slot = slot
        self.handle = handle
        self.joint_name = joint_name
        label = f"'{joint_name}' " if joint_name else ""
        super().__init__(
            f"No world transform for joint {label}(handle {handle}, binding slot {slot})"
        )


class MissingVertexAttribute(SkinningError):
    """A required vertex attribute is absent or has the wrong length/shape."""

    def __init__(self, attribute: str, detail: str = "missing"):
        self.attribute = attribute
        self.detail = detail
        super().__init__(f"Vertex attribute '{attribute}': {detail}")


class InvalidJointIndex(SkinningError):
    """A vertex refers to a joint slot outside the skin binding."""

    def __init__(self, max_index: int, joint_count: int):
        self.max_index = max_index
        self.joint_count = joint_count
        super().__init__(
            f"Vertex joint index {max_index} out of range for {joint_count} bound joints"
        )
