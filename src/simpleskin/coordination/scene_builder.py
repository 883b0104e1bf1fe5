"""Constructs joint hierarchies, meshes and skin bindings from scene descriptions."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from simpleskin.animation.joint_driver import OscillatingRotationDriver
from simpleskin.constants import DEFAULT_SCENE_CONFIG
from simpleskin.core.config_loader import load_scene_config
from simpleskin.core.math_utils import as_mat4, mat4_translation
from simpleskin.core.mesh import BufferGeometry, MeshInstance
from simpleskin.core.scene_graph import JointHierarchy
from simpleskin.skinning.binding import InverseBindPoseSet, SkinBinding

logger = logging.getLogger(__name__)


@dataclass
class SkinnedScene:
    """Everything the per-frame simulation needs."""
    name: str
    hierarchy: JointHierarchy
    meshes: dict[str, MeshInstance] = field(default_factory=dict)
    bindings: list[SkinBinding] = field(default_factory=list)
    drivers: list[OscillatingRotationDriver] = field(default_factory=list)

    def binding_for(self, mesh_name: str) -> Optional[SkinBinding]:
        for binding in self.bindings:
            if binding.name == mesh_name:
                return binding
        return None


class SceneBuilder:
    """Builds a SkinnedScene from a JSON-style dict.

    Layout of the description::

      joints:  [{name, parent, translation?, rotation?, scale?}, ...]   parents first
      skins:   [{name, joints: [joint names], inverse_bind_poses}]
      meshes:  [{name, skin?, positions, normals?, uvs?, indices?,
                 joint_indices?, joint_weights?}]
      animation (optional): {joints, axis, amplitude, speed, phase}

    ``inverse_bind_poses`` is either the string ``"rest_pose"`` or a list with
    one ``{"matrix": 4x4}`` / ``{"translation": [x, y, z]}`` entry per joint.
    """

    def build(self, config: dict[str, Any]) -> SkinnedScene:
        hierarchy = self._build_hierarchy(config.get("joints", []))
        scene = SkinnedScene(name=config.get("name", "scene"), hierarchy=hierarchy)

        skins = {}
        for skin in config.get("skins", []):
            skins[skin["name"]] = self._build_skin(skin, hierarchy)

        for mdef in config.get("meshes", []):
            if mdef["name"] in scene.meshes:
                raise ValueError(f"Duplicate mesh name '{mdef['name']}'")
            mesh = MeshInstance(name=mdef["name"], geometry=self._build_geometry(mdef))
            scene.meshes[mesh.name] = mesh
            skin_name = mdef.get("skin")
            if skin_name is None:
                continue
            if skin_name not in skins:
                raise KeyError(f"Mesh '{mesh.name}' references unknown skin '{skin_name}'")
            joints, ibp = skins[skin_name]
            scene.bindings.append(SkinBinding(mesh=mesh, joints=joints, inverse_bind_poses=ibp))

        anim = config.get("animation")
        if anim is not None:
            scene.drivers.append(self._build_driver(anim, hierarchy))

        logger.info(
            "Built scene '%s': %d joints, %d meshes, %d skinned",
            scene.name, len(hierarchy), len(scene.meshes), len(scene.bindings),
        )
        return scene

    def _build_hierarchy(self, joint_defs: list[dict]) -> JointHierarchy:
        hierarchy = JointHierarchy()
        for jdef in joint_defs:
            parent_name = jdef.get("parent")
            parent = None
            if parent_name is not None:
                parent = hierarchy.find(parent_name)
                if parent is None:
                    raise ValueError(
                        f"Joint '{jdef['name']}' lists parent '{parent_name}' "
                        "which is not defined before it"
                    )
            hierarchy.add_joint(
                jdef["name"], parent,
                translation=jdef.get("translation"),
                rotation=jdef.get("rotation"),
                scale=jdef.get("scale"),
            )
        return hierarchy

    def _build_skin(self, skin: dict, hierarchy: JointHierarchy):
        joints = []
        for name in skin["joints"]:
            handle = hierarchy.find(name)
            if handle is None:
                raise KeyError(f"Skin '{skin['name']}' references unknown joint '{name}'")
            joints.append(handle)

        poses = skin.get("inverse_bind_poses", "rest_pose")
        if poses == "rest_pose":
            ibp = InverseBindPoseSet.from_rest_pose(hierarchy, joints)
        else:
            ibp = InverseBindPoseSet(self._parse_matrix(p) for p in poses)
        return tuple(joints), ibp

    @staticmethod
    def _parse_matrix(entry: dict):
        if "matrix" in entry:
            return as_mat4(entry["matrix"])
        if "translation" in entry:
            return mat4_translation(*entry["translation"])
        raise ValueError(f"Inverse bind pose needs 'matrix' or 'translation': {entry}")

    @staticmethod
    def _build_geometry(mdef: dict) -> BufferGeometry:
        positions = mdef.get("positions")
        geom = BufferGeometry(
            positions=None if positions is None else np.asarray(positions, dtype=np.float32).ravel(),
        )
        if "indices" in mdef:
            geom.indices = np.asarray(mdef["indices"], dtype=np.uint32)
        if "joint_indices" in mdef:
            # range and dtype are checked when the mesh is registered for skinning
            joint_indices = np.asarray(mdef["joint_indices"])
            if joint_indices.size == 0:
                joint_indices = joint_indices.astype(np.uint16)
            geom.joint_indices = joint_indices
        if "joint_weights" in mdef:
            geom.joint_weights = np.asarray(mdef["joint_weights"], dtype=np.float32)

        normals = mdef.get("normals")
        if normals == "compute":
            if positions is not None:
                geom.compute_normals()
        elif normals is not None:
            geom.normals = np.asarray(normals, dtype=np.float32).ravel()

        uvs = mdef.get("uvs")
        if uvs == "zero":
            geom.uvs = np.zeros(geom.vertex_count * 2, dtype=np.float32)
        elif uvs is not None:
            geom.uvs = np.asarray(uvs, dtype=np.float32).ravel()
        return geom

    @staticmethod
    def _build_driver(anim: dict, hierarchy: JointHierarchy) -> OscillatingRotationDriver:
        handles = []
        for name in anim.get("joints", []):
            handle = hierarchy.find(name)
            if handle is None:
                raise KeyError(f"Animation references unknown joint '{name}'")
            handles.append(handle)
        return OscillatingRotationDriver(
            handles,
            axis=anim.get("axis", (0.0, 0.0, 1.0)),
            amplitude=anim.get("amplitude", OscillatingRotationDriver.DEFAULT_AMPLITUDE),
            speed=anim.get("speed", OscillatingRotationDriver.DEFAULT_SPEED),
            phase=anim.get("phase", 0.0),
        )


def load_scene(name_or_path=DEFAULT_SCENE_CONFIG) -> SkinnedScene:
    """Load and build a scene description (bundled name or file path)."""
    return SceneBuilder().build(load_scene_config(name_or_path))
