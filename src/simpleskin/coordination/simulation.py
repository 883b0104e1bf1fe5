"""Per-frame orchestrator: animate, propagate, then skin and bound."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from simpleskin.core.events import EventBus, EventType
from simpleskin.core.scene_graph import TransformPropagator, WorldTransforms
from simpleskin.coordination.scene_builder import SkinnedScene
from simpleskin.skinning.aabb import Aabb
from simpleskin.skinning.errors import SkinningError
from simpleskin.skinning.evaluator import LinearBlendSkinning, SkinningResult

logger = logging.getLogger(__name__)


@dataclass
class FrameReport:
    """What one tick produced, per mesh."""
    frame: int
    elapsed: float
    results: dict[str, SkinningResult] = field(default_factory=dict)
    skipped: dict[str, SkinningError] = field(default_factory=dict)

    def positions(self, mesh_name: str):
        result = self.results.get(mesh_name)
        return None if result is None else result.positions

    def aabb(self, mesh_name: str) -> Optional[Aabb]:
        result = self.results.get(mesh_name)
        return None if result is None else result.aabb


class Simulation:
    """Two-phase tick over a SkinnedScene.

    Call order per step:
      1. Animation drivers write joint local transforms
      2. Transform propagation produces this frame's WorldTransforms
      3. Skinning reads only that buffer: positions + AABB per mesh

    Phase 3 never starts before phase 2 has finished for every joint.
    Meshes whose attributes fail validation are left out at construction
    and reported as skipped on every frame.
    """

    def __init__(
        self,
        scene: SkinnedScene,
        event_bus: Optional[EventBus] = None,
        skinning: Optional[LinearBlendSkinning] = None,
    ):
        self.scene = scene
        self.events = event_bus if event_bus is not None else EventBus()
        self.propagator = TransformPropagator()
        self.skinning = skinning if skinning is not None else LinearBlendSkinning(scene.hierarchy)
        if self.skinning.hierarchy is None:
            self.skinning.hierarchy = scene.hierarchy

        self.frame = 0
        self.elapsed = 0.0
        self.last_world: Optional[WorldTransforms] = None
        self.rejected: dict[str, SkinningError] = {}

        for binding in scene.bindings:
            if binding in self.skinning.bindings:
                continue
            try:
                self.skinning.register(binding)
            except SkinningError as e:
                logger.warning("Mesh '%s' will not be skinned: %s", binding.name, e)
                self.rejected[binding.name] = e

    def animate(self, dt: float) -> None:
        self.elapsed += dt
        for driver in self.scene.drivers:
            driver.apply(self.scene.hierarchy, self.elapsed)

    def propagate(self) -> WorldTransforms:
        world = self.propagator.propagate(self.scene.hierarchy)
        self.events.publish(EventType.TRANSFORMS_PROPAGATED, frame=world.frame)
        return world

    def evaluate(self, world: WorldTransforms) -> FrameReport:
        """Skin every registered mesh against an already propagated buffer."""
        report = FrameReport(frame=world.frame, elapsed=self.elapsed)
        results, failures = self.skinning.update(world)

        for result in results:
            report.results[result.mesh_name] = result
            self.events.publish(
                EventType.MESH_SKINNED, mesh=result.mesh_name, positions=result.positions,
            )
            if result.aabb is None:
                logger.debug("No AABB for '%s' (no vertices)", result.mesh_name)
                self.events.publish(EventType.AABB_UNAVAILABLE, mesh=result.mesh_name)
            else:
                self.events.publish(EventType.AABB_UPDATED, mesh=result.mesh_name, aabb=result.aabb)

        for name, reason in {**self.rejected, **failures}.items():
            report.skipped[name] = reason
            self.events.publish(EventType.SKINNING_SKIPPED, mesh=name, reason=reason)

        self.events.publish(EventType.FRAME_COMPLETE, report=report)
        return report

    def step(self, dt: float) -> FrameReport:
        """Advance the simulation by dt seconds."""
        self.animate(dt)
        world = self.propagate()
        self.last_world = world
        report = self.evaluate(world)
        self.frame = report.frame
        return report
