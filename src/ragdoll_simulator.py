"""
PyBullet backend for ragdoll mode.

Spawns the bodies produced by ragdoll.build_ragdoll_bodies as independent
boxes over a static ground plane (Y up) and steps them under gravity.
"""
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pybullet as p

from ragdoll import RagdollBody, RagdollConfig, hex_to_rgba, ragdoll_params

logger = logging.getLogger(__name__)


@dataclass
class RagdollResult:
    """Summary of a settling run."""
    initial_positions: np.ndarray   # (N, 3)
    final_positions: np.ndarray     # (N, 3)
    max_displacement: float
    mean_final_height: float
    simulation_time: float          # seconds of sim time
    wall_time: float                # actual seconds elapsed

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "body_count": int(len(self.final_positions)),
            "max_displacement": self.max_displacement,
            "mean_final_height": self.mean_final_height,
            "simulation_time": self.simulation_time,
            "wall_time": self.wall_time,
        }


class RagdollSimulator:
    """
    PyBullet world holding one free box per voxel.
    """

    def __init__(self, stiffness: float = 0.5, config: Optional[RagdollConfig] = None, gui: bool = False):
        """
        Args:
            stiffness: 0 (loose) .. 1 (rigid); sets damping and gravity
            config: Physical constants
            gui: If True, show the PyBullet GUI (falls back to DIRECT)
        """
        self.config = config or RagdollConfig()
        self.params = ragdoll_params(stiffness, self.config)
        self.gui = gui
        self.physics_client = None
        self.plane_id = None
        self.body_ids: List[int] = []

    def _connect(self):
        """Connect to physics server and build the ground."""
        if self.physics_client is not None and p.getConnectionInfo(self.physics_client)["isConnected"]:
            return

        if self.gui:
            self.physics_client = p.connect(p.GUI)
            if self.physics_client < 0:
                self.physics_client = p.connect(p.DIRECT)
        else:
            self.physics_client = p.connect(p.DIRECT)

        p.setGravity(0, -self.params.gravity, 0, physicsClientId=self.physics_client)
        p.setPhysicsEngineParameter(
            fixedTimeStep=self.config.time_step,
            numSubSteps=4,
            physicsClientId=self.physics_client,
        )

        plane_shape = p.createCollisionShape(
            p.GEOM_PLANE,
            planeNormal=[0, 1, 0],
            physicsClientId=self.physics_client,
        )
        self.plane_id = p.createMultiBody(
            baseMass=0,
            baseCollisionShapeIndex=plane_shape,
            basePosition=[0, self.config.ground_height, 0],
            physicsClientId=self.physics_client,
        )

    def _disconnect(self):
        """Disconnect from physics server."""
        if self.physics_client is not None:
            if p.getConnectionInfo(self.physics_client)["isConnected"]:
                p.disconnect(self.physics_client)
            self.physics_client = None
            self.body_ids = []

    def _reset(self):
        """Remove all voxel bodies, keep the ground."""
        for body_id in self.body_ids:
            p.removeBody(body_id, physicsClientId=self.physics_client)
        self.body_ids = []

    def spawn(self, bodies: List[RagdollBody]) -> List[int]:
        """Create one PyBullet body per RagdollBody; returns the body ids."""
        self._connect()
        self._reset()

        for body in bodies:
            collision = p.createCollisionShape(
                p.GEOM_BOX,
                halfExtents=list(body.half_extents),
                physicsClientId=self.physics_client,
            )
            visual = p.createVisualShape(
                p.GEOM_BOX,
                halfExtents=list(body.half_extents),
                rgbaColor=hex_to_rgba(body.color),
                physicsClientId=self.physics_client,
            )
            body_id = p.createMultiBody(
                baseMass=body.mass,
                baseCollisionShapeIndex=collision,
                baseVisualShapeIndex=visual,
                basePosition=body.position.tolist(),
                physicsClientId=self.physics_client,
            )
            p.changeDynamics(
                body_id, -1,
                linearDamping=body.linear_damping,
                angularDamping=body.angular_damping,
                physicsClientId=self.physics_client,
            )
            self.body_ids.append(body_id)

        logger.info(
            "Spawned %d ragdoll bodies (damping %.2f, gravity %.2f)",
            len(self.body_ids), self.params.damping, self.params.gravity,
        )
        return self.body_ids

    def step(self, steps: int = 1):
        """Advance the simulation by a number of fixed steps."""
        for _ in range(steps):
            p.stepSimulation(physicsClientId=self.physics_client)
            if self.gui:
                time.sleep(self.config.time_step)

    def positions(self) -> np.ndarray:
        """Current body centers, (N, 3), in spawn order."""
        if not self.body_ids:
            return np.zeros((0, 3))
        return np.array([
            p.getBasePositionAndOrientation(body_id, physicsClientId=self.physics_client)[0]
            for body_id in self.body_ids
        ])

    def settle(self, bodies: List[RagdollBody], duration: float = 3.0) -> RagdollResult:
        """
        Spawn bodies and let them fall for a while.

        Args:
            bodies: Output of build_ragdoll_bodies
            duration: Simulation duration in seconds

        Returns:
            RagdollResult with start/end positions and summary metrics
        """
        start_wall_time = time.time()
        self.spawn(bodies)
        initial = self.positions()

        self.step(int(duration / self.config.time_step))
        final = self.positions()

        if len(final):
            max_displacement = float(np.linalg.norm(final - initial, axis=1).max())
            mean_height = float(final[:, 1].mean())
        else:
            max_displacement = 0.0
            mean_height = 0.0

        return RagdollResult(
            initial_positions=initial,
            final_positions=final,
            max_displacement=max_displacement,
            mean_final_height=mean_height,
            simulation_time=duration,
            wall_time=time.time() - start_wall_time,
        )

    def close(self):
        """Clean up simulator resources."""
        self._disconnect()
