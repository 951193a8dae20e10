"""Serial kinematic chain model.

A chain is an ordered list of segments. Each segment carries one joint
(possibly fixed), the fixed transform from the joint frame to the segment
tip frame, and the rigid-body inertia of the segment about its tip frame.

Coordinate convention:
- Twists are [omega, v], wrenches are [m, f].
- Segment i's root frame is the tip frame of segment i-1 (the base for i=0).
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

import numpy as np

from hybrid_dynamics.lie_algebra import rotation_about_axis, transform_from_rotation_translation


class JointType(Enum):
    """Joint kinds supported by the chain model."""

    ROT_AXIS = "rot_axis"
    ROT_X = "rot_x"
    ROT_Y = "rot_y"
    ROT_Z = "rot_z"
    TRANS_AXIS = "trans_axis"
    TRANS_X = "trans_x"
    TRANS_Y = "trans_y"
    TRANS_Z = "trans_z"
    FIXED = "fixed"


_ROTATIONAL = (JointType.ROT_AXIS, JointType.ROT_X, JointType.ROT_Y, JointType.ROT_Z)

_FIXED_AXES = {
    JointType.ROT_X: (1.0, 0.0, 0.0),
    JointType.ROT_Y: (0.0, 1.0, 0.0),
    JointType.ROT_Z: (0.0, 0.0, 1.0),
    JointType.TRANS_X: (1.0, 0.0, 0.0),
    JointType.TRANS_Y: (0.0, 1.0, 0.0),
    JointType.TRANS_Z: (0.0, 0.0, 1.0),
}


@dataclass
class Joint:
    """A single-degree-of-freedom (or fixed) joint.

    Attributes:
        name: Joint name.
        joint_type: Kind of joint.
        axis: Unit joint axis in the joint (segment root) frame. Required
            for ROT_AXIS / TRANS_AXIS, implied by the other types.
        origin: Point on a rotational axis, in the joint frame.
    """

    name: str = "NoName"
    joint_type: JointType = JointType.FIXED
    axis: Optional[np.ndarray] = None
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if self.joint_type in _FIXED_AXES:
            self.axis = np.array(_FIXED_AXES[self.joint_type])
        elif self.joint_type in (JointType.ROT_AXIS, JointType.TRANS_AXIS):
            if self.axis is None:
                raise ValueError(f"Joint '{self.name}' of type {self.joint_type.value} needs an axis")
            axis = np.asarray(self.axis, dtype=np.float64).ravel()
            norm = np.linalg.norm(axis)
            if axis.shape != (3,) or norm < 1e-12:
                raise ValueError(f"Joint '{self.name}' axis must be a nonzero 3-vector")
            self.axis = axis / norm
        else:
            self.axis = np.zeros(3)
        self.origin = np.asarray(self.origin, dtype=np.float64).ravel()
        if self.origin.shape != (3,):
            raise ValueError(f"Joint '{self.name}' origin must be a 3-vector")

    @property
    def is_movable(self) -> bool:
        """True unless the joint is fixed."""
        return self.joint_type != JointType.FIXED

    @property
    def is_rotational(self) -> bool:
        return self.joint_type in _ROTATIONAL

    def pose(self, q: float) -> np.ndarray:
        """Pose of the joint's moved frame in the joint frame at value q."""
        if not self.is_movable:
            return np.eye(4)
        if self.is_rotational:
            R = rotation_about_axis(self.axis, q)
            return transform_from_rotation_translation(R, self.origin - R @ self.origin)
        return transform_from_rotation_translation(np.eye(3), self.axis * q)

    def unit_twist(self) -> np.ndarray:
        """Motion subspace of the joint, referenced to the joint frame origin.

        Returns:
            (6,) twist [omega, v] produced by a unit joint rate.
        """
        if not self.is_movable:
            return np.zeros(6)
        if self.is_rotational:
            return np.concatenate([self.axis, np.cross(self.origin, self.axis)])
        return np.concatenate([np.zeros(3), self.axis])


@dataclass
class Segment:
    """A rigid link attached to its parent through a joint.

    Attributes:
        name: Segment name.
        joint: Joint between the parent tip frame and this segment.
        f_tip: (4, 4) pose of the segment tip frame in the moved joint frame.
        inertia: (6, 6) rigid-body inertia about the segment tip frame.
    """

    name: str = "NoName"
    joint: Joint = field(default_factory=Joint)
    f_tip: np.ndarray = field(default_factory=lambda: np.eye(4))
    inertia: np.ndarray = field(default_factory=lambda: np.zeros((6, 6)))

    def __post_init__(self):
        self.f_tip = np.asarray(self.f_tip, dtype=np.float64)
        self.inertia = np.asarray(self.inertia, dtype=np.float64)
        if self.f_tip.shape != (4, 4):
            raise ValueError(f"Segment '{self.name}' f_tip must have shape (4, 4), got {self.f_tip.shape}")
        if self.inertia.shape != (6, 6):
            raise ValueError(f"Segment '{self.name}' inertia must have shape (6, 6), got {self.inertia.shape}")

    def pose(self, q: float) -> np.ndarray:
        """Pose of the tip frame in the root frame: joint.pose(q) @ f_tip."""
        return self.joint.pose(q) @ self.f_tip

    def unit_twist(self) -> np.ndarray:
        """Joint motion subspace in the root frame, at the root origin."""
        return self.joint.unit_twist()

    def twist(self, q: float, q_dot: float) -> np.ndarray:
        """Velocity of the tip point due to the joint rate, in root orientation."""
        t = self.unit_twist() * q_dot
        p_tip = self.pose(q)[:3, 3]
        t[3:] += np.cross(t[:3], p_tip)
        return t


class Chain:
    """Ordered sequence of segments forming an open serial chain."""

    def __init__(self, segments: Optional[List[Segment]] = None) -> None:
        self.segments: List[Segment] = []
        for segment in segments or []:
            self.add_segment(segment)

    def add_segment(self, segment: Segment) -> None:
        """Append a segment at the tip of the chain."""
        if not isinstance(segment, Segment):
            raise ValueError(f"Expected a Segment, got {type(segment).__name__}")
        self.segments.append(segment)

    def add_chain(self, chain: "Chain") -> None:
        """Append every segment of another chain."""
        for segment in chain.segments:
            self.add_segment(segment)

    @property
    def nr_of_segments(self) -> int:
        return len(self.segments)

    @property
    def nr_of_joints(self) -> int:
        return sum(1 for s in self.segments if s.joint.is_movable)

    def get_segment(self, index: int) -> Segment:
        if not 0 <= index < len(self.segments):
            raise ValueError(f"segment index must be 0-{len(self.segments) - 1}, got {index}")
        return self.segments[index]

    def copy(self) -> "Chain":
        """Deep copy; later edits of either chain do not affect the other."""
        return Chain(copy.deepcopy(self.segments))

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)
