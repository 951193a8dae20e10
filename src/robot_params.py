"""Robot kinematic and dynamic parameters, and chain builders.

Defines the parameter base class used to build a `Chain` from DH tables,
the UR5e preset, and small analytic chains (pendulum, planar arm) that
have closed-form dynamics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

import numpy as np

from hybrid_dynamics.chain import Chain, Joint, JointType, Segment
from hybrid_dynamics.lie_algebra import rotation_about_axis, transform_from_rotation_translation
from hybrid_dynamics.spatial_inertia import spatial_inertia_at_frame


def _rot_x(alpha: float) -> np.ndarray:
    return rotation_about_axis(np.array([1.0, 0.0, 0.0]), alpha)


def _translation(p) -> np.ndarray:
    return transform_from_rotation_translation(np.eye(3), np.asarray(p, dtype=np.float64))


@dataclass
class RobotParametersBase(ABC):
    """Abstract base class for robot kinematic and dynamic parameters.

    Attributes:
        n_joints: Number of joints in the robot.
        dh_params: DH parameters array of shape (n_joints, 3).
                   For standard DH: each row is [d, a, alpha].
                   For modified DH: each row is [a, d, alpha].
        dh_convention: DH convention used ("standard" or "modified").
        link_masses: Array of link masses [kg] of shape (n_joints,).
        link_com_positions: CoM positions relative to the link (segment tip)
                            frame [m], shape (n_joints, 3).
        link_inertias: Inertia tensors at CoM [kg*m^2],
                       shape (n_joints, 3, 3).
    """

    n_joints: int
    dh_params: np.ndarray
    dh_convention: Literal["standard", "modified"]
    link_masses: np.ndarray
    link_com_positions: np.ndarray
    link_inertias: np.ndarray

    @property
    @abstractmethod
    def robot_name(self) -> str:
        """Return the robot model name."""
        pass

    def get_spatial_inertia_at_com(self, link_index: int) -> np.ndarray:
        """Get 6x6 spatial inertia matrix at link CoM.

        Args:
            link_index: 0-indexed link number.

        Returns:
            (6, 6) spatial inertia matrix at CoM.
        """
        if not 0 <= link_index < self.n_joints:
            raise ValueError(f"link_index must be 0-{self.n_joints-1}, got {link_index}")
        return spatial_inertia_at_frame(
            self.link_masses[link_index],
            self.link_inertias[link_index],
            np.zeros(3),
        )

    def get_spatial_inertia_at_tip(self, link_index: int) -> np.ndarray:
        """Get 6x6 spatial inertia matrix about the link (segment tip) frame."""
        if not 0 <= link_index < self.n_joints:
            raise ValueError(f"link_index must be 0-{self.n_joints-1}, got {link_index}")
        return spatial_inertia_at_frame(
            self.link_masses[link_index],
            self.link_inertias[link_index],
            self.link_com_positions[link_index],
        )

    def to_chain(self) -> Chain:
        """Build a chain of revolute segments from the DH table.

        Standard DH:  T_i = Rz(theta) Tz(d) Tx(a) Rx(alpha)
        Modified DH:  T_i = Rx(alpha) Tx(a) Rz(theta) Tz(d)

        Returns:
            Chain whose segment tip frames are the DH link frames.
        """
        if self.dh_convention not in ("standard", "modified"):
            raise ValueError(f"Unknown DH convention '{self.dh_convention}'")

        chain = Chain()
        for i in range(self.n_joints):
            inertia = self.get_spatial_inertia_at_tip(i)
            if self.dh_convention == "standard":
                d, a, alpha = self.dh_params[i]
                joint = Joint(f"joint_{i + 1}", JointType.ROT_Z)
                f_tip = _translation([0.0, 0.0, d]) @ _translation([a, 0.0, 0.0])
                f_tip[:3, :3] = _rot_x(alpha)
            else:
                a, d, alpha = self.dh_params[i]
                R = _rot_x(alpha)
                # z-axis of the frame reached by Rx(alpha) Tx(a)
                joint = Joint(
                    f"joint_{i + 1}",
                    JointType.ROT_AXIS,
                    axis=R[:, 2],
                    origin=np.array([a, 0.0, 0.0]),
                )
                f_tip = transform_from_rotation_translation(R, [a, 0.0, 0.0]) @ _translation([0.0, 0.0, d])
            chain.add_segment(Segment(f"link_{i + 1}", joint, f_tip, inertia))
        return chain


@dataclass
class UR5eParameters(RobotParametersBase):
    """UR5e robot parameters.

    DH parameters are in standard DH convention: [d, a, alpha].
    Inertial properties are approximate values from URDF specifications.
    """

    n_joints: int = 6
    dh_convention: str = "standard"

    # From Universal Robots official documentation
    dh_params: np.ndarray = field(default_factory=lambda: np.array([
        [0.089159,   0.0,       np.pi / 2],   # Joint 1
        [0.0,       -0.425,     0.0],          # Joint 2
        [0.0,       -0.39225,   0.0],          # Joint 3
        [0.10915,    0.0,       np.pi / 2],   # Joint 4
        [0.09465,    0.0,      -np.pi / 2],   # Joint 5
        [0.0823,     0.0,       0.0],          # Joint 6
    ], dtype=np.float64))

    link_masses: np.ndarray = field(default_factory=lambda: np.array([
        3.7,     # Link 1 (shoulder)
        8.393,   # Link 2 (upper arm)
        2.275,   # Link 3 (forearm)
        1.219,   # Link 4 (wrist 1)
        1.219,   # Link 5 (wrist 2)
        0.1879,  # Link 6 (wrist 3)
    ], dtype=np.float64))

    # [x, y, z] in link frame when theta = 0
    link_com_positions: np.ndarray = field(default_factory=lambda: np.array([
        [0.0, -0.02561, 0.00193],       # Link 1
        [0.2125, 0.0, 0.11336],         # Link 2
        [0.15, 0.0, 0.0265],            # Link 3
        [0.0, -0.0018, 0.01634],        # Link 4
        [0.0, 0.0018, 0.01634],         # Link 5
        [0.0, 0.0, -0.001159],          # Link 6
    ], dtype=np.float64))

    # [[Ixx, Ixy, Ixz], [Ixy, Iyy, Iyz], [Ixz, Iyz, Izz]]
    link_inertias: np.ndarray = field(default_factory=lambda: np.array([
        np.diag([0.010267, 0.010267, 0.00666]),
        np.diag([0.22689, 0.22689, 0.0151074]),
        np.diag([0.049443, 0.049443, 0.004095]),
        np.diag([0.111172, 0.111172, 0.21942]),
        np.diag([0.111172, 0.111172, 0.21942]),
        np.diag([0.0171364, 0.0171364, 0.033822]),
    ], dtype=np.float64))

    @property
    def robot_name(self) -> str:
        return "UR5e"


def create_ur5e_parameters() -> UR5eParameters:
    """Factory function to create UR5e parameters."""
    return UR5eParameters()


def pendulum_chain(
    length: float = 1.0,
    mass: float = 1.0,
    inertia_com: float = 0.0,
    joint_type: JointType = JointType.ROT_Z,
) -> Chain:
    """Single-segment pendulum with its mass concentrated at the tip.

    The rod points along the tip frame x-axis, so with a ROT_Z joint the
    pendulum swings in the base xy-plane.

    Args:
        length: Distance from the joint to the point mass [m].
        mass: Point mass [kg].
        inertia_com: Rotational inertia about the CoM, applied on all
            three axes [kg*m^2].
        joint_type: Joint of the single segment.

    Returns:
        One-segment chain.
    """
    inertia = spatial_inertia_at_frame(mass, inertia_com * np.eye(3), np.zeros(3))
    return Chain([
        Segment("pendulum", Joint("pivot", joint_type), _translation([length, 0.0, 0.0]), inertia),
    ])


def planar_arm_chain(
    lengths: Sequence[float],
    masses: Sequence[float],
    tool_offset: Optional[float] = None,
) -> Chain:
    """Planar arm of uniform rods rotating about base z.

    Each link is a slender rod of the given length whose CoM lies halfway
    between its joint and its tip.

    Args:
        lengths: Link lengths [m].
        masses: Link masses [kg].
        tool_offset: If given, append a fixed tool segment of this length.

    Returns:
        Chain with len(lengths) revolute segments.
    """
    if len(lengths) != len(masses):
        raise ValueError("lengths and masses must have the same size")

    chain = Chain()
    for i, (length, mass) in enumerate(zip(lengths, masses)):
        i_rod = mass * length ** 2 / 12.0
        I_c = np.diag([1e-4 * mass, i_rod, i_rod])
        inertia = spatial_inertia_at_frame(mass, I_c, [-length / 2.0, 0.0, 0.0])
        chain.add_segment(
            Segment(f"link_{i + 1}", Joint(f"joint_{i + 1}", JointType.ROT_Z),
                    _translation([length, 0.0, 0.0]), inertia)
        )
    if tool_offset is not None:
        chain.add_segment(Segment("tool", Joint("tool_mount", JointType.FIXED),
                                  _translation([tool_offset, 0.0, 0.0])))
    return chain
