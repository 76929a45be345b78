"""Kinematic chain model of UR robots and correction of their factory calibration.

Universal Robots ship a factory calibration of their DH parameters. Those
parameters can describe a chain whose upper and lower arm segments are drawn
far away from their physical position. :class:`Calibration` builds the chain
and drags these segments back so that shoulder and elbow offsets are zero,
while leaving the forward kinematics unchanged.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

LINK_NAMES = ("shoulder", "upper_arm", "forearm", "wrist_1", "wrist_2", "wrist_3")


@dataclass(frozen=True)
class DHSegment:
    """One DH-parametrized link."""

    d: float = 0.0
    a: float = 0.0
    theta: float = 0.0
    alpha: float = 0.0

    def __add__(self, other: DHSegment) -> DHSegment:
        if not isinstance(other, DHSegment):
            return NotImplemented
        return DHSegment(
            self.d + other.d,
            self.a + other.a,
            self.theta + other.theta,
            self.alpha + other.alpha,
        )


@dataclass
class DHRobot:
    """A robot described by a list of DH segments."""

    segments: list[DHSegment] = field(default_factory=list)
    delta_theta_correction2: float = 0.0
    delta_theta_correction3: float = 0.0

    def __add__(self, other: DHRobot) -> DHRobot:
        """Add two robots segment by segment."""
        if not isinstance(other, DHRobot):
            return NotImplemented
        if len(self.segments) != len(other.segments):
            raise ValueError(
                f"cannot add robots with {len(self.segments)} and "
                f"{len(other.segments)} segments"
            )
        return DHRobot([mine + theirs for mine, theirs in zip(self.segments, other.segments)])


def _rot_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rot_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def euler_angles_xyz(rotation) -> tuple[float, float, float]:
    """Return (roll, pitch, yaw) such that ``rotation == Rx(roll) @ Ry(pitch) @ Rz(yaw)``.

    The first angle is kept in the range [0, pi].
    """
    m = np.asarray(rotation, dtype=float)
    if m.shape != (3, 3):
        raise ValueError(f"expected a 3x3 rotation matrix, got shape {m.shape}")
    first = math.atan2(m[1, 2], m[2, 2])
    c2 = math.hypot(m[0, 0], m[0, 1])
    if first > 0.0:
        first -= math.pi
        second = math.atan2(-m[0, 2], -c2)
    else:
        second = math.atan2(-m[0, 2], c2)
    s1, c1 = math.sin(first), math.cos(first)
    third = math.atan2(s1 * m[2, 0] - c1 * m[1, 0], c1 * m[1, 1] - s1 * m[2, 1])
    return -first, -second, -third


class Calibration:
    """Kinematic chain built from DH parameters, with calibration correction.

    Each DH segment yields two homogeneous transforms in the chain: one for
    ``d`` and ``theta`` and one for ``a`` and ``alpha``.
    """

    def __init__(self, robot: DHRobot):
        self._robot = DHRobot(
            list(robot.segments),
            robot.delta_theta_correction2,
            robot.delta_theta_correction3,
        )
        self._chain: list[np.ndarray] = []
        for segment in self._robot.segments:
            d_theta = np.eye(4)
            d_theta[:3, :3] = _rot_z(segment.theta)
            d_theta[2, 3] = segment.d
            self._chain.append(d_theta)

            a_alpha = np.eye(4)
            a_alpha[:3, :3] = _rot_x(segment.alpha)
            a_alpha[0, 3] = segment.a
            self._chain.append(a_alpha)

    def chain(self) -> list[np.ndarray]:
        """Two 4x4 transforms per joint, from the base to the tool."""
        return [matrix.copy() for matrix in self._chain]

    def correct_chain(self) -> None:
        """Correct the chain so that shoulder and elbow offsets are zero."""
        if len(self._robot.segments) < 4:
            raise ValueError("chain correction needs at least four segments")
        self._correct_axis(1)
        self._correct_axis(2)

    def _correct_axis(self, link_index: int) -> None:
        # Setting d of the d/theta segment to zero moves the passive a/alpha
        # segment along this joint's axis. Its end has to move along the next
        # joint's axis instead, found by intersecting that axis with the XY
        # plane of the current segment's start.
        d_theta = self._chain[2 * link_index]
        a_alpha = self._chain[2 * link_index + 1]
        d = d_theta[2, 3]
        a = a_alpha[0, 3]
        if d == 0.0:
            return

        next_root = d_theta @ a_alpha
        next_root_position = next_root[:3, 3]
        next_d_theta_end = (next_root @ self._chain[2 * link_index + 2])[:3, 3]

        direction = next_d_theta_end - next_root_position
        length = np.linalg.norm(direction)
        if length == 0.0:
            raise ValueError(f"rotation axis after link {link_index} is degenerate")
        direction = direction / length
        logger.debug("next rotation axis: base %s, direction %s", next_root_position, direction)

        if direction[2] == 0.0:
            raise ValueError(f"rotation axis after link {link_index} is parallel to the XY plane")
        intersection_param = -next_root_position[2] / direction[2]
        intersection_point = next_root_position + intersection_param * direction

        # A non-zero a puts the intersection at (a, 0) without any rotation.
        subtraction_angle = math.pi if abs(a) > 0 else 0.0
        new_theta = math.atan2(intersection_point[1], intersection_point[0]) - subtraction_angle
        # Upper and lower arm segments have negative length in UR DH parameters.
        new_link_length = -float(np.linalg.norm(intersection_point))
        logger.debug(
            "intersection at %s, angle %s, length %s, parameter %s",
            intersection_point,
            new_theta,
            new_link_length,
            intersection_param,
        )

        sign_dir = 1.0 if direction[2] > 0 else -1.0
        distance_correction = intersection_param * sign_dir

        segment = self._robot.segments[link_index]
        d_theta[2, 3] = 0.0
        d_theta[:3, :3] = _rot_z(new_theta)
        a_alpha[0, 3] = new_link_length
        a_alpha[:3, :3] = _rot_z(segment.theta - new_theta) @ _rot_x(segment.alpha)

        self._chain[2 * link_index + 2][2, 3] -= distance_correction

    def simplified(self) -> list[np.ndarray]:
        """One 4x4 transform per joint, from the base to the tool."""
        if not self._chain:
            raise ValueError("the chain is empty")
        inner = [self._chain[i] @ self._chain[i + 1] for i in range(1, len(self._chain) - 1, 2)]
        return [self._chain[0].copy(), *inner, self._chain[-1].copy()]

    def forward_kinematics(self, joint_values: Sequence[float], link_nr: int = 6) -> np.ndarray:
        """Pose of link ``link_nr`` (counted from 1) in base coordinates."""
        joints = np.asarray(joint_values, dtype=float).ravel()
        simplified = self.simplified()
        if link_nr < 0 or link_nr > len(joints) or link_nr > len(simplified):
            raise ValueError(
                f"link number {link_nr} is out of range for {len(joints)} joint values"
            )
        output = np.eye(4)
        for transform, joint in zip(simplified[:link_nr], joints):
            rotation = np.eye(4)
            rotation[:3, :3] = _rot_z(float(joint))
            output = output @ (transform @ rotation)
        return output

    def to_dict(self) -> dict:
        """Per-link position and roll/pitch/yaw of the simplified chain."""
        kinematics: dict[str, dict[str, float]] = {}
        for name, transform in zip(LINK_NAMES, self.simplified()):
            roll, pitch, yaw = euler_angles_xyz(transform[:3, :3])
            kinematics[name] = {
                "x": float(transform[0, 3]),
                "y": float(transform[1, 3]),
                "z": float(transform[2, 3]),
                "roll": float(roll),
                "pitch": float(pitch),
                "yaw": float(yaw),
            }
        return {"kinematics": kinematics}