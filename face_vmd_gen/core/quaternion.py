"""Quaternion and rotation helpers on torch tensors.

Quaternions are (w, x, y, z) tensors in working precision. Composition follows
the usual right-to-left convention: ``quaternion_multiply(a, b)`` applies ``b``
first, then ``a``.
"""

from typing import Union
import torch

from .constants import DTYPE, EPSILON
from .exceptions import DegenerateInput

Scalar = Union[float, torch.Tensor]

UNIT_X = (1.0, 0.0, 0.0)
UNIT_Y = (0.0, 1.0, 0.0)
UNIT_Z = (0.0, 0.0, 1.0)


def identity_quaternion(device: str = 'cpu') -> torch.Tensor:
    return torch.tensor([1.0, 0.0, 0.0, 0.0], dtype=DTYPE, device=device)


def axis_angle_quaternion(angle: Scalar, axis, device: str = 'cpu') -> torch.Tensor:
    """
    Quaternion for a rotation of ``angle`` radians about a unit ``axis``.

    Args:
        angle: Rotation angle in radians
        axis: Unit rotation axis (3,)
        device: Device to create the tensor on

    Returns:
        (4,) quaternion (w, x, y, z)
    """
    angle = torch.as_tensor(angle, dtype=DTYPE, device=device)
    axis = torch.as_tensor(axis, dtype=DTYPE, device=device)
    half = angle * 0.5
    return torch.cat([torch.cos(half).reshape(1), torch.sin(half) * axis])


def quaternion_multiply(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    """Hamilton product a * b."""
    aw, ax, ay, az = a.unbind(-1)
    bw, bx, by, bz = b.unbind(-1)
    return torch.stack([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    ], dim=-1)


def quaternion_rotate(q: torch.Tensor, v: torch.Tensor) -> torch.Tensor:
    """Rotate vector ``v`` (3,) by unit quaternion ``q``."""
    w = q[0]
    u = q[1:]
    # v' = v + 2w(u x v) + 2u x (u x v)
    uv = torch.linalg.cross(u, v)
    return v + 2.0 * (w * uv + torch.linalg.cross(u, uv))


def quaternion_from_two_vectors(a: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
    """
    Shortest-arc rotation taking direction ``a`` onto direction ``b``.

    Antiparallel inputs rotate by pi about an axis orthogonal to ``a``.

    Raises:
        DegenerateInput: If either vector has (near) zero length
    """
    a_norm = torch.linalg.norm(a)
    b_norm = torch.linalg.norm(b)
    if a_norm < EPSILON or b_norm < EPSILON:
        raise DegenerateInput("Cannot build a rotation from a zero-length vector")

    v0 = a / a_norm
    v1 = b / b_norm
    c = torch.dot(v0, v1)

    if c < -1.0 + 1e-12:
        # Pick the cardinal axis least aligned with v0
        basis = torch.eye(3, dtype=v0.dtype, device=v0.device)[torch.argmin(torch.abs(v0))]
        axis = torch.linalg.cross(v0, basis)
        axis = axis / torch.linalg.norm(axis)
        return torch.cat([torch.zeros(1, dtype=v0.dtype, device=v0.device), axis])

    s = torch.sqrt((1.0 + c) * 2.0)
    axis = torch.linalg.cross(v0, v1) / s
    return torch.cat([(s * 0.5).reshape(1), axis])


def quaternion_slerp(q0: torch.Tensor, q1: torch.Tensor, t: Scalar) -> torch.Tensor:
    """
    Spherical linear interpolation from ``q0`` (t=0) to ``q1`` (t=1) along the shorter arc.
    Falls back to linear blending when the quaternions are nearly equal.
    """
    t = torch.as_tensor(t, dtype=q0.dtype, device=q0.device)
    d = torch.dot(q0, q1)
    abs_d = torch.abs(d)

    if abs_d >= 1.0 - 1e-12:
        scale0 = 1.0 - t
        scale1 = t
    else:
        theta = torch.acos(abs_d)
        sin_theta = torch.sin(theta)
        scale0 = torch.sin((1.0 - t) * theta) / sin_theta
        scale1 = torch.sin(t * theta) / sin_theta

    if d < 0:
        scale1 = -scale1

    return scale0 * q0 + scale1 * q1


def euler_to_rotation_matrix(euler: torch.Tensor) -> torch.Tensor:
    """
    Rotation matrix R = Rx(a) * Ry(b) * Rz(c) for Euler angles (a, b, c).

    This is the tracking model's pose convention.

    Args:
        euler: (3,) angles in radians (pitch, yaw, roll)

    Returns:
        (3, 3) rotation matrix
    """
    s1, s2, s3 = torch.sin(euler).unbind(0)
    c1, c2, c3 = torch.cos(euler).unbind(0)

    return torch.stack([
        torch.stack([c2 * c3, -c2 * s3, s2]),
        torch.stack([c1 * s3 + c3 * s1 * s2, c1 * c3 - s1 * s2 * s3, -c2 * s1]),
        torch.stack([s1 * s3 - c1 * c3 * s2, c3 * s1 + c1 * s2 * s3, c1 * c2]),
    ])
