"""
Hopper - Reference Frame Transformations

Quaternion operations, the local surface-north frame and vector rotations.

Quaternion Convention: [w, x, y, z] where w is the scalar component.

Surface-north frame: a local east-north-up (ENU) basis at the vehicle.
The body forward axis points to local north at the identity attitude, so a
heading/pitch pair maps to the forward vector
    (sin(h) cos(p), cos(h) cos(p), sin(p))
in (east, north, up) components.
"""

import numpy as np

from . import constants as C

# Body forward axis in the surface-north frame at identity attitude
FORWARD_AXIS = np.array([0.0, 1.0, 0.0])


def quaternion_normalize(q: np.ndarray) -> np.ndarray:
    """
    Normalize a quaternion to unit length.

    Args:
        q: Quaternion [w, x, y, z]

    Returns:
        Normalized quaternion (identity if the input is degenerate)
    """
    norm = np.linalg.norm(q)
    if norm < C.ZERO_TOLERANCE:
        return np.array([1.0, 0.0, 0.0, 0.0])
    return q / norm


def quaternion_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """
    Multiply two quaternions: q1 * q2 (apply q2 first, then q1).
    """
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2

    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2
    ])


def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    """Conjugate [w, -x, -y, -z] (inverse for unit quaternions)."""
    return np.array([q[0], -q[1], -q[2], -q[3]])


def quaternion_from_axis_angle(axis: np.ndarray, angle_deg: float) -> np.ndarray:
    """
    Quaternion for a right-handed rotation of angle_deg about axis.

    A zero axis yields the identity.
    """
    axis = np.asarray(axis, dtype=float)
    axis_norm = np.linalg.norm(axis)
    if axis_norm < C.ZERO_TOLERANCE:
        return np.array([1.0, 0.0, 0.0, 0.0])
    half = 0.5 * np.radians(angle_deg)
    xyz = axis / axis_norm * np.sin(half)
    return np.array([np.cos(half), xyz[0], xyz[1], xyz[2]])


def quaternion_to_rotation_matrix(q: np.ndarray) -> np.ndarray:
    """
    Convert a quaternion to the rotation matrix R(q), v' = R(q) @ v.
    """
    w, x, y, z = quaternion_normalize(q)

    xx, yy, zz = x*x, y*y, z*z
    xy, xz, yz = x*y, x*z, y*z
    wx, wy, wz = w*x, w*y, w*z

    return np.array([
        [1 - 2*(yy + zz),     2*(xy - wz),     2*(xz + wy)],
        [    2*(xy + wz), 1 - 2*(xx + zz),     2*(yz - wx)],
        [    2*(xz - wy),     2*(yz + wx), 1 - 2*(xx + yy)]
    ])


def rotate_vector_by_quaternion(v: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Rotate a 3-vector by a quaternion."""
    return quaternion_to_rotation_matrix(q) @ np.asarray(v, dtype=float)


def rotate_about_axis(v: np.ndarray, axis: np.ndarray, angle_deg: float) -> np.ndarray:
    """Right-handed rotation of v about axis by angle_deg (Rodrigues)."""
    return rotate_vector_by_quaternion(v, quaternion_from_axis_angle(axis, angle_deg))


def heading_pitch_to_quaternion(heading_deg: float, pitch_deg: float) -> np.ndarray:
    """
    Attitude quaternion in the surface-north frame.

    Composed yaw-then-pitch: yaw about local up by the heading (clockwise
    from north, hence a negative right-handed angle about up), then pitch
    about the body's right axis (local east before yaw) by pitch_deg above
    the horizon.

    Args:
        heading_deg: Compass heading (deg)
        pitch_deg: Elevation above the local horizontal (deg)

    Returns:
        Quaternion [w, x, y, z]
    """
    q_yaw = quaternion_from_axis_angle(np.array([0.0, 0.0, 1.0]), -heading_deg)
    q_pitch = quaternion_from_axis_angle(np.array([1.0, 0.0, 0.0]), pitch_deg)
    return quaternion_normalize(quaternion_multiply(q_yaw, q_pitch))


def attitude_forward_vector(q: np.ndarray) -> np.ndarray:
    """Body forward axis, in the attitude's reference frame."""
    return rotate_vector_by_quaternion(FORWARD_AXIS, q)


def local_enu_basis(r: np.ndarray, axis: np.ndarray = C.BODY_ROTATION_AXIS) -> tuple:
    """
    Local east, north, up unit vectors at position r.

    At the poles east is undefined; an arbitrary horizontal basis is
    returned instead.

    Returns:
        (east, north, up) unit vectors
    """
    r = np.asarray(r, dtype=float)
    up = r / max(np.linalg.norm(r), C.ZERO_TOLERANCE)
    east = np.cross(axis, up)
    east_norm = np.linalg.norm(east)
    if east_norm < 1e-9:
        perp = np.array([1.0, 0.0, 0.0]) if abs(up[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        east = np.cross(perp, up)
        east_norm = np.linalg.norm(east)
    east = east / east_norm
    north = np.cross(up, east)
    return east, north, up


def surface_to_body_fixed(v_enu: np.ndarray, r: np.ndarray,
                          axis: np.ndarray = C.BODY_ROTATION_AXIS) -> np.ndarray:
    """Express a surface-north (ENU) vector at position r in body-fixed axes."""
    east, north, up = local_enu_basis(r, axis)
    return v_enu[0] * east + v_enu[1] * north + v_enu[2] * up


def angle_between(a: np.ndarray, b: np.ndarray) -> float:
    """Angle between two vectors (deg); 0 if either is (near) zero."""
    a_norm = np.linalg.norm(a)
    b_norm = np.linalg.norm(b)
    if a_norm < C.ZERO_TOLERANCE or b_norm < C.ZERO_TOLERANCE:
        return 0.0
    cos_angle = np.clip(np.dot(a, b) / (a_norm * b_norm), -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))


def rotate_toward(current: np.ndarray, desired: np.ndarray, max_angle_deg: float) -> np.ndarray:
    """
    Turn a unit direction toward another by at most max_angle_deg.

    Returns:
        New unit direction
    """
    cur_n = current / (np.linalg.norm(current) + 1e-12)
    des_n = desired / (np.linalg.norm(desired) + 1e-12)
    angle = angle_between(cur_n, des_n)
    if angle <= max_angle_deg:
        return des_n
    axis = np.cross(cur_n, des_n)
    if np.linalg.norm(axis) < 1e-9:
        # anti-parallel: any perpendicular axis works
        perp = np.array([1.0, 0.0, 0.0]) if abs(cur_n[0]) < 0.9 else np.array([0.0, 1.0, 0.0])
        axis = np.cross(cur_n, perp)
    return rotate_about_axis(cur_n, axis, max_angle_deg)
