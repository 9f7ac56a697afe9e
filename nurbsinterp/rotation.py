import jax.numpy as jnp
import equinox as eqx

from .config import Settings


def _normalize(v):
    """Normalize a vector, leaving zero-length vectors untouched."""
    norm = jnp.linalg.norm(v)
    return v / jnp.where(norm > Settings.TOLERANCE_ZERO_LENGTH, norm, 1.0)


def _perpendicular(a):
    """Return a unit vector perpendicular to the unit vector `a`."""
    # Cross with the x-axis unless `a` is almost aligned with it
    helper = jnp.where(
        jnp.abs(a[0]) < 0.9,
        jnp.array([1.0, 0.0, 0.0]),
        jnp.array([0.0, 1.0, 0.0]),
    )
    return _normalize(jnp.cross(a, helper))


class Quaternion(eqx.Module):
    """Unit quaternion representing a rotation in 3D space

    Parameters
    ----------
    q : ndarray with shape (4,)
        Components of the quaternion in the order `(x, y, z, w)`,
        where `(x, y, z)` is the vector part and `w` the scalar part

    Notes
    -----
    The product convention is the Hamilton one, so that `a.multiply(b)` applies `b` first.

    """

    q: jnp.ndarray  # (x, y, z, w)

    def __init__(self, q):
        self.q = jnp.asarray(q, dtype=float)

    @staticmethod
    def identity():
        """Rotation by zero radians."""
        return Quaternion(jnp.array([0.0, 0.0, 0.0, 1.0]))

    @staticmethod
    def from_axis_angle(axis, angle):
        """Rotation by `angle` radians about `axis` (right-hand rule)."""
        axis = _normalize(jnp.asarray(axis, dtype=float))
        half = 0.5 * jnp.asarray(angle, dtype=float)
        return Quaternion(jnp.concatenate((axis * jnp.sin(half), jnp.cos(half)[None])))

    @staticmethod
    def rotate_from_to(a, b):
        """
        Shortest-arc rotation that maps the direction of `a` onto the direction of `b`.

        The rotation axis is `a × b` and the angle is `acos(â · b̂)`. Degenerate inputs are
        resolved deterministically:

        - `a` or `b` of zero length, or with non-finite components: identity
        - `a` parallel to `b`: identity
        - `a` anti-parallel to `b`: half turn about an axis perpendicular to `a`

        Parameters
        ----------
        a, b : array_like with shape (3,)
            Source and target directions. They do not need to be normalized.

        Returns
        -------
        rotation : Quaternion
        """
        a = jnp.asarray(a, dtype=float)
        b = jnp.asarray(b, dtype=float)
        is_zero = (jnp.linalg.norm(a) <= Settings.TOLERANCE_ZERO_LENGTH) | (
            jnp.linalg.norm(b) <= Settings.TOLERANCE_ZERO_LENGTH
        )
        is_zero = is_zero | ~jnp.all(jnp.isfinite(a)) | ~jnp.all(jnp.isfinite(b))
        a = _normalize(a)
        b = _normalize(b)
        d = jnp.clip(jnp.dot(a, b), -1.0, 1.0)

        is_parallel = d >= 1.0 - Settings.TOLERANCE_PARALLEL
        is_opposite = d <= -1.0 + Settings.TOLERANCE_PARALLEL

        # General case: q = (a × b / s, s / 2) with s = sqrt(2 (1 + a·b))
        s = jnp.sqrt(2.0 * (1.0 + d))
        s_safe = jnp.where(is_opposite, 1.0, s)
        q_general = jnp.concatenate((jnp.cross(a, b) / s_safe, (0.5 * s)[None]))

        # Anti-parallel case: half turn about any perpendicular axis
        q_opposite = jnp.concatenate((_perpendicular(a), jnp.zeros((1,))))

        q_identity = jnp.array([0.0, 0.0, 0.0, 1.0])
        q = jnp.where(is_opposite, q_opposite, q_general)
        q = jnp.where(is_parallel | is_zero, q_identity, q)
        return Quaternion(q / jnp.linalg.norm(q))

    @property
    def x(self):
        return self.q[0]

    @property
    def y(self):
        return self.q[1]

    @property
    def z(self):
        return self.q[2]

    @property
    def w(self):
        return self.q[3]

    def as_array(self):
        """Components as an array `(x, y, z, w)`."""
        return self.q

    def conjugate(self):
        """Inverse rotation (for unit quaternions)."""
        return Quaternion(self.q * jnp.array([-1.0, -1.0, -1.0, 1.0]))

    def multiply(self, other):
        """Hamilton product `self * other`."""
        x1, y1, z1, w1 = self.q
        x2, y2, z2, w2 = other.q
        return Quaternion(
            jnp.stack(
                (
                    w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                    w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                    w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
                    w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
                )
            )
        )

    def rotate_vector(self, v):
        """Apply the rotation to the vector `v` with shape (3,)."""
        v = jnp.asarray(v, dtype=float)
        r, w = self.q[:3], self.q[3]
        t = 2.0 * jnp.cross(r, v)
        return v + w * t + jnp.cross(r, t)

    def to_axis_angle(self):
        """
        Convert to the X3D `SFRotation` form `(ax, ay, az, angle)`.

        The identity rotation is reported about the z-axis, so that the axis is always a unit vector.
        """
        q = jnp.where(self.q[3] < 0.0, -self.q, self.q)
        sin_half = jnp.linalg.norm(q[:3])
        angle = 2.0 * jnp.arctan2(sin_half, q[3])
        axis = jnp.where(
            sin_half > Settings.TOLERANCE_ZERO_LENGTH,
            q[:3] / jnp.where(sin_half > Settings.TOLERANCE_ZERO_LENGTH, sin_half, 1.0),
            jnp.array([0.0, 0.0, 1.0]),
        )
        return jnp.concatenate((axis, angle[None]))
