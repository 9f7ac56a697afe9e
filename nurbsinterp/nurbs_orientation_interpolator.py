import threading

import jax.numpy as jnp
import equinox as eqx
from loguru import logger

from .config import Settings
from .errors import InvalidInputError
from .nurbs_curve import NurbsCurve


# ----------------------------------------------------------- #
# Standalone orientation evaluation
# ----------------------------------------------------------- #
def evaluate_orientation(
    curve,
    u,
    fractional_shift=Settings.ORIENTATION_FRACTIONAL_SHIFT,
    reference_direction=Settings.ORIENTATION_REFERENCE_DIRECTION,
):
    """
    Evaluate the orientation of a NURBS curve at the parameter `u`.

    The curve is repaired with `NurbsCurve.ensure_valid`, sampled at `u` and at
    `u + (U[-1] - U[0]) * fractional_shift`, and the returned rotation maps
    `reference_direction` onto `C(u) - C(u + shift)`.

    Parameters
    ----------
    curve : NurbsCurve
        Three-dimensional curve.
    u : scalar
        Parameter value.
    fractional_shift : float
        Distance between the two samples, relative to the length of the knot domain.
    reference_direction : tuple of 3 floats
        Direction that the identity orientation points to.

    Returns
    -------
    orientation : Quaternion
        Shortest-arc rotation. When both samples coincide the identity is returned.
    """
    curve = curve.ensure_valid()
    u = jnp.asarray(u, dtype=float)
    return curve.get_orientation(u, fractional_shift, tuple(reference_direction))


# ----------------------------------------------------------- #
# Control point source
# ----------------------------------------------------------- #
class Coordinate(eqx.Module):
    """Container of 3D points, in the layout of an X3D Coordinate node

    Parameters
    ----------
    point : array_like with shape (N, 3)
        Sequence of `(x, y, z)` triples

    """

    point: jnp.ndarray  # (N, 3)

    def __init__(self, point=()):
        self.point = jnp.reshape(jnp.asarray(point, dtype=float), (-1, Settings.CURVE_NDIM))


# ----------------------------------------------------------- #
# Interpolator driven by fraction events
# ----------------------------------------------------------- #
class NurbsOrientationInterpolator:
    """Orientation interpolator that follows the direction of a 3D NURBS curve

    Parameters
    ----------
    control_point : Coordinate, object with a `point` attribute, or array_like (N, 3)
        Source of the control points. The number of points must be at least `order`

    order : int
        Order of the curve (degree + 1)

    knot : array_like
        Knot vector. When its length is not `N + order` it is replaced by the default knots

    weight : array_like
        Control point weights. When there is not one weight per point unit weights are used

    fractional_shift : float
        Distance to the second sample used for the finite difference, relative to the knot domain

    reference_direction : tuple of 3 floats
        Direction mapped onto the curve direction

    Notes
    -----
    The repaired knot vector and weights are written back to `knot` and `weight`,
    so that they can be inspected after an evaluation.
    The repair step is serialized by a lock, so that several threads can evaluate the
    same interpolator while its fields are being updated.

    Listeners registered with `add_listener` are called as `callback(value, timestamp)`
    after every `set_fraction` event, in registration order.

    """

    def __init__(
        self,
        control_point=None,
        order=Settings.CURVE_DEFAULT_ORDER,
        knot=(),
        weight=(),
        fractional_shift=Settings.ORIENTATION_FRACTIONAL_SHIFT,
        reference_direction=Settings.ORIENTATION_REFERENCE_DIRECTION,
    ):
        self.control_point = control_point
        self.order = order
        self.knot = jnp.asarray(knot, dtype=float)
        self.weight = jnp.asarray(weight, dtype=float)
        self.fractional_shift = fractional_shift
        self.reference_direction = tuple(float(c) for c in reference_direction)
        self.fraction = 0.0
        self.value_changed = None
        self._listeners = []
        self._lock = threading.Lock()

    def add_listener(self, callback):
        """Register `callback(value, timestamp)` for value_changed events."""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        self._listeners.remove(callback)

    def _get_points(self):
        """Control points in the (3, N) layout used by NurbsCurve."""
        source = self.control_point
        if source is None:
            raise InvalidInputError("The interpolator has no control point source")

        points = getattr(source, "point", source)
        points = jnp.asarray(points, dtype=float)
        if points.ndim != 2 or points.shape[1] != Settings.CURVE_NDIM:
            raise InvalidInputError(
                f"Control points must have shape (N, {Settings.CURVE_NDIM}), got {points.shape}"
            )
        return points.T

    def get_curve(self):
        """
        Build the validated curve from the current fields.

        The knot vector and weights used for the evaluation are stored back into the
        `knot` and `weight` fields.
        """
        with self._lock:
            curve = NurbsCurve(
                self._get_points(),
                weights=self.weight,
                order=self.order,
                knots=self.knot,
            ).ensure_valid()
            self.knot = curve.U
            self.weight = curve.W
        return curve

    def get_value(self, u):
        """Orientation at the parameter `u` as a `Quaternion`."""
        curve = self.get_curve()
        u = jnp.asarray(u, dtype=float)
        return curve.get_orientation(u, self.fractional_shift, self.reference_direction)

    def set_fraction(self, fraction, timestamp=None):
        """
        Receive a fraction event: evaluate the orientation and notify the listeners.

        Parameters
        ----------
        fraction : float
            Curve parameter.
        timestamp : optional
            Time of the event. It is forwarded unchanged to the listeners.

        Returns
        -------
        value : Quaternion
            The new value of `value_changed`.
        """
        self.fraction = fraction
        value = self.get_value(fraction)
        self.value_changed = value
        logger.debug("value_changed at fraction {}: {}", fraction, value.as_array().tolist())
        for callback in list(self._listeners):
            callback(value, timestamp)
        return value

    def plot(self, **kwargs):
        """Plot the curve and its orientations, see `NurbsCurve.plot`."""
        kwargs.setdefault("orientation", True)
        return self.get_curve().plot(**kwargs)
