import jax
import jax.numpy as jnp
import equinox as eqx
from loguru import logger

import matplotlib.pyplot as plt

from .config import Settings
from .errors import InvalidInputError
from .rotation import Quaternion
from .nurbs_basis_functions import (
    find_span,
    basis_funs,
    compute_basis_polynomials,
)
from .nurbs_knot_vector import (
    derive_default_knots,
    default_weights,
    is_valid_knot_vector,
    is_valid_weights,
    check_knot_vector,
)


# ----------------------------------------------------------- #
# Standalone functions to compute values
# ----------------------------------------------------------- #
def curve_point_rational(n, p, U, P, W, u):
    """
    Evaluate a single point of a NURBS curve.

    The point is computed in *homogeneous space* from the `p+1` control points that are
    active on the knot span of `u`, and mapped back to ordinary space by the rational
    perspective division (Algorithm A4.1 in The NURBS Book):

        C(u) = Σ_j N[j](u) w[k] P[k] / Σ_j N[j](u) w[k],    k = span - p + j

    Parameters
    ----------
    n : int
        Highest index of the control points (counting from zero).

    p : int
        Degree of the B-spline basis functions.

    U : ndarray (n + p + 2,)
        Knot vector.

    P : ndarray (ndim, n+1)
        Array of control point coordinates.
        The first dimension spans spatial coordinates `(x, y, z, ...)`,
        and the second spans the control points along the curve `(0, 1, ..., n)`.

    W : ndarray (n+1,)
        Weights associated with each control point.

    u : scalar
        Parametric coordinate at which to evaluate the curve.

    Returns
    -------
    C : ndarray (ndim,)
        Coordinates of the curve point.

    Notes
    -----
    With unit weights the denominator is one and the result is the polynomial B-spline point.
    """
    U = jnp.asarray(U, dtype=float)
    P = jnp.asarray(P, dtype=float)
    W = jnp.asarray(W, dtype=float)

    # Locate the active span and its non-vanishing basis functions
    span = find_span(n, p, u, U)
    N_basis = basis_funs(span, u, p, U)

    # Indices of the control points that contribute to the span
    idx = span - p + jnp.arange(p + 1)

    # Weighted sum in homogeneous space, then perspective division
    Nw = N_basis * W[idx]
    return (P[:, idx] @ Nw) / jnp.sum(Nw)

# Apply JIT compilation
curve_point_rational = jax.jit(
    curve_point_rational,
    static_argnames=('n', 'p'),
)


def compute_nurbs_coordinates(P, W, p, U, u):
    """
    Evaluate the coordinates of a NURBS curve for a given parameter `u`.

    Vectorized version of `curve_point_rational` over the parameter samples.

    Parameters
    ----------
    P : ndarray (ndim, n+1)
        Array of control point coordinates.

    W : ndarray (n+1,)
        Weights associated with each control point.

    p : int
        Degree of the B-spline basis functions.

    U : ndarray (n + p + 2,)
        Knot vector.

    u : scalar or ndarray (N,)
        Parametric coordinate(s) at which to evaluate the curve.

    Returns
    -------
    C : ndarray (ndim, N)
        Coordinates of the evaluated curve points.
        The first dimension spans the spatial coordinates,
        and the second spans the parametric evaluation points `u`.
    """
    # Highest index of the control points (counting from zero)
    n = P.shape[1] - 1
    u = jnp.atleast_1d(jnp.asarray(u, dtype=float))

    C = jax.vmap(lambda uu: curve_point_rational(n, p, U, P, W, uu))(u)
    return jnp.transpose(C)

# Apply JIT compilation
compute_nurbs_coordinates = jax.jit(
    compute_nurbs_coordinates,
    static_argnames=('p',),
)


def compute_bspline_coordinates(P, p, U, u):
    """
    Evaluate the coordinates of a polynomial B-spline curve for a given parameter `u`.

    This function uses the complete basis table of `compute_basis_polynomials`
    (Equation 3.1 in The NURBS Book) and does not depend on the span search.

    Parameters
    ----------
    P : ndarray (ndim, n+1)
        Array of control point coordinates.

    p : int
        Degree of the B-spline basis functions.

    U : ndarray (n + p + 2,)
        Knot vector.

    u : scalar or ndarray (N,)
        Parametric coordinate(s) at which to evaluate the curve.

    Returns
    -------
    C : ndarray (ndim, N)
        Coordinates of the evaluated B-spline curve points.
    """
    # Highest index of the control points (counting from zero)
    n = P.shape[1] - 1

    # Evaluate B-spline basis functions N_i,p(u)
    N_basis = compute_basis_polynomials(n, p, U, u)

    # C = Σ_i N_i,p(u) * P[i]
    return P @ N_basis


# ----------------------------------------------------------- #
# NURBS curve value type
# ----------------------------------------------------------- #
class NurbsCurve(eqx.Module):
    """Create an immutable NURBS curve used to derive orientations along a path

    Parameters
    ----------
    control_points : ndarray with shape (ndim, n+1)
        Array containing the coordinates of the control points
        The first dimension of `P` spans the coordinates of the control points
        The second dimension of `P` spans the u-direction control points (0,1,...,n)

    weights : ndarray with shape (n+1,), optional
        Array containing the weight of the control points

    order : int
        Order of the curve (degree + 1), at least 2

    knots : ndarray with shape (n+1+order,), optional
        The knot vector in the u-direction

    Notes
    -----
    The weights and knots are stored as given. A weight array of the wrong size or a knot
    vector of the wrong length is not an error: `ensure_valid` returns a repaired copy with
    uniform weights and the default knot vector, respectively.

    References
    ----------
    The NURBS Book. See references to equations and algorithms throughout the code
    L. Piegl and W. Tiller
    Springer, second edition

    """

    P: jnp.ndarray  # (ndim, n+1)
    W: jnp.ndarray  # (n+1,)
    order: int
    U: jnp.ndarray  # (n+1+order,)

    def __init__(self, control_points, weights=None, order=Settings.CURVE_DEFAULT_ORDER, knots=None):
        if control_points is None:
            raise InvalidInputError("No control points were given")

        P = jnp.asarray(control_points, dtype=float)
        if P.ndim != 2:
            raise InvalidInputError("control_points must have shape (ndim, n+1)")
        if int(order) != order or order < Settings.CURVE_MIN_ORDER:
            raise InvalidInputError(
                f"The order must be an integer >= {Settings.CURVE_MIN_ORDER}, got {order}"
            )
        if P.shape[1] < order:
            raise InvalidInputError(
                f"The number of control points ({P.shape[1]}) must be at least the order ({order})"
            )

        self.P = P
        self.W = jnp.zeros((0,)) if weights is None else jnp.ravel(jnp.asarray(weights, dtype=float))
        self.order = int(order)
        self.U = jnp.zeros((0,)) if knots is None else jnp.ravel(jnp.asarray(knots, dtype=float))

    @property
    def n(self):
        """Highest index of the control points."""
        return self.P.shape[1] - 1

    @property
    def p(self):
        """Degree of the basis polynomials."""
        return self.order - 1

    @property
    def ndim(self):
        return self.P.shape[0]

    def is_valid(self):
        """True when both the weights and the knot vector match the control points."""
        N = self.n + 1
        return is_valid_weights(self.W, N) and is_valid_knot_vector(self.U, N, self.order)

    def ensure_valid(self):
        """
        Return a curve whose weights and knot vector can be evaluated.

        A knot vector whose length is not `n + 1 + order` is replaced by `derive_default_knots`,
        and a weight array whose size is not `n + 1` is replaced by unit weights.
        The curve itself is returned when nothing has to be repaired.
        """
        N = self.n + 1
        U, W = self.U, self.W

        if not is_valid_knot_vector(U, N, self.order):
            logger.debug(
                "Knot vector length {} does not match {} control points + order {}, using default knots",
                len(U), N, self.order,
            )
            U = derive_default_knots(N, self.order)
        else:
            check_knot_vector(U, self.order)

        if not is_valid_weights(W, N):
            logger.debug("Got {} weights for {} control points, using unit weights", len(W), N)
            W = default_weights(N)

        if U is self.U and W is self.W:
            return self
        return NurbsCurve(self.P, W, self.order, U)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions to compute NURBS properties
    # ---------------------------------------------------------------------------------------------------------------- #
    def get_point(self, u):
        """Evaluate the coordinates of the curve at the scalar parameter `u`

        The curve is repaired with `ensure_valid` before the evaluation.

        Returns
        -------
        C : ndarray with shape (ndim,)

        """
        return self.ensure_valid()._point(u)

    def get_value(self, u):
        """Evaluate the coordinates of the curve for the input `u` parametrization

        The curve is repaired with `ensure_valid` before the evaluation.

        Parameters
        ----------
        u : scalar or ndarray with shape (N,)
            Parameter used to evaluate the curve

        Returns
        -------
        C : ndarray with shape (ndim, N)
            Array containing the coordinates of the curve
            The first dimension of `C` spans the `(x,y,z)` coordinates
            The second dimension of `C` spans the `u` parametrization sample points

        """
        return self.ensure_valid()._value(u)

    def get_direction(self, u, fractional_shift=Settings.ORIENTATION_FRACTIONAL_SHIFT):
        """
        Finite-difference direction of the curve at `u`.

        The curve is sampled at `u` and at `u + du`, with `du = (U[-1] - U[0]) * fractional_shift`,
        and the direction is `C(u) - C(u + du)`, pointing backwards along increasing `u`.
        A shifted parameter beyond the end of the knot vector falls on the last span, whose
        polynomial piece is extrapolated. A knot domain of zero length gives a zero direction.
        """
        return self.ensure_valid()._direction(jnp.asarray(u, dtype=float), fractional_shift)

    def get_orientation(
        self,
        u,
        fractional_shift=Settings.ORIENTATION_FRACTIONAL_SHIFT,
        reference_direction=Settings.ORIENTATION_REFERENCE_DIRECTION,
    ):
        """Rotation that maps `reference_direction` onto the curve direction at `u`

        The curve must be three-dimensional. It is repaired with `ensure_valid` before the evaluation.
        A zero direction (coincident samples or a knot domain of zero length) gives the identity.

        Returns
        -------
        orientation : Quaternion

        """
        if self.ndim != 3:
            raise InvalidInputError(f"Orientations require 3D control points, got ndim={self.ndim}")
        return self.ensure_valid()._orientation(
            jnp.asarray(u, dtype=float), fractional_shift, tuple(reference_direction)
        )

    # The jitted kernels below assume a valid curve
    @eqx.filter_jit
    def _point(self, u):
        return curve_point_rational(self.n, self.p, self.U, self.P, self.W, u)

    @eqx.filter_jit
    def _value(self, u):
        return compute_nurbs_coordinates(self.P, self.W, self.p, self.U, u)

    @eqx.filter_jit
    def _direction(self, u, fractional_shift):
        domain = self.U[-1] - self.U[0]
        direction = self._point(u) - self._point(u + domain * fractional_shift)
        return jnp.where(domain > 0.0, direction, jnp.zeros_like(direction))

    @eqx.filter_jit
    def _orientation(self, u, fractional_shift, reference_direction):
        direction = self._direction(u, fractional_shift)
        return Quaternion.rotate_from_to(jnp.asarray(reference_direction, dtype=float), direction)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions for plotting
    # ---------------------------------------------------------------------------------------------------------------- #
    def plot(
        self,
        fig=None,
        ax=None,
        curve=True,
        control_points=True,
        orientation=False,
        axis_off=False,
        ticks_off=False,
    ):
        """Create a plot and return the figure and axes handles"""

        if self.ndim != 3:
            raise InvalidInputError(f"Plots require 3D control points, got ndim={self.ndim}")

        if not self.is_valid():
            return self.ensure_valid().plot(
                fig, ax, curve, control_points, orientation, axis_off, ticks_off
            )

        if fig is None:
            fig = plt.figure(figsize=(6, 5))
            ax = fig.add_subplot(111, projection="3d")
            ax.view_init(azim=-120, elev=30)
            ax.grid(False)
            ax.xaxis.pane.fill = False
            ax.yaxis.pane.fill = False
            ax.zaxis.pane.fill = False
            ax.xaxis.pane.set_edgecolor("k")
            ax.yaxis.pane.set_edgecolor("k")
            ax.zaxis.pane.set_edgecolor("k")
            ax.set_xlabel("$x$ axis", fontsize=12, color="k", labelpad=12)
            ax.set_ylabel("$y$ axis", fontsize=12, color="k", labelpad=12)
            ax.set_zlabel("$z$ axis", fontsize=12, color="k", labelpad=12)
            ax.xaxis.set_rotate_label(False)
            ax.yaxis.set_rotate_label(False)
            ax.zaxis.set_rotate_label(False)
            if ticks_off:
                ax.set_xticks([])
                ax.set_yticks([])
                ax.set_zticks([])
            if axis_off:
                ax.axis("off")

        # Add objects to the plot
        if curve:
            self.plot_curve(fig, ax)
        if control_points:
            self.plot_control_points(fig, ax)
        if orientation:
            self.plot_orientation(fig, ax)

        # Set the scaling of the axes
        self.rescale_plot(fig, ax)

        return fig, ax

    def plot_curve(self, fig, ax, linewidth=1.5, linestyle="-", color="black", n_points=501):
        """Plot the coordinates of the NURBS curve over the whole knot domain"""
        u = jnp.linspace(self.U[0], self.U[-1], n_points)
        X, Y, Z = self.get_value(u)
        (line,) = ax.plot(X, Y, Z)
        line.set_linewidth(linewidth)
        line.set_linestyle(linestyle)
        line.set_color(color)
        line.set_marker(" ")
        return fig, ax

    def plot_control_points(
        self,
        fig,
        ax,
        linewidth=1.25,
        linestyle="-.",
        color="red",
        markersize=5,
        markerstyle="o",
    ):
        """Plot the control polygon of the NURBS curve"""
        Px, Py, Pz = self.P
        (line,) = ax.plot(Px, Py, Pz)
        line.set_linewidth(linewidth)
        line.set_linestyle(linestyle)
        line.set_color(color)
        line.set_marker(markerstyle)
        line.set_markersize(markersize)
        line.set_markeredgewidth(linewidth)
        line.set_markeredgecolor(color)
        line.set_markerfacecolor("w")
        line.set_zorder(4)
        return fig, ax

    def plot_orientation(
        self,
        fig,
        ax,
        frame_number=5,
        frame_scale=0.10,
        reference_direction=Settings.ORIENTATION_REFERENCE_DIRECTION,
    ):
        """Plot the reference direction rotated by the orientation at some points along the curve"""

        # Keep the last sample inside the domain so that the arrows sit on the curve
        u = jnp.linspace(self.U[0], self.U[-1], frame_number + 1)[:-1]
        position = self.get_value(u)

        # Length scale: fraction of the control polygon extent
        extent = jnp.max(self.P, axis=1) - jnp.min(self.P, axis=1)
        scale = float(frame_scale * jnp.linalg.norm(extent))

        for k in range(frame_number):
            x, y, z = position[:, k]
            rotation = self.get_orientation(u[k], reference_direction=reference_direction)
            dx, dy, dz = rotation.rotate_vector(jnp.asarray(reference_direction, dtype=float))
            ax.quiver(x, y, z, dx, dy, dz, color="blue", length=scale, normalize=True)

        # Plot the origin of the vectors
        x, y, z = position
        (points,) = ax.plot(x, y, z)
        points.set_linestyle(" ")
        points.set_marker("o")
        points.set_markersize(5)
        points.set_markeredgewidth(1.25)
        points.set_markeredgecolor("k")
        points.set_markerfacecolor("w")
        points.set_zorder(4)

        return fig, ax

    def rescale_plot(self, fig, ax):
        """Give the three axes the same scale"""
        ax.autoscale(enable=True)
        x_min, x_max = ax.get_xlim()
        y_min, y_max = ax.get_ylim()
        z_min, z_max = ax.get_zlim()
        x_mid = (x_min + x_max) / 2
        y_mid = (y_min + y_max) / 2
        z_mid = (z_min + z_max) / 2
        L = max(x_max - x_min, y_max - y_min, z_max - z_min) / 2

        ax.set_xlim3d(x_mid - 1.0 * L, x_mid + 1.0 * L)
        ax.set_ylim3d(y_mid - 1.0 * L, y_mid + 1.0 * L)
        ax.set_zlim3d(z_mid - 1.0 * L, z_mid + 1.0 * L)

        # Adjust pad
        plt.tight_layout(pad=1.0)


def ensure_valid(curve):
    """Functional form of `NurbsCurve.ensure_valid`."""
    return curve.ensure_valid()
