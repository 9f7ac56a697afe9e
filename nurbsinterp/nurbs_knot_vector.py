import jax.numpy as jnp
from loguru import logger


# -------------------------------------------------------------------------------------------------------------------- #
# Default knot vector and weights
# -------------------------------------------------------------------------------------------------------------------- #
def derive_default_knots(N, order):
    """
    Build the default knot vector used when the supplied one has the wrong length.

    The vector has `N + order` entries. The first entries are zero, the entries
    `k = order, ..., N-1` follow the ramp `(k - 1) / (N - 1)` and the last `order`
    entries are one.

    Parameters
    ----------
    N : int
        Number of control points.
    order : int
        Order of the curve (degree + 1).

    Returns
    -------
    U : ndarray of shape (N + order,)
        Default knot vector.

    Notes
    -----
    The ramp is not the textbook open-uniform formula `(k - order + 1) / (N - order + 1)`.
    It reproduces the knots generated by the X3D NurbsOrientationInterpolator node, so that
    curves authored against that node evaluate identically.
    Precondition: `N >= order >= 2`, which `NurbsCurve` enforces before deriving knots.
    The function itself does not check it. For `N <= order` the ramp is empty, so the
    division by `N - 1` is never reached, including `N == 1`.
    """
    U = jnp.zeros((N + order,))
    if N > order:
        k = jnp.arange(order, N)
        U = U.at[order:N].set((k - 1) / (N - 1))
    U = U.at[-order:].set(1.0)
    return U


def default_weights(N):
    """Uniform unit weights for `N` control points."""
    return jnp.ones((N,))


# -------------------------------------------------------------------------------------------------------------------- #
# Validity checks
# -------------------------------------------------------------------------------------------------------------------- #
def is_valid_knot_vector(U, N, order):
    """Return True when the knot vector has the length `N + order` required by the curve."""
    return U is not None and len(U) == N + order


def is_valid_weights(W, N):
    """Return True when there is exactly one weight per control point."""
    return W is not None and len(W) == N


def check_knot_vector(U, order):
    """
    Log a warning for a knot vector that has the right length but an invalid shape.

    The vector must be non-decreasing and no interior value may be repeated more than
    `order - 1` times (the end values may be repeated `order` times for a clamped curve).
    The vector is not modified: only its length decides whether it is replaced.

    Returns
    -------
    ok : bool
        False when a problem was reported.
    """
    U = jnp.asarray(U, dtype=float)
    if U.size < 2:
        return True

    if bool(jnp.any(jnp.diff(U) < 0.0)):
        logger.warning("Knot vector {} is not non-decreasing", U.tolist())
        return False

    values, mults = jnp.unique(U, return_counts=True)
    ok = True
    if int(mults[0]) > order or int(mults[-1]) > order:
        logger.warning(
            "End knots of {} are repeated more than order={} times", U.tolist(), order
        )
        ok = False
    if mults.size > 2 and int(jnp.max(mults[1:-1])) > order - 1:
        logger.warning(
            "Interior knots of {} are repeated more than order-1={} times", U.tolist(), order - 1
        )
        ok = False
    return ok
