import jax
import jax.lax as lax
import jax.numpy as jnp

# -------------------------------------------------------------------------------------------------------------------- #
# Knot span localization
# -------------------------------------------------------------------------------------------------------------------- #
def find_span(n, p, u, U):
    """
    Find the index of the knot span that contains the parameter `u`.

    Returns the index `i` such that `U[i] <= u < U[i+1]` (Algorithm A2.1 in The NURBS Book).
    The search is a binary search over the knot vector. The result saturates to the
    range `[p, n]`: a parameter at (or beyond) the upper end of the domain is mapped to
    the last valid span `n`, and a parameter below the domain is mapped to the first one.

    Parameters
    ----------
    n : int
        Highest index of the control points (number of control points = n+1).
    p : int
        Degree of the basis polynomials.
    u : scalar
        Parameter value.
    U : array_like
        Knot vector of length n+p+2.

    Returns
    -------
    span : int
        Index of the active knot span.
    """
    U = jnp.asarray(U, dtype=float)
    u = jnp.asarray(u, dtype=U.dtype)

    # Last index i with U[i] <= u
    span = jnp.searchsorted(U, u, side="right") - 1

    return jnp.clip(span, p, n)

# Apply JIT compilation
find_span = jax.jit(
    find_span,
    static_argnames=('n', 'p'),
)


# -------------------------------------------------------------------------------------------------------------------- #
# Non-vanishing basis functions on a knot span
# -------------------------------------------------------------------------------------------------------------------- #
def basis_funs(span, u, p, U):
    """
    Evaluate the `p+1` non-vanishing B-spline basis functions on the knot span `span`.

    The function implements the triangular Cox-de Boor scheme of Algorithm A2.2 in
    The NURBS Book. The values are N[span-p,p](u), ..., N[span,p](u).

    Parameters
    ----------
    span : int
        Knot span index, as returned by `find_span`.
    u : scalar
        Parameter value.
    p : int
        Degree of the basis polynomials.
    U : array_like
        Knot vector.

    Returns
    -------
    N : ndarray of shape (p+1,)
        Basis function values. They are non-negative and add up to one inside the domain.

    Notes
    -----
    The denominators `right[r+1] + left[j-r]` are the lengths of knot intervals that
    contain the active span, so they are positive for any valid knot vector and are not guarded.
    The loops are unrolled at trace time because `p` is static.
    """
    U = jnp.asarray(U, dtype=float)
    u = jnp.asarray(u, dtype=U.dtype)

    N = [jnp.ones_like(u)] + [jnp.zeros_like(u)] * p
    left = [jnp.zeros_like(u)] * (p + 1)
    right = [jnp.zeros_like(u)] * (p + 1)

    for j in range(1, p + 1):
        left[j] = u - U[span + 1 - j]
        right[j] = U[span + j] - u
        saved = jnp.zeros_like(u)

        for r in range(j):
            temp = N[r] / (right[r + 1] + left[j - r])
            N[r] = saved + right[r + 1] * temp
            saved = left[j - r] * temp

        N[j] = saved

    return jnp.stack(N)

# Apply JIT compilation
basis_funs = jax.jit(
    basis_funs,
    static_argnames=('p',),
)


# -------------------------------------------------------------------------------------------------------------------- #
# Standalone function to compute all basis function values
# -------------------------------------------------------------------------------------------------------------------- #
def compute_basis_polynomials(n, p, U, u):
    """
    Evaluate all B-spline basis functions of degree `p` for a set of parameter values `u`.

    Unlike `basis_funs`, this function fills the complete Cox-de Boor table (including the
    functions that vanish at `u`) and guards the divisions by zero-length knot intervals.
    It is independent of `find_span` and is used to cross-check the span-based evaluation
    and to sample whole curves for plotting.

    Parameters
    ----------
    n : int
        Highest index of the basis functions (number of functions = n+1).
    p : int
        Degree of the basis polynomials.
    U : array_like
        Knot vector of length n+p+2 defining the B-spline basis.
    u : float or array_like
        Scalar or array of parameter values where the basis functions are evaluated.

    Returns
    -------
    N : ndarray of shape (n+1, Nu)
        Array containing all basis functions evaluated at each u value.
        The first axis spans the basis index i, the second spans the parameter samples.
    """

    # Convert to JAX arrays
    U = jnp.asarray(U, dtype=float)
    u = jnp.atleast_1d(jnp.asarray(u, dtype=U.dtype))

    # Define scalar evaluation function
    basis_fn = lambda uu: _basis_single_u(n, p, U, uu)

    # Vectorize over all u-values
    N_all = jax.vmap(basis_fn)(u)

    # Transpose so that shape = (n+1, Nu)
    return jnp.transpose(N_all)

# Apply JIT compilation
compute_basis_polynomials = jax.jit(
    compute_basis_polynomials,
    static_argnames=('n', 'p'),
)

def _basis_single_u(n, p, U, u):
    """Evaluate all (n+1) B-spline basis functions of degree p at a single scalar u."""

    # Number of knot spans
    m = len(U) - 1

    # Initialize zeroth-degree basis functions
    # All intervals are [U[i], U[i+1]) except the last non-empty one, which is closed
    is_interior = (u >= U[:-1]) & (u < U[1:])
    is_last = (u == U[-1]) & (U[1:] == U[-1]) & (U[:-1] < U[-1])
    N0 = jnp.where(is_interior | is_last, 1.0, 0.0)

    # Initialize storage
    N = jnp.zeros((p + 1, m))
    N = N.at[0, :].set(N0)

    def outer_body(k, N):
        """Compute all basis functions of degree k from degree k-1."""
        m_k = m - k

        def inner_body(i, N):
            """Compute N[k,i] from N[k-1,i] and N[k-1,i+1]."""
            denom1 = U[i + k] - U[i]
            safe1 = jnp.where(denom1 == 0.0, 1.0, denom1)
            term1 = jnp.where(denom1 == 0.0, 0.0, (u - U[i]) / safe1 * N[k - 1, i])

            denom2 = U[i + k + 1] - U[i + 1]
            safe2 = jnp.where(denom2 == 0.0, 1.0, denom2)
            term2 = jnp.where(denom2 == 0.0, 0.0, (U[i + k + 1] - u) / safe2 * N[k - 1, i + 1])

            return N.at[k, i].set(term1 + term2)

        return lax.fori_loop(0, m_k, inner_body, N)

    # Outer loop over polynomial degree (1 → p)
    N = lax.fori_loop(1, p + 1, outer_body, N)

    # Return only the (n+1) basis functions of degree p
    return N[p, :n + 1]
