"""
Numerical settings shared by the curve evaluator and the orientation interpolator.

Usage:
    from nurbsinterp.config import Settings

    shift = Settings.FRACTIONAL_SHIFT

Every value can be overridden per instance through the constructor arguments of
`NurbsOrientationInterpolator` or the keyword arguments of `evaluate_orientation`.
"""


class Settings:
    """
    Central constants of the package.

    Categories:
    - CURVE_*: curve definition defaults
    - ORIENTATION_*: finite differencing and reference frame
    - TOLERANCE_*: thresholds for degenerate geometry
    """

    # =========================================================================
    # Curve definition
    # =========================================================================

    # Order of the curve when none is given (degree = order - 1)
    CURVE_DEFAULT_ORDER = 3

    # Lowest admissible order (linear pieces)
    CURVE_MIN_ORDER = 2

    # Number of spatial coordinates of the control points
    CURVE_NDIM = 3

    # =========================================================================
    # Orientation
    # =========================================================================

    # Distance to the second sample point, relative to the knot domain length
    ORIENTATION_FRACTIONAL_SHIFT = 0.01

    # Direction mapped onto the local curve direction
    ORIENTATION_REFERENCE_DIRECTION = (0.0, 0.0, -1.0)

    # =========================================================================
    # Tolerances
    # =========================================================================

    # Vectors shorter than this are treated as zero-length
    TOLERANCE_ZERO_LENGTH = 1e-15

    # |cos(angle) -/+ 1| below this counts as parallel / anti-parallel
    TOLERANCE_PARALLEL = 1e-12


# Short aliases
FRACTIONAL_SHIFT = Settings.ORIENTATION_FRACTIONAL_SHIFT
REFERENCE_DIRECTION = Settings.ORIENTATION_REFERENCE_DIRECTION
DEFAULT_ORDER = Settings.CURVE_DEFAULT_ORDER
