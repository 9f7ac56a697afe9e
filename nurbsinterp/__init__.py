import os
os.environ.setdefault("JAX_PLATFORM_NAME", "cpu")
import jax
jax.config.update("jax_enable_x64", True)

from loguru import logger

# Import geometry modules
from .config import *
from .errors import *
from .rotation import *
from .nurbs_knot_vector import *
from .nurbs_basis_functions import *
from .nurbs_curve import *
from .nurbs_orientation_interpolator import *

# Library convention: silent until the application calls logger.enable("nurbsinterp")
logger.disable("nurbsinterp")

# Package info
__version__ = "0.1.0"
PACKAGE_NAME = "nurbsinterp"
BREAKLINE = 80 * "-"


def print_package_info():
    """Prints package information with predefined values."""

    info = f""" Package:       {PACKAGE_NAME}
 Version:       {__version__}
 JAX backend:   {jax.default_backend()}
 Float dtype:   {jax.numpy.zeros(()).dtype}"""
    print(BREAKLINE)
    print(info)
    print(BREAKLINE)


# NURBS orientation minimal working example
def minimal_example():

    # Import packages
    import matplotlib.pyplot as plt
    from .nurbs_orientation_interpolator import Coordinate, NurbsOrientationInterpolator
    print_package_info()

    # Define the control points of a helix-like path
    points = Coordinate([
        [1.00, 0.00, 0.00],
        [0.00, 1.00, 0.25],
        [-1.00, 0.00, 0.50],
        [0.00, -1.00, 0.75],
        [1.00, 0.00, 1.00],
    ])

    # Create the interpolator and plot the orientations
    interpolator = NurbsOrientationInterpolator(control_point=points, order=3)
    print(f" Orientation at u=0.5 (axis, angle): {interpolator.get_value(0.5).to_axis_angle()}")
    interpolator.plot()
    plt.show()
