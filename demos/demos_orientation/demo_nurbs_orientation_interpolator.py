"""Example driving an orientation interpolator with fraction events along a helix-like path."""

# -------------------------------------------------------------------------------------------------------------------- #
# Imports
# -------------------------------------------------------------------------------------------------------------------- #
import sys
import numpy as np
import matplotlib.pyplot as plt
from loguru import logger
import nurbsinterp as nrb

# Show the knot and weight repairs
logger.remove()
logger.add(sys.stderr, format="<level>{level: <8}</level> | {message}", level="DEBUG")
logger.enable("nurbsinterp")
nrb.print_package_info()


# -------------------------------------------------------------------------------------------------------------------- #
# Define the interpolator
# -------------------------------------------------------------------------------------------------------------------- #
points = nrb.Coordinate([
    [1.00, 0.00, 0.00],
    [0.00, 1.00, 0.25],
    [-1.00, 0.00, 0.50],
    [0.00, -1.00, 0.75],
    [1.00, 0.00, 1.00],
    [0.00, 1.00, 1.25],
])

# No knots and a single weight: both are repaired on the first evaluation
interpolator = nrb.NurbsOrientationInterpolator(control_point=points, order=3, weight=[2.0])


# -------------------------------------------------------------------------------------------------------------------- #
# Send fraction events
# -------------------------------------------------------------------------------------------------------------------- #
def print_value(value, timestamp):
    ax, ay, az, angle = np.asarray(value.to_axis_angle())
    print(f"t = {timestamp:5.2f} s   axis = ({ax:+.4f}, {ay:+.4f}, {az:+.4f})   angle = {angle:.4f} rad")

interpolator.add_listener(print_value)
for t in np.linspace(0.0, 2.0, 9):
    interpolator.set_fraction(t / 2.0, timestamp=t)

print(f"\nKnot vector after the first event: {np.asarray(interpolator.knot)}")
print(f"Weights after the first event:     {np.asarray(interpolator.weight)}")


# -------------------------------------------------------------------------------------------------------------------- #
# Plot the curve and the orientations
# -------------------------------------------------------------------------------------------------------------------- #
interpolator.plot()
plt.show()
