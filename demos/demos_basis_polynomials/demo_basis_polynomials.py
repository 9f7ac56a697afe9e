""" Example comparing the span-based basis functions with the complete basis table """


# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import numpy as np
import nurbsinterp as nrb
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Basis polynomials on the default knot vector
# -------------------------------------------------------------------------------------------------------------------- #
# Number of control points and order of the curve
N = 6
order = 3

# Highest index and degree of the basis polynomials
n = N - 1
p = order - 1

# Default knot vector of the interpolator
U = nrb.derive_default_knots(N, order)
print(f"Default knot vector: {np.asarray(U)}")

# Parametrization (the limits [0, 1] are included on purpose)
u = np.linspace(0.00, 1.00, 501)

# Complete basis table
N_basis = np.asarray(nrb.compute_basis_polynomials(n, p, U, u))

# Span-based evaluation, scattered into a table of the same shape
N_span = np.zeros_like(N_basis)
for k, uu in enumerate(u):
    span = int(nrb.find_span(n, p, uu, U))
    N_span[span - p:span + 1, k] = nrb.basis_funs(span, uu, p, U)

print(f"Maximum difference between both evaluations: {np.max(np.abs(N_basis - N_span)):.3e}")
print(f"Maximum partition of unity error:            {np.max(np.abs(np.sum(N_span, axis=0) - 1)):.3e}")


# -------------------------------------------------------------------------------------------------------------------- #
# Plot the basis polynomials
# -------------------------------------------------------------------------------------------------------------------- #
# Create the figure
fig = plt.figure(figsize=(6, 5))
ax = fig.add_subplot(111)
ax.set_xlabel('$u$ parameter', fontsize=12, color='k', labelpad=12)
ax.set_ylabel('Function value', fontsize=12, color='k', labelpad=12)
for i in range(n+1):
    line, = ax.plot(u, N_span[i, :])
    line.set_linewidth(1.25)
    line.set_linestyle("-")
    line.set_marker(" ")
    line.set_label('index ' + str(i))

# Mark the knots
for knot in np.unique(np.asarray(U)):
    ax.axvline(knot, color="k", linestyle=":", linewidth=0.75)

# Create legend
ax.legend(ncol=1, loc='upper right', fontsize=10, edgecolor='k', framealpha=1.0)

# Adjust pad
plt.tight_layout(pad=1.)

# Show the figure
plt.show()
