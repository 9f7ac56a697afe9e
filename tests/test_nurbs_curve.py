import numpy as np
import pytest

import nurbsinterp as nrb


# Control points (ndim, n+1)
P_SPACE = np.array([
    [0.00, 1.00, 2.00, 2.50, 3.00, 4.00],
    [0.00, 1.50, 0.50, -1.00, 0.25, 0.00],
    [0.00, 0.20, 0.80, 1.20, 1.00, 1.50],
])


def naive_bspline_point(P, p, U, u):
    """Reference evaluation by the Cox-de Boor definition, without span search."""
    def N(i, k):
        if k == 0:
            last = U[i] < U[-1] and U[i + 1] == U[-1] and u == U[-1]
            return 1.0 if (U[i] <= u < U[i + 1]) or last else 0.0
        a = 0.0 if U[i + k] == U[i] else (u - U[i]) / (U[i + k] - U[i]) * N(i, k - 1)
        b = 0.0 if U[i + k + 1] == U[i + 1] else (U[i + k + 1] - u) / (U[i + k + 1] - U[i + 1]) * N(i + 1, k - 1)
        return a + b
    return sum(N(i, p) * P[:, i] for i in range(P.shape[1]))


@pytest.mark.parametrize("order", [2, 3, 4])
def test_unit_weights_match_bspline(order):
    N = P_SPACE.shape[1]
    p = order - 1
    U = nrb.derive_default_knots(N, order)
    W = np.ones(N)
    u = np.linspace(0.0, 1.0, 21)

    C_rational = nrb.compute_nurbs_coordinates(P_SPACE, W, p, U, u)
    C_bspline = nrb.compute_bspline_coordinates(P_SPACE, p, U, u)
    np.testing.assert_allclose(C_rational, C_bspline, rtol=0, atol=1e-12)

    for k in (0, 7, 13, 20):
        C_point = nrb.curve_point_rational(N - 1, p, U, P_SPACE, W, u[k])
        np.testing.assert_allclose(C_point, naive_bspline_point(P_SPACE, p, np.asarray(U), u[k]), atol=1e-12)


def test_rational_quarter_circle():
    P = np.array([
        [1.0, 1.0, 0.0],
        [0.0, 1.0, 1.0],
        [0.0, 0.0, 0.0],
    ])
    W = np.array([1.0, np.sqrt(2) / 2, 1.0])
    U = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0])
    C = np.asarray(nrb.compute_nurbs_coordinates(P, W, 2, U, np.linspace(0, 1, 11)))
    np.testing.assert_allclose(np.linalg.norm(C, axis=0), 1.0, rtol=0, atol=1e-12)

    # The weights change the parametrization but not the end points
    np.testing.assert_allclose(C[:, 0], [1.0, 0.0, 0.0], atol=1e-14)
    np.testing.assert_allclose(C[:, -1], [0.0, 1.0, 0.0], atol=1e-14)


def test_curve_interpolates_end_points():
    curve = nrb.NurbsCurve(P_SPACE, order=3).ensure_valid()
    np.testing.assert_allclose(curve.get_point(0.0), P_SPACE[:, 0], atol=1e-14)
    np.testing.assert_allclose(curve.get_point(1.0), P_SPACE[:, -1], atol=1e-14)


def test_get_value_shape():
    curve = nrb.NurbsCurve(P_SPACE, order=4).ensure_valid()
    assert curve.get_value(0.3).shape == (3, 1)
    assert curve.get_value(np.linspace(0, 1, 17)).shape == (3, 17)


def test_weights_pull_curve_towards_control_point():
    W = np.ones(P_SPACE.shape[1])
    W_heavy = W.copy()
    W_heavy[2] = 5.0
    curve = nrb.NurbsCurve(P_SPACE, weights=W, order=3).ensure_valid()
    heavy = nrb.NurbsCurve(P_SPACE, weights=W_heavy, order=3).ensure_valid()

    # Parameter where the third control point has the largest influence
    u = 0.4
    d = np.linalg.norm(np.asarray(curve.get_point(u)) - P_SPACE[:, 2])
    d_heavy = np.linalg.norm(np.asarray(heavy.get_point(u)) - P_SPACE[:, 2])
    assert d_heavy < d


def test_ensure_valid_repairs_knots_and_weights():
    curve = nrb.NurbsCurve(P_SPACE, weights=[1.0, 2.0], order=3, knots=[0.0, 1.0])
    assert not curve.is_valid()

    repaired = nrb.ensure_valid(curve)
    assert repaired.is_valid()
    np.testing.assert_array_equal(repaired.W, np.ones(6))
    np.testing.assert_array_equal(repaired.U, nrb.derive_default_knots(6, 3))

    # The input curve is not modified and a valid curve is returned as is
    assert curve.U.shape == (2,)
    assert repaired.ensure_valid() is repaired


def test_ensure_valid_keeps_supplied_knots():
    U = [0.0, 0.0, 0.0, 0.1, 0.2, 0.9, 1.0, 1.0, 1.0]
    W = [1.0, 2.0, 1.0, 0.5, 1.0, 1.0]
    curve = nrb.NurbsCurve(P_SPACE, weights=W, order=3, knots=U).ensure_valid()
    np.testing.assert_array_equal(curve.U, U)
    np.testing.assert_array_equal(curve.W, W)


@pytest.mark.parametrize(
    "P, order",
    [
        (None, 3),
        (np.zeros((3, 2)), 3),     # fewer points than the order
        (np.zeros((3, 4)), 1),     # order below 2
        (np.zeros((3, 4)), 2.5),   # non-integer order
        (np.zeros(4), 2),          # not a 2D array
    ],
)
def test_invalid_curve_definition(P, order):
    with pytest.raises(nrb.InvalidInputError):
        nrb.NurbsCurve(P, order=order)


def test_orientation_requires_3d_points():
    curve = nrb.NurbsCurve(P_SPACE[:2], order=3).ensure_valid()
    with pytest.raises(nrb.InvalidInputError):
        curve.get_orientation(0.5)


def test_direction_sign_convention():
    # Straight line along x: the direction points back towards decreasing u
    P = np.array([[0.0, 1.0, 2.0, 3.0], np.zeros(4), np.zeros(4)])
    curve = nrb.NurbsCurve(P, order=3).ensure_valid()
    d = np.asarray(curve.get_direction(0.3))
    assert d[0] < 0.0
    np.testing.assert_allclose(d[1:], 0.0, atol=1e-14)


def test_direction_extrapolates_past_domain_end():
    P = np.array([[0.0, 1.0, 2.0, 3.0], np.zeros(4), np.zeros(4)])
    curve = nrb.NurbsCurve(P, order=3).ensure_valid()
    d = np.asarray(curve.get_direction(1.0))
    assert d[0] < 0.0
    assert np.all(np.isfinite(d))


def test_plot_curve_with_orientations():
    import matplotlib.pyplot as plt
    curve = nrb.NurbsCurve(P_SPACE, order=3)
    fig, ax = curve.plot(orientation=True)
    assert len(ax.lines) >= 3
    plt.close(fig)


@pytest.mark.parametrize("knots", [None, [0.0, 1.0], [0.0, 0.0, 0.5, 1.0, 1.0], [0.0] * 12])
def test_evaluation_repairs_curve(knots):
    curve = nrb.NurbsCurve(P_SPACE, weights=[1.0, 2.0], order=3, knots=knots)
    repaired = curve.ensure_valid()
    u = np.linspace(0.0, 1.0, 7)

    np.testing.assert_allclose(curve.get_point(0.5), repaired.get_point(0.5), rtol=0, atol=1e-14)
    np.testing.assert_allclose(curve.get_value(u), repaired.get_value(u), rtol=0, atol=1e-14)
    np.testing.assert_allclose(curve.get_direction(0.5), repaired.get_direction(0.5), rtol=0, atol=1e-14)
    np.testing.assert_allclose(
        curve.get_orientation(0.5).as_array(), repaired.get_orientation(0.5).as_array(), rtol=0, atol=1e-14
    )
    np.testing.assert_allclose(
        curve.get_point(0.5),
        nrb.curve_point_rational(5, 2, nrb.derive_default_knots(6, 3), P_SPACE, np.ones(6), 0.5),
        rtol=0,
        atol=1e-14,
    )


def test_plot_requires_3d_points():
    curve = nrb.NurbsCurve(P_SPACE[:2], order=3)
    with pytest.raises(nrb.InvalidInputError):
        curve.plot()
