#!/usr/bin/env python3
import pytest

# Define the list of tests
tests_list = [
    "test_nurbs_knot_vector.py",
    "test_nurbs_basis_functions.py",
    "test_nurbs_curve.py",
    "test_rotation.py",
    "test_nurbs_orientation_interpolator.py",
]

# Run pytest with increased verbosity
pytest.main(["-vv"] + tests_list)
# pytest.main(["-vv", "-ra", "-Wdefault"] + tests_list)
