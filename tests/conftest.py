import os

# Plots are drawn off-screen during the tests
os.environ.setdefault("MPLBACKEND", "Agg")
