"""Interactive scene of fiducial targets and a simulated camera."""

__version__ = "0.1.0"
