"""BikeLab - cycling ride analytics, goal progress and training advice."""

__version__ = "0.1.0"
