"""Allow running as `python -m bikelab_analytics`."""

from bikelab_analytics.cli import app

if __name__ == "__main__":
    app()
