"""Privacy-preserving deposit/withdrawal mining scheduler."""

__version__ = "1.4.0"
