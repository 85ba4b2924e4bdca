"""Software delivery engine: detect source facts, build and schedule action plans."""

__version__ = "0.1.0"