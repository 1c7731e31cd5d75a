"""Issue ordering and sprint lifecycle core for a project board."""

__version__ = "0.1.0"
