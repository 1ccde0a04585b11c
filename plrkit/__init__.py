"""Piecewise linear segmentation with bounded error, and a TSV column helper."""

__version__ = "0.1.0"

__all__ = ["optimal_plr", "keyed_plr", "paraoptimal", "tsvtools"]