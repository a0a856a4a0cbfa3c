"""vcfront - lock-based version-control front-end for RCS and SCCS."""

__version__ = "0.1.0"
