"""Redundancy and dependency audit for TypeScript service modules."""

__version__ = "1.0.0"
