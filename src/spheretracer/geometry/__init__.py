"""Geometric primitives and ray intersection routines."""
