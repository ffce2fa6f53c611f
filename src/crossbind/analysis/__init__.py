"""Boundary analysis subpackage for crossbind."""
