"""Test package for the employee directory auth layer."""
