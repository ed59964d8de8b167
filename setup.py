"""Setuptools build hooks for Ravel."""

from __future__ import annotations

from setuptools import setup

# Pure Python modules only; the default ``bdist_wheel`` yields a
# ``py3-none-any`` wheel.
setup()
