"""Helper utilities for tests (fakes, notebook builders)."""

from .notebooks import make_notebook, notebook_bytes

__all__ = ["make_notebook", "notebook_bytes"]
