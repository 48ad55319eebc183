"""Fake implementations for external boundary clients used in tests."""

from .compute import FakeComputeHost
from .notebook_client import FakeNotebookClient, fake_client_factory
from .providers import FakeBoundaryClientProvider, FakeComputeProvider, FakeStorageProvider
from .storage import InMemoryObjectStorage

__all__ = [
    "FakeBoundaryClientProvider",
    "FakeComputeHost",
    "FakeComputeProvider",
    "FakeNotebookClient",
    "FakeStorageProvider",
    "InMemoryObjectStorage",
    "fake_client_factory",
]
