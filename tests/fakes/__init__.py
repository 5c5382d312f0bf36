# Fake implementations for testing

from .fake_odb import FakeObjectDatabase

__all__ = ["FakeObjectDatabase"]
