"""Shared fixtures."""

import pytest

from fakes import FakeMarketplace, make_version


@pytest.fixture
def market():
    """A fresh fake marketplace with a few extensions."""
    fake = FakeMarketplace()
    fake.add(
        "golang.Go",
        make_version("0.46.1", engine="^1.98.0"),
        make_version("0.45.0", engine="^1.97.0"),
    )
    fake.add("rust-lang.rust-analyzer", make_version("0.3.2345", engine="^1.93.0"))
    fake.add("ms-python.python", make_version("2025.2.0", engine="^1.94.0"))
    return fake
