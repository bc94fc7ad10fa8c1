import pytest

from querytree.config import reset_settings


@pytest.fixture(autouse=True)
def default_settings():
    """Run every test with the default compiler settings."""
    reset_settings()
    yield
    reset_settings()
