import pytest

from underzoom.transform import reset_settings


@pytest.fixture(autouse=True)
def _default_settings():
    """Every test starts and ends with the default process-wide settings."""
    reset_settings()
    yield
    reset_settings()
