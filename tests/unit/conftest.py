import pytest

from funchost.registry import GLOBAL_REGISTRY


@pytest.fixture(autouse=True)
def clear_global_registry():
    """
    Removes the functions that a test defined with the ``funchost.http`` or ``funchost.cloud_event`` decorators.
    """
    yield
    GLOBAL_REGISTRY.clear()
