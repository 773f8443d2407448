"""
Shared fixtures for the vector engine tests.
"""
import pytest

from nano_vectordb.config.config_manager import ConfigManager
from nano_vectordb.model.record import Record


@pytest.fixture
def axis_records():
    """One unit record per axis of a 3-dimensional space."""
    return [
        Record("x", [1.0, 0.0, 0.0], {"axis": "x"}),
        Record("y", [0.0, 1.0, 0.0], {"axis": "y"}),
        Record("z", [0.0, 0.0, 1.0], {"axis": "z"}),
    ]


@pytest.fixture(autouse=True)
def reset_config_singleton():
    """Make sure no test sees another test's configuration."""
    ConfigManager._instance = None
    import nano_vectordb.config.config_manager as config_module
    config_module._config_manager = None
    yield
    ConfigManager._instance = None
    config_module._config_manager = None
