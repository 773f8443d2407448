"""
Configuration file for pytest.

This file configures pytest to properly load environment variables
and provides shared fixtures for tests.
"""
import pytest
import dotenv

# Load environment variables from .env file
dotenv.load_dotenv()


@pytest.fixture(scope="session")
def embedding_dim():
    """Dimension used by the small fixture vectors."""
    return 3
