"""
Shared fixtures for the service kernel tests.
"""

import pytest

from service_kernel import Application

from .sample_services import MemoryService


@pytest.fixture
def app():
    """Create a fresh application for testing."""
    return Application()


@pytest.fixture
def memory_service():
    return MemoryService()
