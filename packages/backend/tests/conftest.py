"""
Shared pytest fixtures and configuration for all tests.
"""

import os
from collections.abc import Generator
from typing import Any

import pytest

from shapeql.executor import Executor
from shapeql.library import LibraryStore, build_library_schema
from shapeql.logging import clear_request_context, configure_logging
from shapeql.resolution import TypeResolver, field_equals
from shapeql.schema import ExecutableSchema


@pytest.fixture(scope="session", autouse=True)
def structured_logging() -> None:
    """Route structlog through stdlib logging so caplog can see it."""
    configure_logging(debug=True)


@pytest.fixture
def library_store() -> LibraryStore:
    """A freshly seeded in-memory library."""
    return LibraryStore()


@pytest.fixture
def library_schema(library_store: LibraryStore) -> ExecutableSchema:
    """The library sample schema over ``library_store``."""
    return build_library_schema(library_store)


@pytest.fixture
def executor(library_schema: ExecutableSchema) -> Executor:
    """Executor over the library sample schema."""
    return Executor(library_schema)


@pytest.fixture
def box_resolver() -> TypeResolver:
    """Resolver for the Box interface with red and blue implementors."""
    resolver = TypeResolver({"Box": ["RedBox", "BlueBox"]})
    resolver.register("Box", field_equals("color", "red", "RedBox"))
    resolver.register("Box", field_equals("color", "blue", "BlueBox"))
    return resolver


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """Reset environment variables and request context for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
    clear_request_context()


# Test markers
def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")  # type: ignore[reportUnknownMemberType]
    config.addinivalue_line("markers", "unit: mark test as unit test")  # type: ignore[reportUnknownMemberType]
