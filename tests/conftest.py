"""Shared pytest configuration and fixtures."""

import os

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: needs a live Pinecone index and model download")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.getenv("PINECONE_API_KEY"):
        return
    skip = pytest.mark.skip(reason="PINECONE_API_KEY not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)
