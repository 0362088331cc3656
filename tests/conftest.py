"""Shared pytest fixtures for inwire tests."""

import pytest

from inwire.container import Container
from inwire.dependencies import AnnotationMetadataProvider
from inwire.lock_mode import LockMode


@pytest.fixture()
def container() -> Container:
    """Default container: overrides allowed, thread locking enabled."""
    return Container()


@pytest.fixture()
def strict_container() -> Container:
    """Container that rejects registering the same token twice."""
    return Container(allow_overrides=False)


@pytest.fixture()
def unlocked_container() -> Container:
    """Container without thread locking around singleton production."""
    return Container(lock_mode=LockMode.NONE)


@pytest.fixture()
def metadata_provider() -> AnnotationMetadataProvider:
    """AnnotationMetadataProvider instance."""
    return AnnotationMetadataProvider()
