"""Shared pytest fixtures for migration toolkit tests."""

import pytest

from migration_toolkit.models.migration import EnvironmentConfig, ExportConfig, ImportConfig
from migration_toolkit.services.content_types import EnvironmentMetadata
from migration_toolkit.services.migration_logger import MigrationLogger

from tests.fixtures import FakeManagementClient, make_metadata, seed_source_environment


@pytest.fixture
def metadata() -> EnvironmentMetadata:
    """Environment metadata shared by source and target."""
    return make_metadata()


@pytest.fixture
def migration_logger() -> MigrationLogger:
    return MigrationLogger()


@pytest.fixture
def source_client() -> FakeManagementClient:
    """Source environment with an article, an author and three assets."""
    return seed_source_environment(FakeManagementClient())


@pytest.fixture
def target_client() -> FakeManagementClient:
    """Empty target environment with the same schema as the source."""
    return FakeManagementClient()


@pytest.fixture
def export_config() -> ExportConfig:
    return ExportConfig(
        environment=EnvironmentConfig(environment_id="source-env", api_key="source-key"),
        reference_parallel_limit=3,
        asset_parallel_limit=2,
    )


@pytest.fixture
def import_config() -> ImportConfig:
    return ImportConfig(
        environment=EnvironmentConfig(environment_id="target-env", api_key="target-key"),
        reference_parallel_limit=3,
        asset_parallel_limit=2,
    )
