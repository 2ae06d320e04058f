"""
Application bootstrap and dependency injection configuration.
This is the composition root where all dependencies are wired together.
"""

from dataclasses import dataclass
from typing import Optional

from src.application.config import Config, get_config
from src.application.ports import SettingsSource
from src.application.use_cases.manage_calculations import ManageCalculationsUseCase
from src.application.use_cases.materialize_orders import MaterializeOrdersUseCase
from src.application.use_cases.save_staged import SaveStagedRowsUseCase
from src.application.use_cases.stage_import import StageImportUseCase
from src.infrastructure.adapters.cache.snapshot_cache import SnapshotCache
from src.infrastructure.clock import SystemClock
from src.infrastructure.engine_config import EngineConfigLoader
from src.infrastructure.repositories.memory import (
    InMemoryColumnMetadataRepository,
    InMemoryDocumentStore,
    InMemoryEngineSettingsRepository,
)
from src.infrastructure.settings import EnvironmentSettingsSource
from src.shared.logging import configure_logging


def bootstrap_config(settings: Optional[SettingsSource] = None) -> Config:
    """
    Bootstrap application configuration with proper dependency injection.

    Returns:
        Configured Config instance
    """
    return get_config(settings or EnvironmentSettingsSource())


@dataclass
class Container:
    """Wired use cases and the adapters behind them."""
    config: Config
    store: InMemoryDocumentStore
    snapshot_cache: SnapshotCache
    settings_repository: InMemoryEngineSettingsRepository
    metadata_repository: InMemoryColumnMetadataRepository
    stage_import: StageImportUseCase
    save_staged: SaveStagedRowsUseCase
    materialize_orders: MaterializeOrdersUseCase
    manage_calculations: ManageCalculationsUseCase


def build_container(config: Optional[Config] = None) -> Container:
    """
    Wire logging, adapters and use cases.

    Engine settings come from ENGINE_CONFIG_PATH when set, otherwise start empty.
    """
    config = config or bootstrap_config()
    configure_logging(
        environment=config.ENVIRONMENT.value,
        log_level=config.LOG_LEVEL,
        json_logs=config.json_logs,
    )

    clock = SystemClock()
    store = InMemoryDocumentStore()
    snapshot_cache = SnapshotCache(
        store, clock, ttl_seconds=config.SNAPSHOT_CACHE_TTL_SECONDS, writer=store
    )
    if config.ENGINE_CONFIG_PATH:
        settings_repository = EngineConfigLoader().load_file(config.ENGINE_CONFIG_PATH).to_repository()
    else:
        settings_repository = InMemoryEngineSettingsRepository()
    metadata_repository = InMemoryColumnMetadataRepository()

    return Container(
        config=config,
        store=store,
        snapshot_cache=snapshot_cache,
        settings_repository=settings_repository,
        metadata_repository=metadata_repository,
        stage_import=StageImportUseCase(clock),
        save_staged=SaveStagedRowsUseCase(
            snapshot_cache, metadata_repository, settings_repository, batch_size=config.WRITE_BATCH_SIZE
        ),
        materialize_orders=MaterializeOrdersUseCase(snapshot_cache, settings_repository, metadata_repository),
        manage_calculations=ManageCalculationsUseCase(settings_repository, metadata_repository, clock),
    )
