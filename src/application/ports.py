"""Application ports (interfaces) for the sales engine.

This module defines the contracts between the application layer and external systems.
All external dependencies must be implemented through these interfaces.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.domain.orders.value_objects import (
    ColumnDef,
    CustomCalculation,
    FeeSchedule,
    PackagingRule,
)

# Document-store collection names
SALES_COLLECTION = "vendas"
LOGISTICS_COLLECTION = "logistica"
COSTS_COLLECTION = "custos"
SOURCE_COLLECTIONS = (SALES_COLLECTION, LOGISTICS_COLLECTION, COSTS_COLLECTION)


class OrderSnapshotSource(ABC):
    """Port for reading persisted order, logistics and cost records."""

    @abstractmethod
    def fetch(
        self, collection: str, constraints: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Fetch all documents of a collection.

        Args:
            collection: Collection name ("vendas", "logistica", "custos")
            constraints: Optional equality constraints on document fields

        Returns:
            List of documents (each including its "id")
        """
        pass


class OrderDocumentWriter(ABC):
    """Port for batch writes of flattened documents."""

    @abstractmethod
    def write_batch(self, collection: str, documents: Sequence[Mapping[str, Any]]) -> None:
        """
        Write one batch of documents atomically.

        Args:
            collection: Target collection
            documents: Documents keyed by their "id" field
        """
        pass


class EngineSettingsRepository(ABC):
    """Port for engine configuration: calculations, packaging rules and fee schedules."""

    @abstractmethod
    def get_calculations(self) -> List[CustomCalculation]:
        """Return the global list of custom calculations, in evaluation order."""
        pass

    @abstractmethod
    def save_calculations(self, calculations: Sequence[CustomCalculation]) -> None:
        """Replace the global list of custom calculations."""
        pass

    @abstractmethod
    def get_packaging_rules(self) -> List[PackagingRule]:
        """Return the packaging cost rules."""
        pass

    @abstractmethod
    def get_fee_schedules(self) -> List[FeeSchedule]:
        """Return the card operator fee schedules."""
        pass


class ColumnMetadataRepository(ABC):
    """Port for table column metadata and uploaded file names."""

    @abstractmethod
    def get_columns(self, collection: str) -> List[ColumnDef]:
        pass

    @abstractmethod
    def save_columns(self, collection: str, columns: Sequence[ColumnDef]) -> None:
        pass

    @abstractmethod
    def get_uploaded_file_names(self, collection: str) -> List[str]:
        pass

    @abstractmethod
    def save_uploaded_file_names(self, collection: str, file_names: Sequence[str]) -> None:
        pass


class SettingsSource(ABC):
    """Port for reading configuration values."""

    @abstractmethod
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Args:
            key: Setting name
            default: Value returned when the setting is absent

        Returns:
            Raw string value or default
        """
        pass


class Clock(ABC):
    """Port for the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware datetime."""
        pass

    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        return int(self.now().timestamp() * 1000)
