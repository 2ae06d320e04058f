"""Manage custom calculations use case: validated save and delete with column pruning."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.application.errors import CalculationNotFoundError, ValidationError
from src.application.ports import (
    SALES_COLLECTION,
    Clock,
    ColumnMetadataRepository,
    EngineSettingsRepository,
)
from src.domain.orders.columns import merge_columns
from src.domain.orders.formulas import validate_formula
from src.domain.orders.value_objects import (
    ALL_MARKETPLACES,
    CustomCalculation,
    FormulaItem,
    Interaction,
)
from src.shared.logging import get_logger
from src.shared.logging.context import get_correlation_id

DEFAULT_CALCULATION_NAME = "Sem nome"


@dataclass(frozen=True)
class SaveCalculationRequest:
    """Request DTO for saving a calculation."""
    name: str
    formula: Sequence[Mapping[str, Any]]
    is_percentage: bool = False
    target_marketplace: Optional[str] = None
    interaction: Optional[Mapping[str, Any]] = None
    calculation_id: Optional[str] = None


@dataclass(frozen=True)
class CalculationsResponse:
    """Response DTO with the resulting calculation list."""
    calculations: List[CustomCalculation]
    columns_count: int
    saved_id: Optional[str] = None

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [calc.to_dict() for calc in self.calculations]


class ManageCalculationsUseCase:
    """Use case for creating, updating and deleting custom calculations."""

    def __init__(
        self,
        settings_repository: EngineSettingsRepository,
        metadata_repository: ColumnMetadataRepository,
        clock: Clock,
    ) -> None:
        """
        Initialize use case with dependencies.

        Args:
            settings_repository: Persisted calculations
            metadata_repository: Column metadata to keep in sync
            clock: Clock used to mint calculation ids
        """
        self._settings_repository = settings_repository
        self._metadata_repository = metadata_repository
        self._clock = clock
        self._logger = get_logger("application.manage_calculations")

    def save(self, request: SaveCalculationRequest) -> CalculationsResponse:
        """
        Validate and upsert a calculation.

        Raises:
            ValidationError: If the formula or interaction is invalid
        """
        calculation = self._build_calculation(request)

        calculations = self._settings_repository.get_calculations()
        replaced = False
        for index, existing in enumerate(calculations):
            if existing.id == calculation.id:
                calculations[index] = calculation
                replaced = True
                break
        if not replaced:
            calculations.append(calculation)

        columns_count = self._persist(calculations)

        self._logger.info(
            "custom_calculation_saved",
            calculation_id=calculation.id,
            created=not replaced,
            formula_length=len(calculation.formula),
            correlation_id=get_correlation_id(),
        )
        return CalculationsResponse(
            calculations=calculations, columns_count=columns_count, saved_id=calculation.id
        )

    def delete(self, calculation_id: str) -> CalculationsResponse:
        """
        Delete a calculation and prune its column.

        Raises:
            CalculationNotFoundError: If the id does not exist
        """
        calculations = self._settings_repository.get_calculations()
        remaining = [calc for calc in calculations if calc.id != calculation_id]
        if len(remaining) == len(calculations):
            raise CalculationNotFoundError(calculation_id)

        columns_count = self._persist(remaining)

        self._logger.info(
            "custom_calculation_deleted",
            calculation_id=calculation_id,
            remaining=len(remaining),
            correlation_id=get_correlation_id(),
        )
        return CalculationsResponse(calculations=remaining, columns_count=columns_count)

    def _persist(self, calculations: List[CustomCalculation]) -> int:
        self._settings_repository.save_calculations(calculations)
        columns = merge_columns(self._metadata_repository.get_columns(SALES_COLLECTION), calculations)
        self._metadata_repository.save_columns(SALES_COLLECTION, columns)
        return len(columns)

    def _build_calculation(self, request: SaveCalculationRequest) -> CustomCalculation:
        try:
            formula = tuple(FormulaItem.from_dict(item) for item in request.formula)
        except ValueError as e:
            raise ValidationError("formula", str(e))

        problems = validate_formula(formula)
        if problems:
            self._logger.warning(
                "custom_calculation_rejected",
                problems=problems,
                correlation_id=get_correlation_id(),
            )
            raise ValidationError("formula", "; ".join(problems))

        try:
            interaction = Interaction.from_dict(request.interaction)
        except ValueError as e:
            raise ValidationError("interaction", str(e))

        target = (request.target_marketplace or "").strip()
        if target == ALL_MARKETPLACES:
            target = ""

        return CustomCalculation(
            id=request.calculation_id or f"custom_{self._clock.now_ms()}",
            name=(request.name or "").strip() or DEFAULT_CALCULATION_NAME,
            formula=formula,
            is_percentage=request.is_percentage,
            target_marketplace=target or None,
            interaction=interaction,
        )
