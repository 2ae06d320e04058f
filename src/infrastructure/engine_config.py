"""
Engine configuration loader.

Loads packaging rules, fee schedules and custom calculations from YAML,
validated with JSON Schema before being turned into domain value objects.

Example:

    packaging_rules:
      - nome: Sacola Plástica
        modalidades: [Delivery]
        custo: "0,50"
    fee_schedules:
      - nome: Stone
        taxaDebito: 1.2
        taxasCredito:
          - {numero: 1, taxa: 2.5}
    calculations:
      - id: custom_margem
        name: Margem
        formula:
          - {type: column, value: final}
          - {type: op, value: "-"}
          - {type: column, value: custoTotal}
"""

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import yaml

from src.domain.orders.value_objects import CustomCalculation, FeeSchedule, PackagingRule
from src.infrastructure.repositories.memory import InMemoryEngineSettingsRepository
from src.shared.logging import get_logger

_NUMBER_OR_TEXT = {"type": ["number", "string"]}

ENGINE_CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "packaging_rules": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["nome", "custo"],
                "properties": {
                    "nome": {"type": "string", "minLength": 1},
                    "custo": _NUMBER_OR_TEXT,
                    "modalidades": {
                        "type": "array",
                        "items": {"type": "string", "enum": ["Loja", "Delivery", "Todos"]},
                    },
                    "estrategia": {"enum": ["por_pedido", "por_unidade", "por_n_unidades"]},
                    "unidades_por_embalagem": {"type": "integer", "minimum": 1},
                },
            },
        },
        "fee_schedules": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["nome"],
                "properties": {
                    "nome": {"type": "string", "minLength": 1},
                    "taxaDebito": _NUMBER_OR_TEXT,
                    "taxasCredito": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["numero", "taxa"],
                            "properties": {
                                "numero": {"type": "integer", "minimum": 1},
                                "taxa": _NUMBER_OR_TEXT,
                            },
                        },
                    },
                },
            },
        },
        "calculations": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "formula"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "name": {"type": "string"},
                    "isPercentage": {"type": "boolean"},
                    "targetMarketplace": {"type": ["string", "null"]},
                    "formula": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["type", "value"],
                            "properties": {
                                "type": {"enum": ["column", "number", "op"]},
                                "value": _NUMBER_OR_TEXT,
                                "label": {"type": "string"},
                            },
                        },
                    },
                    "interaction": {
                        "type": ["object", "null"],
                        "properties": {
                            "targetColumn": {"type": "string"},
                            "operator": {"enum": ["+", "-"]},
                        },
                    },
                },
            },
        },
    },
}


class EngineConfigError(Exception):
    """Raised when the engine configuration cannot be loaded."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source


@dataclass(frozen=True)
class EngineConfig:
    """Parsed engine configuration."""

    packaging_rules: List[PackagingRule] = field(default_factory=list)
    fee_schedules: List[FeeSchedule] = field(default_factory=list)
    calculations: List[CustomCalculation] = field(default_factory=list)
    checksum: str = ""

    def to_repository(self) -> InMemoryEngineSettingsRepository:
        return InMemoryEngineSettingsRepository(
            calculations=self.calculations,
            packaging_rules=self.packaging_rules,
            fee_schedules=self.fee_schedules,
        )


class EngineConfigLoader:
    """
    Loader of engine configuration YAML.

    Responsibilities:
    - YAML parsing (safe loader only)
    - JSON Schema validation
    - Conversion into domain value objects
    """

    def __init__(self, schema_path: Optional[str] = None):
        """
        Initialize the loader.

        Args:
            schema_path: Optional JSON schema overriding the built-in one
        """
        self._logger = get_logger("infrastructure.engine_config")
        self.schema = ENGINE_CONFIG_SCHEMA
        if schema_path:
            with open(schema_path, "r", encoding="utf-8") as f:
                self.schema = json.load(f)

    def load_file(self, path: Union[str, Path]) -> EngineConfig:
        """Load and validate a YAML file."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise EngineConfigError(f"Cannot read engine config: {e}", source=str(path))
        return self.load(content, source=str(path))

    def load(self, content: Union[str, Dict[str, Any]], source: Optional[str] = None) -> EngineConfig:
        """
        Load engine configuration from YAML text or an already parsed dict.

        Raises:
            EngineConfigError: On YAML, schema or value errors
        """
        if isinstance(content, str):
            try:
                data = yaml.safe_load(content) or {}
            except yaml.YAMLError as e:
                raise EngineConfigError(f"Invalid YAML: {e}", source=source)
            raw = content
        else:
            data = content
            raw = yaml.safe_dump(content, sort_keys=True, allow_unicode=True)

        try:
            jsonschema.validate(data, self.schema)
        except jsonschema.ValidationError as e:
            path = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise EngineConfigError(f"Schema validation failed at {path}: {e.message}", source=source)

        try:
            config = EngineConfig(
                packaging_rules=[PackagingRule.from_dict(r) for r in data.get("packaging_rules") or []],
                fee_schedules=[FeeSchedule.from_dict(s) for s in data.get("fee_schedules") or []],
                calculations=[CustomCalculation.from_dict(c) for c in data.get("calculations") or []],
                checksum=hashlib.sha256(raw.encode("utf-8")).hexdigest(),
            )
        except ValueError as e:
            raise EngineConfigError(f"Invalid engine config value: {e}", source=source)

        self._logger.info(
            "engine_config_loaded",
            source=source or "<inline>",
            packaging_rules=len(config.packaging_rules),
            fee_schedules=len(config.fee_schedules),
            calculations=len(config.calculations),
            checksum=config.checksum[:12],
        )
        return config
