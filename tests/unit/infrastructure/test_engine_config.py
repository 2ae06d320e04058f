"""Tests for loading engine settings from YAML."""

import json

import pytest

from src.domain.orders.value_objects import Modality, QuantityStrategy
from src.infrastructure.engine_config import EngineConfigError, EngineConfigLoader

VALID_YAML = """
packaging_rules:
  - nome: Sacola Plástica
    modalidades: [Delivery]
    custo: "0,10"
  - nome: Sacola Loja
    modalidades: [Loja]
    custo: 0.30
    estrategia: por_n_unidades
    unidades_por_embalagem: 3
fee_schedules:
  - nome: Stone
    taxaDebito: 1.5
    taxasCredito:
      - {numero: 1, taxa: 3.0}
      - {numero: 2, taxa: "3,5"}
calculations:
  - id: custom_margem
    name: Margem
    formula:
      - {type: column, value: final}
      - {type: op, value: "-"}
      - {type: column, value: custoTotal}
    targetMarketplace: all
"""


@pytest.fixture
def loader():
    return EngineConfigLoader()


class TestEngineConfigLoader:

    def test_load_valid_yaml(self, loader):
        config = loader.load(VALID_YAML, source="engine.yaml")

        assert [r.nome for r in config.packaging_rules] == ["Sacola Plástica", "Sacola Loja"]
        assert config.packaging_rules[0].custo == pytest.approx(0.10)
        assert config.packaging_rules[0].modalidades == (Modality.DELIVERY,)
        assert config.packaging_rules[1].estrategia is QuantityStrategy.POR_N_UNIDADES
        assert config.packaging_rules[1].unidades_por_embalagem == 3

        schedule = config.fee_schedules[0]
        assert schedule.taxa_debito == 1.5
        assert schedule.credit_fee(2) == pytest.approx(3.5)

        calculation = config.calculations[0]
        assert calculation.id == "custom_margem"
        assert len(calculation.formula) == 3
        assert calculation.target_marketplace is None
        assert len(config.checksum) == 64

    def test_empty_document(self, loader):
        config = loader.load("")
        assert config.packaging_rules == []
        assert config.calculations == []

    def test_dict_input(self, loader):
        config = loader.load({"fee_schedules": [{"nome": "Cielo"}]})
        assert config.fee_schedules[0].nome == "Cielo"
        assert config.checksum

    def test_invalid_yaml(self, loader):
        with pytest.raises(EngineConfigError, match="Invalid YAML"):
            loader.load("packaging_rules: [unclosed")

    @pytest.mark.parametrize(
        "content,path",
        [
            ("unknown_section: []", "<root>"),
            ("packaging_rules:\n  - nome: X\n", "packaging_rules/0"),
            ("packaging_rules:\n  - {nome: X, custo: 1, modalidades: [Drone]}\n", "packaging_rules/0/modalidades/0"),
            ("calculations:\n  - {id: c, formula: [{type: fn, value: x}]}\n", "calculations/0/formula/0/type"),
        ],
    )
    def test_schema_violations(self, loader, content, path):
        with pytest.raises(EngineConfigError) as exc_info:
            loader.load(content, source="engine.yaml")

        assert f"Schema validation failed at {path}" in exc_info.value.message
        assert exc_info.value.source == "engine.yaml"

    def test_load_file(self, loader, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text(VALID_YAML, encoding="utf-8")

        config = loader.load_file(path)

        assert len(config.packaging_rules) == 2

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(EngineConfigError, match="Cannot read engine config"):
            loader.load_file(tmp_path / "missing.yaml")

    def test_custom_schema(self, tmp_path):
        schema_path = tmp_path / "schema.json"
        schema_path.write_text(json.dumps({"type": "object", "required": ["calculations"]}), encoding="utf-8")

        with pytest.raises(EngineConfigError):
            EngineConfigLoader(schema_path=str(schema_path)).load("packaging_rules: []")

    def test_to_repository(self, loader):
        repository = loader.load(VALID_YAML).to_repository()

        assert [c.id for c in repository.get_calculations()] == ["custom_margem"]
        assert len(repository.get_packaging_rules()) == 2
        assert repository.get_fee_schedules()[0].nome == "Stone"
