"""
Cálculos customizados.

Avaliador restrito de fórmulas (sem eval) e engine que aplica os cálculos
aos pedidos com falhas locais e diagnósticas.
"""

from .evaluator import FormulaEvaluator, evaluate_formula, validate_formula
from .engine import (
    CalculationFailure,
    CalculationReport,
    ColumnResolver,
    CustomCalculationEngine,
)

__all__ = [
    "FormulaEvaluator",
    "evaluate_formula",
    "validate_formula",
    "CalculationFailure",
    "CalculationReport",
    "ColumnResolver",
    "CustomCalculationEngine",
]
