"""
Avaliador de fórmulas de cálculos customizados.

Parser descendente recursivo sobre a sequência de FormulaItems. A gramática
é restrita a números, referências de coluna, ``+ - * / ( )`` e menos
unário; nenhum avaliador de código genérico é usado.

    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('-' | '+') unary | primary
    primary := NUMBER | COLUMN | '(' expr ')'
"""

import math
from typing import Callable, List, Optional, Sequence

from src.domain.errors import FormulaSyntaxError, NonFiniteResultError

from ..normalizer import coerce_numeric
from ..value_objects import FormulaItem, FormulaItemType

OPERATORS = frozenset({"+", "-", "*", "/", "(", ")"})

# Símbolos aceitos pela interface além dos ASCII
_OPERATOR_ALIASES = {"×": "*", "x": "*", "÷": "/", "−": "-"}

ColumnResolver = Callable[[str, int], float]


def operator_symbol(item: FormulaItem) -> str:
    """Símbolo canônico de um token de operador."""
    symbol = item.value.strip()
    return _OPERATOR_ALIASES.get(symbol, symbol)


def parse_number(item: FormulaItem, position: int) -> float:
    """Literal numérico com vírgula ou ponto decimal."""
    value = coerce_numeric(item.value)
    if isinstance(value, str) or isinstance(value, bool):
        raise FormulaSyntaxError(f"Invalid number literal at position {position}", position)
    number = float(value)
    if not math.isfinite(number):
        raise FormulaSyntaxError(f"Invalid number literal at position {position}", position)
    return number


class FormulaEvaluator:
    """
    Avaliador de uma fórmula contra um resolvedor de colunas.

    O resolvedor recebe o id/rótulo da coluna e a posição do token e devolve
    o valor numérico, ou levanta ``UnknownColumnError``.
    """

    def __init__(self, items: Sequence[FormulaItem], resolve_column: ColumnResolver):
        self.items = list(items)
        self.resolve_column = resolve_column
        self.position = 0

    def evaluate(self) -> float:
        """Avalia a fórmula inteira."""
        if not self.items:
            raise FormulaSyntaxError("Empty formula")
        self.position = 0
        result = self._expr()
        if self.position < len(self.items):
            raise FormulaSyntaxError(f"Unexpected token at position {self.position}", self.position)
        if not math.isfinite(result):
            raise NonFiniteResultError("Formula result is not finite")
        return result

    def _peek_operator(self) -> Optional[str]:
        if self.position >= len(self.items):
            return None
        item = self.items[self.position]
        if item.type is not FormulaItemType.OPERATOR:
            return None
        return operator_symbol(item)

    def _expr(self) -> float:
        value = self._term()
        while self._peek_operator() in ("+", "-"):
            symbol = self._peek_operator()
            self.position += 1
            right = self._term()
            value = value + right if symbol == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek_operator() in ("*", "/"):
            symbol = self._peek_operator()
            position = self.position
            self.position += 1
            right = self._unary()
            if symbol == "*":
                value = value * right
            else:
                if right == 0:
                    raise NonFiniteResultError(f"Division by zero at position {position}", position)
                value = value / right
        return value

    def _unary(self) -> float:
        symbol = self._peek_operator()
        if symbol in ("-", "+"):
            self.position += 1
            operand = self._unary()
            return -operand if symbol == "-" else operand
        return self._primary()

    def _primary(self) -> float:
        if self.position >= len(self.items):
            raise FormulaSyntaxError("Unexpected end of formula", self.position)

        position = self.position
        item = self.items[position]

        if item.type is FormulaItemType.NUMBER:
            self.position += 1
            return parse_number(item, position)

        if item.type is FormulaItemType.COLUMN:
            self.position += 1
            return self.resolve_column(item.value, position)

        if operator_symbol(item) == "(":
            self.position += 1
            value = self._expr()
            if self._peek_operator() != ")":
                raise FormulaSyntaxError(f"Missing closing parenthesis for position {position}", position)
            self.position += 1
            return value

        raise FormulaSyntaxError(f"Unexpected operator at position {position}", position)


def evaluate_formula(items: Sequence[FormulaItem], resolve_column: ColumnResolver) -> float:
    """Avalia a fórmula e devolve o resultado numérico finito."""
    return FormulaEvaluator(items, resolve_column).evaluate()


def validate_formula(items: Sequence[FormulaItem]) -> List[str]:
    """
    Valida a estrutura de uma fórmula antes de salvá-la.

    Returns:
        Lista de problemas encontrados (vazia quando a fórmula é válida)
    """
    problems: List[str] = []
    if not items:
        return ["Formula is empty"]

    if not any(item.type in (FormulaItemType.COLUMN, FormulaItemType.NUMBER) for item in items):
        problems.append("Formula must reference a column or a number")

    depth = 0
    for item in items:
        if item.type is not FormulaItemType.OPERATOR:
            continue
        symbol = operator_symbol(item)
        if symbol not in OPERATORS:
            problems.append(f"Unknown operator: {item.value}")
        elif symbol == "(":
            depth += 1
        elif symbol == ")":
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        problems.append("Unbalanced parentheses")

    last = items[-1]
    if last.type is FormulaItemType.OPERATOR and operator_symbol(last) != ")":
        problems.append("Formula cannot end with an operator")

    if not problems:
        try:
            evaluate_formula(items, lambda reference, position: 1.0)
        except FormulaSyntaxError as e:
            problems.append(e.message)
        except NonFiniteResultError:
            # Divisão por literal zero ainda é sintaxe válida
            pass

    return problems
