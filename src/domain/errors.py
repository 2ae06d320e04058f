"""Erros de domínio do engine de pedidos."""

from typing import Optional


class DomainError(Exception):
    """Exceção base de todos os erros de domínio."""

    def __init__(self, message: str) -> None:
        """
        Inicializa o erro de domínio.

        Args:
            message: Mensagem de erro (sem dados pessoais)
        """
        super().__init__(message)
        self.message = message


class FormulaError(DomainError):
    """Exceção base para falhas de avaliação de cálculos customizados."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        """
        Inicializa o erro de fórmula.

        Args:
            message: Mensagem de erro (sem dados pessoais)
            position: Índice do token problemático, quando conhecido
        """
        super().__init__(message)
        self.position = position


class FormulaSyntaxError(FormulaError):
    """Sequência de tokens que não forma uma expressão válida."""


class UnknownColumnError(FormulaError):
    """Fórmula referencia uma coluna inexistente."""

    def __init__(self, reference: str, position: Optional[int] = None) -> None:
        """
        Inicializa o erro de coluna desconhecida.

        Args:
            reference: Id ou rótulo de coluna não resolvido
            position: Índice do token de coluna na fórmula
        """
        # Ids de coluna são metadados, nunca dados de clientes
        super().__init__(f"Unknown column reference: {reference}", position)
        self.reference = reference


class NonFiniteResultError(FormulaError):
    """Fórmula resulta em infinito ou NaN (ex.: divisão por zero)."""
