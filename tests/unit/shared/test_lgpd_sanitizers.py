"""Tests for LGPD masking of customer data in log events."""

import pytest

from src.shared.logging.sanitizers import LGPDProcessor, mask_sensitive_data, sanitize_for_log


class TestSanitizeForLog:

    def test_secrets_are_redacted(self):
        event = {"event": "x", "api_key": "abc", "cpf_cliente": "123.456.789-00", "db_password": "p"}

        sanitized = sanitize_for_log(event)

        assert sanitized == {
            "event": "x",
            "api_key": "***REDACTED***",
            "cpf_cliente": "***REDACTED***",
            "db_password": "***REDACTED***",
        }

    def test_customer_fields_are_partially_masked(self):
        sanitized = sanitize_for_log(
            {
                "nomeCliente": "Maria da Silva",
                "entregador": "João",
                "email": "maria@example.com",
                "telefone": "(81) 99999-1234",
                "source_file": "clientes_maria.xlsx",
            }
        )

        assert sanitized == {
            "nomeCliente": "M. d. S.",
            "entregador": "J.",
            "email": "m***@example.com",
            "telefone": "***34",
            "source_file": "***.xlsx",
        }

    def test_nested_structures(self):
        sanitized = sanitize_for_log(
            {"order": {"nomeCliente": "Ana Lima", "final": 10.0}, "rows": [{"token": "t"}, "plain"]}
        )

        assert sanitized["order"] == {"nomeCliente": "A. L.", "final": 10.0}
        assert sanitized["rows"] == [{"token": "***REDACTED***"}, "plain"]

    def test_none_values_stay_none(self):
        assert sanitize_for_log({"nomeCliente": None}) == {"nomeCliente": None}

    def test_input_is_not_mutated(self):
        event = {"nomeCliente": "Ana"}
        sanitize_for_log(event)
        assert event == {"nomeCliente": "Ana"}

    def test_processor(self):
        processor = LGPDProcessor()
        assert processor(None, "info", {"cliente": "Ana Lima"}) == {"cliente": "A. L."}


class TestMaskSensitiveData:

    @pytest.mark.parametrize(
        "data_type,value,expected",
        [
            ("nome", "Carlos Alberto", "C. A."),
            ("email", "ab@x.com", "***@x.com"),
            ("email", "sem-arroba", "***"),
            ("phone", "1234", "***"),
            ("source_file", "relatorio", "***"),
            ("cartao", "4111", "***MASKED***"),
            ("nome", "", "***"),
        ],
    )
    def test_masking(self, data_type, value, expected):
        assert mask_sensitive_data(data_type, value) == expected
