from decimal import Decimal

import pytest

from catalogo.numeros import (
    a_monto,
    decimal_a_json,
    interpretar_monto,
    interpretar_porcentaje,
    normalizar_numero,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1.234,56", Decimal("1234.56")),
        ("12.345.678,9", Decimal("12345678.9")),
        ("-1.000", Decimal("-1000")),
        ("1,234.56", Decimal("1234.56")),
        ("1,234,567", Decimal("1234567")),
        ("1234,5", Decimal("1234.5")),
        ("1234.5", Decimal("1234.5")),
        ("$ 500,00", Decimal("500.00")),
        (" 1 500 ", Decimal("1500")),
        (42, Decimal(42)),
        (2.5, Decimal("2.5")),
    ],
)
def test_normalizar_numero(raw, expected):
    assert normalizar_numero(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "abc", "1,2,3x", True, float("nan"), float("inf")])
def test_normalizar_numero_invalido(raw):
    assert normalizar_numero(raw) is None


def test_normalizar_numero_agrupado_gana_sobre_decimal():
    assert normalizar_numero("1.234") == Decimal("1234")
    assert normalizar_numero("1,234") == Decimal("1234")


def test_normalizar_numero_fallback_coma_final():
    # Neither grouped form: dots dropped, last comma is the decimal point.
    assert normalizar_numero("1.23,4") == Decimal("123.4")


def test_a_monto_redondea_a_centavos():
    assert a_monto(2.345) == Decimal("2.35")
    assert a_monto("10,0051") == Decimal("10.01")
    assert a_monto("") is None
    assert a_monto("x") is None


def test_decimal_a_json():
    assert decimal_a_json(Decimal("1000")) == 1000
    assert isinstance(decimal_a_json(Decimal("1000")), int)
    assert decimal_a_json(Decimal("12.50")) == 12.5
    assert decimal_a_json(None) is None


def test_interpretar_monto_sufijos():
    assert interpretar_monto("15k").valor == 15_000
    assert interpretar_monto("2kk").valor == 2_000_000
    assert interpretar_monto("2 mil").valor == 2_000
    assert interpretar_monto("3 millones").valor == 3_000_000
    assert interpretar_monto("3m").valor == 3_000_000


def test_interpretar_monto_numero_solo_sugiere():
    res = interpretar_monto("1500")
    assert res.valor is None
    assert [(s.label, s.value) for s in res.sugerencias] == [
        ("1.500 Mil", 1_500_000),
        ("1.500 Millones", 1_500_000_000),
    ]


def test_interpretar_monto_vacio():
    assert interpretar_monto("").valor is None
    assert interpretar_monto(None).sugerencias == []
    assert interpretar_monto("k15").valor is None


def test_interpretar_porcentaje():
    assert interpretar_porcentaje("5%") == 5
    assert interpretar_porcentaje("250") == 100
    assert interpretar_porcentaje("") is None
