import pytest

from fxcache.services.money import round_half_up
from fxcache.services.rates.conversion import ConversionEngine


class DictRates:
    def __init__(self, rates):
        self.rates = rates

    def find_rate(self, base_code, second_code):
        return self.rates.get((base_code, second_code), 0.0)


# --- Rounding ---

@pytest.mark.parametrize(
    "value,precision,expected",
    [
        (0.005, 2, 0.01),
        (0.125, 2, 0.13),
        (1.005, 2, 1.01),
        (2.5, 0, 3.0),
        (-2.5, 0, -3.0),
        (-0.125, 2, -0.13),
        (0.1234565, 6, 0.123457),
    ],
)
def test_round_half_up(value, precision, expected):
    assert round_half_up(value, precision) == expected


def test_negative_precision_rounds_left_of_point():
    assert round_half_up(1234.5, -2) == 1200.0
    assert round_half_up(1250.0, -2) == 1300.0
    assert round_half_up(-1250.0, -2) == -1300.0
    assert round_half_up(4.0, -2) == 0.0


def test_round_non_finite_unchanged():
    assert round_half_up(float("inf"), 2) == float("inf")


# --- Engine with store ---

@pytest.fixture
def engine(seeded_currencies, rate_store):
    rate_store.upsert("USD", "EUR", 0.913, 100)
    return ConversionEngine(rate_store)


def test_convert_usd_eur(engine):
    assert engine.convert("USD", "EUR", 100, 2) == 91.30


def test_convert_default_precision(engine):
    assert engine.convert("USD", "EUR", 1.2345678) == round_half_up(0.913 * 1.2345678, 6)


def test_convert_normalises_codes(engine):
    assert engine.convert(" usd", "eur ", 10, 3) == 9.13


@pytest.mark.parametrize("amount", [0, 1, 100, -50, 1e9])
@pytest.mark.parametrize("precision", [0, 2, 6])
def test_convert_missing_pair_is_zero(engine, amount, precision):
    assert engine.convert("EUR", "GBP", amount, precision) == 0


def test_convert_unknown_currency_is_zero(engine):
    assert engine.convert("XXX", "EUR", 10) == 0


def test_identity_pair_not_implicit(engine):
    assert engine.convert("EUR", "EUR", 10) == 0


def test_convert_detailed(engine):
    res = engine.convert_detailed("USD", "EUR", 100, 2)
    assert res.available is True
    assert res.rate == pytest.approx(0.913)
    assert res.result == 91.3
    missing = engine.convert_detailed("GBP", "USD", 100, 2)
    assert missing.available is False
    assert missing.result == 0


# --- Half-up boundaries through the engine ---

def test_convert_half_up_boundaries():
    eng = ConversionEngine(DictRates({("AAA", "BBB"): 0.125, ("CCC", "DDD"): 2.5}))
    assert eng.convert("AAA", "BBB", 1, 2) == 0.13
    assert eng.convert("AAA", "BBB", 0.04, 3) == 0.005
    assert eng.convert("CCC", "DDD", 1, 0) == 3.0
    assert eng.convert("CCC", "DDD", -1, 0) == -3.0


def test_round_large_amount_keeps_precision():
    assert round_half_up(123456789012345678.0, 12) == 123456789012345678.0


@pytest.mark.parametrize("precision", [2, 12])
def test_convert_huge_amount(engine, precision):
    assert engine.convert("USD", "EUR", 1e60, precision) == 0.913 * 1e60
    assert engine.convert("USD", "EUR", 1e300, precision) == 0.913 * 1e300


@pytest.mark.parametrize("precision", [-2, 0, 2])
def test_convert_missing_pair_is_zero_for_any_precision(engine, precision):
    assert engine.convert("EUR", "GBP", 1e60, precision) == 0
    assert engine.convert("EUR", "GBP", float("inf"), precision) == 0


def test_convert_negative_precision(engine):
    assert engine.convert("USD", "EUR", 1000, -1) == 910.0
