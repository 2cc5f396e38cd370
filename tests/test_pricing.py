import pytest

from scanix.errors import ProductNotFoundError
from scanix.models import PriceRule
from scanix.pricing import find_applied_rule, quote, resolve_unit_price, validate_price_rules
from scanix.schemas import PriceRuleIn

AOL_RULES = [
    {"from": 1, "to": 9, "price": 8.5},
    {"from": 10, "to": 49, "price": 7.8},
    {"from": 50, "to": 999, "price": 7.2},
]


@pytest.mark.parametrize("qty, expected", [
    (1, 8.5), (9, 8.5), (10, 7.8), (12, 7.8), (49, 7.8), (50, 7.2), (999, 7.2),
])
def test_resolve_unit_price_picks_matching_tier(qty, expected):
    assert resolve_unit_price(qty, 8.5, AOL_RULES) == expected


def test_resolve_example_aol_12_units():
    unit = resolve_unit_price(12, 8.5, AOL_RULES)
    assert unit == 7.8
    assert 12 * unit == pytest.approx(93.6)


def test_resolve_falls_back_to_base_price_outside_ranges():
    assert resolve_unit_price(1000, 8.5, AOL_RULES) == 8.5
    assert resolve_unit_price(5, 3.0, [{"from": 10, "to": 20, "price": 2.0}]) == 3.0


def test_resolve_with_no_rules_returns_base_price():
    assert resolve_unit_price(3, 4.25, []) == 4.25
    assert resolve_unit_price(3, 4.25, None) == 4.25


def test_resolve_ignores_insertion_order():
    shuffled = [AOL_RULES[2], AOL_RULES[0], AOL_RULES[1]]
    assert resolve_unit_price(15, 8.5, shuffled) == 7.8


def test_overlapping_rules_first_match_by_from_qty_wins():
    rules = [{"from": 5, "to": 20, "price": 2.0}, {"from": 1, "to": 10, "price": 3.0}]
    # 7 cae en ambos; gana el de menor "desde"
    assert resolve_unit_price(7, 9.9, rules) == 3.0
    assert resolve_unit_price(15, 9.9, rules) == 2.0


def test_resolve_accepts_orm_and_schema_rules():
    orm = [PriceRule(from_qty=1, to_qty=19, price=3.2), PriceRule(from_qty=20, to_qty=99, price=2.9)]
    schema = [PriceRuleIn(from_qty=1, to_qty=19, price=3.2), PriceRuleIn(**{"from": 20, "to": 99, "price": 2.9})]
    assert resolve_unit_price(25, 3.2, orm) == 2.9
    assert resolve_unit_price(25, 3.2, schema) == 2.9


def test_find_applied_rule():
    rule = find_applied_rule(12, AOL_RULES)
    assert rule == {"from": 10, "to": 49, "price": 7.8}
    assert find_applied_rule(5000, AOL_RULES) is None


def test_validate_accepts_valid_rules():
    check = validate_price_rules(AOL_RULES)
    assert check.ok
    assert check.errors == []
    assert validate_price_rules([]).ok


@pytest.mark.parametrize("rules", [
    [{"from": 1, "to": 10, "price": 1.0}, {"from": 10, "to": 20, "price": 0.9}],
    [{"from": 10, "to": 20, "price": 0.9}, {"from": 1, "to": 10, "price": 1.0}],
    [{"from": 5, "to": 50, "price": 1.0}, {"from": 1, "to": 3, "price": 1.5}, {"from": 10, "to": 12, "price": 0.5}],
])
def test_validate_rejects_overlaps_regardless_of_order(rules):
    check = validate_price_rules(rules)
    assert not check.ok
    assert "Las reglas no deben solaparse" in check.errors


def test_validate_collects_every_violation():
    rules = [
        {"from": 0, "to": 5, "price": 1.0},
        {"from": 9, "to": 6, "price": 1.0},
        {"from": 20, "to": 30, "price": 0},
    ]
    check = validate_price_rules(rules)
    assert not check.ok
    assert "Los rangos deben ser positivos" in check.errors
    assert "Desde no puede ser mayor que Hasta" in check.errors
    assert "El precio debe ser mayor a 0" in check.errors


def test_validate_negative_bounds():
    check = validate_price_rules([{"from": -3, "to": -1, "price": 2.0}])
    assert check.errors == ["Los rangos deben ser positivos"]


def test_quote_uses_catalog_rules(store):
    result = quote(store, [{"sku": "AOL-500", "quantity": 12}, {"sku": "arr-1000", "quantity": 2}])
    aol, arr = result.lines
    assert aol.unit_price == 7.8
    assert aol.subtotal == pytest.approx(93.6)
    assert aol.rule_applied == (10, 49)
    assert arr.sku == "ARR-1000"
    assert arr.unit_price == 3.2
    assert result.total == pytest.approx(100.0)


def test_quote_outside_rules_uses_base_price(store):
    result = quote(store, [{"sku": "ARR-1000", "quantity": 500}])
    assert result.lines[0].unit_price == 3.2
    assert result.lines[0].rule_applied is None


def test_quote_unknown_sku(store):
    with pytest.raises(ProductNotFoundError) as exc:
        quote(store, [{"sku": "NOPE-1", "quantity": 1}])
    assert exc.value.sku == "NOPE-1"
