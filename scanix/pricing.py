"""Precios escalonados por cantidad.

Un producto tiene rangos ``[desde, hasta]`` que no se solapan, cada uno con su
precio unitario. Si la cantidad no cae en ningún rango se cobra el precio base.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from .errors import ProductNotFoundError

LOGGER = logging.getLogger(__name__)


class PriceRuleCheck(NamedTuple):
    ok: bool
    errors: List[str]


def rule_bounds(rule: Any) -> Tuple[int, int, float]:
    """(desde, hasta, precio) de una regla ORM, un PriceRuleIn o un dict."""
    if isinstance(rule, dict):
        start = rule["from"] if "from" in rule else rule["from_qty"]
        end = rule["to"] if "to" in rule else rule["to_qty"]
        return start, end, rule["price"]
    return rule.from_qty, rule.to_qty, rule.price


def sort_rules(rules: Iterable[Any]) -> List[Any]:
    return sorted(rules, key=lambda r: rule_bounds(r)[0])


def find_applied_rule(quantity: int, rules: Iterable[Any]) -> Optional[Any]:
    # con reglas solapadas gana la primera en orden de "desde"
    for rule in sort_rules(rules or []):
        start, end, _ = rule_bounds(rule)
        if start <= quantity <= end:
            return rule
    return None


def resolve_unit_price(quantity: int, base_price: float, rules: Iterable[Any]) -> float:
    rule = find_applied_rule(quantity, rules)
    if rule is None:
        return base_price
    return rule_bounds(rule)[2]


def validate_price_rules(rules: Sequence[Any]) -> PriceRuleCheck:
    """Junta todas las violaciones, no solo la primera."""
    errors = []
    for rule in rules:
        start, end, price = rule_bounds(rule)
        if start <= 0 or end <= 0:
            errors.append("Los rangos deben ser positivos")
        if start > end:
            errors.append("Desde no puede ser mayor que Hasta")
        if price <= 0:
            errors.append("El precio debe ser mayor a 0")

    ordered = sort_rules(rules)
    for prev, cur in zip(ordered, ordered[1:]):
        if rule_bounds(cur)[0] <= rule_bounds(prev)[1]:
            errors.append("Las reglas no deben solaparse")

    return PriceRuleCheck(ok=not errors, errors=errors)


# ---------- Cotización de un carrito ----------
@dataclass
class QuoteLine:
    sku: str
    name: str
    quantity: int
    unit_price: float
    subtotal: float
    rule_applied: Optional[Tuple[int, int]] = None


@dataclass
class Quote:
    lines: List[QuoteLine] = field(default_factory=list)

    @property
    def total(self) -> float:
        return round(sum(line.subtotal for line in self.lines), 2)


def quote(store, lines) -> Quote:
    """Precio unitario y subtotal de cada línea tal como lo calcula el punto de venta."""
    result = Quote()
    for line in lines:
        sku, quantity = _line_sku_qty(line)
        product = store.find_product_by_sku(sku)
        if product is None:
            raise ProductNotFoundError(sku)
        rule = find_applied_rule(quantity, product.price_rules)
        unit_price = resolve_unit_price(quantity, product.base_price, product.price_rules)
        result.lines.append(QuoteLine(
            sku=product.sku,
            name=product.name,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=round(quantity * unit_price, 2),
            rule_applied=rule_bounds(rule)[:2] if rule is not None else None,
        ))
    LOGGER.debug("Cotización de %d líneas: total %.2f", len(result.lines), result.total)
    return result


def _line_sku_qty(line) -> Tuple[str, int]:
    if isinstance(line, dict):
        return line["sku"], line["quantity"]
    return line.sku, line.quantity
