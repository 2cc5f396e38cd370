from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

# se recorta antes de validar: "   " cuenta como vacío
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _Schema(BaseModel):
    # el front manda camelCase (unitPrice, priceRules); aceptamos ambos
    model_config = ConfigDict(populate_by_name=True)


def error_messages(exc: PydanticValidationError, prefix: str = "") -> List[str]:
    messages = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"])
        messages.append(f"{prefix}{where}: {err['msg']}")
    return messages


def parse(schema, data):
    """Acepta una instancia del schema o un dict; errores de pydantic -> ValidationError."""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(error_messages(exc)) from exc


# ---------- Precios ----------
class PriceRuleIn(_Schema):
    # los rangos se validan en pricing.validate_price_rules para juntar todos los errores
    from_qty: int = Field(alias="from")
    to_qty: int = Field(alias="to")
    price: float


# ---------- Catálogo ----------
class StockIn(_Schema):
    warehouse: Text  # id o nombre
    quantity: StrictInt = Field(ge=0)


class ProductIn(_Schema):
    name: Text
    sku: Text
    category: Text
    description: str = ""
    price: float = Field(gt=0)  # precio base
    tags: List[str] = []
    images: List[str] = []
    price_rules: List[PriceRuleIn] = Field(default_factory=list, alias="priceRules")
    stock: List[StockIn] = Field(default_factory=list, alias="stockByWarehouse")


class ProductUpdate(_Schema):
    name: Optional[Text] = None
    sku: Optional[Text] = None
    category: Optional[Text] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = None
    price_rules: Optional[List[PriceRuleIn]] = Field(default=None, alias="priceRules")


class WarehouseIn(_Schema):
    name: Text


# ---------- Tickets ----------
class TicketItemIn(_Schema):
    sku: Text
    quantity: StrictInt = Field(gt=0)
    unit_price: float = Field(gt=0, alias="unitPrice")


class CreateTicketIn(_Schema):
    id: Optional[str] = None  # si no viene se genera VTA-YYYYMMDD-XXXXXX
    vendor: Text
    warehouse: Text
    photo: Optional[str] = None
    items: List[TicketItemIn]


class QuoteLineIn(_Schema):
    sku: Text
    quantity: StrictInt = Field(gt=0)


class QuoteIn(_Schema):
    items: List[QuoteLineIn]


# ---------- Stock ----------
class StockAdjustmentIn(_Schema):
    warehouse: Text
    kind: Literal["entrada", "salida"]
    quantity: StrictInt = Field(gt=0)
    reason: Text
    notes: str = ""
