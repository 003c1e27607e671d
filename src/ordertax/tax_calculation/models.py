"""Canonical input/output types of the tax engine.

Boundary documents (profiles from the configuration store, drafts built by
checkout) use camelCase keys with a ``Cents`` suffix for money. ``from_dict``
turns them into the frozen dataclasses below; the engine only ever branches
on these canonical shapes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import InvalidInputError
from .rounding import RoundingMode

ALL = "all"
DELIVERY_ORDER_TYPE = "delivery"
DELIVERY_AS_LINE = "as_line"
DELIVERY_OUT_OF_SCOPE = "out_of_scope"


def normalize_order_type(value: Any) -> str:
    """``dine_in``, ``Dine-In`` and ``dine-in`` all become ``dine-in``."""
    if value is None:
        return ""
    return str(value).strip().lower().replace("_", "-")


def to_minor_units(value: Any, field_name: str, default: Optional[int] = 0) -> Optional[int]:
    """
    Coerce a money value to integer minor units.

    Integral floats are accepted; fractional, non-finite, boolean and
    non-numeric values are caller errors.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be an integer amount, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidInputError(f"{field_name} must be a finite integer amount, got {value!r}")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise InvalidInputError(f"{field_name} must be an integer amount, got {value!r}") from None
    raise InvalidInputError(f"{field_name} must be an integer amount, got {type(value).__name__}")


def _str_tuple(values: Any) -> Optional[Tuple[str, ...]]:
    if values is None:
        return None
    if isinstance(values, str):
        values = [values]
    return tuple(str(v) for v in values)


def _order_types(values: Any) -> Optional[Tuple[str, ...]]:
    parsed = _str_tuple(values)
    if parsed is None:
        return None
    return tuple(normalize_order_type(v) for v in parsed)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(frozen=True)
class TaxRateRule:
    code: str
    rate_bps: int
    label: str = ""
    applies_to: Optional[str] = None
    item_category_in: Optional[Tuple[str, ...]] = None
    item_tag_in: Optional[Tuple[str, ...]] = None
    exclude_item_tag_in: Optional[Tuple[str, ...]] = None
    order_type_in: Optional[Tuple[str, ...]] = None

    @property
    def applies_to_all(self) -> bool:
        return self.applies_to == ALL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxRateRule":
        return cls(
            code=str(data.get("code", "")),
            label=str(data.get("label") or ""),
            rate_bps=to_minor_units(data.get("rateBps"), "rateBps"),
            applies_to=ALL if data.get("appliesTo") == ALL else None,
            item_category_in=_str_tuple(data.get("itemCategoryIn")),
            item_tag_in=_str_tuple(data.get("itemTagIn")),
            exclude_item_tag_in=_str_tuple(data.get("excludeItemTagIn")),
            order_type_in=_order_types(data.get("orderTypeIn")),
        )


@dataclass(frozen=True)
class SurchargeRule:
    code: str
    percent_bps: int
    label: str = ""
    apply_when_order_type_in: Optional[Tuple[str, ...]] = None
    taxable: bool = False
    tax_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SurchargeRule":
        return cls(
            code=str(data.get("code", "")),
            label=str(data.get("label") or ""),
            percent_bps=to_minor_units(data.get("percentBps"), "percentBps"),
            apply_when_order_type_in=_order_types(data.get("applyWhenOrderTypeIn")),
            taxable=bool(data.get("taxable", False)),
            tax_code=_opt_str(data.get("taxCode")),
        )


@dataclass(frozen=True)
class DeliveryPolicy:
    mode: str = DELIVERY_OUT_OF_SCOPE
    taxable: bool = False
    tax_code: Optional[str] = None

    @property
    def as_line(self) -> bool:
        return self.mode == DELIVERY_AS_LINE

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DeliveryPolicy":
        if not data:
            return cls()
        return cls(
            mode=DELIVERY_AS_LINE if data.get("mode") == DELIVERY_AS_LINE else DELIVERY_OUT_OF_SCOPE,
            taxable=bool(data.get("taxable", False)),
            tax_code=_opt_str(data.get("taxCode")),
        )


@dataclass(frozen=True)
class JurisdictionMatch:
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    zip_prefix: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "JurisdictionMatch":
        data = data or {}
        return cls(
            country=_opt_str(data.get("country")),
            state=_opt_str(data.get("state")),
            city=_opt_str(data.get("city")),
            zip_prefix=_opt_str(data.get("zipPrefix")),
        )


@dataclass(frozen=True)
class JurisdictionRule:
    """Geographic override. ``None`` means "not overridden"."""

    code: str
    match: JurisdictionMatch
    rates_override: Optional[Tuple[TaxRateRule, ...]] = None
    surcharges_override: Optional[Tuple[SurchargeRule, ...]] = None
    delivery_override: Optional[DeliveryPolicy] = None
    prices_include_tax_override: Optional[bool] = None
    rounding_override: Optional[RoundingMode] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JurisdictionRule":
        rates = data.get("ratesOverride")
        surcharges = data.get("surchargesOverride")
        delivery = data.get("deliveryOverride")
        include = data.get("pricesIncludeTaxOverride")
        rounding = data.get("roundingOverride")
        return cls(
            code=str(data.get("code", "")),
            match=JurisdictionMatch.from_dict(data.get("match")),
            rates_override=(
                tuple(TaxRateRule.from_dict(r) for r in rates) if isinstance(rates, list) else None
            ),
            surcharges_override=(
                tuple(SurchargeRule.from_dict(s) for s in surcharges)
                if isinstance(surcharges, list)
                else None
            ),
            delivery_override=DeliveryPolicy.from_dict(delivery) if delivery else None,
            prices_include_tax_override=None if include is None else bool(include),
            rounding_override=RoundingMode.parse(rounding) if rounding else None,
        )


@dataclass(frozen=True)
class InvoiceNumbering:
    enabled: bool = False
    series: str = ""
    prefix: str = ""
    suffix: str = ""
    padding: int = 0
    reset_policy: str = "never"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "InvoiceNumbering":
        if not data:
            return cls()
        return cls(
            enabled=bool(data.get("enabled", False)),
            series=str(data.get("series") or ""),
            prefix=str(data.get("prefix") or ""),
            suffix=str(data.get("suffix") or ""),
            padding=max(0, to_minor_units(data.get("padding"), "padding")),
            reset_policy=str(data.get("resetPolicy") or "never"),
        )


@dataclass(frozen=True)
class B2BConfig:
    tax_exempt_with_tax_id: bool = False
    invoice_numbering: InvoiceNumbering = field(default_factory=InvoiceNumbering)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "B2BConfig":
        if not data:
            return cls()
        return cls(
            tax_exempt_with_tax_id=bool(data.get("taxExemptWithTaxId", False)),
            invoice_numbering=InvoiceNumbering.from_dict(data.get("invoiceNumbering")),
        )


@dataclass(frozen=True)
class TaxProfile:
    country: str = ""
    currency: str = "USD"
    prices_include_tax: bool = False
    rounding: RoundingMode = RoundingMode.HALF_UP
    rates: Tuple[TaxRateRule, ...] = ()
    surcharges: Tuple[SurchargeRule, ...] = ()
    delivery: DeliveryPolicy = field(default_factory=DeliveryPolicy)
    jurisdictions: Tuple[JurisdictionRule, ...] = ()
    b2b: B2BConfig = field(default_factory=B2BConfig)
    profile_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaxProfile":
        return cls(
            country=str(data.get("country") or ""),
            currency=str(data.get("currency") or "USD"),
            prices_include_tax=bool(data.get("pricesIncludeTax", False)),
            rounding=RoundingMode.parse(data.get("rounding")),
            rates=tuple(TaxRateRule.from_dict(r) for r in data.get("rates") or []),
            surcharges=tuple(SurchargeRule.from_dict(s) for s in data.get("surcharges") or []),
            delivery=DeliveryPolicy.from_dict(data.get("delivery")),
            jurisdictions=tuple(
                JurisdictionRule.from_dict(j) for j in data.get("jurisdictions") or []
            ),
            b2b=B2BConfig.from_dict(data.get("b2bConfig")),
            profile_id=_opt_str(data.get("id", data.get("_id"))),
        )


@dataclass(frozen=True)
class EffectiveProfile:
    """A profile after at most one jurisdiction override has been applied."""

    country: str
    currency: str
    prices_include_tax: bool
    rounding: RoundingMode
    rates: Tuple[TaxRateRule, ...]
    surcharges: Tuple[SurchargeRule, ...]
    delivery: DeliveryPolicy
    b2b: B2BConfig
    jurisdiction_applied: Optional[str] = None

    def rate_by_code(self, code: Optional[str]) -> Optional[TaxRateRule]:
        if code is None:
            return None
        for rate in self.rates:
            if rate.code == code:
                return rate
        return None


@dataclass(frozen=True)
class OrderLineInput:
    line_id: str
    quantity: int
    unit_price: int = 0
    addons: int = 0
    options_delta: int = 0
    line_total: Optional[int] = None
    tax_exempt: bool = False
    name: str = ""
    category: Optional[str] = None
    tags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.line_id:
            raise InvalidInputError("order line requires a lineId")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidInputError(f"line {self.line_id}: quantity must be an integer")
        if self.quantity <= 0:
            raise InvalidInputError(
                f"line {self.line_id}: quantity must be positive, got {self.quantity}"
            )
        for name in ("unit_price", "addons", "options_delta", "line_total"):
            value = getattr(self, name)
            if value is None and name == "line_total":
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(f"line {self.line_id}: {name} must be integer minor units")

    @property
    def gross(self) -> int:
        if self.line_total is not None:
            return self.line_total
        return self.unit_price * self.quantity + self.addons + self.options_delta * self.quantity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderLineInput":
        line_id = _opt_str(data.get("lineId")) or ""
        # same coercion as money: 2, 2.0 and "2" are accepted, 1.5 and True are not
        quantity = to_minor_units(data.get("quantity"), "quantity", default=None)
        return cls(
            line_id=line_id,
            quantity=quantity,
            unit_price=to_minor_units(data.get("unitPriceCents"), "unitPriceCents"),
            addons=to_minor_units(data.get("addonsCents"), "addonsCents"),
            options_delta=to_minor_units(data.get("optionsDeltaCents"), "optionsDeltaCents"),
            line_total=to_minor_units(data.get("lineTotalCents"), "lineTotalCents", default=None),
            tax_exempt=bool(data.get("taxExempt", False)),
            name=str(data.get("name") or ""),
            category=_opt_str(data.get("category")),
            tags=_str_tuple(data.get("tags")) or (),
        )


@dataclass(frozen=True)
class Address:
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    line1: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Address"]:
        if not data:
            return None
        return cls(
            country=_opt_str(data.get("country")),
            state=_opt_str(data.get("state")),
            city=_opt_str(data.get("city")),
            zip=_opt_str(data.get("zip")),
            line1=_opt_str(data.get("line1")),
            notes=_opt_str(data.get("notes")),
        )


@dataclass(frozen=True)
class Customer:
    tax_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def has_tax_id(self) -> bool:
        return bool(self.tax_id and self.tax_id.strip())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Customer":
        data = data or {}
        return cls(tax_id=_opt_str(data.get("taxId")), name=_opt_str(data.get("name")))


@dataclass(frozen=True)
class OrderDraft:
    currency: Optional[str] = None
    order_type: str = ""
    lines: Tuple[OrderLineInput, ...] = ()
    customer: Customer = field(default_factory=Customer)
    delivery_fee: int = 0
    delivery_address: Optional[Address] = None

    def __post_init__(self) -> None:
        # Frozen: normalise through object.__setattr__
        object.__setattr__(self, "order_type", normalize_order_type(self.order_type))
        object.__setattr__(self, "lines", tuple(self.lines))
        if isinstance(self.delivery_fee, bool) or not isinstance(self.delivery_fee, int):
            raise InvalidInputError("deliveryFeeCents must be integer minor units")

    @property
    def is_delivery(self) -> bool:
        return self.order_type == DELIVERY_ORDER_TYPE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderDraft":
        lines: Iterable[Dict[str, Any]] = data.get("lines") or []
        return cls(
            currency=_opt_str(data.get("currency")),
            order_type=data.get("orderType") or "",
            lines=tuple(OrderLineInput.from_dict(line) for line in lines),
            customer=Customer.from_dict(data.get("customer")),
            delivery_fee=to_minor_units(data.get("deliveryFeeCents"), "deliveryFeeCents"),
            delivery_address=Address.from_dict(data.get("deliveryAddressInfo")),
        )


# ---------------------------------------------------------------------------
# Intermediate results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateTax:
    code: str
    rate_bps: int
    tax: int


@dataclass(frozen=True)
class LineTaxResult:
    line_id: str
    name: str
    gross: int
    base: int
    taxes: Tuple[RateTax, ...] = ()
    exempt: bool = False
    is_delivery: bool = False

    @property
    def tax(self) -> int:
        return sum(t.tax for t in self.taxes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lineId": self.line_id,
            "name": self.name,
            "grossCents": self.gross,
            "baseCents": self.base,
            "taxCents": self.tax,
            "exempt": self.exempt,
            "isDelivery": self.is_delivery,
            "taxes": [
                {"code": t.code, "rateBps": t.rate_bps, "taxCents": t.tax} for t in self.taxes
            ],
        }


@dataclass(frozen=True)
class SurchargeResult:
    code: str
    label: str
    base: int
    tax: int = 0
    taxable: bool = False
    rate_code: Optional[str] = None
    rate_bps: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "label": self.label,
            "baseCents": self.base,
            "taxCents": self.tax,
            "taxable": self.taxable,
            "rateCode": self.rate_code,
            "rateBps": self.rate_bps,
        }


@dataclass(frozen=True)
class RateSummary:
    code: str
    rate_bps: int
    label: str
    taxable_base: int
    tax: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "label": self.label,
            "rateBps": self.rate_bps,
            "taxableBaseCents": self.taxable_base,
            "taxCents": self.tax,
        }


@dataclass(frozen=True)
class TaxTotals:
    sub_total: int = 0
    tax: int = 0
    grand_total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "subTotalCents": self.sub_total,
            "taxCents": self.tax,
            "grandTotalCents": self.grand_total,
        }


def as_list(values: Iterable[Any]) -> List[Dict[str, Any]]:
    return [v.to_dict() for v in values]
