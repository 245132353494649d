"""Shopping cart — an explicit value the caller owns until checkout.

The cart holds no pricing state: every total is derived by the pricing
engine. Line items are unique per ``(product_id, variant_key)``.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.exceptions import CartItemNotFoundError, ValidationError
from storefront.shared.money import Money


class LineItem(BaseModel):
    """One product/variant/quantity entry. ``line_total`` is always derived."""

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(min_length=1)
    name: str = ""
    unit_price: Money
    quantity: int = Field(ge=1)
    variant_key: str | None = None

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.product_id, self.variant_key)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    items: list[LineItem] = Field(default_factory=list)
    coupon_code: str | None = None

    @field_validator("coupon_code")
    @classmethod
    def normalise_coupon_code(cls, value):
        if value is None:
            return None
        return value.strip().upper() or None

    @model_validator(mode="after")
    def line_items_must_be_unique(self):
        keys = [item.key for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValueError("Each (product_id, variant_key) may appear only once in a cart")
        return self

    def _index_of(self, product_id: str, variant_key: str | None) -> int | None:
        return next(
            (idx for idx, item in enumerate(self.items) if item.key == (product_id, variant_key)),
            None,
        )

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, unit_price, quantity=1, variant_key=None, name=""):
        """Add a line, or increase the quantity of the existing one."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        idx = self._index_of(product_id, variant_key)
        if idx is None:
            item = LineItem(
                product_id=product_id,
                name=name,
                unit_price=unit_price,
                quantity=quantity,
                variant_key=variant_key,
            )
            self.items.append(item)
            return item

        existing = self.items[idx]
        item = existing.model_copy(update={"quantity": existing.quantity + quantity})
        self.items[idx] = item
        return item

    def update_quantity(self, product_id, quantity, variant_key=None):
        """Set a line's quantity. A quantity of zero or less removes the line."""
        idx = self._index_of(product_id, variant_key)
        if idx is None:
            raise CartItemNotFoundError(product_id, variant_key)

        if quantity <= 0:
            del self.items[idx]
            return None

        item = self.items[idx].model_copy(update={"quantity": quantity})
        self.items[idx] = item
        return item

    def remove_item(self, product_id, variant_key=None):
        idx = self._index_of(product_id, variant_key)
        if idx is None:
            raise CartItemNotFoundError(product_id, variant_key)
        return self.items.pop(idx)

    def get_item(self, product_id, variant_key=None) -> LineItem | None:
        idx = self._index_of(product_id, variant_key)
        return None if idx is None else self.items[idx]

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def apply_coupon(self, coupon_code: str):
        code = coupon_code.strip().upper()
        if not code:
            raise ValidationError({"coupon_code": ["Coupon code cannot be blank"]})
        self.coupon_code = code

    def remove_coupon(self):
        self.coupon_code = None

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def clear(self):
        self.items = []
        self.coupon_code = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def quantity_of(self, product_id: str) -> int:
        """Units of ``product_id`` across all its variants."""
        return sum(item.quantity for item in self.items if item.product_id == product_id)
