# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Schema(BaseModel):
    """Baza dla rekordow API - camelCase na wire i na dysku."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"
    ONLINE_PAYMENT = "ONLINE_PAYMENT"
    CARD_PAYMENT = "CARD_PAYMENT"


class Role(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


# =====================================================
# KATALOG
# =====================================================
class Product(Schema):
    """Produkt z katalogu (odpowiedz product API)."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    # backend wysyla stan jako "quantity", front jako "stockQuantity"
    stock_quantity: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("stockQuantity", "stock_quantity", "quantity"),
    )
    image_url: Optional[str] = None
    category: Optional[str] = None
    in_stock: Optional[bool] = None
    average_rating: Optional[float] = None
    review_count: Optional[int] = None


# =====================================================
# KOSZYK
# =====================================================
class CartItem(Schema):
    """Pozycja koszyka - snapshot produktu + ilosc (zawsze >= 1)."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1)
    name: str
    price: Decimal = Field(..., ge=0)
    image_url: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(..., ge=1)
    stock_quantity: Optional[int] = None

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartItem":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            image_url=product.image_url,
            category=product.category,
            quantity=quantity,
            stock_quantity=product.stock_quantity,
        )

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class CartRecord(Schema):
    """Trwaly rekord koszyka: tylko items, bez isOpen."""

    items: List[CartItem] = Field(default_factory=list)


# =====================================================
# ZAMOWIENIA
# =====================================================
class OrderItemIn(Schema):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class OrderCreate(Schema):
    """Payload tworzenia zamowienia - cena i nazwa celowo nie sa wysylane."""

    order_items: List[OrderItemIn] = Field(..., min_length=1)
    delivery_address: str
    contact_number: str
    order_notes: Optional[str] = None


class OrderItem(Schema):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    product_id: str
    product_name: str
    product_image: Optional[str] = None
    price: Decimal
    quantity: int = Field(..., ge=1)
    subtotal: Optional[Decimal] = None

    @model_validator(mode="before")
    @classmethod
    def _compute_subtotal(cls, data):
        if not isinstance(data, dict) or data.get("subtotal") is not None:
            return data
        price, quantity = data.get("price"), data.get("quantity")
        if price is None or quantity is None:
            return data
        try:
            subtotal = Decimal(str(price)) * int(quantity)
        except (ArithmeticError, ValueError, TypeError):
            # bledne price/quantity zglosi walidacja pol
            return data
        return {**data, "subtotal": subtotal}


class Order(Schema):
    id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    order_items: List[OrderItem] = Field(default_factory=list)
    total_amount: Decimal
    status: OrderStatus
    delivery_address: str
    contact_number: str
    order_notes: Optional[str] = None
    order_date: datetime
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self.order_items)


class OrderStats(Schema):
    total_orders: int = 0
    pending_orders: int = 0
    processing_orders: int = 0
    delivered_orders: int = 0
    cancelled_orders: int = 0
    total_revenue: Decimal = Decimal("0.00")


# =====================================================
# STRONICOWANIE
# =====================================================
class PageParams(Schema):
    page: int = Field(default=0, ge=0)
    size: int = Field(default=12, ge=1)
    sort_by: Optional[str] = None
    sort_dir: Optional[str] = Field(default=None, pattern="^(asc|desc)$")

    def to_query(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Page(Schema, Generic[T]):
    content: List[T] = Field(default_factory=list)
    page: int = Field(default=0, validation_alias=AliasChoices("page", "number", "pageNumber"))
    size: int = Field(default=0, validation_alias=AliasChoices("size", "pageSize"))
    total_elements: int = 0
    total_pages: int = 0
    last: bool = True


# =====================================================
# SESJA / AUTH
# =====================================================
class UserSummary(Schema):
    id: str
    full_name: str
    email: str
    role: Role


class AuthResult(Schema):
    """Odpowiedz login/register/refresh (token + dane uzytkownika)."""

    token: str = Field(..., min_length=1)
    type: str = "Bearer"
    id: str
    full_name: str
    email: str
    role: Role
    expires_in: Optional[int] = None

    @property
    def user(self) -> UserSummary:
        return UserSummary(
            id=self.id,
            full_name=self.full_name,
            email=self.email,
            role=self.role,
        )


class SessionRecord(Schema):
    user: Optional[UserSummary] = None
    token: Optional[str] = None
    is_authenticated: bool = False


class RegisterRequest(Schema):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    phone_number: Optional[str] = None
    address: Optional[str] = None


# =====================================================
# CHECKOUT
# =====================================================
PHONE_PATTERN = r"^[+]?[0-9]{10,15}$"


class CheckoutForm(Schema):
    """Pola formularza checkout (walidacja pol, nie koszyka)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    delivery_address: str = Field(..., min_length=10, max_length=500)
    contact_number: str = Field(..., pattern=PHONE_PATTERN)
    order_notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("order_notes", mode="before")
    @classmethod
    def _empty_notes_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
