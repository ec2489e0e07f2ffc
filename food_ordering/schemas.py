from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel

from .models import OrderStatus

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class RequestModel(BaseModel):
    """Request bodies accept both camelCase wire names and snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# ----- Accounts -----


class LoginRequest(RequestModel):
    email: str
    password: str


class OtpVerifyRequest(RequestModel):
    otp: str


class CustomerSignupRequest(RequestModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    phone: str = Field(min_length=10, max_length=20)
    password: str = Field(min_length=6, max_length=12)
    first_name: str = Field("", max_length=16)
    last_name: str = Field("", max_length=16)
    address: str = ""
    pincode: str = Field("", max_length=12)


class ProfileUpdate(RequestModel):
    first_name: Optional[str] = Field(None, max_length=16)
    last_name: Optional[str] = Field(None, max_length=16)
    address: Optional[str] = None
    pincode: Optional[str] = Field(None, max_length=12)


class DeliverySignupRequest(RequestModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    phone: str = Field(min_length=10, max_length=20)
    password: str = Field(min_length=6)
    first_name: str = ""
    last_name: str = ""
    address: str = ""
    pincode: str = Field("", max_length=12)


class DeliveryStatusUpdate(RequestModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_available: Optional[bool] = None


class VendorCreateRequest(RequestModel):
    name: str
    owner_name: str
    food_type: List[str] = []
    pincode: str = Field(min_length=1, max_length=12)
    address: str = ""
    phone: str
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)


class VendorProfileUpdate(RequestModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    food_type: Optional[List[str]] = None


class VendorServiceUpdate(RequestModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class VerifyDeliveryUserRequest(RequestModel):
    id: int = Field(alias="_id")
    status: bool


# ----- Catalog -----


class FoodRead(ReadModel):
    id: int
    vendor_id: int
    name: str
    description: str
    category: Optional[str]
    food_type: str
    ready_time: Optional[int]
    price: float
    rating: float
    images: List[str]


class VendorRead(ReadModel):
    id: int
    name: str
    owner_name: str
    food_type: List[str]
    pincode: str
    address: str
    phone: str
    email: str
    service_available: bool
    cover_images: List[str]
    rating: float
    lat: float
    lng: float


class VendorWithFoods(VendorRead):
    foods: List[FoodRead] = []


class FoodWithVendor(FoodRead):
    vendor: VendorRead


class FoodUploadResponse(BaseModel):
    food: FoodRead
    failed_uploads: List[str] = []


class CoverImageResponse(BaseModel):
    vendor: VendorRead
    failed_uploads: List[str] = []


class OfferCreate(RequestModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    offer_type: str = "VENDOR"
    offer_amount: float = Field(gt=0)
    pincode: str = Field(min_length=1, max_length=12)
    promocode: str = Field(min_length=1)
    promo_type: str = "USER"
    start_validity: Optional[datetime] = None
    end_validity: Optional[datetime] = None
    bank: List[str] = []
    bins: List[int] = []
    min_value: float = 0
    is_active: bool = True


class OfferUpdate(RequestModel):
    title: Optional[str] = None
    description: Optional[str] = None
    offer_type: Optional[str] = None
    offer_amount: Optional[float] = Field(None, gt=0)
    pincode: Optional[str] = None
    promocode: Optional[str] = None
    promo_type: Optional[str] = None
    start_validity: Optional[datetime] = None
    end_validity: Optional[datetime] = None
    bank: Optional[List[str]] = None
    bins: Optional[List[int]] = None
    min_value: Optional[float] = None
    is_active: Optional[bool] = None


class OfferRead(ReadModel):
    id: int
    offer_type: str
    title: str
    description: Optional[str]
    min_value: float
    offer_amount: float
    start_validity: Optional[datetime]
    end_validity: Optional[datetime]
    promocode: str
    promo_type: str
    bank: List[str]
    bins: List[int]
    pincode: str
    is_active: bool
    vendor_refs: List[int]


class OfferVerifyResponse(BaseModel):
    message: str
    offer: OfferRead


# ----- Cart -----


class CartUpdateRequest(RequestModel):
    id: int = Field(alias="_id")
    unit: StrictInt


class CartItemRead(ReadModel):
    id: int
    food_id: int
    unit: int
    food: Optional[FoodRead] = None


class CartResponse(BaseModel):
    cart: List[CartItemRead]
    total_units: int


# ----- Profiles -----


class CustomerRead(ReadModel):
    id: int
    email: str
    phone: str
    first_name: str
    last_name: str
    address: str
    pincode: str
    verified: bool
    lat: float
    lng: float
    cart: List[CartItemRead] = []
    order_refs: List[int] = []


class DeliveryUserRead(ReadModel):
    id: int
    email: str
    phone: str
    first_name: str
    last_name: str
    address: str
    pincode: str
    phone_verified: bool
    verified: bool
    is_available: bool
    lat: float
    lng: float


class CustomerAuthResponse(BaseModel):
    token: str
    profile: CustomerRead


class VendorAuthResponse(BaseModel):
    token: str
    profile: VendorRead


class DeliveryAuthResponse(BaseModel):
    token: str
    profile: DeliveryUserRead


class AdminAuthResponse(BaseModel):
    token: str


# ----- Payments & Orders -----


class PaymentRequest(RequestModel):
    amount: float = Field(ge=0)
    payment_mode: str = "COD"
    offer_id: Optional[int] = None


class TransactionRead(ReadModel):
    id: int
    customer_id: int
    order_ref: Optional[int]
    payable_amount: float
    offer_used: str
    status: str
    payment_mode: str
    payment_response: str
    created_at: Optional[datetime]


class OrderItemRequest(RequestModel):
    id: int = Field(alias="_id")
    unit: int = Field(ge=1)


class CreateOrderRequest(RequestModel):
    txn_id: int
    amount: float = Field(ge=0)
    items: List[OrderItemRequest]


class ProcessOrderRequest(RequestModel):
    status: Optional[OrderStatus] = None
    remarks: Optional[str] = None
    ready_time: Optional[int] = Field(None, alias="time", ge=1)


class OrderItemRead(ReadModel):
    id: int
    food_id: int
    unit: int
    food: Optional[FoodRead] = None


class OrderRead(ReadModel):
    id: int
    order_id: str
    customer_id: Optional[int]
    vendor_id: int
    items: List[OrderItemRead]
    total_amount: float
    paid_amount: float
    order_date: Optional[datetime]
    order_status: str
    remarks: Optional[str]
    delivery_id: Optional[int]
    ready_time: int
