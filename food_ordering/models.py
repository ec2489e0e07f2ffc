import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    WAITING = "Waiting"
    IN_PROGRESS = "InProgress"
    READY = "Ready"
    DISPATCHED = "Dispatched"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class TransactionStatus(str, enum.Enum):
    OPEN = "OPEN"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Role(str, enum.Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    DELIVERY = "delivery"
    ADMIN = "admin"


offer_vendors = Table(
    "offer_vendors",
    Base.metadata,
    Column("offer_id", Integer, ForeignKey("offers.id"), primary_key=True),
    Column("vendor_id", Integer, ForeignKey("vendors.id"), primary_key=True),
)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    first_name = Column(String(16), nullable=False, default="")
    last_name = Column(String(16), nullable=False, default="")
    address = Column(String(255), nullable=False, default="")
    pincode = Column(String(12), nullable=False, default="", index=True)
    verified = Column(Boolean, nullable=False, default=False)
    lat = Column(Float, nullable=False, default=0.0)
    lng = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    cart = relationship(
        "CartItem",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )
    orders = relationship("Order", back_populates="customer", order_by="Order.id")

    @property
    def order_refs(self):
        return [o.id for o in self.orders]


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    food_id = Column(Integer, ForeignKey("foods.id"), nullable=False)
    unit = Column(Integer, nullable=False)

    customer = relationship("Customer", back_populates="cart")
    food = relationship("Food")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    owner_name = Column(String(255), nullable=False)
    food_type = Column(JSON, nullable=False, default=list)
    pincode = Column(String(12), nullable=False, index=True)
    address = Column(String(255), nullable=False, default="")
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    service_available = Column(Boolean, nullable=False, default=False)
    cover_images = Column(JSON, nullable=False, default=list)
    rating = Column(Float, nullable=False, default=0.0)
    lat = Column(Float, nullable=False, default=0.0)
    lng = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    foods = relationship("Food", back_populates="vendor", order_by="Food.id")
    offers = relationship("Offer", secondary=offer_vendors, back_populates="vendors")


class Food(Base):
    __tablename__ = "foods"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=True)
    food_type = Column(String(50), nullable=False, default="")
    ready_time = Column(Integer, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    rating = Column(Float, nullable=False, default=0.0)
    images = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    vendor = relationship("Vendor", back_populates="foods")


class Offer(Base):
    __tablename__ = "offers"

    id = Column(Integer, primary_key=True, index=True)
    # GENERIC offers apply to every vendor in the pincode
    offer_type = Column(String(20), nullable=False, default="VENDOR")
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    min_value = Column(Float, nullable=False, default=0.0)
    offer_amount = Column(Float, nullable=False)
    start_validity = Column(DateTime(timezone=True), nullable=True)
    end_validity = Column(DateTime(timezone=True), nullable=True)
    promocode = Column(String(50), nullable=False)
    promo_type = Column(String(20), nullable=False, default="USER")
    bank = Column(JSON, nullable=False, default=list)
    bins = Column(JSON, nullable=False, default=list)
    pincode = Column(String(12), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    vendors = relationship("Vendor", secondary=offer_vendors, back_populates="offers")

    @property
    def vendor_refs(self):
        return [v.id for v in self.vendors]


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    # set exactly once, when the order created from this payment is persisted
    order_ref = Column(Integer, ForeignKey("orders.id"), nullable=True)
    payable_amount = Column(Float, nullable=False)
    offer_used = Column(String(50), nullable=False, default="NA")
    status = Column(String(20), nullable=False, default=TransactionStatus.OPEN.value)
    payment_mode = Column(String(50), nullable=False, default="COD")
    payment_response = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(5), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    total_amount = Column(Float, nullable=False)
    paid_amount = Column(Float, nullable=False)
    order_date = Column(DateTime(timezone=True), default=utcnow)
    order_status = Column(String(20), nullable=False, default=OrderStatus.WAITING.value)
    remarks = Column(Text, nullable=True)
    delivery_id = Column(Integer, ForeignKey("delivery_users.id"), nullable=True, index=True)
    ready_time = Column(Integer, nullable=False, default=45)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    customer = relationship("Customer", back_populates="orders")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    food_id = Column(Integer, ForeignKey("foods.id"), nullable=False)
    unit = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")
    food = relationship("Food")


class DeliveryUser(Base):
    __tablename__ = "delivery_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    first_name = Column(String(50), nullable=False, default="")
    last_name = Column(String(50), nullable=False, default="")
    address = Column(String(255), nullable=False, default="")
    pincode = Column(String(12), nullable=False, default="", index=True)
    phone_verified = Column(Boolean, nullable=False, default=False)
    # admin-controlled
    verified = Column(Boolean, nullable=False, default=False)
    # self-controlled, cleared while the person carries an order
    is_available = Column(Boolean, nullable=False, default=False)
    lat = Column(Float, nullable=False, default=0.0)
    lng = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
