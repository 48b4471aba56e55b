"""SQLAlchemy models for rentdesk database."""

from datetime import datetime
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Numeric,
    Boolean,
    CheckConstraint,
    Index,
    create_engine,
    event,
    text,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(12, 2)


def _local_now() -> datetime:
    return datetime.now().replace(microsecond=0)


def _enum_check(column: str, values: tuple[str, ...], name: str) -> CheckConstraint:
    quoted = ", ".join(f"'{value}'" for value in values)
    return CheckConstraint(f"{column} IN ({quoted})", name=name)


PAYMENT_METHODS = ("cash", "credit_card", "debit_card", "pix", "transfer", "other")


class Client(Base):
    """Client model."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    document = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_local_now, nullable=False)

    # Relationships
    rentals = relationship("Rental", back_populates="client")


class Item(Base):
    """Rental item model."""

    __tablename__ = "items"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=False)
    category = Column(String, nullable=False)
    base_rental_value = Column(MONEY, nullable=False, default=0)
    rental_period = Column(String, nullable=False, default="hour")
    status = Column(String, nullable=False, default="available")
    observations = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_local_now, nullable=False)
    updated_at = Column(DateTime, default=_local_now, onupdate=_local_now, nullable=False)

    __table_args__ = (
        _enum_check("rental_period", ("hour", "day", "week", "month"), "ck_items_rental_period"),
        _enum_check("status", ("available", "rented", "maintenance"), "ck_items_status"),
        CheckConstraint("base_rental_value >= 0", name="ck_items_base_rental_value"),
    )

    # Relationships
    pricing_tiers = relationship(
        "ItemPricing",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemPricing.sort_order",
    )
    rentals = relationship("Rental", back_populates="item")


class ItemPricing(Base):
    """Pricing tier model."""

    __tablename__ = "item_pricing"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False)
    label = Column(String, nullable=False)
    price = Column(MONEY, nullable=False)
    tolerance_minutes = Column(Integer, nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_item_pricing_duration"),
        CheckConstraint("price >= 0", name="ck_item_pricing_price"),
        CheckConstraint("tolerance_minutes >= 0", name="ck_item_pricing_tolerance"),
    )

    # Relationships
    item = relationship("Item", back_populates="pricing_tiers")


class Rental(Base):
    """Rental model."""

    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    expected_end_date = Column(DateTime, nullable=False)
    actual_end_date = Column(DateTime, nullable=True)
    rental_value = Column(MONEY, nullable=False)
    deposit = Column(MONEY, nullable=False, default=0)
    late_fee = Column(MONEY, nullable=False, default=0)
    discount = Column(MONEY, nullable=False, default=0)
    total_value = Column(MONEY, nullable=False)
    pricing_duration_minutes = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default="active", index=True)
    observations = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_local_now, nullable=False)
    updated_at = Column(DateTime, default=_local_now, nullable=False)

    __table_args__ = (
        _enum_check("status", ("active", "completed", "cancelled", "overdue"), "ck_rentals_status"),
        CheckConstraint("deposit >= 0", name="ck_rentals_deposit"),
        CheckConstraint("discount >= 0", name="ck_rentals_discount"),
        CheckConstraint("late_fee >= 0", name="ck_rentals_late_fee"),
    )

    # Relationships
    client = relationship("Client", back_populates="rentals")
    item = relationship("Item", back_populates="rentals")
    payments = relationship("Payment", back_populates="rental")


class Payment(Base):
    """Payment model."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    rental_id = Column(Integer, ForeignKey("rentals.id"), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_date = Column(DateTime, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_local_now, nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount"),
        _enum_check("payment_method", PAYMENT_METHODS, "ck_payments_method"),
    )

    # Relationships
    rental = relationship("Rental", back_populates="payments")


class CashRegister(Base):
    """Cash register session model."""

    __tablename__ = "cash_registers"

    id = Column(Integer, primary_key=True)
    operator_id = Column(Integer, nullable=False, index=True)
    opening_balance = Column(MONEY, nullable=False, default=0)
    closing_balance = Column(MONEY, nullable=True)
    total_entries = Column(MONEY, nullable=False, default=0)
    total_exits = Column(MONEY, nullable=False, default=0)
    status = Column(String, nullable=False, default="open", index=True)
    observations = Column(Text, nullable=True)
    opened_at = Column(DateTime, nullable=False, index=True)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(Integer, nullable=True)

    __table_args__ = (
        _enum_check("status", ("open", "closed"), "ck_cash_registers_status"),
        CheckConstraint("opening_balance >= 0", name="ck_cash_registers_opening_balance"),
        # At most one open register per operator
        Index(
            "uq_cash_registers_open_operator",
            "operator_id",
            unique=True,
            sqlite_where=text("status = 'open'"),
            postgresql_where=text("status = 'open'"),
        ),
    )

    # Relationships
    transactions = relationship("CashTransaction", back_populates="register")


class CashTransaction(Base):
    """Cash movement model."""

    __tablename__ = "cash_transactions"

    id = Column(Integer, primary_key=True)
    register_id = Column(Integer, ForeignKey("cash_registers.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False)
    amount = Column(MONEY, nullable=False)
    description = Column(Text, nullable=False)
    payment_method = Column(String, nullable=True)
    reference_type = Column(String, nullable=True)
    reference_id = Column(Integer, nullable=True)
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)
    cancelled = Column(Boolean, default=False, nullable=False, index=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(Integer, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        _enum_check("type", ("entry", "exit"), "ck_cash_transactions_type"),
        _enum_check(
            "category",
            ("rental_payment", "deposit", "refund", "expense", "adjustment", "withdrawal", "supply", "other"),
            "ck_cash_transactions_category",
        ),
        CheckConstraint(
            "payment_method IS NULL OR payment_method IN ("
            + ", ".join(f"'{m}'" for m in PAYMENT_METHODS)
            + ")",
            name="ck_cash_transactions_method",
        ),
        CheckConstraint("amount > 0", name="ck_cash_transactions_amount"),
        Index("ix_cash_transactions_reference", "reference_type", "reference_id"),
    )

    # Relationships
    register = relationship("CashRegister", back_populates="transactions")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on foreign key enforcement for a SQLite connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
