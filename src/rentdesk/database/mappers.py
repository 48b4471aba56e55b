"""Mapper functions to convert between SQLAlchemy models and domain entities.

This layer isolates the conversion logic: rows are decoded into typed,
immutable entities here so that call sites never depend on ORM shape.
"""

from decimal import Decimal
from typing import Optional

from rentdesk.domain import entities as domain
from rentdesk.domain.money import to_money
from rentdesk.database.models import (
    Client as ORMClient,
    Item as ORMItem,
    ItemPricing as ORMItemPricing,
    Rental as ORMRental,
    Payment as ORMPayment,
    CashRegister as ORMCashRegister,
    CashTransaction as ORMCashTransaction,
)


def _money_or_none(value) -> Optional[Decimal]:
    return None if value is None else to_money(value)


def client_to_domain(orm_client: ORMClient) -> domain.Client:
    """Convert SQLAlchemy Client model to domain Client entity."""
    return domain.Client(
        id=orm_client.id,
        name=orm_client.name,
        document=orm_client.document,
        phone=orm_client.phone,
        email=orm_client.email,
        active=bool(orm_client.active),
        created_at=orm_client.created_at,
    )


def item_to_domain(orm_item: ORMItem) -> domain.Item:
    """Convert SQLAlchemy Item model to domain Item entity."""
    return domain.Item(
        id=orm_item.id,
        name=orm_item.name,
        code=orm_item.code,
        category=orm_item.category,
        base_rental_value=to_money(orm_item.base_rental_value),
        rental_period=domain.RentalPeriod(orm_item.rental_period),
        status=domain.ItemStatus(orm_item.status),
        observations=orm_item.observations,
        active=bool(orm_item.active),
        created_at=orm_item.created_at,
        updated_at=orm_item.updated_at,
    )


def pricing_tier_to_domain(orm_tier: ORMItemPricing) -> domain.PricingTier:
    """Convert SQLAlchemy ItemPricing model to domain PricingTier entity."""
    return domain.PricingTier(
        id=orm_tier.id,
        item_id=orm_tier.item_id,
        duration_minutes=orm_tier.duration_minutes,
        label=orm_tier.label,
        price=to_money(orm_tier.price),
        tolerance_minutes=orm_tier.tolerance_minutes or 0,
        sort_order=orm_tier.sort_order,
    )


def rental_to_domain(orm_rental: ORMRental) -> domain.Rental:
    """Convert SQLAlchemy Rental model to domain Rental entity."""
    return domain.Rental(
        id=orm_rental.id,
        client_id=orm_rental.client_id,
        item_id=orm_rental.item_id,
        start_date=orm_rental.start_date,
        expected_end_date=orm_rental.expected_end_date,
        actual_end_date=orm_rental.actual_end_date,
        rental_value=to_money(orm_rental.rental_value),
        deposit=to_money(orm_rental.deposit),
        late_fee=to_money(orm_rental.late_fee),
        discount=to_money(orm_rental.discount),
        total_value=to_money(orm_rental.total_value),
        pricing_duration_minutes=orm_rental.pricing_duration_minutes,
        status=domain.RentalStatus(orm_rental.status),
        observations=orm_rental.observations,
        created_at=orm_rental.created_at,
        updated_at=orm_rental.updated_at,
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        rental_id=orm_payment.rental_id,
        amount=to_money(orm_payment.amount),
        method=domain.PaymentMethod(orm_payment.payment_method),
        payment_date=orm_payment.payment_date,
        notes=orm_payment.notes,
        created_at=orm_payment.created_at,
    )


def cash_register_to_domain(orm_register: ORMCashRegister) -> domain.CashRegister:
    """Convert SQLAlchemy CashRegister model to domain CashRegister entity."""
    return domain.CashRegister(
        id=orm_register.id,
        operator_id=orm_register.operator_id,
        opening_balance=to_money(orm_register.opening_balance),
        closing_balance=_money_or_none(orm_register.closing_balance),
        total_entries=to_money(orm_register.total_entries),
        total_exits=to_money(orm_register.total_exits),
        status=domain.RegisterStatus(orm_register.status),
        opened_at=orm_register.opened_at,
        closed_at=orm_register.closed_at,
        closed_by=orm_register.closed_by,
        observations=orm_register.observations,
    )


def cash_transaction_to_domain(orm_transaction: ORMCashTransaction) -> domain.CashTransaction:
    """Convert SQLAlchemy CashTransaction model to domain CashTransaction entity."""
    payment_method = orm_transaction.payment_method
    return domain.CashTransaction(
        id=orm_transaction.id,
        register_id=orm_transaction.register_id,
        type=domain.TransactionType(orm_transaction.type),
        category=domain.TransactionCategory(orm_transaction.category),
        amount=to_money(orm_transaction.amount),
        description=orm_transaction.description,
        payment_method=domain.PaymentMethod(payment_method) if payment_method else None,
        reference_type=orm_transaction.reference_type,
        reference_id=orm_transaction.reference_id,
        created_by=orm_transaction.created_by,
        created_at=orm_transaction.created_at,
        cancelled=bool(orm_transaction.cancelled),
        cancelled_at=orm_transaction.cancelled_at,
        cancelled_by=orm_transaction.cancelled_by,
        cancellation_reason=orm_transaction.cancellation_reason,
    )
