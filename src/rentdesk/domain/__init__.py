"""Domain layer for rentdesk application."""

# Services are imported lazily: rentdesk.database.base imports
# rentdesk.domain.entities, which runs this module first.
_SERVICES = {
    "CashierService": "rentdesk.domain.cashier",
    "CashReportService": "rentdesk.domain.cash_report",
    "ClientService": "rentdesk.domain.client",
    "DashboardService": "rentdesk.domain.dashboard",
    "ItemService": "rentdesk.domain.item",
    "PaymentService": "rentdesk.domain.payment",
    "RentalService": "rentdesk.domain.rental",
    "CashierSettlementService": "rentdesk.domain.settlement",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
