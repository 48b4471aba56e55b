"""Utility functions for rentdesk."""

from rentdesk.utils.date_parser import parse_date, parse_datetime
from rentdesk.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_datetime", "parse_amount"]
