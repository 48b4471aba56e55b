"""Helpers for reading the objects the root command stores on the click context."""

import click


def build_service(ctx: click.Context, service_cls):
    """Construct a domain service with the context's database, clock and audit sink."""
    return service_cls(ctx.obj["db"], clock=ctx.obj["clock"], audit_sink=ctx.obj["audit"])


def acting_user(ctx: click.Context) -> int:
    """ID of the operator running the command."""
    return ctx.obj["user_id"]
