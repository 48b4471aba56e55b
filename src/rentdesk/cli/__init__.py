"""CLI layer for rentdesk application."""
