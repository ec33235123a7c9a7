"""Glue between Matrix events and Moira lookups."""
