"""Shared, database-independent building blocks for Flightbooker."""
