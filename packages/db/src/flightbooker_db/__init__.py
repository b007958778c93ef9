"""Persistence layer for Flightbooker."""
