"""Flightbooker HTTP API."""
