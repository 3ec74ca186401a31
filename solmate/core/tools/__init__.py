"""Wallet tool catalog, validation and dispatch."""
