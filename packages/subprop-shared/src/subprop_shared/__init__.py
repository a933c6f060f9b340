"""Gateways and helpers shared by the subprop CLI."""
