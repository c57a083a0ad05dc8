"""Metadata shared by every API group."""
