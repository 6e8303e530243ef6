"""Verification gate."""
