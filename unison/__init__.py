"""Unison identity service: one user identity across passwords, phones and OAuth providers."""

__version__ = "1.0.0"
