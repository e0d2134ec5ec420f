"""Integrations with third-party tooling."""
