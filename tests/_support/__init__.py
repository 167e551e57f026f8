"""Shared test doubles for cronspine tests."""
