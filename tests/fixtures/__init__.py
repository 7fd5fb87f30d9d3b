"""Shared test fixtures for PawnKit tests."""
