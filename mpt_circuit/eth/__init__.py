"""Ethereum-specific circuits."""
