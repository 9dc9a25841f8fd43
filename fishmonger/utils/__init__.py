"""Shared helpers: decimals, timestamps, API envelopes and error text."""
