"""Shared helpers for hashing and durable JSONL output."""
