"""Encoders for log entries and metadata."""
