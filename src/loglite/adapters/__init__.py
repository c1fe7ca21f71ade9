"""Adapters connecting the core to storage engines and web frameworks."""
