"""Web framework adapters exposing the log store over HTTP."""
