"""Core domain: models, ports, encoders and errors."""
