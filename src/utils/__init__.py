"""
Shared infrastructure for the validator

Provides:
- logging: structured logging setup
- tracing: OpenTelemetry spans for validation phases and queries
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing"]
