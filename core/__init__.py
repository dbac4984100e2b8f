"""Core module - remote-neutral models, configuration and observability.

This module contains the CRM entity models, the client configuration,
and the logging/telemetry components. It is intentionally independent of
any particular remote service.

Remote-specific logic (mobile service HTTP API, in-memory fixtures) belongs in /connectors/.
"""

__version__ = "1.0.0"
