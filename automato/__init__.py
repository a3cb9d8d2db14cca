"""Automato sensor-board protocol: result codes, message payloads, serial framing and node logic."""

__version__ = "0.1.0"
__all__ = ["messages", "node", "result", "serial_reader"]