"""Asyncio client for a binary-framed WebSocket signalling service for WebRTC rooms."""

__version__ = "0.1.0"

__all__ = ["client", "commands", "config", "errors", "protocol", "rooms", "websocket"]