"""
WebSocket transport and event models for the party card rooms.
"""

from .events import EventType, OutboundEventType, parse_inbound_event

__all__ = ["EventType", "OutboundEventType", "parse_inbound_event"]
