"""
Order event handling split by responsibility.
External callers should go through services.order_events_service.
"""

# Intentionally minimal: the processor and its steps live in submodules.
