"""Pipeline coordination module."""

from .coordinator import (
    ORDER_TRIGGERS,
    SEARCH_TRIGGERS,
    STOP_PHRASES,
    STOP_RESPONSE,
    PipelineCoordinator,
    PipelineResult,
    VoiceResult,
    is_stop_phrase,
    should_order,
    should_search,
)

__all__ = [
    "ORDER_TRIGGERS",
    "SEARCH_TRIGGERS",
    "STOP_PHRASES",
    "STOP_RESPONSE",
    "PipelineCoordinator",
    "PipelineResult",
    "VoiceResult",
    "is_stop_phrase",
    "should_order",
    "should_search",
]
