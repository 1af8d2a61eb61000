"""Routing: pattern strategy, route builder, and an ordered router.

Routes are kept in insertion order; the first route whose method and
pattern match wins.
"""

from aerossr.routing.builder import RouteBuilder
from aerossr.routing.route import (
    ParameterMetadata,
    ResponseMetadata,
    Route,
    RouteContext,
    RouteMatch,
    RouteMetadata,
)
from aerossr.routing.router import RouteObserver, Router
from aerossr.routing.strategy import DefaultRouteStrategy, RouteStrategy

__all__ = [
    "DefaultRouteStrategy",
    "ParameterMetadata",
    "ResponseMetadata",
    "Route",
    "RouteBuilder",
    "RouteContext",
    "RouteMatch",
    "RouteMetadata",
    "RouteObserver",
    "RouteStrategy",
    "Router",
]
