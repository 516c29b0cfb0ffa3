"""
Navigation flow detection: intents, fragment transactions, navigation
graphs and router calls turned into screen-to-screen flows.
"""

from .models import (
    NavigationType,
    NavigationCondition,
    NavigationFlow,
    IMPLICIT_PREFIX,
    DEEP_LINK_PREFIX
)
from .detector import (
    NavigationFlowDetector,
    detect_navigation,
    deduplicate_flows,
    navigation_aliases,
    screen_name_for
)
from .java_navigation import detect_java_navigation
from .lexical_navigation import collect_routes, detect_lexical_navigation, normalize_route

__all__ = [
    "NavigationType",
    "NavigationCondition",
    "NavigationFlow",
    "IMPLICIT_PREFIX",
    "DEEP_LINK_PREFIX",
    "NavigationFlowDetector",
    "detect_navigation",
    "deduplicate_flows",
    "navigation_aliases",
    "screen_name_for",
    "detect_java_navigation",
    "detect_lexical_navigation",
    "collect_routes",
    "normalize_route",
]
