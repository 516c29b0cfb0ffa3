"""
User-flow synthesis.

Each screen becomes a UserFlowComponent typed by its position in the
navigation graph, with interaction handlers turned into user actions and
a coarse business goal inferred from its name.
"""

import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx

from ..core.classifier import is_screen
from ..core.entities import Component, ComponentKind, simple_name_of
from ..navigation.models import NavigationFlow
from .models import (
    ActionType, BusinessContext, FlowType, NavigationPath, PerformanceMetrics,
    UserAction, UserFlowComponent,
)


logger = logging.getLogger(__name__)

LAUNCHER_KEYWORDS = ("main", "launch", "splash", "home")
ERROR_KEYWORDS = ("error", "exception", "crash", "failure")

# (action type, lowercase method-name fragments); long press before tap
ACTION_RULES: List[Tuple[ActionType, Tuple[str, ...]]] = [
    (ActionType.LONG_PRESS, ("onlongclick", "onlongpress", "handlelongpress")),
    (ActionType.TYPE_TEXT, ("ontextchanged", "aftertextchanged", "beforetextchanged", "onchanged",
                            "handlechange", "oneditoraction")),
    (ActionType.SWIPE, ("onswipe", "onfling", "ondismissed", "onrefresh")),
    (ActionType.TAP, ("onclick", "ontouch", "ontap", "onpressed", "onpress", "handleclick",
                      "handlepress", "handletap", "onsubmit")),
]

ACTION_LABELS = {
    ActionType.TYPE_TEXT: "Enter Text",
    ActionType.SWIPE: "Swipe Gesture",
    ActionType.LONG_PRESS: "Long Press",
}

# (business goal, user persona, lowercase name keywords); first match wins
BUSINESS_GOALS: List[Tuple[str, str, Tuple[str, ...]]] = [
    ("User Authentication", "Unauthenticated User", ("login", "signin", "auth")),
    ("User Registration", "New User", ("register", "signup", "onboarding")),
    ("Main Application Hub", "Authenticated User", ("main", "home", "dashboard")),
    ("User Profile Management", "Registered User", ("profile", "account", "settings")),
    ("Payment Processing", "Purchasing User", ("payment", "checkout", "billing", "cart")),
    ("Content Discovery", "Content Consumer", ("search", "browse", "explore")),
    ("Communication", "Active User", ("chat", "message", "inbox")),
    ("Data Synchronization", "Returning User", ("sync", "backup", "offline")),
]
DEFAULT_GOAL = ("Application Feature", "General User")

BUSINESS_RULES: Dict[str, Tuple[List[str], str]] = {
    "User Authentication": ([
        "User must provide valid credentials",
        "Failed attempts should be limited",
        "Secure password requirements",
    ], "Successful login rate"),
    "Payment Processing": ([
        "Payment information must be validated",
        "Secure payment processing required",
        "Transaction confirmation needed",
    ], "Payment completion rate"),
    "User Registration": ([
        "Email verification required",
        "Unique username/email constraint",
        "Terms and conditions acceptance",
    ], "Registration completion rate"),
}
DEFAULT_RULES = (["User-friendly error handling"], "User engagement time")

_HANDLER_AFFIXES = re.compile(
    r"^(on|handle)|(Click|Clicked|Touch|Tap|Tapped|Pressed|Press|Submit)$")
_CAMEL = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def is_launcher_name(name: str) -> bool:
    lowered = name.lower()
    return any(k in lowered for k in LAUNCHER_KEYWORDS)


def is_error_name(name: str) -> bool:
    lowered = name.lower()
    return any(k in lowered for k in ERROR_KEYWORDS)


def _button_label(method_name: str) -> str:
    """'onLoginButtonClick' -> 'Login Button'."""
    core = _HANDLER_AFFIXES.sub("", method_name)
    return _CAMEL.sub(" ", core).strip()


def extract_user_actions(component: Component) -> List[UserAction]:
    """User actions implied by the component's handler methods."""
    actions = []
    seen: Set[str] = set()
    for method in component.methods:
        lowered = method.name.lower()
        if method.name in seen:
            continue
        for action_type, fragments in ACTION_RULES:
            if any(f in lowered for f in fragments):
                label = ACTION_LABELS.get(action_type) or f"Tap {_button_label(method.name)}".strip()
                actions.append(UserAction(method.name, label, action_type))
                seen.add(method.name)
                break
    return actions


def determine_business_context(component: Component) -> BusinessContext:
    lowered = component.name.lower()
    goal, persona = next(((g, p) for g, p, keywords in BUSINESS_GOALS
                          if any(k in lowered for k in keywords)), DEFAULT_GOAL)
    rules, metric = BUSINESS_RULES.get(goal, DEFAULT_RULES)
    return BusinessContext(
        context_id=f"{component.id}_context",
        business_goal=goal,
        user_persona=persona,
        business_rules=list(rules),
        success_metric=metric,
    )


def estimate_performance(component: Component, actions: List[UserAction]) -> PerformanceMetrics:
    methods = len(component.methods)
    return PerformanceMetrics(
        load_time_ms=100 + methods * 8 + len(actions) * 12,
        average_response_time=200.0 + methods * 5.0,
        error_count=0,
    )


def screen_components(components: Iterable[Component]) -> List[Component]:
    """
    Screens in sort order.

    A navigation-graph destination is skipped when the screen class it
    points at is itself in the tree, so each screen is counted once.
    """
    ordered = sorted(components, key=lambda c: c.sort_key())
    screens = [c for c in ordered if is_screen(c)]
    class_names = {c.name for c in screens if c.kind != ComponentKind.NAV_DESTINATION}
    result = []
    for component in screens:
        if component.kind == ComponentKind.NAV_DESTINATION:
            destination = next((simple_name_of(r.name) for r in component.dependencies
                                if r.context == "destination"), None)
            if destination in class_names:
                continue
        result.append(component)
    return result


class FlowSynthesizer:
    """
    Builds user-flow components from screens and navigation flows.

    Flow type is decided in a fixed priority order: entry point, exit
    point, decision point, error handling, main flow. A screen is an entry
    point when nothing navigates to it, when the manifest marks it as the
    launcher, or when its name looks like a launcher ("main", "splash"...)
    and its part of the navigation graph has no screen without incoming
    flows.

    Usage:
        synthesizer = FlowSynthesizer(launcher_screens={"SplashActivity"})
        user_flows = synthesizer.synthesize(components, navigation_flows)
    """

    def __init__(self, launcher_screens: Optional[Iterable[str]] = None):
        self.launcher_screens = set(launcher_screens or [])

    def synthesize(self, components: Iterable[Component],
                   flows: Iterable[NavigationFlow]) -> List[UserFlowComponent]:
        flows = list(flows)
        outgoing: Dict[str, List[NavigationFlow]] = defaultdict(list)
        incoming: Dict[str, List[NavigationFlow]] = defaultdict(list)
        for flow in flows:
            outgoing[flow.source_screen_id].append(flow)
            incoming[flow.target_screen_id].append(flow)
        without_entry = self.graphs_without_entry(flows)

        user_flows = []
        for component in screen_components(components):
            name = component.name
            actions = extract_user_actions(component)
            user_flow = UserFlowComponent(
                id=component.id,
                screen_name=name,
                actions=actions,
                outgoing_paths=[NavigationPath.from_flow(f) for f in outgoing.get(name, [])],
                incoming_paths=[NavigationPath.from_flow(f) for f in incoming.get(name, [])],
                business_context=determine_business_context(component),
                performance_metrics=estimate_performance(component, actions),
                file_path=component.file_path,
            )
            user_flow.flow_type = self.classify_flow_type(
                name, incoming.get(name, []), outgoing.get(name, []), name in without_entry)
            user_flows.append(user_flow)

        logger.info("[Flows] Synthesized %d user flows from %d navigation flows",
                    len(user_flows), len(flows))
        return user_flows

    def classify_flow_type(self, name: str, incoming: List[NavigationFlow],
                           outgoing: List[NavigationFlow], no_natural_entry: bool = False) -> FlowType:
        launcher = name in self.launcher_screens or (is_launcher_name(name) and no_natural_entry)
        if not incoming or launcher:
            return FlowType.ENTRY_POINT
        if not outgoing:
            return FlowType.EXIT_POINT
        if len({f.target_screen_id for f in outgoing}) > 1:
            return FlowType.DECISION_POINT
        if is_error_name(name):
            return FlowType.ERROR_HANDLING
        return FlowType.MAIN_FLOW

    @staticmethod
    def graphs_without_entry(flows: Iterable[NavigationFlow]) -> Set[str]:
        """Screens whose connected part of the navigation graph has no zero-incoming screen."""
        graph = nx.DiGraph()
        for flow in flows:
            if not flow.is_placeholder_target:
                graph.add_edge(flow.source_screen_id, flow.target_screen_id)
        screens: Set[str] = set()
        for part in nx.weakly_connected_components(graph):
            if not any(graph.in_degree(node) == 0 for node in part):
                screens.update(part)
        return screens


def synthesize_user_flows(components: Iterable[Component], flows: Iterable[NavigationFlow],
                          launcher_screens: Optional[Iterable[str]] = None) -> List[UserFlowComponent]:
    return FlowSynthesizer(launcher_screens).synthesize(components, flows)
