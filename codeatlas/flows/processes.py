"""
Business-process extraction.

User flows that share a business goal are grouped into one
BusinessProcess. Type, criticality and external integrations are keyword
heuristics over the goal; they describe what such a process usually
involves, not what the code was proven to do.
"""

import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from .models import (
    BusinessProcess, CriticalityLevel, ExternalIntegration, ProcessStep, ProcessType,
    UserFlowComponent,
)


logger = logging.getLogger(__name__)

# (process type, lowercase goal keywords); first match wins
PROCESS_TYPE_RULES: List[Tuple[ProcessType, Tuple[str, ...]]] = [
    (ProcessType.AUTHENTICATION, ("authentication", "login")),
    (ProcessType.USER_REGISTRATION, ("registration",)),
    (ProcessType.PAYMENT, ("payment", "checkout")),
    (ProcessType.SEARCH, ("search", "discovery")),
    (ProcessType.DATA_SYNC, ("sync", "data")),
    (ProcessType.NOTIFICATION, ("notification", "communication")),
]

CRITICALITY_RULES: List[Tuple[CriticalityLevel, Tuple[str, ...]]] = [
    (CriticalityLevel.CRITICAL, ("payment", "authentication", "security")),
    (CriticalityLevel.HIGH, ("registration", "sync", "data")),
    (CriticalityLevel.MEDIUM, ("search", "discovery", "profile")),
]

# process type -> (name, endpoint, integration type, auth type, permissions)
INTEGRATION_STUBS: Dict[ProcessType, List[Tuple[str, str, str, str, List[str]]]] = {
    ProcessType.PAYMENT: [
        ("PaymentGateway", "https://api.payment.example.com", "REST_API", "OAUTH2", ["INTERNET"]),
    ],
    ProcessType.AUTHENTICATION: [
        ("AuthService", "https://auth.example.com", "REST_API", "TOKEN", ["INTERNET"]),
    ],
    ProcessType.DATA_SYNC: [
        ("SyncService", "wss://sync.example.com", "WEBSOCKET", "API_KEY", ["INTERNET"]),
    ],
    ProcessType.NOTIFICATION: [
        ("PushNotificationService", "https://push.example.com", "PUSH", "API_KEY",
         ["INTERNET", "POST_NOTIFICATIONS"]),
    ],
}

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(goal: str) -> str:
    return _NON_SLUG.sub("-", goal.lower()).strip("-") or "general"


def determine_process_type(business_goal: str) -> ProcessType:
    goal = business_goal.lower()
    return next((t for t, keywords in PROCESS_TYPE_RULES if any(k in goal for k in keywords)),
                ProcessType.GENERAL)


def determine_criticality(business_goal: str) -> CriticalityLevel:
    goal = business_goal.lower()
    return next((c for c, keywords in CRITICALITY_RULES if any(k in goal for k in keywords)),
                CriticalityLevel.LOW)


def integrations_for(process_id: str, process_type: ProcessType) -> List[ExternalIntegration]:
    return [
        ExternalIntegration(
            integration_id=f"{process_id}:{name}",
            name=name,
            endpoint=endpoint,
            integration_type=kind,
            auth_type=auth,
            required_permissions=list(permissions),
        )
        for name, endpoint, kind, auth, permissions in INTEGRATION_STUBS.get(process_type, [])
    ]


def process_step(user_flow: UserFlowComponent) -> ProcessStep:
    return ProcessStep(
        step_id=user_flow.id,
        step_name=user_flow.screen_name,
        description=user_flow.business_goal or "",
        action_descriptions=[a.action_name for a in user_flow.actions],
    )


class BusinessProcessExtractor:
    """
    Groups user flows into business processes by their inferred goal.

    Flows without a business context are not grouped. Processes come out
    sorted by id and their steps keep the order of the input flows.

    Usage:
        processes = BusinessProcessExtractor().extract(user_flows)
    """

    def extract(self, user_flows: Iterable[UserFlowComponent]) -> List[BusinessProcess]:
        groups: Dict[str, List[UserFlowComponent]] = defaultdict(list)
        for user_flow in user_flows:
            if user_flow.business_goal:
                groups[user_flow.business_goal].append(user_flow)

        processes = [self.create_process(goal, members) for goal, members in groups.items()]
        processes.sort(key=lambda p: p.process_id)
        logger.info("[Flows] Extracted %d business processes", len(processes))
        return processes

    def create_process(self, business_goal: str,
                       user_flows: List[UserFlowComponent]) -> BusinessProcess:
        process_id = f"process:{slugify(business_goal)}"
        process_type = determine_process_type(business_goal)
        return BusinessProcess(
            process_id=process_id,
            process_name=business_goal,
            process_type=process_type,
            criticality=determine_criticality(business_goal),
            steps=[process_step(f) for f in user_flows],
            external_integrations=integrations_for(process_id, process_type),
        )


def extract_business_processes(user_flows: Iterable[UserFlowComponent]) -> List[BusinessProcess]:
    return BusinessProcessExtractor().extract(user_flows)
