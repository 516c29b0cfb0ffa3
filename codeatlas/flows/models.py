"""
User-flow and business-process records.

These are derived, read-only views built once from the finished graph
and the detected navigation flows; nothing here feeds back into the
component model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..navigation.models import NavigationFlow


class FlowType(Enum):
    ENTRY_POINT = "ENTRY_POINT"
    MAIN_FLOW = "MAIN_FLOW"
    DECISION_POINT = "DECISION_POINT"
    EXIT_POINT = "EXIT_POINT"
    ERROR_HANDLING = "ERROR_HANDLING"


class ActionType(Enum):
    TAP = "TAP"
    TYPE_TEXT = "TYPE_TEXT"
    SWIPE = "SWIPE"
    LONG_PRESS = "LONG_PRESS"


class ProcessType(Enum):
    USER_REGISTRATION = "USER_REGISTRATION"
    AUTHENTICATION = "AUTHENTICATION"
    PAYMENT = "PAYMENT"
    DATA_SYNC = "DATA_SYNC"
    CONTENT_CREATION = "CONTENT_CREATION"
    SEARCH = "SEARCH"
    NOTIFICATION = "NOTIFICATION"
    BACKUP = "BACKUP"
    GENERAL = "GENERAL"


class CriticalityLevel(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass
class UserAction:
    """An interaction a screen handles, inferred from a handler method name."""
    action_id: str
    action_name: str
    action_type: ActionType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_id": self.action_id,
            "action_name": self.action_name,
            "action_type": self.action_type.value,
        }


@dataclass
class BusinessContext:
    """
    Coarse business meaning of a screen.

    Attributes:
        context_id: "<screen id>_context"
        business_goal: e.g. "User Authentication", "Payment Processing"
        user_persona: Who is expected on the screen
        business_rules: Rules that usually apply to the goal
        success_metric: What success looks like for the goal
    """
    context_id: str
    business_goal: str
    user_persona: str
    business_rules: List[str] = field(default_factory=list)
    success_metric: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context_id": self.context_id,
            "business_goal": self.business_goal,
            "user_persona": self.user_persona,
            "business_rules": self.business_rules,
            "success_metric": self.success_metric,
        }


@dataclass
class PerformanceMetrics:
    """Heuristic size-based estimates; not measurements."""
    load_time_ms: int = 0
    average_response_time: float = 0.0
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "load_time_ms": self.load_time_ms,
            "average_response_time": self.average_response_time,
            "error_count": self.error_count,
        }


@dataclass
class NavigationPath:
    """One navigation flow seen from a screen (as outgoing or incoming path)."""
    path_id: str
    source_screen_id: str
    target_screen_id: str
    navigation_type: str
    is_conditional: bool = False
    path_type: str = "NAVIGATION"
    weight: float = 1.0

    @classmethod
    def from_flow(cls, flow: NavigationFlow) -> "NavigationPath":
        return cls(
            path_id=flow.flow_id,
            source_screen_id=flow.source_screen_id,
            target_screen_id=flow.target_screen_id,
            navigation_type=flow.navigation_type.value,
            is_conditional=flow.is_conditional,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path_id": self.path_id,
            "source": self.source_screen_id,
            "target": self.target_screen_id,
            "navigation_type": self.navigation_type,
            "is_conditional": self.is_conditional,
            "path_type": self.path_type,
            "weight": self.weight,
        }


@dataclass
class UserFlowComponent:
    """
    A screen classified by its position in the navigation graph.

    Attributes:
        id: Id of the screen component
        screen_name: Simple name used by navigation flows
        flow_type: Position in the navigation graph
        actions: Interactions the screen handles
        outgoing_paths: Flows leaving the screen
        incoming_paths: Flows reaching the screen
        business_context: Inferred business meaning
        performance_metrics: Heuristic estimates
        file_path: Source file of the screen
    """
    id: str
    screen_name: str
    flow_type: FlowType = FlowType.MAIN_FLOW
    actions: List[UserAction] = field(default_factory=list)
    outgoing_paths: List[NavigationPath] = field(default_factory=list)
    incoming_paths: List[NavigationPath] = field(default_factory=list)
    business_context: Optional[BusinessContext] = None
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    file_path: Optional[str] = None

    @property
    def business_goal(self) -> Optional[str]:
        return self.business_context.business_goal if self.business_context else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "screen_name": self.screen_name,
            "flow_type": self.flow_type.value,
            "actions": [a.to_dict() for a in self.actions],
            "outgoing_paths": [p.to_dict() for p in self.outgoing_paths],
            "incoming_paths": [p.to_dict() for p in self.incoming_paths],
            "business_context": self.business_context.to_dict() if self.business_context else None,
            "performance_metrics": self.performance_metrics.to_dict(),
            "file_path": self.file_path,
        }


@dataclass
class ProcessStep:
    """One step of a business process; derived 1:1 from a member user flow."""
    step_id: str
    step_name: str
    description: str
    action_descriptions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "step_name": self.step_name,
            "description": self.description,
            "action_descriptions": self.action_descriptions,
        }


@dataclass
class ExternalIntegration:
    """A synthesized stub for an external system a process usually talks to."""
    integration_id: str
    name: str
    endpoint: str
    integration_type: str
    auth_type: Optional[str] = None
    required_permissions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "integration_id": self.integration_id,
            "name": self.name,
            "endpoint": self.endpoint,
            "integration_type": self.integration_type,
            "auth_type": self.auth_type,
            "required_permissions": self.required_permissions,
        }


@dataclass
class BusinessProcess:
    """
    Screens grouped by a shared business goal.

    Attributes:
        process_id: "process:<goal slug>"
        process_name: The business goal
        process_type: Heuristic process type
        criticality: Heuristic criticality
        steps: One step per member user flow
        external_integrations: Synthesized integration stubs for the process type
    """
    process_id: str
    process_name: str
    process_type: ProcessType
    criticality: CriticalityLevel
    steps: List[ProcessStep] = field(default_factory=list)
    external_integrations: List[ExternalIntegration] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "process_id": self.process_id,
            "process_name": self.process_name,
            "process_type": self.process_type.value,
            "criticality": self.criticality.value,
            "steps": [s.to_dict() for s in self.steps],
            "external_integrations": [i.to_dict() for i in self.external_integrations],
        }
