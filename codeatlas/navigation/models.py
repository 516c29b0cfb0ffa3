"""
Navigation flow data model.

A NavigationFlow is a detected screen-to-screen transition. It lives
beside the structural graph rather than in it; conditions attached to a
flow are advisory metadata only.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


IMPLICIT_PREFIX = "[Implicit] "
DEEP_LINK_PREFIX = "[DeepLink] "

CONDITIONAL = "CONDITIONAL"
DATA_EXTRA = "DATA_EXTRA"


class NavigationType(Enum):
    FORWARD = "FORWARD"
    BACKWARD = "BACKWARD"
    REPLACE = "REPLACE"
    POPUP = "POPUP"
    DEEP_LINK = "DEEP_LINK"
    EXTERNAL = "EXTERNAL"


@dataclass
class NavigationCondition:
    """
    Best-effort guard or payload attached to a transition.

    Attributes:
        condition_type: CONDITIONAL (enclosing branch) or DATA_EXTRA (extra passed along)
        value: Source text of the condition or "key=value" for extras
        required: True for branch conditions that gate the transition
    """
    condition_type: str
    value: str
    required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.condition_type,
            "value": self.value,
            "required": self.required,
        }


@dataclass
class NavigationFlow:
    """
    A detected transition between two screens.

    Attributes:
        source_screen_id: Simple name of the screen the transition starts from
        target_screen_id: Simple name of the destination, or an
            "[Implicit] ACTION" / "[DeepLink] uri" placeholder
        navigation_type: How the destination is reached
        conditions: Advisory guards and extras
        file_path: File the call site was found in
        line: 1-based line of the first call site
    """
    source_screen_id: str
    target_screen_id: str
    navigation_type: NavigationType = NavigationType.FORWARD
    conditions: List[NavigationCondition] = field(default_factory=list)
    file_path: Optional[str] = None
    line: Optional[int] = None

    @property
    def flow_id(self) -> str:
        return f"nav:{self.source_screen_id}->{self.target_screen_id}:{self.navigation_type.value}"

    @property
    def key(self):
        return (self.source_screen_id, self.target_screen_id, self.navigation_type)

    @property
    def is_placeholder_target(self) -> bool:
        return self.target_screen_id.startswith((IMPLICIT_PREFIX, DEEP_LINK_PREFIX))

    @property
    def is_conditional(self) -> bool:
        return any(c.required for c in self.conditions)

    def add_condition(self, condition: NavigationCondition):
        for existing in self.conditions:
            if (existing.condition_type, existing.value) == (condition.condition_type, condition.value):
                return
        self.conditions.append(condition)

    def merge(self, other: "NavigationFlow"):
        """Fold another detection of the same transition into this one."""
        for condition in other.conditions:
            self.add_condition(condition)
        if self.line is None or (other.line is not None and other.line < self.line
                                 and other.file_path == self.file_path):
            self.line = other.line

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow_id": self.flow_id,
            "source": self.source_screen_id,
            "target": self.target_screen_id,
            "navigation_type": self.navigation_type.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "file_path": self.file_path,
            "line": self.line,
        }
