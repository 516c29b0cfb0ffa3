from .models import (
    ActionType,
    BusinessContext,
    BusinessProcess,
    CriticalityLevel,
    ExternalIntegration,
    FlowType,
    NavigationPath,
    PerformanceMetrics,
    ProcessStep,
    ProcessType,
    UserAction,
    UserFlowComponent,
)
from .synthesizer import (
    FlowSynthesizer,
    determine_business_context,
    extract_user_actions,
    screen_components,
    synthesize_user_flows,
)
from .processes import (
    BusinessProcessExtractor,
    determine_criticality,
    determine_process_type,
    extract_business_processes,
)

__all__ = [
    # Records
    "ActionType",
    "BusinessContext",
    "BusinessProcess",
    "CriticalityLevel",
    "ExternalIntegration",
    "FlowType",
    "NavigationPath",
    "PerformanceMetrics",
    "ProcessStep",
    "ProcessType",
    "UserAction",
    "UserFlowComponent",
    # User flows
    "FlowSynthesizer",
    "determine_business_context",
    "extract_user_actions",
    "screen_components",
    "synthesize_user_flows",
    # Business processes
    "BusinessProcessExtractor",
    "determine_criticality",
    "determine_process_type",
    "extract_business_processes",
]
