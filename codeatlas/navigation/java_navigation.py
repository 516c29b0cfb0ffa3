"""
Java navigation detection over the tree-sitter syntax tree.

Recognised call sites:
- new Intent(ctx, Target.class), inline or assigned to a variable
- intent.setClass / setClassName / setComponent(new ComponentName(...))
- implicit intents (Intent.ACTION_X, "android.intent.action.X") and setAction
- fragment transactions .replace(id, new XFragment()) / .add(...)
- new XDialog().show(...) pop-ups
- navController.navigate(R.id.x), navigate(Uri.parse("...")), popBackStack(R.id.x)

Enclosing if-conditions and putExtra calls on the same intent become
advisory NavigationConditions.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from ..core.entities import simple_name_of
from ..parsing import treesitter as ts
from .models import (
    CONDITIONAL, DATA_EXTRA, DEEP_LINK_PREFIX, IMPLICIT_PREFIX,
    NavigationCondition, NavigationFlow, NavigationType,
)


INTENT_TYPES = {"Intent", "android.content.Intent"}
START_METHODS = {"startActivity", "startActivityForResult", "startActivityIfNeeded"}
TARGET_SETTERS = {"setClass", "setClassName", "setComponent"}
TRANSACTION_METHODS = {"replace": NavigationType.REPLACE, "add": NavigationType.FORWARD}
SCOPE_TYPES = ("method_declaration", "constructor_declaration", "class_body")
ACTION_PREFIX = "android.intent.action."
# constructed types accepted as fragment-transaction or pop-up targets
SCREEN_SUFFIXES = ("Fragment", "Dialog", "Activity", "Screen", "Page", "Sheet")


# --- NODE HELPERS ---
def _arguments(node) -> List:
    args = node.child_by_field_name("arguments")
    return list(args.named_children) if args is not None else []


def _string_value(node) -> Optional[str]:
    if node is None or node.type != "string_literal":
        return None
    return ts.text(node).strip('"')


def _type_name(creation) -> str:
    return ts.text(creation.child_by_field_name("type"))


def _class_literal(node) -> Optional[str]:
    if node.type != "class_literal" or not node.named_children:
        return None
    return simple_name_of(ts.text(node.named_children[0]))


def _class_name_string(value: Optional[str]) -> Optional[str]:
    """'com.app.ProfileActivity' or '.ProfileActivity' -> 'ProfileActivity'."""
    if not value:
        return None
    simple = simple_name_of(value)
    return simple if simple[:1].isupper() else None


def _target_from_arguments(args) -> Optional[str]:
    """Target class named by a class literal, a class-name string or a ComponentName."""
    for arg in args:
        target = _class_literal(arg)
        if target:
            return target
    for arg in args:
        if arg.type == "object_creation_expression" and _type_name(arg).endswith("ComponentName"):
            return _target_from_arguments(_arguments(arg))
    for arg in reversed(args):
        target = _class_name_string(_string_value(arg))
        if target:
            return target
    return None


def _implicit_action(args) -> Optional[str]:
    if not args:
        return None
    first = args[0]
    if first.type == "field_access":
        name = ts.text(first.child_by_field_name("field"))
        return name if name.startswith("ACTION_") else None
    if first.type == "identifier" and ts.text(first).startswith("ACTION_"):
        return ts.text(first)
    value = _string_value(first)
    if value and value.startswith(ACTION_PREFIX):
        return "ACTION_" + value[len(ACTION_PREFIX):]
    if value and "." in value and value.rsplit(".", 1)[-1].isupper():
        return value
    return None


def _resource_id(node) -> Optional[str]:
    value = ts.text(node)
    return value[len("R.id."):] if value.startswith("R.id.") else None


def _deep_link(node) -> Optional[str]:
    """'Uri.parse("app://x")' -> 'app://x'."""
    if node.type != "method_invocation" or ts.field_text(node, "name") != "parse":
        return None
    args = _arguments(node)
    return _string_value(args[0]) if args else None


def _constructed_screen(node) -> Optional[str]:
    """Type of `new XFragment()` or `XFragment.newInstance()`."""
    if node.type == "object_creation_expression":
        name = _type_name(node)
        simple = simple_name_of(name)
        return simple if simple.endswith(SCREEN_SUFFIXES) else None
    if node.type == "method_invocation" and ts.field_text(node, "name") == "newInstance":
        owner = ts.field_text(node, "object")
        if owner and simple_name_of(owner).endswith(SCREEN_SUFFIXES):
            return simple_name_of(owner)
    return None


def _assigned_name(node) -> Optional[str]:
    parent = node.parent
    if parent is None:
        return None
    if parent.type == "variable_declarator":
        return ts.field_text(parent, "name")
    if parent.type == "assignment_expression":
        return ts.field_text(parent, "left")
    return None


def _chain_root(node):
    """Innermost receiver of a call chain like new Intent(...).putExtra(...).putExtra(...)."""
    current = node
    while current.type == "method_invocation" and current.child_by_field_name("object") is not None:
        current = current.child_by_field_name("object")
    return current


def _scope_of(node) -> int:
    scope = ts.enclosing(node, "method_declaration", "constructor_declaration")
    return scope.start_byte if scope is not None else -1


def branch_conditions(node) -> List[NavigationCondition]:
    """Conditions of the if-statements enclosing `node`, outermost first."""
    conditions: List[NavigationCondition] = []
    child, current = node, node.parent
    while current is not None and current.type not in SCOPE_TYPES:
        if current.type == "if_statement":
            condition = ts.text(current.child_by_field_name("condition")).strip()
            if condition.startswith("(") and condition.endswith(")"):
                condition = condition[1:-1].strip()
            alternative = current.child_by_field_name("alternative")
            if alternative is not None and alternative.start_byte <= child.start_byte \
                    and child.end_byte <= alternative.end_byte:
                condition = f"!({condition})"
            conditions.append(NavigationCondition(CONDITIONAL, condition, required=True))
        child, current = current, current.parent
    conditions.reverse()
    return conditions


# --- DETECTION ---
class _JavaNavigationScan:
    """State for one file; discarded after `run`."""

    def __init__(self, source_screen: str, file_path: Optional[str]):
        self.source_screen = source_screen
        self.file_path = file_path
        self.flows: List[NavigationFlow] = []
        # (scope, intent variable) -> flows created through that variable
        self.variable_flows: Dict[Tuple[int, str], List[NavigationFlow]] = defaultdict(list)
        # intent creation node start -> flows created inline
        self.inline_flows: Dict[int, List[NavigationFlow]] = defaultdict(list)
        self.extras: List[Tuple[object, str]] = []
        self.start_calls: List = []

    def emit(self, node, target: Optional[str], nav_type: NavigationType) -> Optional[NavigationFlow]:
        if not target:
            return None
        flow = NavigationFlow(
            source_screen_id=self.source_screen,
            target_screen_id=target,
            navigation_type=nav_type,
            conditions=branch_conditions(node),
            file_path=self.file_path,
            line=ts.line_of(node),
        )
        self.flows.append(flow)
        return flow

    def track(self, node, receiver: Optional[str], flow: Optional[NavigationFlow]):
        if flow is None:
            return
        if receiver:
            self.variable_flows[(_scope_of(node), receiver)].append(flow)
        else:
            self.inline_flows[node.start_byte].append(flow)

    def run(self, root) -> List[NavigationFlow]:
        for node in ts.walk(root):
            if node.type == "object_creation_expression":
                self.visit_creation(node)
            elif node.type == "method_invocation":
                self.visit_call(node)
        self.attach_extras()
        self.attach_start_conditions()
        return self.flows

    def visit_creation(self, node):
        if _type_name(node) not in INTENT_TYPES:
            return
        args = _arguments(node)
        target = _target_from_arguments(args)
        if target:
            flow = self.emit(node, target, NavigationType.FORWARD)
        else:
            action = _implicit_action(args)
            flow = self.emit(node, IMPLICIT_PREFIX + action, NavigationType.EXTERNAL) if action else None
        self.track(node, _assigned_name(node), flow)

    def visit_call(self, node):
        name = ts.field_text(node, "name")
        args = _arguments(node)
        receiver_node = node.child_by_field_name("object")
        receiver = ts.text(receiver_node) if receiver_node is not None and receiver_node.type == "identifier" else None

        if name in TARGET_SETTERS:
            self.track(node, receiver, self.emit(node, _target_from_arguments(args), NavigationType.FORWARD))
        elif name == "setAction":
            action = _implicit_action(args)
            if action:
                self.track(node, receiver, self.emit(node, IMPLICIT_PREFIX + action, NavigationType.EXTERNAL))
        elif name == "putExtra" and len(args) >= 2:
            self.extras.append((node, f"{ts.text(args[0])}={ts.text(args[1])}"))
        elif name in START_METHODS:
            self.start_calls.append(node)
        elif name in TRANSACTION_METHODS:
            for arg in args:
                target = _constructed_screen(arg)
                if target:
                    self.emit(node, target, TRANSACTION_METHODS[name])
                    break
        elif name == "show" and receiver_node is not None:
            self.emit(node, _constructed_screen(receiver_node), NavigationType.POPUP)
        elif name == "navigate" and args:
            destination = _resource_id(args[0])
            if destination:
                self.emit(node, destination, NavigationType.FORWARD)
            else:
                uri = _deep_link(args[0])
                if uri:
                    self.emit(node, DEEP_LINK_PREFIX + uri, NavigationType.DEEP_LINK)
        elif name == "popBackStack" and args:
            self.emit(node, _resource_id(args[0]), NavigationType.BACKWARD)

    def flows_for_receiver(self, node, receiver_node) -> List[NavigationFlow]:
        if receiver_node is None:
            return []
        if receiver_node.type == "identifier":
            return self.variable_flows.get((_scope_of(node), ts.text(receiver_node)), [])
        root = _chain_root(receiver_node)
        return self.inline_flows.get(root.start_byte, [])

    def attach_extras(self):
        for call, extra in self.extras:
            for flow in self.flows_for_receiver(call, call.child_by_field_name("object")):
                flow.add_condition(NavigationCondition(DATA_EXTRA, extra, required=False))

    def attach_start_conditions(self):
        """An intent built outside a branch but started inside one inherits its conditions."""
        for call in self.start_calls:
            args = _arguments(call)
            if not args:
                continue
            for flow in self.flows_for_receiver(call, args[0]):
                for condition in branch_conditions(call):
                    flow.add_condition(condition)


def detect_java_navigation(content: str, source_screen: str, file_path: Optional[str] = None,
                           tree=None) -> List[NavigationFlow]:
    """All navigation call sites in one Java file, in source order."""
    if tree is None:
        tree = ts.parse("java", content)
    return _JavaNavigationScan(source_screen, file_path).run(tree.root_node)
