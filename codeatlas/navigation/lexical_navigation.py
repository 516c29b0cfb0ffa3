"""
Pattern-based navigation detection for Kotlin, Dart and JavaScript/TypeScript.

Also the fallback for Java files the syntax tree could not be built for.
Like the lexical extractors this is heuristic: call sites split across
unusual formatting or built through helpers are missed, and route strings
are only resolved to screens when a route table for them was found.
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.entities import simple_name_of
from ..parsing.lexical import line_at, matching_paren, strip_comments
from .models import (
    DATA_EXTRA, DEEP_LINK_PREFIX, IMPLICIT_PREFIX, NavigationCondition, NavigationFlow, NavigationType,
)


# Target kinds
CLASS = "class"          # a type name; reduced to its simple name
ROUTE = "route"          # a route string; normalized
RESOURCE = "resource"    # a navigation resource id
ACTION = "action"        # an implicit intent action
DEEP_LINK = "deep_link"  # a URI
BUILDER = "builder"      # a screen constructed inside the call's arguments

SCREEN_SUFFIXES = ("Fragment", "Dialog", "Activity", "Screen", "Page", "Sheet")

FORWARD = NavigationType.FORWARD
REPLACE = NavigationType.REPLACE


@dataclass
class NavigationRule:
    """
    One navigation idiom.

    Attributes:
        pattern: Regex whose `target` group (or, for BUILDER rules, whose
            match end at an opening parenthesis) locates the destination
        kind: How the target text is interpreted
        types: Navigation type per value of the `method` group ("" when absent)
        tracks_intent: Whether the match builds an intent that may be stored in a variable
        screens_only: Require a screen-like target name
    """
    pattern: re.Pattern
    kind: str
    types: Dict[str, NavigationType]
    tracks_intent: bool = False
    screens_only: bool = False

    def navigation_type(self, method: Optional[str]) -> NavigationType:
        return self.types.get(method or "", self.types.get("", FORWARD))


def _rule(pattern: str, kind: str, types=None, **kwargs) -> NavigationRule:
    return NavigationRule(re.compile(pattern, re.DOTALL), kind, types or {"": FORWARD}, **kwargs)


_CLASS_REF = r"(?P<target>[\w.$]+?)(?:::class\.java|\.class)"

# --- ANDROID (Kotlin, Java fallback) ---
ANDROID_RULES = [
    _rule(r"\bIntent\s*\(\s*[^,()]+(?:\([^()]*\))?\s*,\s*" + _CLASS_REF + r"\s*\)", CLASS, tracks_intent=True),
    _rule(r"\b(?:startActivity|intentFor)\s*<\s*(?P<target>[A-Z][\w.]*)\s*>", CLASS),
    _rule(r"\.setClass\s*\(\s*[^,()]+,\s*" + _CLASS_REF + r"\s*\)", CLASS),
    _rule(r"\.setClassName\s*\(\s*(?:[^,()]+,\s*)?\"(?P<target>[\w.$]+)\"\s*\)", CLASS),
    _rule(r"\bComponentName\s*\(\s*[^,()]+(?:\([^()]*\))?\s*,\s*\"(?P<target>[\w.$]+)\"\s*\)", CLASS),
    _rule(r"\bComponentName\s*\(\s*[^,()]+(?:\([^()]*\))?\s*,\s*" + _CLASS_REF + r"\s*\)", CLASS),
    _rule(r"\bIntent\.(?P<target>ACTION_[A-Z_]+)", ACTION, {"": NavigationType.EXTERNAL}),
    _rule(r"\"android\.intent\.action\.(?P<target>[A-Z_]+)\"", ACTION, {"": NavigationType.EXTERNAL}),
    _rule(r"\.(?P<method>replace|add)\s*\(\s*[^,()]+(?:\([^()]*\))?\s*,\s*(?:new\s+)?"
          r"(?P<target>[A-Z]\w*)(?:\.newInstance)?\s*\(",
          CLASS, {"replace": REPLACE, "add": FORWARD}, screens_only=True),
    _rule(r"\.(?P<method>replace|add)\s*<\s*(?P<target>[A-Z][\w.]*)\s*>\s*\(",
          CLASS, {"replace": REPLACE, "add": FORWARD}, screens_only=True),
    _rule(r"(?<![\w.])(?:new\s+)?(?P<target>[A-Z]\w*)(?:\.newInstance)?\s*\([^()]*\)\s*\.show\s*\(",
          CLASS, {"": NavigationType.POPUP}, screens_only=True),
    _rule(r"\.navigate\s*\(\s*R\.id\.(?P<target>\w+)", RESOURCE),
    _rule(r"\.navigate\s*\(\s*(?:Uri\.parse\s*\(\s*)?\"(?P<target>\w+://[^\"]*)\"", DEEP_LINK,
          {"": NavigationType.DEEP_LINK}),
    _rule(r"\.navigate\s*\(\s*(?:route\s*=\s*)?\"(?P<target>[^\"]+)\"", ROUTE),
    _rule(r"\.popBackStack\s*\(\s*R\.id\.(?P<target>\w+)", RESOURCE, {"": NavigationType.BACKWARD}),
    _rule(r"\.popBackStack\s*\(\s*(?:route\s*=\s*)?\"(?P<target>[^\"]+)\"", ROUTE,
          {"": NavigationType.BACKWARD}),
]

# --- FLUTTER ---
_NAVIGATOR = r"\bNavigator\s*\.\s*(?:of\s*\([^()]*\)\s*\.\s*)?"
DART_RULES = [
    _rule(_NAVIGATOR + r"(?P<method>push|pushReplacement|pushAndRemoveUntil)\s*(?:<[^>()]*>)?\s*\(",
          BUILDER, {"push": FORWARD, "pushReplacement": REPLACE, "pushAndRemoveUntil": REPLACE}),
    _rule(_NAVIGATOR + r"(?P<method>pushNamed|restorablePushNamed|pushReplacementNamed|popAndPushNamed"
          r"|pushNamedAndRemoveUntil)\s*(?:<[^>()]*>)?\s*\(\s*(?:context\s*,\s*)?['\"](?P<target>[^'\"]+)['\"]",
          ROUTE, {"pushNamed": FORWARD, "restorablePushNamed": FORWARD, "": REPLACE}),
    _rule(r"\bModalRoute\s*\.\s*withName\s*\(\s*['\"](?P<target>[^'\"]+)['\"]", ROUTE,
          {"": NavigationType.BACKWARD}),
    _rule(r"\bcontext\s*\.\s*(?P<method>go|goNamed|push|pushNamed|pushReplacement|replace)\s*\(\s*"
          r"['\"](?P<target>[^'\"]+)['\"]", ROUTE, {"push": FORWARD, "pushNamed": FORWARD, "": REPLACE}),
    _rule(r"\bGet\s*\.\s*(?P<method>to|off|offAll)\s*\(\s*(?:\(\s*\)\s*=>\s*)?(?:const\s+)?"
          r"(?P<target>[A-Z]\w*)\s*\(", CLASS, {"to": FORWARD, "": REPLACE}),
    _rule(r"\bGet\s*\.\s*(?P<method>toNamed|offNamed|offAllNamed)\s*\(\s*['\"](?P<target>[^'\"]+)['\"]",
          ROUTE, {"toNamed": FORWARD, "": REPLACE}),
    _rule(r"\b(?:showDialog|showModalBottomSheet|showCupertinoDialog|showGeneralDialog|showCupertinoModalPopup)"
          r"\s*(?:<[^>()]*>)?\s*\(", BUILDER, {"": NavigationType.POPUP}),
]

# --- JAVASCRIPT / TYPESCRIPT ---
_QUOTED = r"['\"`](?P<target>[^'\"`]+)['\"`]"
JS_RULES = [
    _rule(r"\bnavigation\s*\.\s*(?P<method>navigate|push|replace)\s*\(\s*" + _QUOTED, ROUTE,
          {"replace": REPLACE, "": FORWARD}),
    _rule(r"\b(?:router|history|this\.router|this\.\$router)\s*\.\s*(?P<method>push|replace|navigate|navigateByUrl)"
          r"\s*\(\s*\[?\s*" + _QUOTED, ROUTE, {"replace": REPLACE, "": FORWARD}),
    _rule(r"(?<![\w.$])navigate\s*\(\s*" + _QUOTED, ROUTE),
    _rule(r"<\s*(?:Link|NavLink)\b[^>]*?\bto\s*=\s*\{?\s*" + _QUOTED, ROUTE),
    _rule(r"<\s*(?:Navigate|Redirect)\b[^>]*?\bto\s*=\s*\{?\s*" + _QUOTED, ROUTE, {"": REPLACE}),
    _rule(r"\brouterLink\s*=\s*['\"](?P<target>[^'\"]+)['\"]", ROUTE),
]

LANGUAGE_RULES: Dict[str, List[NavigationRule]] = {
    "java": ANDROID_RULES,
    "kotlin": ANDROID_RULES,
    "dart": DART_RULES,
    "javascript": JS_RULES,
    "typescript": JS_RULES,
}

# --- ROUTE TABLES ---
ROUTE_TABLE_PATTERNS: Dict[str, List[re.Pattern]] = {
    "kotlin": [
        re.compile(r"\bcomposable\s*\(\s*(?:route\s*=\s*)?\"(?P<route>[^\"]+)\"[^{]*\{\s*(?:[\w\s,]+->\s*)?"
                   r"(?P<screen>[A-Z]\w*)\s*\("),
    ],
    "dart": [
        re.compile(r"['\"](?P<route>/[^'\"]*)['\"]\s*:\s*\([^()]*\)\s*=>\s*(?:const\s+)?(?P<screen>[A-Z]\w*)\s*\("),
        re.compile(r"\bGoRoute\s*\((?:(?!GoRoute).){0,120}?\bpath\s*:\s*['\"](?P<route>[^'\"]+)['\"]"
                   r"(?:(?!GoRoute).){0,200}?=>\s*(?:const\s+)?(?P<screen>[A-Z]\w*)\s*\(", re.DOTALL),
    ],
    "javascript": [
        re.compile(r"<\s*Route\b[^>]*?\bpath\s*=\s*['\"](?P<route>[^'\"]+)['\"][^>]*?"
                   r"\b(?:element\s*=\s*\{\s*<\s*|component\s*=\s*\{\s*)(?P<screen>[A-Z]\w*)", re.DOTALL),
        re.compile(r"<\s*[\w.]*Screen\b[^>]*?\bname\s*=\s*['\"](?P<route>[^'\"]+)['\"][^>]*?"
                   r"\bcomponent\s*=\s*\{\s*(?P<screen>[A-Z]\w*)", re.DOTALL),
        re.compile(r"<\s*[\w.]*Screen\b[^>]*?\bcomponent\s*=\s*\{\s*(?P<screen>[A-Z]\w*)\s*\}[^>]*?"
                   r"\bname\s*=\s*['\"](?P<route>[^'\"]+)['\"]", re.DOTALL),
        re.compile(r"\{\s*path\s*:\s*['\"](?P<route>[^'\"]*)['\"]\s*,\s*component\s*:\s*(?P<screen>[A-Z]\w*)"),
    ],
}
ROUTE_TABLE_PATTERNS["typescript"] = ROUTE_TABLE_PATTERNS["javascript"]

_BUILT_SCREEN = re.compile(r"(?:=>|\breturn)\s*(?:const\s+|new\s+)?(?P<target>[A-Z]\w*)\s*(?:<[^>()]*>)?\s*\(")
_INTENT_VARIABLE = re.compile(r"(?:\b(?:val|var)\s+|\bIntent\s+)(\w+)\s*(?::\s*Intent\s*)?=\s*(?:new\s+)?$")
_PUT_EXTRA = re.compile(r"\b(\w+)\s*\.\s*putExtra\s*\(\s*([^,()]+?)\s*,\s*([^()]+?)\s*\)")


def normalize_route(route: str) -> str:
    """'/profile/:id?tab=1' -> 'profile'; the root route stays '/'."""
    route = re.split(r"[?#]", route.strip(), maxsplit=1)[0]
    segments = []
    for segment in route.strip("/").split("/"):
        if not segment or segment[0] in ":{$<[":
            break
        segments.append(segment)
    return "/".join(segments) or "/"


def collect_routes(content: str, language: str) -> Dict[str, str]:
    """Route name -> screen name declared in one file (route tables, GoRoute, <Route>...)."""
    routes: Dict[str, str] = {}
    source = strip_comments(content)
    for pattern in ROUTE_TABLE_PATTERNS.get(language, []):
        for match in pattern.finditer(source):
            routes.setdefault(normalize_route(match.group("route")), match.group("screen"))
    return routes


def _target_text(rule: NavigationRule, match, source: str) -> Optional[str]:
    if rule.kind == BUILDER:
        close = matching_paren(source, match.end() - 1)
        built = _BUILT_SCREEN.search(source, match.end(), close if close != -1 else len(source))
        return built.group("target") if built else None
    return match.group("target")


def _resolve_target(kind: str, raw: str) -> Optional[str]:
    if kind in (CLASS, BUILDER):
        simple = simple_name_of(raw)
        return simple if simple[:1].isupper() else None
    if kind == ACTION:
        return IMPLICIT_PREFIX + raw if raw.startswith("ACTION_") else f"{IMPLICIT_PREFIX}ACTION_{raw}"
    if kind == DEEP_LINK:
        return DEEP_LINK_PREFIX + raw
    if kind == ROUTE:
        return None if "://" in raw else normalize_route(raw)
    return raw


def detect_lexical_navigation(content: str, language: str, source_screen: str,
                              file_path: Optional[str] = None) -> List[NavigationFlow]:
    """Navigation call sites in one file, ordered by position."""
    rules = LANGUAGE_RULES.get(language)
    if not rules:
        return []
    source = strip_comments(content)
    found = []
    intent_flows: Dict[str, List[NavigationFlow]] = defaultdict(list)

    for rule in rules:
        for match in rule.pattern.finditer(source):
            raw = _target_text(rule, match, source)
            target = _resolve_target(rule.kind, raw) if raw else None
            if not target or (rule.screens_only and not target.endswith(SCREEN_SUFFIXES)):
                continue
            method = match.groupdict().get("method")
            flow = NavigationFlow(
                source_screen_id=source_screen,
                target_screen_id=target,
                navigation_type=rule.navigation_type(method),
                file_path=file_path,
                line=line_at(source, match.start()),
            )
            found.append((match.start(), flow))
            if rule.tracks_intent:
                line_start = source.rfind("\n", 0, match.start()) + 1
                variable = _INTENT_VARIABLE.search(source, line_start, match.start())
                if variable:
                    intent_flows[variable.group(1)].append(flow)

    for match in _PUT_EXTRA.finditer(source):
        for flow in intent_flows.get(match.group(1), []):
            flow.add_condition(NavigationCondition(
                DATA_EXTRA, f"{match.group(2)}={match.group(3)}", required=False))

    found.sort(key=lambda item: item[0])
    return [flow for _, flow in found]
