"""
Dart / Flutter extractor (lexical, heuristic).

No grammar is available for Dart, so classes, members and DI idioms are
recognised with line-oriented patterns. Results are best effort: unusual
formatting or code generated by macros will be missed.

Recognised:
- class / mixin / enum declarations with extends, with and implements
- fields and methods at class-body level
- constructor field formals (this.repo) and typed constructor parameters
- service locators: GetIt / getIt<T>() / locator<T>() / Get.find<T>()
- Provider.of<T>(context), context.read<T>() / context.watch<T>()
"""

import os
import re
from typing import Dict, List, Optional

from ..core.entities import (
    CodeField, CodeMethod, Component, ComponentKind, ExtractionResult, Reference,
)
from .base import Extractor
from .common import base_type, finish_component, path_qualifier, strip_generics, type_references
from .lexical import (
    class_body, join_parenthesized, line_at, preceding_decorators, split_top_level, strip_comments,
    top_level,
)


_IMPORT = re.compile(r"^\s*import\s+['\"]([^'\"]+)['\"]", re.MULTILINE)
_CLASS = re.compile(
    r"^[ \t]*(?:(?:abstract|sealed|base|final|interface)\s+)*(class|mixin|enum)\s+(\w+)([^{;]*)\{",
    re.MULTILINE)
_EXTENDS = re.compile(r"\bextends\s+([\w.]+(?:<[^{]*?>)?)")
_WITH = re.compile(r"\bwith\s+(.+?)(?=\bimplements\b|$)", re.DOTALL)
_IMPLEMENTS = re.compile(r"\bimplements\s+(.+)$", re.DOTALL)
_FIELD = re.compile(
    r"^\s*(?:@\w+\s+)*((?:(?:static|final|late|const|var|covariant)\s+)*)"
    r"([A-Za-z_][\w.]*(?:<[^;=]*>)?\??)\s+(_?\w+)\s*(?:=\s*(.*))?;\s*$")
_METHOD = re.compile(
    r"^\s*(?:@\w+\s+)*(?:(?:static|external|factory)\s+)*"
    r"(?:([A-Za-z_][\w.]*(?:<[^(]*>)?\??)\s+)?(?:get\s+|set\s+)?(_?\w+)(?:\.\w+)?"
    r"\s*\(([^)]*)\)\s*(?:async\*?|sync\*)?\s*(?:\{|=>|:|;)")
_LOCATOR = re.compile(
    r"\b(?:GetIt\.(?:instance|I)|getIt|locator|sl|serviceLocator|Get\.find|Get\.put"
    r"|Provider\.of|context\.(?:read|watch|select))\s*<\s*([\w.]+)\s*>")

KEYWORDS = {"if", "for", "while", "switch", "catch", "return", "super", "assert", "new", "await"}
WIDGET_BASES = ("StatelessWidget", "StatefulWidget", "State", "ConsumerWidget",
                "ConsumerStatefulWidget", "HookWidget")


def _parameters(param_text: str) -> List[str]:
    return split_top_level(param_text.strip().strip("{}[]").replace("{", "").replace("}", ""))


class DartExtractor(Extractor):
    """Heuristic extractor for .dart files."""
    language = "dart"
    extensions = (".dart",)
    heuristic = True

    def _extract(self, content: str, file_path: str, result: ExtractionResult):
        source = strip_comments(content)
        imports = _IMPORT.findall(source)
        library = os.path.splitext(os.path.basename(file_path))[0]
        qualifier = path_qualifier(file_path)

        for match in _CLASS.finditer(source):
            keyword, name, header = match.group(1), match.group(2), match.group(3)
            body, body_start = class_body(source, match.start())
            component = Component(
                id=f"{qualifier}.{name}",
                name=name,
                kind=ComponentKind.ENUM if keyword == "enum" else ComponentKind.CLASS,
                language=self.language,
                file_path=file_path,
                annotations=preceding_decorators(source, match.start()),
                imports=list(imports),
                package_name=library,
                start_line=line_at(source, match.start()),
            )
            self._parse_header(header, component)
            if component.extends_name and strip_generics(component.extends_name).endswith(WIDGET_BASES):
                component.kind = ComponentKind.WIDGET
            self._extract_members(body, component)
            self._extract_locators(body, component)
            result.components.append(component)
            finish_component(component, body)

    def _parse_header(self, header: str, component: Component):
        header = " ".join(header.split())
        extends = _EXTENDS.search(header)
        if extends:
            component.extends_ref = Reference(name=strip_generics(extends.group(1)), context="extends")
            # State<LoginScreen> ties the state class to its widget
            for ref in type_references(extends.group(1))[1:]:
                component.add_dependency(ref, context="extends")
        for pattern in (_WITH, _IMPLEMENTS):
            clause = pattern.search(header)
            if not clause:
                continue
            text = clause.group(1)
            if pattern is _WITH:
                text = text.split(" implements ")[0]
            for name in split_top_level(text):
                component.implements_refs.append(
                    Reference(name=strip_generics(name), context="with" if pattern is _WITH else "implements"))

    def _extract_members(self, body: str, component: Component):
        members = join_parenthesized(top_level(body))
        field_types: Dict[str, Optional[str]] = {}
        constructor_params: List[str] = []

        override = False
        for line in members.splitlines():
            stripped = line.strip()
            if not stripped:
                continue
            if stripped == "@override":
                override = True
                continue
            previous_override, override = override, False
            field = _FIELD.match(line)
            if field and "(" not in field.group(2):
                type_text, name, value = field.group(2), field.group(3), field.group(4)
                if type_text in ("final", "var", "const", "late", "static"):
                    type_text = None
                field_types[name] = type_text
                component.fields.append(CodeField(
                    name=name,
                    type=type_text,
                    visibility="private" if name.startswith("_") else "public",
                ))
                for ref in type_references(type_text):
                    component.add_dependency(ref, context=f"field:{name}")
                if value:
                    locator = _LOCATOR.search(value)
                    if locator:
                        component.fields[-1].injected = True
                        component.add_injection(locator.group(1), context=f"field:{name}")
                continue

            method = _METHOD.match(line)
            if not method or method.group(2) in KEYWORDS:
                continue
            return_type, name, params = method.group(1), method.group(2), method.group(3)
            if name == component.name or (return_type is None and stripped.startswith(component.name + ".")):
                constructor_params.extend(_parameters(params))
                component.methods.append(CodeMethod(name="<init>", parameters=_parameters(params)))
                continue
            if return_type in ("return", "await", "new", "else"):
                continue
            component.methods.append(CodeMethod(
                name=name,
                return_type=return_type,
                parameters=_parameters(params),
                visibility="private" if name.startswith("_") else "public",
                annotations=["override"] if previous_override or "@override" in line else [],
            ))
            for ref in type_references(return_type):
                component.add_dependency(ref, context=f"method:{name}")

        self._extract_constructor_injection(constructor_params, field_types, component)

    def _extract_constructor_injection(self, params: List[str], field_types: Dict[str, Optional[str]],
                                       component: Component):
        """`this.repo` and `UserRepository repo` parameters supply collaborators."""
        for param in params:
            param = re.sub(r"^(required|final|covariant)\s+", "", param.split("=", 1)[0].strip())
            if param.startswith("this."):
                type_text = field_types.get(param[len("this."):].strip())
            elif param.startswith("super."):
                continue
            else:
                parts = param.rsplit(None, 1)
                type_text = parts[0] if len(parts) == 2 else None
            injected = base_type(type_text)
            if injected and injected not in ("Key",):
                component.add_dependency(injected, context="constructor")
                component.add_injection(injected, context="constructor")

    def _extract_locators(self, body: str, component: Component):
        for locator in _LOCATOR.finditer(body):
            component.add_injection(locator.group(1), context="service_locator")
