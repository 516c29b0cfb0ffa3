"""
JavaScript / TypeScript extractor (lexical, heuristic).

Recognises ES classes, React function components and common DI idioms
with token patterns. Like the Dart extractor this trades precision for
coverage and must not be relied on for exact results.

DI idioms recognised:
- Angular / NestJS constructor injection (private readonly x: Service)
- @Inject(TOKEN) / @inject(TYPES.X) parameter decorators
- Service locators: inject(X), container.resolve(X), container.get(X),
  injector.get(X), Container.get(X)
"""

import os
import re
from typing import List, Optional, Tuple

from ..core.entities import (
    CodeField, CodeMethod, Component, ComponentKind, ExtractionResult, Reference,
)
from .base import Extractor
from .common import base_type, finish_component, path_qualifier, strip_generics, type_references
from .lexical import (
    class_body, find_block_end, join_parenthesized, line_at, matching_paren, preceding_decorators,
    split_top_level, strip_comments, top_level,
)


_IMPORT = re.compile(
    r"^\s*import\s+(?:type\s+)?(?:([\w$]+)\s*,?\s*)?(?:\{([^}]*)\}\s*)?(?:\*\s+as\s+\w+\s*)?"
    r"(?:from\s+)?['\"]([^'\"]+)['\"]", re.MULTILINE)
_REQUIRE = re.compile(r"\brequire\(\s*['\"]([^'\"]+)['\"]\s*\)")
_CLASS = re.compile(
    r"^[ \t]*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(\w+)([^{]*)\{", re.MULTILINE)
_FUNCTION_COMPONENT = re.compile(
    r"^[ \t]*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s+([A-Z]\w*)\s*(?:<[^>(]*>)?\s*\(",
    re.MULTILINE)
_ARROW_COMPONENT = re.compile(
    r"^[ \t]*(?:export\s+)?const\s+([A-Z]\w*)\s*(?::\s*[\w.<>, ]+)?\s*=\s*(?:React\.memo\(|memo\()?"
    r"(?:async\s*)?(?:\([^)]*\)|\w+)\s*(?::\s*[\w.<>\[\]| ]+)?\s*=>", re.MULTILINE)
_EXTENDS = re.compile(r"\bextends\s+([\w.$]+(?:<[^{]*?>)?)")
_IMPLEMENTS = re.compile(r"\bimplements\s+(.+)$", re.DOTALL)
_METHOD = re.compile(
    r"^\s*(?:@\w+(?:\([^)]*\))?\s+)*(?:(?:public|private|protected|static|async|readonly|override"
    r"|abstract|get|set)\s+)*\*?([\w$]+)\s*(?:<[^>(]*>)?\s*\(([^)]*)\)\s*(?::\s*([^{;]+?))?\s*[{;]")
_FIELD = re.compile(
    r"^\s*(?:@(\w+)(?:\([^)]*\))?\s+)?((?:(?:public|private|protected|static|readonly|declare"
    r"|override)\s+)*)#?([\w$]+)[?!]?\s*(?::\s*([^=;]+?))?\s*(?:=\s*(.+?))?;?\s*$")
_LOCATOR = re.compile(
    r"\b(?:inject|container\.(?:resolve|get)|Container\.get|injector\.get|moduleRef\.get"
    r"|TestBed\.inject)\s*(?:<\s*([\w$.]+)\s*>)?\s*\(\s*([A-Z][\w$.]*)?")
_USE_CONTEXT = re.compile(r"\buseContext\(\s*([A-Z][\w$]*)\s*\)")
_JSX_ELEMENT = re.compile(r"<([A-Z][\w$]*)[\s/>]")

KEYWORDS = {"if", "for", "while", "switch", "catch", "return", "function", "super",
            "typeof", "new", "await"}
ACCESS_MODIFIERS = ("public", "private", "protected", "readonly")
INJECTABLE_DECORATORS = {"Injectable", "injectable", "Component", "Directive", "Pipe",
                         "Controller", "Resolver", "Service"}


def _strip_decorators(param: str) -> Tuple[List[str], str]:
    """'@Inject(TOKEN) private x: T' -> (['TOKEN'], 'private x: T')."""
    tokens = []
    while param.startswith("@"):
        match = re.match(r"@(\w+)\s*(?:\(([^)]*)\))?\s*", param)
        if not match:
            break
        if match.group(1).lower() == "inject" and match.group(2):
            tokens.append(match.group(2).strip().strip("'\""))
        param = param[match.end():]
    return tokens, param


def _function_body(source: str, start: int) -> str:
    """
    Body text of a function whose header match ends at `start`.

    `start` is either just past the '(' of `function Name(` or just past
    the `=>` of an arrow function.
    """
    if source[start - 1] == "(":
        close = matching_paren(source, start - 1)
        cursor = close + 1 if close != -1 else start
        brace = source.find("{", cursor)
        if brace == -1:
            return ""
        return source[brace:find_block_end(source, brace)]

    offset = len(source) - len(source[start:].lstrip())
    if source.startswith("{", offset):
        return source[offset:find_block_end(source, offset)]
    if source.startswith("(", offset):
        close = matching_paren(source, offset)
        return source[offset:close + 1 if close != -1 else len(source)]
    newline = source.find("\n", start)
    return source[start:newline if newline != -1 else len(source)]


class JavaScriptExtractor(Extractor):
    """Heuristic extractor for .js / .jsx / .mjs / .cjs files."""
    language = "javascript"
    extensions = (".js", ".jsx", ".mjs", ".cjs")
    heuristic = True

    def _extract(self, content: str, file_path: str, result: ExtractionResult):
        source = strip_comments(content)
        imports = [m.group(3) for m in _IMPORT.finditer(source)] + _REQUIRE.findall(source)
        module = os.path.splitext(os.path.basename(file_path))[0]
        qualifier = path_qualifier(file_path)
        is_react = any(i == "react" or i.startswith("react-native") for i in imports) \
            or file_path.endswith((".jsx", ".tsx"))

        class_spans = []
        for match in _CLASS.finditer(source):
            body, body_start = class_body(source, match.start())
            class_spans.append((match.start(), body_start + len(body)))
            component = Component(
                id=f"{qualifier}.{match.group(1)}",
                name=match.group(1),
                kind=ComponentKind.CLASS,
                language=self.language,
                file_path=file_path,
                annotations=preceding_decorators(source, match.start()),
                imports=list(imports),
                package_name=module,
                start_line=line_at(source, match.start()),
            )
            self._parse_header(match.group(2), component)
            self._extract_members(body, component)
            self._extract_locators(body, component)
            if is_react:
                self._extract_jsx_usages(body, component)
            result.components.append(component)
            finish_component(component, body)

        for pattern in (_FUNCTION_COMPONENT, _ARROW_COMPONENT):
            for match in pattern.finditer(source):
                if any(start <= match.start() < end for start, end in class_spans):
                    continue
                self._extract_function_component(source, match, module, qualifier, imports, is_react,
                                                 file_path, result)

        result.components.sort(key=lambda c: c.start_line)

    def _parse_header(self, header: str, component: Component):
        header = " ".join(header.split())
        extends = _EXTENDS.search(header)
        if extends:
            component.extends_ref = Reference(name=strip_generics(extends.group(1)), context="extends")
        implements = _IMPLEMENTS.search(header)
        if implements:
            for name in split_top_level(implements.group(1)):
                component.implements_refs.append(Reference(name=strip_generics(name), context="implements"))

    def _extract_members(self, body: str, component: Component):
        members = join_parenthesized(top_level(body))
        injectable = any(d in INJECTABLE_DECORATORS for d in component.annotations)

        ctor = re.search(r"\bconstructor\s*\(", members)
        if ctor:
            # offsets are shared with `members`; read the raw parameter text from the body
            open_paren = body.find("(", ctor.start())
            close_paren = matching_paren(body, open_paren)
            if close_paren != -1:
                self._extract_constructor(body[open_paren + 1:close_paren], component, injectable)

        for line in members.splitlines():
            stripped = line.strip()
            if not stripped or stripped in ("{", "}", "};"):
                continue
            method = _METHOD.match(line)
            if method:
                name = method.group(1)
                if name in KEYWORDS or name == "constructor":
                    continue
                return_type = method.group(3)
                component.methods.append(CodeMethod(
                    name=name,
                    return_type=return_type.strip() if return_type else None,
                    parameters=split_top_level(method.group(2)),
                    visibility=self._visibility(stripped, name),
                ))
                for ref in type_references(return_type):
                    component.add_dependency(ref, context=f"method:{name}")
                for param in split_top_level(method.group(2)):
                    if ":" in param:
                        for ref in type_references(param.split(":", 1)[1].split("=", 1)[0]):
                            component.add_dependency(ref, context=f"method:{name}")
                continue
            field = _FIELD.match(line)
            if field and field.group(3) not in KEYWORDS:
                self._extract_field(field, stripped, component)

    def _extract_field(self, field, line: str, component: Component):
        decorator, name, type_text, value = field.group(1), field.group(3), field.group(4), field.group(5)
        injected_type = None
        injected = decorator is not None and decorator.lower() in ("inject", "autowired")
        if value:
            locator = _LOCATOR.search(value)
            if locator:
                injected = True
                injected_type = locator.group(1) or locator.group(2)
        component.fields.append(CodeField(
            name=name,
            type=type_text.strip() if type_text else None,
            visibility=self._visibility(line, name),
            annotations=[decorator] if decorator else [],
            injected=injected,
        ))
        for ref in type_references(type_text):
            component.add_dependency(ref, context=f"field:{name}")
        if injected:
            component.add_injection(injected_type or base_type(type_text), context=f"field:{name}")

    def _extract_constructor(self, params_text: str, component: Component, injectable: bool):
        params = split_top_level(params_text)
        component.methods.append(CodeMethod(name="constructor", parameters=params))
        for raw in params:
            tokens, param = _strip_decorators(raw.strip())
            has_modifier = param.startswith(ACCESS_MODIFIERS)
            decl = param
            for modifier in ACCESS_MODIFIERS:
                decl = re.sub(rf"^{modifier}\s+", "", decl)
            name = re.split(r"[?:=\s]", decl, 1)[0]
            type_text: Optional[str] = None
            if ":" in decl:
                type_text = decl.split(":", 1)[1].split("=", 1)[0].strip()
            if has_modifier:
                component.fields.append(CodeField(
                    name=name, type=type_text,
                    visibility="private" if "private" in param else "public",
                    injected=injectable or bool(tokens),
                ))
            for ref in type_references(type_text):
                component.add_dependency(ref, context="constructor")
            if tokens or injectable or (has_modifier and type_text):
                injected = base_type(type_text)
                if injected is None and tokens:
                    injected = tokens[0].rsplit(".", 1)[-1]
                component.add_injection(injected, context=f"constructor:{name}")

    def _extract_locators(self, body: str, component: Component):
        for locator in _LOCATOR.finditer(body):
            injected = locator.group(1) or locator.group(2)
            if injected:
                component.add_injection(injected, context="service_locator")

    def _extract_jsx_usages(self, body: str, component: Component):
        for ctx in _USE_CONTEXT.findall(body):
            component.add_dependency(ctx, context="context")
        for element in _JSX_ELEMENT.findall(body):
            if element not in ("Fragment",) and element != component.name:
                component.add_dependency(element, context="render")

    def _extract_function_component(self, source: str, match, module: str, qualifier: str,
                                    imports: List[str], is_react: bool, file_path: str,
                                    result: ExtractionResult):
        name = match.group(1)
        body = _function_body(source, match.end())
        component = Component(
            id=f"{qualifier}.{name}",
            name=name,
            kind=ComponentKind.FUNCTION,
            language=self.language,
            file_path=file_path,
            imports=list(imports),
            package_name=module,
            component_type="ReactComponent" if is_react else None,
            start_line=line_at(source, match.start()),
        )
        component.methods.append(CodeMethod(name=name))
        self._extract_locators(body, component)
        if is_react:
            self._extract_jsx_usages(body, component)
        result.components.append(component)
        finish_component(component, body)

    @staticmethod
    def _visibility(line: str, name: str) -> str:
        if line.startswith("private") or line.startswith("#") or name.startswith("_"):
            return "private"
        if line.startswith("protected"):
            return "protected"
        return "public"


class TypeScriptExtractor(JavaScriptExtractor):
    """Heuristic extractor for .ts / .tsx files."""
    language = "typescript"
    extensions = (".ts", ".tsx")
