"""
Kotlin extractor backed by tree-sitter.

Declarations (classes, interfaces, objects, enums, members) come from
the syntax tree. Small pieces whose node shape differs between grammar
releases, such as a property's declared type or its delegate, are read
from the text of the node that holds them.

DI idioms recognised:
- @Inject constructor(...) and @Inject lateinit var
- Koin delegates: by inject(), by viewModel(), get()
- Hilt/Jetpack delegates: by viewModels(), by activityViewModels()
"""

import logging
import re
from typing import List, Optional, Tuple

from ..core.entities import (
    CodeField, CodeMethod, Component, ComponentKind, ExtractionResult, Reference,
)
from . import treesitter as ts
from .base import Extractor
from .common import (
    finish_component, injection_type, is_injection, strip_generics, type_references, visibility_of,
)


logger = logging.getLogger(__name__)

NAME_TYPES = ("type_identifier", "simple_identifier", "identifier")
TYPE_NODE_TYPES = ("user_type", "nullable_type", "type_identifier", "function_type",
                   "parenthesized_type", "type")

_DELEGATE_INJECTION = re.compile(
    r"^by\s+(?:inject|viewModel|sharedViewModel|activityViewModel|viewModels|activityViewModels"
    r"|navGraphViewModels)\s*(?:<\s*([\w.]+)\s*>)?\s*\(")
_GET_INJECTION = re.compile(r"^\s*(?:get|inject)\s*(?:<\s*([\w.]+)\s*>)?\s*\(")
_WORD = re.compile(r"[A-Za-z_]+")


def _name_of(node) -> str:
    return ts.text(ts.first_child_of_type(node, *NAME_TYPES))


def extract_modifiers(node) -> Tuple[List[str], List[str]]:
    """Annotation names and modifier keywords (public, data, enum, lateinit...)."""
    annotations: List[str] = []
    keywords: List[str] = []
    mods = ts.first_child_of_type(node, "modifiers", "parameter_modifiers")
    if mods is None:
        return annotations, keywords
    for child in mods.children:
        if child.type == "annotation":
            raw = ts.text(child).lstrip("@")
            raw = raw.split(":", 1)[-1] if re.match(r"^\w+:", raw) else raw
            annotations.append(strip_generics(raw.split("(", 1)[0]).rsplit(".", 1)[-1].strip())
        else:
            keywords.extend(_WORD.findall(ts.text(child)))
    return annotations, keywords


def split_declaration(decl_text: str) -> Tuple[str, Optional[str]]:
    """'name: Type = value' -> ('name', 'Type')."""
    decl_text = decl_text.split("=", 1)[0]
    if ":" not in decl_text:
        return decl_text.strip(), None
    name, type_text = decl_text.split(":", 1)
    name = name.split()[-1] if name.split() else ""
    return name.strip(), type_text.strip() or None


def _delegation_specifiers(node) -> List:
    specs = []
    for child in node.children:
        if child.type == "delegation_specifier":
            specs.append(child)
        elif child.type == "delegation_specifiers":
            specs.extend(ts.children_of_type(child, "delegation_specifier"))
    return specs


class KotlinExtractor(Extractor):
    """AST-backed extractor for .kt / .kts files."""
    language = "kotlin"
    extensions = (".kt", ".kts")

    def _extract(self, content: str, file_path: str, result: ExtractionResult):
        tree = ts.parse("kotlin", content)
        errors = ts.syntax_errors(tree)
        if errors:
            result.parse_success = False
            result.parse_errors.extend(errors)
            logger.debug("[Kotlin] %s parsed with errors: %s", file_path, errors)

        root = tree.root_node
        package = None
        imports: List[str] = []
        for node in ts.descendants_of_type(root, "package_header", "import_header"):
            body = ts.text(node).split(None, 1)
            value = body[1].strip() if len(body) > 1 else ""
            if node.type == "package_header":
                package = value or None
            else:
                imports.append(value.split(" as ")[0].strip())

        for child in root.children:
            if child.type in ("class_declaration", "object_declaration"):
                self._extract_class(child, package, package, imports, file_path, result)
            elif child.type == "function_declaration":
                self._extract_top_level_function(child, package, imports, file_path, result)

    def _kind_of(self, node, keywords: List[str]) -> ComponentKind:
        if node.type == "object_declaration":
            return ComponentKind.OBJECT
        if ts.first_child_of_type(node, "interface") is not None:
            return ComponentKind.INTERFACE
        if "enum" in keywords or ts.first_child_of_type(node, "enum_class_body") is not None:
            return ComponentKind.ENUM
        return ComponentKind.CLASS

    def _extract_class(self, node, package: Optional[str], scope: Optional[str],
                       imports: List[str], file_path: str, result: ExtractionResult):
        name = _name_of(node)
        if not name:
            return
        annotations, keywords = extract_modifiers(node)
        kind = self._kind_of(node, keywords)
        component = Component(
            id=f"{scope}.{name}" if scope else name,
            name=name,
            kind=kind,
            language=self.language,
            file_path=file_path,
            annotations=annotations,
            modifiers=keywords,
            imports=list(imports),
            package_name=package,
            start_line=ts.line_of(node),
        )

        # `: Base()` is a superclass call, `: Iface` an interface
        for spec in _delegation_specifiers(node):
            invocation = ts.first_child_of_type(spec, "constructor_invocation")
            if invocation is not None and component.extends_ref is None and kind != ComponentKind.INTERFACE:
                type_node = ts.first_child_of_type(invocation, *TYPE_NODE_TYPES) or invocation
                component.extends_ref = Reference(
                    name=strip_generics(ts.text(type_node).split("(", 1)[0]), context="extends")
            else:
                target = invocation if invocation is not None else spec
                type_name = strip_generics(ts.text(target).split("(", 1)[0].split(" by ", 1)[0])
                component.implements_refs.append(Reference(name=type_name, context="implements"))

        constructor = ts.first_child_of_type(node, "primary_constructor")
        if constructor is not None:
            self._extract_primary_constructor(constructor, component)

        result.components.append(component)

        body = ts.first_child_of_type(node, "class_body", "enum_class_body")
        if body is not None:
            self._extract_members(body, component, package, imports, file_path, result)

        finish_component(component, ts.text(node))

    def _extract_primary_constructor(self, node, component: Component):
        ctor_annotations, _ = extract_modifiers(node)
        injected = is_injection(ctor_annotations)
        params = []
        for param in ts.descendants_of_type(node, "class_parameter"):
            annotations, keywords = extract_modifiers(param)
            text = ts.text(param)
            name, type_text = split_declaration(text)
            params.append(f"{name}: {type_text}" if type_text else name)
            if re.search(r"\b(val|var)\s", text):
                component.fields.append(CodeField(
                    name=name,
                    type=type_text,
                    visibility=visibility_of(keywords),
                    annotations=annotations,
                    injected=injected,
                ))
            for ref in type_references(type_text):
                component.add_dependency(ref, context="constructor")
            if injected:
                component.add_injection(injection_type(type_text), context=f"constructor:{name}")
        component.methods.append(CodeMethod(
            name="<init>",
            parameters=params,
            annotations=ctor_annotations,
            line=ts.line_of(node),
        ))

    def _extract_members(self, body, component: Component, package, imports,
                         file_path: str, result: ExtractionResult):
        for member in body.named_children:
            if member.type == "class_member_declarations":
                self._extract_members(member, component, package, imports, file_path, result)
            elif member.type == "property_declaration":
                self._extract_property(member, component)
            elif member.type == "function_declaration":
                self._extract_function(member, component)
            elif member.type in ("class_declaration", "object_declaration"):
                self._extract_class(member, package, component.id, imports, file_path, result)
            elif member.type == "companion_object":
                companion_body = ts.first_child_of_type(member, "class_body")
                if companion_body is not None:
                    self._extract_members(companion_body, component, package, imports,
                                          file_path, result)

    def _extract_property(self, node, component: Component):
        annotations, keywords = extract_modifiers(node)
        declaration = ts.first_child_of_type(node, "variable_declaration", "multi_variable_declaration")
        name, type_text = split_declaration(ts.text(declaration)) if declaration else ("", None)
        if not name:
            return

        injected_type = None
        injected = is_injection(annotations)
        delegate = ts.first_child_of_type(node, "property_delegate")
        if delegate is not None:
            match = _DELEGATE_INJECTION.match(ts.text(delegate).strip())
            if match:
                injected = True
                injected_type = match.group(1)
        else:
            # `val repo: Repo = get()` after the '='
            full = ts.text(node)
            if "=" in full:
                match = _GET_INJECTION.match(full.split("=", 1)[1])
                if match:
                    injected = True
                    injected_type = match.group(1)

        component.fields.append(CodeField(
            name=name,
            type=type_text or injected_type,
            visibility=visibility_of(keywords),
            annotations=annotations,
            injected=injected,
        ))
        for ref in type_references(type_text or injected_type):
            component.add_dependency(ref, context=f"field:{name}")
        if injected:
            component.add_injection(injected_type or injection_type(type_text), context=f"field:{name}")

    def _function_signature(self, node) -> Tuple[str, List[str], Optional[str]]:
        name = _name_of(node)
        params: List[str] = []
        return_type = None
        seen_params = False
        for child in node.children:
            if child.type == "function_value_parameters":
                seen_params = True
                for param in ts.descendants_of_type(child, "parameter"):
                    params.append(ts.text(param))
            elif seen_params and child.type in TYPE_NODE_TYPES:
                return_type = ts.text(child)
            elif child.type == "function_body":
                break
        return name, params, return_type

    def _extract_function(self, node, component: Component):
        annotations, keywords = extract_modifiers(node)
        name, params, return_type = self._function_signature(node)
        if not name:
            return
        component.methods.append(CodeMethod(
            name=name,
            return_type=return_type,
            parameters=params,
            visibility=visibility_of(keywords),
            annotations=annotations,
            line=ts.line_of(node),
        ))
        if "Composable" in annotations:
            component.composables.append(name)
        for ref in type_references(return_type):
            component.add_dependency(ref, context=f"method:{name}")
        for param in params:
            _, type_text = split_declaration(param)
            for ref in type_references(type_text):
                component.add_dependency(ref, context=f"method:{name}")

    def _extract_top_level_function(self, node, package: Optional[str], imports: List[str],
                                    file_path: str, result: ExtractionResult):
        """Top-level @Composable functions are screens/widgets in their own right."""
        annotations, keywords = extract_modifiers(node)
        if "Composable" not in annotations:
            return
        name, params, return_type = self._function_signature(node)
        if not name or not name[:1].isupper():
            return
        component = Component(
            id=f"{package}.{name}" if package else name,
            name=name,
            kind=ComponentKind.FUNCTION,
            language=self.language,
            file_path=file_path,
            annotations=annotations,
            modifiers=keywords,
            imports=list(imports),
            package_name=package,
            component_type="Composable",
            composables=[name],
            start_line=ts.line_of(node),
        )
        component.methods.append(CodeMethod(
            name=name, return_type=return_type, parameters=params,
            visibility=visibility_of(keywords), annotations=annotations,
            line=ts.line_of(node),
        ))
        for param in params:
            _, type_text = split_declaration(param)
            for ref in type_references(type_text):
                component.add_dependency(ref, context=f"method:{name}")
        result.components.append(component)
        finish_component(component, ts.text(node))
