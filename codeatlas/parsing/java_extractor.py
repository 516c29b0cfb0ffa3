"""
Java extractor backed by tree-sitter.

Walks the syntax tree of a Java file and produces one component per
class, interface, enum and record (nested types included), with:
- fields, flagging @Inject / @Autowired / @Resource injection
- methods (name, return type, parameters, visibility)
- superclass and implemented interfaces
- constructor injection through an annotated constructor
"""

import logging
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

TYPE_DECLARATIONS = {
    "class_declaration": ComponentKind.CLASS,
    "interface_declaration": ComponentKind.INTERFACE,
    "enum_declaration": ComponentKind.ENUM,
    "record_declaration": ComponentKind.CLASS,
}

BODY_TYPES = ("class_body", "interface_body", "enum_body", "enum_body_declarations")


def extract_modifiers(node) -> Tuple[List[str], List[str]]:
    """Annotation names and modifier keywords of a declaration."""
    annotations: List[str] = []
    keywords: List[str] = []
    mods = ts.first_child_of_type(node, "modifiers")
    if mods is None:
        return annotations, keywords
    for child in mods.children:
        if child.type in ("marker_annotation", "annotation"):
            name = child.child_by_field_name("name")
            annotations.append(ts.text(name).rsplit(".", 1)[-1])
        else:
            keywords.append(ts.text(child))
    return annotations, keywords


def _type_list(node) -> List[str]:
    """Type names inside super_interfaces / extends_interfaces."""
    names = []
    if node is None:
        return names
    type_list = ts.first_child_of_type(node, "type_list")
    for child in (type_list or node).named_children:
        names.append(strip_generics(ts.text(child)))
    return names


def extract_parameters(params_node) -> List[Tuple[str, str, List[str]]]:
    """(type, name, annotations) for each formal parameter."""
    params = []
    if params_node is None:
        return params
    for child in params_node.named_children:
        if child.type not in ("formal_parameter", "spread_parameter", "receiver_parameter"):
            continue
        annotations, _ = extract_modifiers(child)
        type_node = child.child_by_field_name("type")
        if type_node is None:
            type_node = next((c for c in child.named_children if c.type != "modifiers"), None)
        name_node = child.child_by_field_name("name")
        if name_node is None:
            declarator = ts.first_child_of_type(child, "variable_declarator")
            name_node = declarator.child_by_field_name("name") if declarator else None
        params.append((ts.text(type_node), ts.text(name_node), annotations))
    return params


class JavaExtractor(Extractor):
    """AST-backed extractor for .java files."""
    language = "java"
    extensions = (".java",)

    def _extract(self, content: str, file_path: str, result: ExtractionResult):
        tree = ts.parse("java", content)
        errors = ts.syntax_errors(tree)
        if errors:
            result.parse_success = False
            result.parse_errors.extend(errors)
            logger.debug("[Java] %s parsed with errors: %s", file_path, errors)

        root = tree.root_node
        package = None
        imports: List[str] = []
        for child in root.children:
            if child.type == "package_declaration":
                name = next((c for c in child.named_children
                             if c.type in ("scoped_identifier", "identifier")), None)
                package = ts.text(name) or None
            elif child.type == "import_declaration":
                imports.append(ts.text(child)[len("import"):].strip().rstrip(";").strip()
                               .replace("static ", "", 1))

        for child in root.children:
            if child.type in TYPE_DECLARATIONS:
                self._extract_type(child, package, package, imports, file_path, result)

    def _extract_type(self, node, package: Optional[str], scope: Optional[str],
                      imports: List[str], file_path: str, result: ExtractionResult):
        name = ts.field_text(node, "name")
        if not name:
            return
        annotations, keywords = extract_modifiers(node)
        component = Component(
            id=f"{scope}.{name}" if scope else name,
            name=name,
            kind=TYPE_DECLARATIONS[node.type],
            language=self.language,
            file_path=file_path,
            annotations=annotations,
            modifiers=keywords,
            imports=list(imports),
            package_name=package,
            start_line=ts.line_of(node),
        )

        superclass = node.child_by_field_name("superclass")
        if superclass is not None and superclass.named_children:
            component.extends_ref = Reference(
                name=strip_generics(ts.text(superclass.named_children[-1])), context="extends")

        interfaces = node.child_by_field_name("interfaces") \
            or ts.first_child_of_type(node, "super_interfaces", "extends_interfaces")
        for iface in _type_list(interfaces):
            component.implements_refs.append(Reference(name=iface, context="implements"))

        # record components behave like constructor parameters
        if node.type == "record_declaration":
            for type_text, param_name, _ in extract_parameters(node.child_by_field_name("parameters")):
                component.fields.append(CodeField(name=param_name, type=type_text, visibility="private"))
                for ref in type_references(type_text):
                    component.add_dependency(ref, context=f"field:{param_name}")

        result.components.append(component)

        body = node.child_by_field_name("body") or ts.first_child_of_type(node, *BODY_TYPES)
        if body is not None:
            self._extract_members(body, component, package, imports, file_path, result)

        finish_component(component, ts.text(node))

    def _extract_members(self, body, component: Component, package, imports,
                         file_path: str, result: ExtractionResult):
        for member in body.named_children:
            if member.type == "enum_body_declarations":
                self._extract_members(member, component, package, imports, file_path, result)
            elif member.type in ("field_declaration", "constant_declaration"):
                self._extract_field(member, component)
            elif member.type == "method_declaration":
                self._extract_method(member, component)
            elif member.type == "constructor_declaration":
                self._extract_constructor(member, component)
            elif member.type in TYPE_DECLARATIONS:
                self._extract_type(member, package, component.id, imports, file_path, result)

    def _extract_field(self, node, component: Component):
        annotations, keywords = extract_modifiers(node)
        type_text = ts.field_text(node, "type")
        injected = is_injection(annotations)
        for declarator in ts.children_of_type(node, "variable_declarator"):
            field_name = ts.field_text(declarator, "name") or ""
            component.fields.append(CodeField(
                name=field_name,
                type=type_text,
                visibility=visibility_of(keywords, default="package"),
                annotations=annotations,
                injected=injected,
            ))
            for ref in type_references(type_text):
                component.add_dependency(ref, context=f"field:{field_name}")
            if injected:
                component.add_injection(injection_type(type_text), context=f"field:{field_name}")

    def _extract_method(self, node, component: Component):
        annotations, keywords = extract_modifiers(node)
        name = ts.field_text(node, "name") or ""
        return_type = ts.field_text(node, "type")
        params = extract_parameters(node.child_by_field_name("parameters"))
        component.methods.append(CodeMethod(
            name=name,
            return_type=return_type,
            parameters=[f"{t} {n}".strip() for t, n, _ in params],
            visibility=visibility_of(keywords, default="package"),
            annotations=annotations,
            line=ts.line_of(node),
        ))
        for ref in type_references(return_type):
            component.add_dependency(ref, context=f"method:{name}")
        for type_text, _, param_annotations in params:
            for ref in type_references(type_text):
                component.add_dependency(ref, context=f"method:{name}")
            # setter / parameter injection
            if is_injection(annotations) or is_injection(param_annotations):
                component.add_injection(injection_type(type_text), context=f"method:{name}")

    def _extract_constructor(self, node, component: Component):
        annotations, keywords = extract_modifiers(node)
        params = extract_parameters(node.child_by_field_name("parameters"))
        component.methods.append(CodeMethod(
            name="<init>",
            parameters=[f"{t} {n}".strip() for t, n, _ in params],
            visibility=visibility_of(keywords, default="package"),
            annotations=annotations,
            line=ts.line_of(node),
        ))
        injected = is_injection(annotations)
        for type_text, param_name, _ in params:
            for ref in type_references(type_text):
                component.add_dependency(ref, context="constructor")
            if injected:
                component.add_injection(injection_type(type_text), context=f"constructor:{param_name}")
