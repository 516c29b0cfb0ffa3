"""
XML extractor for Android resources and Spring bean definitions.

- res/layout*/*.xml: one layout component depending on custom views,
  embedded fragments and included layouts
- navigation graphs (<navigation> root): one component per destination,
  with navigation targets taken from its <action app:destination>
- Spring bean files (<beans> root): one component per <bean>, with refs
  recorded as injected dependencies

AndroidManifest.xml is a side-channel file and is handled by the
ingestion package, not here.
"""

import os
from typing import Dict, Optional

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from ..core.entities import Component, ComponentKind, ExtractionResult, Layer, Reference
from ..errors import ExtractionError
from .base import Extractor


ANDROID_NS = "{http://schemas.android.com/apk/res/android}"
APP_NS = "{http://schemas.android.com/apk/res-auto}"
TOOLS_NS = "{http://schemas.android.com/tools}"

DESTINATION_TAGS = {"fragment", "activity", "dialog", "composable"}
FRAGMENT_HOST_TAGS = {"fragment", "androidx.fragment.app.FragmentContainerView"}
# "action:<actionId>=<screen>" on destination components
ACTION_ANNOTATION = "action:"


def local_name(tag: str) -> str:
    """Strip the {namespace} prefix from an element tag."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def resource_id(value: Optional[str]) -> Optional[str]:
    """'@+id/homeFragment' -> 'homeFragment'."""
    if not value:
        return None
    return value.split("/", 1)[-1] if "/" in value else value


def simple_class_name(value: str) -> str:
    return value.rsplit(".", 1)[-1]


class XmlExtractor(Extractor):
    """Extractor for layout, navigation-graph and Spring bean XML files."""
    language = "xml"
    extensions = (".xml",)

    def _extract(self, content: str, file_path: str, result: ExtractionResult):
        if os.path.basename(file_path) == "AndroidManifest.xml":
            return
        try:
            root = ElementTree.fromstring(content)
        except (ElementTree.ParseError, DefusedXmlException) as e:
            raise ExtractionError(file_path, f"invalid XML: {e}")

        tag = local_name(root.tag)
        normalized = file_path.replace("\\", "/")
        if tag == "navigation":
            self._extract_navigation_graph(root, file_path, result)
        elif tag == "beans":
            self._extract_beans(root, file_path, result)
        elif "/layout" in normalized and "/res/" in normalized or "/layout/" in normalized:
            self._extract_layout(root, file_path, result)

    # --- LAYOUTS ---
    def _extract_layout(self, root, file_path: str, result: ExtractionResult):
        name = os.path.splitext(os.path.basename(file_path))[0]
        component = Component(
            id=f"layout.{name}",
            name=name,
            kind=ComponentKind.LAYOUT,
            language=self.language,
            file_path=file_path,
            explicit_layer=Layer.UI,
            component_type="Layout",
        )
        for element in root.iter():
            tag = local_name(element.tag)
            if tag in FRAGMENT_HOST_TAGS:
                fragment_class = element.get(ANDROID_NS + "name") or element.get("class")
                if fragment_class:
                    component.add_dependency(fragment_class, context="fragment")
            elif tag == "include":
                included = resource_id(element.get("layout"))
                if included:
                    component.add_dependency(f"layout.{included}", context="include")
            elif "." in tag:
                component.add_dependency(tag, context="custom_view")

            view_id = resource_id(element.get(ANDROID_NS + "id"))
            if view_id and f"R.id.{view_id}" not in component.resource_usages:
                component.resource_usages.append(f"R.id.{view_id}")

        context = root.get(TOOLS_NS + "context")
        if context:
            component.annotations.append(f"context:{context.lstrip('.')}")
        result.components.append(component)

    # --- NAVIGATION GRAPHS ---
    def _extract_navigation_graph(self, root, file_path: str, result: ExtractionResult):
        graph = resource_id(root.get(ANDROID_NS + "id")) \
            or os.path.splitext(os.path.basename(file_path))[0]
        start = resource_id(root.get(APP_NS + "startDestination"))

        destinations = [
            element for element in root.iter()
            if element is not root and (
                local_name(element.tag) in DESTINATION_TAGS or element.get(ANDROID_NS + "name"))
            and element.get(ANDROID_NS + "id")
        ]
        # destination id -> screen name used as navigation target
        screen_names: Dict[str, str] = {}
        for element in destinations:
            dest_id = resource_id(element.get(ANDROID_NS + "id"))
            class_name = element.get(ANDROID_NS + "name")
            screen_names[dest_id] = simple_class_name(class_name) if class_name else dest_id

        for element in destinations:
            dest_id = resource_id(element.get(ANDROID_NS + "id"))
            class_name = element.get(ANDROID_NS + "name")
            component = Component(
                id=f"{graph}.{dest_id}",
                name=dest_id,
                kind=ComponentKind.NAV_DESTINATION,
                language=self.language,
                file_path=file_path,
                component_type="NavigationDestination",
                explicit_layer=Layer.UI,
                modifiers=["startDestination"] if dest_id == start else [],
            )
            if class_name:
                component.add_dependency(class_name, context="destination")
            label = element.get(ANDROID_NS + "label")
            if label:
                component.annotations.append(f"label:{label}")
            for action in element:
                if local_name(action.tag) != "action":
                    continue
                target = resource_id(action.get(APP_NS + "destination"))
                if target:
                    component.add_navigation_target(screen_names.get(target, target))
                    action_id = resource_id(action.get(ANDROID_NS + "id"))
                    if action_id:
                        component.annotations.append(
                            f"{ACTION_ANNOTATION}{action_id}={screen_names.get(target, target)}")
            result.components.append(component)

    # --- SPRING BEANS ---
    def _extract_beans(self, root, file_path: str, result: ExtractionResult):
        for element in root.iter():
            if local_name(element.tag) != "bean":
                continue
            class_name = element.get("class")
            bean_id = element.get("id") or element.get("name")
            if not class_name and not bean_id:
                continue
            name = bean_id or simple_class_name(class_name)
            component = Component(
                id=f"bean:{name}",
                name=name,
                kind=ComponentKind.BEAN,
                language=self.language,
                file_path=file_path,
                component_type="SpringBean",
                di_info={"frameworks": ["spring"], "role": "spring_bean"},
            )
            if class_name:
                component.add_dependency(class_name, context="class")
            parent = element.get("parent")
            if parent:
                component.extends_ref = Reference(name=parent, context="parent")
            for child in element:
                child_tag = local_name(child.tag)
                if child_tag not in ("property", "constructor-arg"):
                    continue
                ref = child.get("ref") or self._nested_ref(child)
                if ref:
                    component.add_injection(ref, context=f"{child_tag}:{child.get('name') or ''}")
            if element.get("autowire") in ("byType", "constructor", "autodetect"):
                component.add_injection(None, context="autowire")
            result.components.append(component)

    @staticmethod
    def _nested_ref(element) -> Optional[str]:
        for child in element:
            if local_name(child.tag) == "ref":
                return child.get("bean") or child.get("local")
        return None
