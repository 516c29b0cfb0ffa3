"""
AndroidManifest.xml side channel.

Produces the activity -> LAUNCHER / REGULAR map plus services, receivers
and permissions. A missing or malformed manifest yields an empty
ManifestInfo; it never stops an analysis run.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Any

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from ..core.entities import Component, Layer


logger = logging.getLogger(__name__)

ANDROID_NS = "{http://schemas.android.com/apk/res/android}"
LAUNCHER = "LAUNCHER"
REGULAR = "REGULAR"


@dataclass
class ManifestActivity:
    """An <activity> (or <activity-alias>) declaration."""
    full_name: str
    short_name: str
    label: Optional[str] = None
    is_launcher: bool = False
    exported: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name,
            "short_name": self.short_name,
            "label": self.label,
            "is_launcher": self.is_launcher,
            "exported": self.exported,
        }


@dataclass
class ManifestInfo:
    """
    Parsed manifest data.

    Attributes:
        package_name: Application package (may be empty for namespace-only manifests)
        activities: Declared activities in document order
        services: Fully qualified service class names
        receivers: Fully qualified broadcast receiver class names
        permissions: Short permission names (INTERNET, CAMERA...)
    """
    package_name: str = ""
    activities: List[ManifestActivity] = field(default_factory=list)
    services: List[str] = field(default_factory=list)
    receivers: List[str] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)

    @property
    def activity_types(self) -> Dict[str, str]:
        """Fully qualified activity name -> LAUNCHER or REGULAR."""
        return {a.full_name: LAUNCHER if a.is_launcher else REGULAR for a in self.activities}

    def launcher_activity(self) -> Optional[ManifestActivity]:
        return next((a for a in self.activities if a.is_launcher), None)

    def find_activity(self, name: str) -> Optional[ManifestActivity]:
        """Look an activity up by qualified or short name."""
        for activity in self.activities:
            if name in (activity.full_name, activity.short_name):
                return activity
        return None

    def is_empty(self) -> bool:
        return not (self.package_name or self.activities or self.services
                    or self.receivers or self.permissions)

    def merge(self, other: "ManifestInfo"):
        """Fold another module's manifest into this one."""
        self.package_name = self.package_name or other.package_name
        known = {a.full_name for a in self.activities}
        self.activities.extend(a for a in other.activities if a.full_name not in known)
        for attr in ("services", "receivers", "permissions"):
            target = getattr(self, attr)
            target.extend(v for v in getattr(other, attr) if v not in target)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "activities": [a.to_dict() for a in self.activities],
            "activity_types": self.activity_types,
            "services": self.services,
            "receivers": self.receivers,
            "permissions": self.permissions,
        }


def qualify(name: str, package: str) -> str:
    """Expand '.MainActivity' / 'MainActivity' against the manifest package."""
    if name.startswith("."):
        return f"{package}{name}" if package else name[1:]
    if "." not in name and package:
        return f"{package}.{name}"
    return name


def _is_launcher(element) -> bool:
    for intent_filter in element.iter("intent-filter"):
        actions = {a.get(ANDROID_NS + "name") for a in intent_filter.iter("action")}
        categories = {c.get(ANDROID_NS + "name") for c in intent_filter.iter("category")}
        if "android.intent.action.MAIN" in actions and "android.intent.category.LAUNCHER" in categories:
            return True
    return False


def parse_manifest(content: str) -> ManifestInfo:
    """Parse manifest XML text. Raises ElementTree.ParseError on malformed input."""
    root = ElementTree.fromstring(content)
    package = root.get("package", "")
    info = ManifestInfo(package_name=package)

    for permission in root.iter("uses-permission"):
        name = permission.get(ANDROID_NS + "name")
        if name:
            info.permissions.append(name.rsplit(".", 1)[-1])

    application = root.find("application")
    if application is None:
        return info

    for element in application:
        name = element.get(ANDROID_NS + "name") or element.get(ANDROID_NS + "targetActivity")
        if not name:
            continue
        full_name = qualify(name, package)
        if element.tag in ("activity", "activity-alias"):
            info.activities.append(ManifestActivity(
                full_name=full_name,
                short_name=full_name.rsplit(".", 1)[-1],
                label=element.get(ANDROID_NS + "label"),
                is_launcher=_is_launcher(element),
                exported=element.get(ANDROID_NS + "exported") == "true",
            ))
        elif element.tag == "service":
            info.services.append(full_name)
        elif element.tag == "receiver":
            info.receivers.append(full_name)
    return info


def load_manifest(path: str) -> ManifestInfo:
    """Read and parse a manifest file, degrading to an empty ManifestInfo."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_manifest(f.read())
    except FileNotFoundError:
        logger.info("[Manifest] No manifest at %s", path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("[Manifest] Could not read %s: %s", path, e)
    except (ElementTree.ParseError, DefusedXmlException) as e:
        logger.warning("[Manifest] Malformed manifest %s: %s", path, e)
    return ManifestInfo()


def load_manifests(paths: Iterable[str]) -> ManifestInfo:
    info = ManifestInfo()
    for path in paths:
        info.merge(load_manifest(path))
    return info


def apply_manifest(components: Iterable[Component], manifest: ManifestInfo) -> int:
    """
    Cross-check components against the manifest.

    Declared activities become UI-layer Activities; services and receivers
    get their component type. Returns the number of components matched.
    """
    if manifest.is_empty():
        return 0
    activities = {}
    for activity in manifest.activities:
        activities[activity.full_name] = activity
        activities.setdefault(activity.short_name, activity)
    services = set(manifest.services) | {s.rsplit(".", 1)[-1] for s in manifest.services}
    receivers = set(manifest.receivers) | {r.rsplit(".", 1)[-1] for r in manifest.receivers}

    matched = 0
    for component in components:
        if component.is_external:
            continue
        if component.id in activities or component.name in activities:
            component.explicit_layer = Layer.UI
            component.component_type = "Activity"
            component.manifest_registered = True
            matched += 1
        elif component.id in services or component.name in services:
            component.component_type = "Service"
            component.manifest_registered = True
            matched += 1
        elif component.id in receivers or component.name in receivers:
            component.component_type = "BroadcastReceiver"
            component.manifest_registered = True
            matched += 1
    return matched
