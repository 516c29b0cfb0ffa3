"""
Build-descriptor side channel.

Parses Gradle scripts (Groovy and Kotlin DSL), pubspec.yaml and
package.json into flat {scope, group, artifact, version} records plus a
few project settings. Unreadable descriptors contribute nothing.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import yaml


logger = logging.getLogger(__name__)

GRADLE_SCOPES = (
    "implementation", "api", "compile", "kapt", "ksp", "compileOnly", "runtimeOnly",
    "testImplementation", "androidTestImplementation", "debugImplementation",
    "annotationProcessor",
)
_SCOPE = "|".join(sorted(GRADLE_SCOPES, key=len, reverse=True))

_STRING_DEP = re.compile(
    rf"\b({_SCOPE})\s*\(?\s*(?:(?:platform|enforcedPlatform)\s*\(\s*)?[\"']([^\"'$]+(?:\$[^\"']*)?)[\"']")
_MAP_DEP = re.compile(
    rf"\b({_SCOPE})\s*\(?\s*group\s*[:=]\s*[\"']([^\"']+)[\"']\s*,\s*name\s*[:=]\s*[\"']([^\"']+)[\"']"
    r"(?:\s*,\s*version\s*[:=]\s*[\"']([^\"']+)[\"'])?")
_CATALOG_DEP = re.compile(rf"\b({_SCOPE})\s*[\s(]\s*(?:platform\s*\(\s*)?libs\.([\w.\-]+)")
_PROJECT_DEP = re.compile(rf"\b({_SCOPE})\s*\(?\s*project\s*\(\s*(?:path\s*[:=]\s*)?[\"']([^\"']+)[\"']")

_SETTINGS = {
    "application_id": re.compile(r"applicationId\s*=?\s*[\"']([^\"']+)[\"']"),
    "namespace": re.compile(r"\bnamespace\s*=?\s*[\"']([^\"']+)[\"']"),
    "min_sdk": re.compile(r"minSdk(?:Version)?\s*[=(]?\s*(\d+)"),
    "target_sdk": re.compile(r"targetSdk(?:Version)?\s*[=(]?\s*(\d+)"),
    "compile_sdk": re.compile(r"compileSdk(?:Version)?\s*[=(]?\s*(\d+)"),
    "version_name": re.compile(r"versionName\s*=?\s*[\"']([^\"']+)[\"']"),
    "version_code": re.compile(r"versionCode\s*=?\s*(\d+)"),
}

DEPENDENCY_CATEGORIES = [
    ("firebase", ("firebase",)),
    ("network", ("retrofit", "okhttp", "ktor", "gson", "moshi", "axios", "dio", "http")),
    ("database", ("room", "realm", "sqlite", "sqflite", "hive", "drift", "typeorm", "mongoose")),
    ("di", ("hilt", "dagger", "koin", "get_it", "injectable", "inversify", "tsyringe")),
    ("ui", ("compose", "material", "recyclerview", "constraint", "glide", "coil", "picasso",
            "react", "flutter")),
    ("test", ("test", "junit", "espresso", "mock", "jest")),
]


@dataclass
class BuildDependency:
    """One declared dependency."""
    scope: str
    group: str
    artifact: str
    version: Optional[str] = None

    @property
    def coordinate(self) -> str:
        parts = [self.group, self.artifact] + ([self.version] if self.version else [])
        return ":".join(p for p in parts if p)

    @property
    def category(self) -> str:
        full = self.coordinate.lower()
        for category, keywords in DEPENDENCY_CATEGORIES:
            if any(k in full for k in keywords):
                return category
        return "other"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "group": self.group,
            "artifact": self.artifact,
            "version": self.version,
        }


@dataclass
class BuildInfo:
    """
    Dependencies and settings from all build descriptors of a project.

    Attributes:
        dependencies: Declared dependencies, de-duplicated, in file order
        settings: applicationId, SDK levels, version name/code when present
        uses_compose: Jetpack Compose enabled in a Gradle script
        uses_view_binding: View binding enabled in a Gradle script
        sources: Descriptor files that were parsed
    """
    dependencies: List[BuildDependency] = field(default_factory=list)
    settings: Dict[str, str] = field(default_factory=dict)
    uses_compose: bool = False
    uses_view_binding: bool = False
    sources: List[str] = field(default_factory=list)

    def add(self, dependency: BuildDependency):
        key = (dependency.scope, dependency.group, dependency.artifact, dependency.version)
        for existing in self.dependencies:
            if (existing.scope, existing.group, existing.artifact, existing.version) == key:
                return
        self.dependencies.append(dependency)

    def merge(self, other: "BuildInfo"):
        for dependency in other.dependencies:
            self.add(dependency)
        for key, value in other.settings.items():
            self.settings.setdefault(key, value)
        self.uses_compose = self.uses_compose or other.uses_compose
        self.uses_view_binding = self.uses_view_binding or other.uses_view_binding
        self.sources.extend(other.sources)

    def categories(self) -> Dict[str, List[BuildDependency]]:
        """Dependencies bucketed by category (firebase, network, database, di, ui, test, other)."""
        buckets: Dict[str, List[BuildDependency]] = {name: [] for name, _ in DEPENDENCY_CATEGORIES}
        buckets["other"] = []
        for dependency in self.dependencies:
            buckets[dependency.category].append(dependency)
        return buckets

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dependencies": [d.to_dict() for d in self.dependencies],
            "settings": self.settings,
            "uses_compose": self.uses_compose,
            "uses_view_binding": self.uses_view_binding,
            "sources": self.sources,
        }


def _split_coordinate(scope: str, coordinate: str) -> BuildDependency:
    parts = coordinate.split(":")
    if len(parts) == 1:
        return BuildDependency(scope=scope, group="", artifact=parts[0])
    return BuildDependency(
        scope=scope,
        group=parts[0],
        artifact=parts[1],
        version=parts[2] if len(parts) > 2 and parts[2] else None,
    )


def parse_gradle(content: str) -> BuildInfo:
    """Parse a build.gradle / build.gradle.kts script."""
    info = BuildInfo()
    # strip line comments so commented-out dependencies are ignored
    content = re.sub(r"(?m)^\s*//.*$", "", content)

    for scope, coordinate in _STRING_DEP.findall(content):
        info.add(_split_coordinate(scope, coordinate))
    for scope, group, name, version in _MAP_DEP.findall(content):
        info.add(BuildDependency(scope=scope, group=group, artifact=name, version=version or None))
    for scope, alias in _CATALOG_DEP.findall(content):
        info.add(BuildDependency(scope=scope, group="libs", artifact=alias))
    for scope, path in _PROJECT_DEP.findall(content):
        info.add(BuildDependency(scope=scope, group="project", artifact=path))

    for key, pattern in _SETTINGS.items():
        match = pattern.search(content)
        if match:
            info.settings[key] = match.group(1)

    info.uses_compose = bool(re.search(r"compose\s*(=\s*true|\.set\(true\)|true)", content))
    info.uses_view_binding = bool(re.search(r"viewBinding\s*(=\s*true|\.set\(true\)|\{\s*enabled\s*=\s*true)", content))
    return info


def parse_pubspec(content: str) -> BuildInfo:
    """Parse a Flutter/Dart pubspec.yaml."""
    info = BuildInfo()
    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        return info
    for scope in ("dependencies", "dev_dependencies"):
        section = data.get(scope) or {}
        if not isinstance(section, dict):
            continue
        for name, spec in section.items():
            version = spec if isinstance(spec, str) else None
            group = "sdk" if isinstance(spec, dict) and "sdk" in spec else "pub"
            info.add(BuildDependency(scope=scope, group=group, artifact=str(name), version=version))
    if data.get("version"):
        info.settings["version_name"] = str(data["version"])
    if data.get("name"):
        info.settings["application_id"] = str(data["name"])
    return info


def parse_package_json(content: str) -> BuildInfo:
    """Parse an npm package.json."""
    info = BuildInfo()
    data = json.loads(content)
    if not isinstance(data, dict):
        return info
    for scope in ("dependencies", "devDependencies", "peerDependencies"):
        section = data.get(scope)
        if not isinstance(section, dict):
            continue
        for name, version in section.items():
            group, _, artifact = name.rpartition("/")
            info.add(BuildDependency(scope=scope, group=group or "npm", artifact=artifact,
                                     version=str(version)))
    for key, source in (("application_id", "name"), ("version_name", "version")):
        if data.get(source):
            info.settings[key] = str(data[source])
    return info


BUILD_FILE_PARSERS: Dict[str, Callable[[str], BuildInfo]] = {
    "build.gradle": parse_gradle,
    "build.gradle.kts": parse_gradle,
    "pubspec.yaml": parse_pubspec,
    "package.json": parse_package_json,
}


def is_build_file(path: str) -> bool:
    return os.path.basename(path) in BUILD_FILE_PARSERS


def parse_build_file(path: str, content: str) -> BuildInfo:
    """Parse descriptor text, degrading to an empty BuildInfo on malformed input."""
    parser = BUILD_FILE_PARSERS[os.path.basename(path)]
    try:
        info = parser(content)
    except (ValueError, AttributeError, TypeError, yaml.YAMLError) as e:
        logger.warning("[Build] Malformed build file %s: %s", path, e)
        return BuildInfo()
    info.sources.append(path)
    return info


def load_build_info(paths: Iterable[str]) -> BuildInfo:
    """Read and merge every build descriptor; unreadable files are skipped."""
    merged = BuildInfo()
    for path in paths:
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            logger.info("[Build] No build file at %s", path)
            continue
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("[Build] Could not read %s: %s", path, e)
            continue
        merged.merge(parse_build_file(path, content))
    return merged
