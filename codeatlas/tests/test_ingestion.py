import os
import tempfile
import time
import unittest

from codeatlas.config import AnalysisConfig
from codeatlas.core.entities import Component, ComponentKind, Layer
from codeatlas.ingestion import (
    SourceIngestor, apply_manifest, load_build_info, load_manifest, parse_build_file,
    parse_manifest, walk_source_tree,
)
from codeatlas.parsing import JavaExtractor


MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android"
    package="com.example.shop">
    <uses-permission android:name="android.permission.INTERNET" />
    <uses-permission android:name="android.permission.CAMERA" />
    <application android:label="Shop">
        <activity android:name=".SplashActivity" android:exported="true">
            <intent-filter>
                <action android:name="android.intent.action.MAIN" />
                <category android:name="android.intent.category.LAUNCHER" />
            </intent-filter>
        </activity>
        <activity android:name="com.example.shop.checkout.CheckoutActivity" android:label="Checkout" />
        <service android:name=".sync.SyncService" />
        <receiver android:name="BootReceiver" />
    </application>
</manifest>
"""

GRADLE = """
plugins { id 'com.android.application' }

android {
    namespace 'com.example.shop'
    defaultConfig {
        applicationId "com.example.shop"
        minSdk 24
        targetSdk 34
        versionCode 7
        versionName "1.4.0"
    }
    buildFeatures { compose true }
}

dependencies {
    implementation "com.squareup.retrofit2:retrofit:2.9.0"
    implementation("com.google.dagger:hilt-android:2.48")
    kapt 'com.google.dagger:hilt-compiler:2.48'
    implementation libs.androidx.core.ktx
    implementation project(':core')
    testImplementation 'junit:junit:4.13.2'
    // implementation 'com.example:commented-out:1.0'
}
"""

PUBSPEC = """
name: shop_app
version: 1.2.0+3
dependencies:
  flutter:
    sdk: flutter
  dio: ^5.3.0
dev_dependencies:
  flutter_test:
    sdk: flutter
"""

PACKAGE_JSON = """
{
  "name": "shop-web",
  "version": "0.9.0",
  "dependencies": {"react": "^18.2.0", "@reduxjs/toolkit": "^2.0.0"},
  "devDependencies": {"jest": "^29.0.0"}
}
"""


class ManifestTests(unittest.TestCase):
    def test_parse_manifest(self) -> None:
        info = parse_manifest(MANIFEST)
        self.assertEqual(info.package_name, "com.example.shop")
        self.assertEqual(info.permissions, ["INTERNET", "CAMERA"])
        self.assertEqual(
            [a.full_name for a in info.activities],
            ["com.example.shop.SplashActivity", "com.example.shop.checkout.CheckoutActivity"],
        )
        self.assertEqual(info.services, ["com.example.shop.sync.SyncService"])
        self.assertEqual(info.receivers, ["com.example.shop.BootReceiver"])

    def test_launcher_activity(self) -> None:
        info = parse_manifest(MANIFEST)
        launcher = info.launcher_activity()
        self.assertEqual(launcher.short_name, "SplashActivity")
        self.assertTrue(launcher.exported)
        self.assertEqual(info.activity_types["com.example.shop.checkout.CheckoutActivity"], "REGULAR")
        self.assertEqual(info.activity_types["com.example.shop.SplashActivity"], "LAUNCHER")

    def test_apply_manifest_marks_activities(self) -> None:
        info = parse_manifest(MANIFEST)
        splash = Component(id="com.example.shop.SplashActivity", name="SplashActivity",
                           kind=ComponentKind.CLASS, language="java", file_path="SplashActivity.java")
        checkout = Component(id="checkout.CheckoutActivity", name="CheckoutActivity",
                             kind=ComponentKind.CLASS, language="kotlin", file_path="CheckoutActivity.kt")
        helper = Component(id="com.example.shop.Helper", name="Helper",
                           kind=ComponentKind.CLASS, language="java", file_path="Helper.java")

        matched = apply_manifest([splash, checkout, helper], info)

        self.assertEqual(matched, 2)
        for component in (splash, checkout):
            self.assertEqual(component.explicit_layer, Layer.UI)
            self.assertEqual(component.component_type, "Activity")
            self.assertTrue(component.manifest_registered)
        self.assertFalse(helper.manifest_registered)

    def test_missing_manifest_degrades_to_empty(self) -> None:
        info = load_manifest(os.path.join(tempfile.gettempdir(), "does-not-exist", "AndroidManifest.xml"))
        self.assertTrue(info.is_empty())

    def test_malformed_manifest_degrades_to_empty(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            path = os.path.join(root, "AndroidManifest.xml")
            with open(path, "w", encoding="utf-8") as f:
                f.write("<manifest><application>")
            self.assertTrue(load_manifest(path).is_empty())


class BuildFileTests(unittest.TestCase):
    def test_gradle_dependencies(self) -> None:
        info = parse_build_file("app/build.gradle", GRADLE)
        coordinates = {(d.scope, d.group, d.artifact, d.version) for d in info.dependencies}
        self.assertIn(("implementation", "com.squareup.retrofit2", "retrofit", "2.9.0"), coordinates)
        self.assertIn(("implementation", "com.google.dagger", "hilt-android", "2.48"), coordinates)
        self.assertIn(("kapt", "com.google.dagger", "hilt-compiler", "2.48"), coordinates)
        self.assertIn(("implementation", "libs", "androidx.core.ktx", None), coordinates)
        self.assertIn(("implementation", "project", ":core", None), coordinates)
        self.assertIn(("testImplementation", "junit", "junit", "4.13.2"), coordinates)
        self.assertNotIn("commented-out", {d.artifact for d in info.dependencies})

    def test_gradle_settings(self) -> None:
        info = parse_build_file("app/build.gradle", GRADLE)
        self.assertEqual(info.settings["application_id"], "com.example.shop")
        self.assertEqual(info.settings["min_sdk"], "24")
        self.assertEqual(info.settings["target_sdk"], "34")
        self.assertEqual(info.settings["version_code"], "7")
        self.assertEqual(info.settings["version_name"], "1.4.0")
        self.assertTrue(info.uses_compose)
        self.assertEqual(info.sources, ["app/build.gradle"])

    def test_dependency_categories(self) -> None:
        buckets = parse_build_file("app/build.gradle", GRADLE).categories()
        self.assertIn("retrofit", [d.artifact for d in buckets["network"]])
        self.assertIn("hilt-android", [d.artifact for d in buckets["di"]])
        self.assertIn("junit", [d.artifact for d in buckets["test"]])

    def test_pubspec(self) -> None:
        info = parse_build_file("pubspec.yaml", PUBSPEC)
        by_artifact = {d.artifact: d for d in info.dependencies}
        self.assertEqual(by_artifact["dio"].version, "^5.3.0")
        self.assertEqual(by_artifact["flutter"].group, "sdk")
        self.assertEqual(by_artifact["flutter_test"].scope, "dev_dependencies")
        self.assertEqual(info.settings["version_name"], "1.2.0+3")

    def test_package_json(self) -> None:
        info = parse_build_file("web/package.json", PACKAGE_JSON)
        by_artifact = {d.artifact: d for d in info.dependencies}
        self.assertEqual(by_artifact["toolkit"].group, "@reduxjs")
        self.assertEqual(by_artifact["react"].group, "npm")
        self.assertEqual(by_artifact["jest"].scope, "devDependencies")

    def test_malformed_descriptor_is_empty(self) -> None:
        info = parse_build_file("package.json", "{not json")
        self.assertEqual(info.dependencies, [])
        self.assertEqual(info.sources, [])

    def test_package_json_with_unexpected_shape(self) -> None:
        content = '{"name": "app", "dependencies": ["left-pad"], "devDependencies": {"jest": "^29"}}'
        info = parse_build_file("package.json", content)
        self.assertEqual([d.artifact for d in info.dependencies], ["jest"])
        self.assertEqual(info.settings["application_id"], "app")
        self.assertEqual(info.sources, ["package.json"])

    def test_unexpected_shape_does_not_stop_ingestion(self) -> None:
        files = [
            ("package.json", '{"dependencies": 42, "peerDependencies": "react"}'),
            ("src/App.java", "class App {}"),
        ]
        result = SourceIngestor(AnalysisConfig(max_workers=2)).ingest_files(files)
        self.assertEqual([c.name for c in result.components], ["App"])
        self.assertEqual(result.build_info.dependencies, [])

    def test_load_build_info_skips_missing_files(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            path = os.path.join(root, "build.gradle")
            with open(path, "w", encoding="utf-8") as f:
                f.write(GRADLE)
            info = load_build_info([path, os.path.join(root, "missing", "build.gradle")])
        self.assertTrue(info.dependencies)


class IngestorTests(unittest.TestCase):
    def _write(self, root: str, rel_path: str, content) -> None:
        path = os.path.join(root, *rel_path.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        mode = "wb" if isinstance(content, bytes) else "w"
        with open(path, mode) as f:
            f.write(content)

    def test_ingest_directory(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            self._write(root, "app/src/main/AndroidManifest.xml", MANIFEST)
            self._write(root, "app/build.gradle", GRADLE)
            self._write(root, "app/src/main/java/com/example/shop/SplashActivity.java",
                        "package com.example.shop;\npublic class SplashActivity extends Activity {}\n")
            self._write(root, "app/build/generated/Generated.java", "public class Generated {}\n")
            self._write(root, "app/src/main/java/com/example/shop/Broken.java", b"\xff\xfe\x00class")
            self._write(root, "README.md", "# shop\n")

            result = SourceIngestor(AnalysisConfig(max_workers=2)).ingest_directory(root)

        self.assertEqual([c.id for c in result.components], ["com.example.shop.SplashActivity"])
        self.assertEqual(result.manifest.package_name, "com.example.shop")
        self.assertTrue(result.build_info.dependencies)
        self.assertIn("README.md", result.skipped)
        self.assertEqual(len(result.failures), 1)
        self.assertTrue(result.failures[0].skipped)
        self.assertIn("app/src/main/java/com/example/shop/SplashActivity.java", result.sources)

    def test_extractions_are_sorted_by_path(self) -> None:
        files = [
            ("b/Second.java", "class Second {}"),
            ("a/First.java", "class First {}"),
            ("c/third.dart", "class Third {}"),
        ]
        result = SourceIngestor(AnalysisConfig(max_workers=3)).ingest_files(files)
        self.assertEqual([r.file_path for r in result.extractions],
                         ["a/First.java", "b/Second.java", "c/third.dart"])

    def test_large_files_are_skipped(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            self._write(root, "Big.java", "class Big {}\n" + "// filler\n" * 200)
            result = SourceIngestor(AnalysisConfig(max_file_bytes=64)).ingest_directory(root)
        self.assertEqual(result.components, [])
        self.assertTrue(result.failures[0].skipped)

    def test_slow_file_times_out(self) -> None:
        config = AnalysisConfig(max_workers=2, parse_timeout=0.3)
        files = [("Ok.java", "class Ok {}"), ("Slow.java", "class Slow {}")]
        result = SourceIngestor(config, extractors=[SlowJavaExtractor()]).ingest_files(files)

        self.assertEqual([c.name for c in result.components], ["Ok"])
        self.assertEqual([f.file_path for f in result.failures], ["Slow.java"])
        self.assertTrue(result.failures[0].skipped)
        self.assertIn("timed out", result.failures[0].parse_errors[0])

    def test_queued_files_get_their_own_budget(self) -> None:
        # one worker: Tail.java waits behind Slow.java but is not blamed for it
        config = AnalysisConfig(max_workers=1, parse_timeout=0.3)
        files = [("Ok.java", "class Ok {}"), ("Slow.java", "class Slow {}"), ("Tail.java", "class Tail {}")]
        result = SourceIngestor(config, extractors=[SlowJavaExtractor(delay=0.6)]).ingest_files(files)

        self.assertEqual([c.name for c in result.components], ["Ok", "Tail"])
        self.assertEqual([f.file_path for f in result.failures], ["Slow.java"])


class SlowJavaExtractor(JavaExtractor):
    def __init__(self, delay: float = 1.0):
        self.delay = delay

    def _extract(self, content, file_path, result):
        if "Slow" in file_path:
            time.sleep(self.delay)
        super()._extract(content, file_path, result)


def test_walk_skips_build_and_hidden_dirs():
    with tempfile.TemporaryDirectory() as root:
        for rel in ("src/A.java", "build/B.java", ".git/C.java", "node_modules/x/D.js", "src/.E.java"):
            path = os.path.join(root, *rel.split("/"))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w") as f:
                f.write("")
        found = [os.path.relpath(p, root).replace(os.sep, "/")
                 for p in walk_source_tree(root, AnalysisConfig().skip_dirs)]
    assert found == ["src/A.java"]


if __name__ == "__main__":
    unittest.main()
