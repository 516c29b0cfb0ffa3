import os
import tempfile
import unittest

from codeatlas import AnalysisConfig, AnalysisEngine, analyze_directory
from codeatlas.core import RelationType
from codeatlas.flows import FlowType, ProcessType


SRC = "app/src/main/java/com/example/app"

MANIFEST = """<manifest xmlns:android="http://schemas.android.com/apk/res/android"
    package="com.example.app">
    <application>
        <activity android:name=".LoginActivity">
            <intent-filter>
                <action android:name="android.intent.action.MAIN" />
                <category android:name="android.intent.category.LAUNCHER" />
            </intent-filter>
        </activity>
        <activity android:name=".MainActivity" />
    </application>
</manifest>
"""

LOGIN = """package com.example.app;

public class LoginActivity extends AppCompatActivity {
    @Inject UserRepository repository;

    public void onLoginButtonClick(View v) {
        startActivity(new Intent(this, MainActivity.class));
    }
}
"""

MAIN = """package com.example.app;

public class MainActivity extends AppCompatActivity {
    public void onProfileClick(View v) {
        startActivity(new Intent(this, ProfileActivity.class));
    }

    public void onSettingsClick(View v) {
        startActivity(new Intent(this, SettingsActivity.class));
    }
}
"""

PROJECT_FILES = [
    ("app/src/main/AndroidManifest.xml", MANIFEST),
    (f"{SRC}/LoginActivity.java", LOGIN),
    (f"{SRC}/MainActivity.java", MAIN),
    (f"{SRC}/ProfileActivity.java", "package com.example.app;\npublic class ProfileActivity extends Activity {}\n"),
    (f"{SRC}/SettingsActivity.java", "package com.example.app;\npublic class SettingsActivity extends Activity {}\n"),
    (f"{SRC}/UserRepository.java", "package com.example.app;\npublic class UserRepository {}\n"),
]


class EndToEndTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = AnalysisEngine(AnalysisConfig(max_workers=2))
        self.result = self.engine.analyze_files(PROJECT_FILES, project_name="shop")

    def test_components(self) -> None:
        self.assertEqual(self.result.project_name, "shop")
        self.assertEqual([c.name for c in self.result.components], [
            "LoginActivity", "MainActivity", "ProfileActivity", "SettingsActivity", "UserRepository",
        ])
        login = self.result.get_component("com.example.app.LoginActivity")
        self.assertTrue(login.manifest_registered)
        self.assertEqual(login.layer.value, "UI")

    def test_navigation_becomes_relationships(self) -> None:
        navigates = sorted((r.source, r.target) for r in self.result.relationships.get_by_type(RelationType.NAVIGATES_TO))
        self.assertEqual(navigates, [
            ("com.example.app.LoginActivity", "com.example.app.MainActivity"),
            ("com.example.app.MainActivity", "com.example.app.ProfileActivity"),
            ("com.example.app.MainActivity", "com.example.app.SettingsActivity"),
        ])
        injected = [(r.source, r.target) for r in self.result.relationships.get_by_type(RelationType.INJECTED)]
        self.assertEqual(injected, [("com.example.app.LoginActivity", "com.example.app.UserRepository")])

    def test_user_flows(self) -> None:
        types = {f.screen_name: f.flow_type for f in self.result.user_flows}
        self.assertEqual(types, {
            "LoginActivity": FlowType.ENTRY_POINT,
            "MainActivity": FlowType.DECISION_POINT,
            "ProfileActivity": FlowType.EXIT_POINT,
            "SettingsActivity": FlowType.EXIT_POINT,
        })
        login = next(f for f in self.result.user_flows if f.screen_name == "LoginActivity")
        self.assertEqual([a.action_name for a in login.actions], ["Tap Login Button"])

    def test_business_processes(self) -> None:
        by_id = {p.process_id: p for p in self.result.business_processes}
        self.assertEqual(by_id["process:user-authentication"].process_type, ProcessType.AUTHENTICATION)
        self.assertEqual(len(by_id["process:user-profile-management"].steps), 2)

    def test_graph_view(self) -> None:
        graph = self.result.graph
        self.assertIn("com.example.app.LoginActivity", graph.get_dependents("com.example.app.UserRepository"))
        self.assertEqual(self.result.statistics()["navigation_flows"], 3)

    def test_navigation_can_be_disabled(self) -> None:
        engine = AnalysisEngine(AnalysisConfig(max_workers=2, detect_navigation=False))
        result = engine.analyze_files(PROJECT_FILES)
        self.assertEqual(result.navigation_flows, [])
        self.assertEqual(result.relationships.get_by_type(RelationType.NAVIGATES_TO), [])
        self.assertTrue(all(f.flow_type == FlowType.ENTRY_POINT for f in result.user_flows))


class DeterminismTests(unittest.TestCase):
    def test_input_order_does_not_matter(self) -> None:
        engine = AnalysisEngine(AnalysisConfig(max_workers=4))
        forward = engine.analyze_files(PROJECT_FILES).to_dict()
        backward = engine.analyze_files(list(reversed(PROJECT_FILES))).to_dict()
        self.assertEqual(forward, backward)

    def test_duplicate_ids_keep_the_first_file(self) -> None:
        files = [
            ("b/User.java", "package com.example;\npublic class User { Address address; }\n"),
            ("a/User.java", "package com.example;\npublic class User {}\n"),
        ]
        result = AnalysisEngine(AnalysisConfig(max_workers=2)).analyze_files(files)
        self.assertEqual([c.file_path for c in result.components], ["a/User.java"])
        self.assertEqual(result.duplicates[0].dropped_file, "b/User.java")

    def test_same_named_modules_do_not_collide(self) -> None:
        header = "import React from 'react';\n\nexport function Header() {\n  return <View />;\n}\n"
        files = [
            ("src/screens/Home/index.js", header),
            ("src/screens/Cart/index.js", header),
        ]
        result = AnalysisEngine(AnalysisConfig(max_workers=2)).analyze_files(files)
        self.assertEqual([c.id for c in result.components],
                         ["src/screens/Cart/index.Header", "src/screens/Home/index.Header"])
        self.assertEqual(result.duplicates, [])


class DirectoryTests(unittest.TestCase):
    def test_one_unreadable_file_among_many(self) -> None:
        with tempfile.TemporaryDirectory() as root:
            src = os.path.join(root, "src", "com", "example")
            os.makedirs(src)
            for i in range(99):
                with open(os.path.join(src, f"Model{i}.java"), "w", encoding="utf-8") as f:
                    f.write(f"package com.example;\npublic class Model{i} {{}}\n")
            with open(os.path.join(src, "Broken.java"), "wb") as f:
                f.write(b"package com.example;\npublic class Broken \xff\xfe {}\n")

            result = analyze_directory(root, AnalysisConfig(max_workers=4))

        self.assertEqual(result.project_name, os.path.basename(root))
        self.assertEqual(len(result.components), 99)
        self.assertEqual(len(result.diagnostics), 1)
        diagnostic = result.diagnostics[0]
        self.assertTrue(diagnostic.skipped)
        self.assertEqual(diagnostic.file_path, "src/com/example/Broken.java")


if __name__ == "__main__":
    unittest.main()
