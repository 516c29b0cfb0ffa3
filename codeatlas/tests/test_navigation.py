import unittest

from codeatlas.core.entities import Component, ComponentKind
from codeatlas.navigation import (
    NavigationCondition, NavigationFlow, NavigationFlowDetector, NavigationType,
    collect_routes, deduplicate_flows, detect_navigation, normalize_route, screen_name_for,
)
from codeatlas.navigation.models import CONDITIONAL, DATA_EXTRA
from codeatlas.parsing import XmlExtractor


def _edges(flows):
    return {(f.source_screen_id, f.target_screen_id, f.navigation_type) for f in flows}


def _component(name: str, file_path: str, kind: ComponentKind = ComponentKind.CLASS) -> Component:
    return Component(id=f"com.example.{name}", name=name, kind=kind, language="java", file_path=file_path)


CURRENT_SCREEN = """
package com.example;

public class CurrentScreen extends Activity {
    void openTarget() {
        Intent intent = new Intent(this, TargetScreen.class);
        startActivity(intent);
    }
}
"""

LOGIN_ACTIVITY = """
package com.example;

public class LoginActivity extends AppCompatActivity {
    private void onLoginSuccess(User user) {
        if (user.isAdmin()) {
            Intent intent = new Intent(this, AdminActivity.class);
            intent.putExtra("user_id", user.getId());
            startActivity(intent);
        } else {
            startActivity(new Intent(LoginActivity.this, MainActivity.class));
        }
    }

    private void share() {
        Intent share = new Intent(Intent.ACTION_SEND);
        startActivity(share);
    }

    private void showProfile() {
        getSupportFragmentManager().beginTransaction()
            .replace(R.id.container, new ProfileFragment())
            .commit();
    }

    private void openCart(NavController navController) {
        navController.navigate(Uri.parse("shop://cart"));
    }

    private void restart() {
        startActivity(new Intent(this, LoginActivity.class));
        startService(new Intent(this, SyncService.class));
    }
}
"""


class JavaNavigationTests(unittest.TestCase):
    def test_single_intent(self) -> None:
        flows = detect_navigation({"app/src/main/java/com/example/CurrentScreen.java": CURRENT_SCREEN})
        self.assertEqual(len(flows), 1)
        flow = flows[0]
        self.assertEqual((flow.source_screen_id, flow.target_screen_id), ("CurrentScreen", "TargetScreen"))
        self.assertEqual(flow.navigation_type, NavigationType.FORWARD)
        self.assertEqual(flow.flow_id, "nav:CurrentScreen->TargetScreen:FORWARD")
        self.assertEqual(flow.line, 6)

    def test_login_activity_call_sites(self) -> None:
        components = [
            _component("LoginActivity", "LoginActivity.java"),
            _component("SyncService", "SyncService.java"),
        ]
        flows = NavigationFlowDetector(components).detect({"LoginActivity.java": LOGIN_ACTIVITY})
        self.assertEqual(_edges(flows), {
            ("LoginActivity", "AdminActivity", NavigationType.FORWARD),
            ("LoginActivity", "MainActivity", NavigationType.FORWARD),
            ("LoginActivity", "[Implicit] ACTION_SEND", NavigationType.EXTERNAL),
            ("LoginActivity", "ProfileFragment", NavigationType.REPLACE),
            ("LoginActivity", "[DeepLink] shop://cart", NavigationType.DEEP_LINK),
        })

    def test_branch_conditions_and_extras(self) -> None:
        flows = {f.target_screen_id: f for f in detect_navigation({"LoginActivity.java": LOGIN_ACTIVITY})}
        admin = flows["AdminActivity"]
        self.assertTrue(admin.is_conditional)
        self.assertIn(NavigationCondition(CONDITIONAL, "user.isAdmin()", required=True), admin.conditions)
        self.assertIn(NavigationCondition(DATA_EXTRA, '"user_id"=user.getId()'), admin.conditions)
        main = flows["MainActivity"]
        self.assertEqual([c.value for c in main.conditions], ["!(user.isAdmin())"])

    def test_self_loops_are_dropped(self) -> None:
        flows = detect_navigation({"LoginActivity.java": LOGIN_ACTIVITY})
        self.assertNotIn("LoginActivity", [f.target_screen_id for f in flows])


KOTLIN_LIST = """
package com.example.shop

class ProductListActivity : AppCompatActivity() {
    fun openDetail(product: Product) {
        val intent = Intent(this, ProductDetailActivity::class.java)
        intent.putExtra("product_id", product.id)
        startActivity(intent)
    }
}
"""


class KotlinNavigationTests(unittest.TestCase):
    def test_intent_with_extra(self) -> None:
        flows = detect_navigation({"app/src/main/java/ProductListActivity.kt": KOTLIN_LIST})
        self.assertEqual(len(flows), 1)
        flow = flows[0]
        self.assertEqual(flow.source_screen_id, "ProductListActivity")
        self.assertEqual(flow.target_screen_id, "ProductDetailActivity")
        self.assertEqual(flow.conditions,
                         [NavigationCondition(DATA_EXTRA, '"product_id"=product.id', required=False)])
        self.assertFalse(flow.is_conditional)


DART_MAIN = """
void main() {
  runApp(MaterialApp(routes: {
    '/profile': (context) => ProfileScreen(),
  }));
}
"""

DART_HOME = """
class HomeScreen extends StatelessWidget {
  void openSettings(BuildContext context) {
    Navigator.push(context, MaterialPageRoute(builder: (context) => SettingsScreen()));
  }

  void openProfile(BuildContext context) {
    Navigator.pushNamed(context, '/profile');
  }
}
"""


class DartNavigationTests(unittest.TestCase):
    def test_push_and_named_routes(self) -> None:
        components = [_component("HomeScreen", "lib/home_screen.dart", ComponentKind.WIDGET)]
        sources = {"lib/main.dart": DART_MAIN, "lib/home_screen.dart": DART_HOME}
        flows = NavigationFlowDetector(components).detect(sources)
        self.assertEqual(_edges(flows), {
            ("HomeScreen", "SettingsScreen", NavigationType.FORWARD),
            ("HomeScreen", "ProfileScreen", NavigationType.FORWARD),
        })

    def test_route_table(self) -> None:
        self.assertEqual(collect_routes(DART_MAIN, "dart"), {"profile": "ProfileScreen"})


JS_APP = """
export default function App() {
  return (
    <Stack.Navigator>
      <Stack.Screen name="Details" component={DetailsScreen} />
    </Stack.Navigator>
  );
}
"""

JS_HOME = """
export default function HomeScreen({ navigation }) {
  return <Button onPress={() => navigation.navigate('Details', { id: 1 })} />;
}
"""


class JavaScriptNavigationTests(unittest.TestCase):
    def test_react_navigation(self) -> None:
        flows = detect_navigation({"src/App.js": JS_APP, "src/HomeScreen.js": JS_HOME})
        self.assertEqual(_edges(flows), {("HomeScreen", "DetailsScreen", NavigationType.FORWARD)})


NAV_GRAPH = """<?xml version="1.0" encoding="utf-8"?>
<navigation xmlns:android="http://schemas.android.com/apk/res/android"
    xmlns:app="http://schemas.android.com/apk/res-auto"
    android:id="@+id/nav_main"
    app:startDestination="@id/homeFragment">
    <fragment android:id="@+id/homeFragment" android:name="com.example.HomeFragment">
        <action android:id="@+id/action_home_to_detail" app:destination="@id/detailFragment" />
    </fragment>
    <fragment android:id="@+id/detailFragment" android:name="com.example.DetailFragment" />
</navigation>
"""

HOME_FRAGMENT = """
package com.example;

public class HomeFragment extends Fragment {
    void openDetail(View view) {
        Navigation.findNavController(view).navigate(R.id.action_home_to_detail);
    }
}
"""


class NavigationGraphTests(unittest.TestCase):
    def setUp(self) -> None:
        self.components = XmlExtractor().extract(NAV_GRAPH, "app/src/main/res/navigation/nav_main.xml").components

    def test_graph_actions_become_flows(self) -> None:
        flows = NavigationFlowDetector(self.components).graph_flows()
        self.assertEqual(_edges(flows), {("HomeFragment", "DetailFragment", NavigationType.FORWARD)})

    def test_action_ids_resolve_through_the_graph(self) -> None:
        flows = NavigationFlowDetector(self.components).detect({"HomeFragment.java": HOME_FRAGMENT})
        self.assertEqual(len(flows), 1)
        self.assertEqual(flows[0].target_screen_id, "DetailFragment")
        self.assertEqual(flows[0].file_path, "HomeFragment.java")


class DeduplicationTests(unittest.TestCase):
    def test_conditions_are_merged(self) -> None:
        first = NavigationFlow("Cart", "Checkout", line=12,
                               conditions=[NavigationCondition(CONDITIONAL, "loggedIn", required=True)])
        second = NavigationFlow("Cart", "Checkout", line=30,
                                conditions=[NavigationCondition(DATA_EXTRA, "total=sum")])
        replace = NavigationFlow("Cart", "Checkout", NavigationType.REPLACE)

        unique = deduplicate_flows([first, second, replace])

        self.assertEqual(len(unique), 2)
        self.assertIs(unique[0], first)
        self.assertEqual([c.value for c in first.conditions], ["loggedIn", "total=sum"])
        self.assertEqual(first.line, 12)


def test_normalize_route():
    assert normalize_route("/profile/:id?tab=1") == "profile"
    assert normalize_route("/") == "/"
    assert normalize_route("settings/account") == "settings/account"


def test_screen_name_for():
    assert screen_name_for("src/screens/Cart/index.tsx") == "Cart"
    assert screen_name_for("lib/home_screen.dart") == "home_screen"


if __name__ == "__main__":
    unittest.main()
