import random
import unittest

from codeatlas.core.entities import Component, ComponentKind, Layer, Reference, UNKNOWN_INJECTION
from codeatlas.core.resolver import SymbolResolver, normalize_reference, resolve_components


def make(component_id: str, file_path: str = "", deps=(), extends=None, index: int = 0) -> Component:
    name = component_id.rsplit(".", 1)[-1]
    component = Component(
        id=component_id,
        name=name,
        kind=ComponentKind.CLASS,
        language="java",
        file_path=file_path or f"src/{name}.java",
        declaration_index=index,
    )
    for dep in deps:
        component.add_dependency(dep)
    if extends:
        component.extends_ref = Reference(name=extends, context="extends")
    return component


def synthetic_project(n: int, deps_per_component: int = 3):
    """n components, each depending on a few others by simple name plus one library type."""
    components = []
    for i in range(n):
        deps = [f"Service{(i * 7 + k + 1) % n}" for k in range(deps_per_component)]
        deps.append("com.squareup.retrofit2.Retrofit")
        components.append(make(f"com.example.m{i % 10}.Service{i}", deps=deps))
    return components


class ResolverTests(unittest.TestCase):
    def test_ids_are_unique_and_first_wins(self) -> None:
        first = make("com.example.User", file_path="a/User.java")
        second = make("com.example.User", file_path="b/User.java")
        for ordering in ([first, second], [second, first]):
            result = SymbolResolver().resolve(ordering)
            self.assertEqual([c.file_path for c in result.components], ["a/User.java"])
            self.assertEqual(len(result.duplicates), 1)
            self.assertEqual(result.duplicates[0].kept_file, "a/User.java")
            self.assertEqual(result.duplicates[0].dropped_file, "b/User.java")
        self.assertEqual(second.id, "com.example.User")

    def test_resolution_strategies(self) -> None:
        user = make("com.example.model.User")
        repo = make("com.example.data.UserRepository",
                    deps=["com.example.model.User", "User?", "List<User>"])
        helper = make("Helper")
        service = make("com.example.Service", deps=["org.other.Helper"])

        resolve_components([user, repo, helper, service])

        targets = [ref.target for ref in repo.dependencies]
        self.assertIs(targets[0], user)          # exact id
        self.assertIs(targets[1], user)          # simple name after normalizing
        self.assertTrue(targets[2].is_external)  # generic container is external
        self.assertEqual(targets[2].id, "List")
        self.assertIs(service.dependencies[0].target, helper)

    def test_unresolved_names_share_one_placeholder(self) -> None:
        a = make("com.example.A", deps=["retrofit2.Retrofit"])
        b = make("com.example.B", deps=["retrofit2.Retrofit", "OkHttpClient"])

        result = resolve_components([a, b])

        self.assertIs(a.dependencies[0].target, b.dependencies[0].target)
        self.assertEqual([p.id for p in result.placeholders], ["OkHttpClient", "retrofit2.Retrofit"])
        placeholder = a.dependencies[0].target
        self.assertTrue(placeholder.is_external)
        self.assertEqual(placeholder.name, "Retrofit")
        self.assertEqual(result.external_count, 3)

    def test_placeholders_get_a_layer_from_their_name(self) -> None:
        a = make("com.example.A", deps=["com.lib.PaymentRepository"])
        result = resolve_components([a])
        self.assertEqual(result.placeholders[0].layer, Layer.DATA)

    def test_resolution_is_monotonic(self) -> None:
        user = make("com.example.User")
        screen = make("com.example.ProfileScreen", deps=["User"])
        resolver = SymbolResolver()
        resolver.resolve([user, screen])
        bound = screen.dependencies[0].target

        impostor = make("org.other.User")
        self.assertFalse(screen.dependencies[0].bind(impostor))
        resolver.resolve_component(screen)
        self.assertIs(screen.dependencies[0].target, bound)

    def test_ambiguous_simple_names_are_flagged(self) -> None:
        a = make("com.one.Session", file_path="a/Session.java")
        b = make("com.two.Session", file_path="b/Session.java")
        client = make("com.example.Client")
        client.add_injection("Session", context="field:session")

        resolve_components([a, b, client])

        self.assertTrue(client.injected_dependencies[0].ambiguous)

    def test_unknown_injection_stays_unbound(self) -> None:
        client = make("com.example.Client")
        client.add_injection(None, context="field:thing")
        result = resolve_components([client])
        self.assertEqual(client.injected_dependencies[0].name, UNKNOWN_INJECTION)
        self.assertIsNone(client.injected_dependencies[0].target)
        self.assertEqual(result.placeholders, [])

    def test_lookup_count_grows_linearly(self) -> None:
        counts = {}
        for n in (100, 200, 400):
            components = synthetic_project(n)
            references = sum(len(c.dependencies) for c in components)
            result = resolve_components(components)
            # a bounded number of index probes per reference
            self.assertLessEqual(result.lookups, 4 * references)
            counts[n] = result.lookups
        self.assertLess(counts[400] / counts[100], 4.5)
        self.assertLess(counts[200] / counts[100], 2.25)

    def test_input_order_does_not_change_bindings(self) -> None:
        def bindings(components):
            resolve_components(components)
            return sorted((c.id, ref.name, ref.target_id) for c in components for ref in c.dependencies)

        expected = bindings(synthetic_project(50))
        shuffled = synthetic_project(50)
        random.Random(7).shuffle(shuffled)
        self.assertEqual(bindings(shuffled), expected)


def test_normalize_reference():
    assert normalize_reference("List<User>") == "List"
    assert normalize_reference("User?") == "User"
    assert normalize_reference("User[]") == "User"
    assert normalize_reference("") == ""


if __name__ == "__main__":
    unittest.main()
