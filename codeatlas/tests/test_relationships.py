import unittest

from codeatlas.core import (
    Component, ComponentKind, Reference, RelationType, Relationship, RelationshipGraph,
    build_component_graph, build_relationships, classify_all, resolve_components,
)
from codeatlas.core.entities import UNKNOWN_INJECTION_NODE


def make(component_id: str, deps=(), extends=None, implements=(), injected=()) -> Component:
    name = component_id.rsplit(".", 1)[-1]
    component = Component(id=component_id, name=name, kind=ComponentKind.CLASS,
                          language="kotlin", file_path=f"app/src/main/java/{name}.kt")
    for dep in deps:
        component.add_dependency(dep)
    for ref in implements:
        component.implements_refs.append(Reference(name=ref, context="implements"))
    for ref in injected:
        component.add_injection(ref, context="constructor")
    if extends:
        component.extends_ref = Reference(name=extends, context="extends")
    return component


class RelationshipBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.base = make("app.BaseActivity")
        self.listener = make("app.OnRefresh")
        self.user = make("app.model.User")
        self.repo = make("app.data.UserRepository")
        self.detail = make("app.DetailActivity")
        self.home = make(
            "app.HomeActivity",
            deps=["User", "androidx.recyclerview.RecyclerView"],
            extends="BaseActivity",
            implements=["OnRefresh"],
            injected=["UserRepository", None],
        )
        self.home.add_navigation_target("DetailActivity")
        components = [self.base, self.listener, self.user, self.repo, self.detail, self.home]
        self.resolution = resolve_components(components)
        self.graph = build_relationships(self.resolution.components)

    def edges(self, rel_type: RelationType):
        return sorted((r.source, r.target) for r in self.graph.get_by_type(rel_type))

    def test_inheritance_edges(self) -> None:
        self.assertEqual(self.edges(RelationType.EXTENDS), [("app.HomeActivity", "app.BaseActivity")])
        self.assertEqual(self.edges(RelationType.IMPLEMENTS), [("app.HomeActivity", "app.OnRefresh")])

    def test_dependency_edges_include_externals(self) -> None:
        deps = self.graph.get_by_type(RelationType.DEPENDS_ON)
        by_target = {r.target: r for r in deps}
        self.assertFalse(by_target["app.model.User"].metadata["external"])
        self.assertTrue(by_target["androidx.recyclerview.RecyclerView"].metadata["external"])

    def test_injection_edges(self) -> None:
        self.assertEqual(self.edges(RelationType.INJECTED),
                         [("app.HomeActivity", "app.data.UserRepository")])
        self.assertEqual(self.edges(RelationType.AUTOWIRED),
                         [("app.HomeActivity", UNKNOWN_INJECTION_NODE)])

    def test_navigation_edges_use_component_ids(self) -> None:
        self.assertEqual(self.edges(RelationType.NAVIGATES_TO),
                         [("app.HomeActivity", "app.DetailActivity")])

    def test_ambiguous_injection_is_autowired(self) -> None:
        first = make("one.Store")
        first.file_path = "one/Store.kt"
        second = make("two.Store")
        second.file_path = "two/Store.kt"
        client = make("app.Checkout", injected=["Store"])
        graph = build_relationships(resolve_components([first, second, client]).components)
        autowired = graph.get_by_type(RelationType.AUTOWIRED)
        self.assertEqual(len(autowired), 1)
        self.assertEqual(graph.get_by_type(RelationType.INJECTED), [])

    def test_statistics(self) -> None:
        stats = self.graph.statistics()
        self.assertEqual(stats["EXTENDS"], 1)
        self.assertEqual(stats["DEPENDS_ON"], 2)
        self.assertEqual(stats["total"], len(self.graph))


class RelationshipGraphTests(unittest.TestCase):
    def test_duplicate_edges_are_dropped(self) -> None:
        graph = RelationshipGraph()
        rel = Relationship("a", "b", RelationType.DEPENDS_ON)
        self.assertTrue(graph.add(rel))
        self.assertFalse(graph.add(Relationship("a", "b", RelationType.DEPENDS_ON, weight=0.1)))
        self.assertTrue(graph.add(Relationship("a", "b", RelationType.INJECTED)))
        self.assertEqual(len(graph), 2)
        self.assertEqual(graph.edge_set(), {("a", "b", "DEPENDS_ON"), ("a", "b", "INJECTED")})

    def test_dict_round_trip(self) -> None:
        rel = Relationship("a", "b", RelationType.NAVIGATES_TO, context="intent")
        self.assertEqual(Relationship.from_dict(rel.to_dict()), rel)


class ComponentGraphTests(unittest.TestCase):
    def setUp(self) -> None:
        api = make("app.UserApi")
        repo = make("app.UserRepository", deps=["UserApi"])
        view_model = make("app.HomeViewModel", deps=["UserRepository"])
        screen = make("app.HomeScreen", deps=["HomeViewModel"])
        components = classify_all(resolve_components([api, repo, view_model, screen]).components)
        relationships = build_relationships(components)
        self.graph = build_component_graph(components, relationships)

    def test_dependencies_and_dependents(self) -> None:
        self.assertEqual(self.graph.get_dependencies("app.UserRepository"), ["app.UserApi"])
        self.assertEqual(self.graph.get_dependents("app.UserRepository"), ["app.HomeViewModel"])
        self.assertEqual(self.graph.get_dependencies("missing"), [])

    def test_impact_assessment(self) -> None:
        impact = self.graph.assess_impact("app.UserApi")
        self.assertEqual(impact.direct_dependents, ["app.UserRepository"])
        self.assertEqual(impact.indirect_dependents, ["app.HomeScreen", "app.HomeViewModel"])
        self.assertEqual(impact.affected_screens, ["app.HomeScreen"])
        self.assertEqual(impact.blast_radius, 3)
        self.assertAlmostEqual(impact.risk_score, 0.5)

    def test_unknown_target_has_no_impact(self) -> None:
        impact = self.graph.assess_impact("app.Nowhere")
        self.assertEqual(impact.blast_radius, 0)
        self.assertEqual(impact.risk_score, 0.0)

    def test_statistics_and_cycles(self) -> None:
        stats = self.graph.get_statistics()
        self.assertEqual(stats["nodes"], 4)
        self.assertEqual(stats["edges"], 3)
        self.assertEqual(stats["edge_types"], {"DEPENDS_ON": 3})
        self.assertEqual(self.graph.find_cycles(), [])


if __name__ == "__main__":
    unittest.main()
