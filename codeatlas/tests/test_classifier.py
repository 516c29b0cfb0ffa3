import unittest

from codeatlas.core import (
    Category, Component, ComponentKind, Layer, Reference, categorize_components,
    category_distribution, classify, classify_all, is_screen, layer_from_name,
)


def make(name: str, kind: ComponentKind = ComponentKind.CLASS, extends=None, **kwargs) -> Component:
    component = Component(id=f"com.example.{name}", name=name, kind=kind,
                          language="java", file_path=f"{name}.java", **kwargs)
    if extends:
        component.extends_ref = Reference(name=extends, context="extends")
    return component


class LayerTests(unittest.TestCase):
    def check(self, component: Component, layer: Layer, category: Category) -> None:
        classify(component)
        self.assertEqual(component.layer, layer, component.name)
        self.assertEqual(component.category, category, component.name)

    def test_name_rules(self) -> None:
        self.check(make("LoginActivity"), Layer.UI, Category.UI)
        self.check(make("UserRepository"), Layer.DATA, Category.BUSINESS_LOGIC)
        self.check(make("LoginViewModel"), Layer.BUSINESS_LOGIC, Category.BUSINESS_LOGIC)
        self.check(make("UserEntity"), Layer.DOMAIN, Category.DATA_MODEL)
        self.check(make("AppNavigator"), Layer.UNKNOWN, Category.NAVIGATION)
        self.check(make("Foo"), Layer.UNKNOWN, Category.UNKNOWN)

    def test_superclass_beats_name(self) -> None:
        self.check(make("Home", extends="BaseFragment"), Layer.UI, Category.UNKNOWN)
        self.check(make("Checkout", extends="androidx.lifecycle.ViewModel"),
                   Layer.BUSINESS_LOGIC, Category.UNKNOWN)

    def test_explicit_layer_wins(self) -> None:
        component = make("SyncRepository", explicit_layer=Layer.UI)
        classify(component)
        self.assertEqual(component.layer, Layer.UI)

    def test_layouts_are_ui(self) -> None:
        self.check(make("activity_main", kind=ComponentKind.LAYOUT), Layer.UI, Category.UI)

    def test_di_wiring_is_business_logic(self) -> None:
        component = make("AppComponent", di_info={"role": "dagger_component"})
        self.check(component, Layer.UNKNOWN, Category.BUSINESS_LOGIC)

    def test_classification_is_idempotent(self) -> None:
        components = [make(n) for n in ("ProfileScreen", "OrderDao", "CartPresenter", "Order")]
        first = [(c.layer, c.category) for c in classify_all(components)]
        second = [(c.layer, c.category) for c in classify_all(components)]
        self.assertEqual(first, second)

    def test_placeholder_names(self) -> None:
        self.assertEqual(layer_from_name("retrofit2.PaymentService"), Layer.DATA)
        self.assertEqual(layer_from_name("List<String>"), Layer.UNKNOWN)


class CategorizeTests(unittest.TestCase):
    def test_every_bucket_is_present(self) -> None:
        components = classify_all([make("ProfileScreen"), make("Order"), make("Foo")])
        buckets = categorize_components(components)
        self.assertEqual(set(buckets), set(Category))
        self.assertEqual(sum(len(items) for items in buckets.values()), 3)
        self.assertEqual(buckets[Category.NAVIGATION], [])

    def test_distribution(self) -> None:
        components = classify_all([make("ProfileScreen"), make("CartScreen"), make("UserDto")])
        distribution = category_distribution(components)
        self.assertEqual(distribution["UI"], 2)
        self.assertEqual(distribution["DATA_MODEL"], 1)
        self.assertEqual(distribution["UNKNOWN"], 0)


def test_is_screen():
    assert is_screen(make("CheckoutActivity"))
    assert is_screen(make("Home", extends="Fragment"))
    assert is_screen(make("homeFragment", kind=ComponentKind.NAV_DESTINATION))
    assert is_screen(make("Main", component_type="Screen"))
    assert not is_screen(make("UserRepository"))
    assert not is_screen(make("activity_main", kind=ComponentKind.LAYOUT))


if __name__ == "__main__":
    unittest.main()
