"""Tests for hierarchy resolution and cycle detection."""

from __future__ import annotations

from cma_core.enums import ComponentKind
from cma_core.hierarchy import HierarchyErrorKind, HierarchyResolution, find_cycles, resolve_hierarchy
from cma_core.mesh import Component, Domain, Mesh, Organization, Product
from cma_core.snapshot import MeshSnapshot

_DEPLOYMENT = {"environment": "production"}


def _org(entity_id: str = "acme", **kw: object) -> Organization:
    return Organization(id=entity_id, name=entity_id, deployment=_DEPLOYMENT, **kw)


def _mesh(entity_id: str = "mesh", **kw: object) -> Mesh:
    return Mesh(id=entity_id, name=entity_id, deployment=_DEPLOYMENT, **kw)


def _domain(entity_id: str = "sales", **kw: object) -> Domain:
    return Domain(id=entity_id, name=entity_id, deployment=_DEPLOYMENT, **kw)


def _product(entity_id: str = "orders", **kw: object) -> Product:
    return Product(id=entity_id, name=entity_id, deployment=_DEPLOYMENT, **kw)


def _component(entity_id: str, **kw: object) -> Component:
    return Component(id=entity_id, name=entity_id, kind=ComponentKind.TRANSFORMATION, deployment=_DEPLOYMENT, **kw)


def _full_chain() -> MeshSnapshot:
    return MeshSnapshot(
        organizations=[_org()],
        meshes=[_mesh(organizationId="acme")],
        domains=[_domain(meshId="mesh")],
        products=[_product(domainId="sales")],
        components=[_component("ingest", productId="orders")],
    )


def _kinds(resolution: HierarchyResolution) -> list[HierarchyErrorKind]:
    return [e.kind for e in resolution.errors]


# ── find_cycles ─────────────────────────────────────────────────


class TestFindCycles:
    def test_acyclic(self) -> None:
        assert find_cycles(["a", "b", "c"], {"a": ["b"], "b": ["c"]}) == []

    def test_triangle(self) -> None:
        assert find_cycles(["a", "b", "c"], {"a": ["b"], "b": ["c"], "c": ["a"]}) == [["a", "b", "c"]]

    def test_cycle_rotated_to_smallest_id(self) -> None:
        assert find_cycles(["x", "b"], {"x": ["b"], "b": ["x"]}) == [["b", "x"]]

    def test_self_loop(self) -> None:
        assert find_cycles(["a"], {"a": ["a"]}) == [["a"]]

    def test_disjoint_cycles(self) -> None:
        cycles = find_cycles(["a", "b", "c", "d"], {"a": ["b"], "b": ["a"], "c": ["d"], "d": ["c"]})
        assert cycles == [["a", "b"], ["c", "d"]]

    def test_unknown_successors_ignored(self) -> None:
        assert find_cycles(["a"], {"a": ["ghost"], "ghost": ["a"]}) == []

    def test_diamond_is_not_a_cycle(self) -> None:
        assert find_cycles(["a", "b", "c", "d"], {"a": ["b", "c"], "b": ["d"], "c": ["d"]}) == []


# ── Parent links ────────────────────────────────────────────────


class TestResolveHierarchy:
    def test_full_chain_ancestors(self) -> None:
        resolution = resolve_hierarchy(_full_chain())
        assert resolution.errors == []
        assert resolution.ancestors_of("ingest") == ["acme", "mesh", "sales", "orders"]
        assert resolution.ancestors_of("orders") == ["acme", "mesh", "sales"]
        assert resolution.ancestors_of("acme") == []

    def test_children(self) -> None:
        resolution = resolve_hierarchy(_full_chain())
        assert resolution.children["acme"] == ["mesh"]
        assert resolution.children["orders"] == ["ingest"]

    def test_standalone_product_has_no_ancestors(self) -> None:
        resolution = resolve_hierarchy(MeshSnapshot(products=[_product()]))
        assert resolution.errors == []
        assert resolution.ancestors_of("orders") == []

    def test_dangling_organization_reference(self) -> None:
        snapshot = MeshSnapshot(meshes=[_mesh(organizationId="missing")], domains=[_domain(meshId="mesh")])
        resolution = resolve_hierarchy(snapshot)

        assert _kinds(resolution) == [HierarchyErrorKind.DANGLING_REFERENCE]
        error = resolution.errors[0]
        assert error.entity_id == "mesh"
        assert error.reference == "missing"
        assert resolution.ancestors_of("mesh") == []
        assert resolution.ancestors_of("sales") == ["mesh"]
        assert resolution.affected == {"mesh"}

    def test_reference_to_wrong_kind_is_dangling(self) -> None:
        snapshot = MeshSnapshot(organizations=[_org()], domains=[_domain(meshId="acme")])
        resolution = resolve_hierarchy(snapshot)
        assert _kinds(resolution) == [HierarchyErrorKind.DANGLING_REFERENCE]
        assert "organization" in resolution.errors[0].message

    def test_duplicate_ids_across_collections(self) -> None:
        snapshot = MeshSnapshot(products=[_product("x")], components=[_component("x")])
        resolution = resolve_hierarchy(snapshot)
        assert _kinds(resolution) == [HierarchyErrorKind.DUPLICATE_ID]
        assert "x" in resolution.affected


# ── Templates and dependencies ──────────────────────────────────


class TestSideGraphs:
    def test_template_instance_is_valid(self) -> None:
        snapshot = MeshSnapshot(components=[_component("tpl"), _component("inst", template="tpl")])
        assert resolve_hierarchy(snapshot).errors == []

    def test_chained_template(self) -> None:
        snapshot = MeshSnapshot(
            components=[_component("base"), _component("mid", template="base"), _component("leaf", template="mid")]
        )
        resolution = resolve_hierarchy(snapshot)
        assert _kinds(resolution) == [HierarchyErrorKind.CHAINED_TEMPLATE]
        assert resolution.errors[0].entity_id == "leaf"

    def test_dangling_template(self) -> None:
        snapshot = MeshSnapshot(components=[_component("inst", template="ghost")])
        resolution = resolve_hierarchy(snapshot)
        assert _kinds(resolution) == [HierarchyErrorKind.DANGLING_TEMPLATE]

    def test_cyclic_template(self) -> None:
        snapshot = MeshSnapshot(components=[_component("a", template="b"), _component("b", template="a")])
        resolution = resolve_hierarchy(snapshot)
        cyclic = [e for e in resolution.errors if e.kind == HierarchyErrorKind.CYCLIC_TEMPLATE]
        assert len(cyclic) == 1
        assert cyclic[0].cycle == ["a", "b"]

    def test_component_dependency_cycle(self) -> None:
        snapshot = MeshSnapshot(
            components=[_component("c1", dependsOn=["c2"]), _component("c2", dependsOn=["c1"]), _component("c3")]
        )
        resolution = resolve_hierarchy(snapshot)
        assert _kinds(resolution) == [HierarchyErrorKind.CYCLIC_DEPENDENCY]
        assert resolution.errors[0].cycle == ["c1", "c2"]
        assert resolution.affected == {"c1", "c2"}

    def test_product_dependency_cycle(self) -> None:
        snapshot = MeshSnapshot(products=[_product("p1", dependsOn=["p2"]), _product("p2", dependsOn=["p1"])])
        resolution = resolve_hierarchy(snapshot)
        assert _kinds(resolution) == [HierarchyErrorKind.CYCLIC_DEPENDENCY]

    def test_dangling_dependency_is_not_a_hierarchy_error(self) -> None:
        snapshot = MeshSnapshot(products=[_product("p1", dependsOn=["ghost"])])
        assert resolve_hierarchy(snapshot).errors == []
