"""Tests for the overlay builder and the layered layout."""

from datetime import datetime

from safehandle_analyzer.analysis.layout import LayeredLayout, compute_layout
from safehandle_analyzer.analysis.overlay import MAX_VISUAL_DEPTH, OverlayBuilder, merge_results
from safehandle_analyzer.models import AnalysisResult, ChainLink, RootKind, RootPath

# ── Helpers ───────────────────────────────────────────────────

def _make_path(root_address, chain, kind=RootKind.STRONG, number=1, **flags):
    links = tuple(
        ChainLink(address=address, type_name=f"T{address:x}", depth=depth)
        for depth, address in enumerate(chain)
    )
    return RootPath(
        root_kind=kind,
        root_address=root_address,
        path_number=number,
        chain=links,
        **flags,
    )


def _make_result(target, *paths, type_name="Microsoft.Win32.SafeHandles.SafeFileHandle"):
    return AnalysisResult(
        type_name=type_name,
        object_address=target,
        analysis_date=datetime(2026, 1, 1),
        root_paths=tuple(paths),
    )


def _scenario():
    """Root(Strong, 0x100) -> 0xBBB -> 0xAAA."""
    return _make_result(0xAAA, _make_path(0x100, [0xBBB, 0xAAA]))


# ── Overlay ───────────────────────────────────────────────────

class TestOverlayScenario:
    def test_single_path_nodes_and_edges(self):
        graph = merge_results([_scenario()])

        assert set(graph.nodes) == {0xAAA, 0xBBB, 0x100}
        assert graph.nodes[0xAAA].depth == 0
        assert graph.nodes[0xAAA].is_target
        assert graph.nodes[0xBBB].depth == 1
        assert graph.nodes[0x100].depth == 2
        assert graph.nodes[0x100].is_root
        assert graph.nodes[0x100].type_name == "[Strong]"
        assert not graph.nodes[0xBBB].is_root
        assert [(e.source, e.target) for e in graph.edges] == [(0xBBB, 0xAAA), (0x100, 0xBBB)]

    def test_layout_puts_target_at_bottom_and_root_at_top(self):
        graph = merge_results([_scenario()])
        positions = compute_layout(graph)
        ys = {address: pos.y for address, pos in positions.items()}

        assert ys[0x100] == min(ys.values())
        assert ys[0xAAA] == max(ys.values())
        assert ys[0x100] < ys[0xBBB] < ys[0xAAA]


class TestOverlayMerge:
    def test_edges_are_deduplicated(self):
        a = _make_result(0xA1, _make_path(0x100, [0xB, 0xA1]))
        b = _make_result(0xA1, _make_path(0x100, [0xB, 0xA1], number=1))
        graph = merge_results([a, b])
        pairs = [(e.source, e.target) for e in graph.edges]
        assert pairs.count((0xB, 0xA1)) == 1
        assert pairs.count((0x100, 0xB)) == 1
        assert len(graph.edges) == 2

    def test_reference_count_counts_every_sighting(self):
        a = _make_result(0xA1, _make_path(0x100, [0xB, 0xA1]))
        b = _make_result(0xA2, _make_path(0x100, [0xB, 0xA2]))
        graph = merge_results([a, b])
        assert graph.nodes[0xB].reference_count == 2
        assert graph.nodes[0x100].reference_count == 2
        assert graph.nodes[0xA1].reference_count == 1

    def test_depth_is_minimum_over_all_results(self):
        # 0xC is two hops from 0xA1 but one hop from 0xA2
        a = _make_result(0xA1, _make_path(0x100, [0xC, 0xB, 0xA1]))
        b = _make_result(0xA2, _make_path(0x200, [0xC, 0xA2]))
        graph = merge_results([a, b])
        assert graph.nodes[0xC].depth == 1
        assert graph.nodes[0xB].depth == 1
        assert graph.nodes[0x100].depth == 3
        assert graph.nodes[0x200].depth == 2

    def test_depth_does_not_depend_on_merge_order(self):
        a = _make_result(0xA1, _make_path(0x100, [0xC, 0xB, 0xA1]))
        b = _make_result(0xA2, _make_path(0x200, [0xC, 0xA2]))
        forward = merge_results([a, b])
        backward = merge_results([b, a])
        assert {k: n.depth for k, n in forward.nodes.items()} == {
            k: n.depth for k, n in backward.nodes.items()
        }

    def test_every_target_stays_at_depth_zero(self):
        # 0xA1 is also an intermediate object on 0xA2's chain
        a = _make_result(0xA1, _make_path(0x100, [0xA1]))
        b = _make_result(0xA2, _make_path(0x200, [0xA1, 0xA2]))
        for order in ([a, b], [b, a]):
            graph = merge_results(order)
            assert graph.nodes[0xA1].depth == 0
            assert graph.nodes[0xA2].depth == 0

    def test_truncated_chain_still_anchors_on_target(self):
        path = _make_path(0x100, [0x1, 0x2], has_circular_dependency=True)
        graph = merge_results([_make_result(0xAAA, path)])
        assert graph.nodes[0xAAA].depth == 0
        assert graph.nodes[0x2].depth == 1
        assert graph.has_edge(0x2, 0xAAA)

    def test_truncated_chain_marks_last_hop_inferred(self):
        path = _make_path(0x100, [0x1, 0x2], max_depth_reached=True)
        graph = merge_results([_make_result(0xAAA, path)])
        inferred = {(e.source, e.target) for e in graph.edges if e.inferred}
        assert inferred == {(0x2, 0xAAA)}

    def test_traced_edge_replaces_inferred_one(self):
        cut = _make_result(0xAAA, _make_path(0x100, [0x2], has_circular_dependency=True))
        full = _make_result(0xAAA, _make_path(0x200, [0x2, 0xAAA]))
        graph = merge_results([cut, full])
        assert [(e.source, e.target, e.inferred) for e in graph.edges if e.target == 0xAAA] == [
            (0x2, 0xAAA, False),
        ]

    def test_complete_chain_has_no_inferred_edges(self):
        graph = merge_results([_scenario()])
        assert not any(e.inferred for e in graph.edges)

    def test_root_with_empty_chain_links_directly_to_target(self):
        graph = merge_results([_make_result(0xAAA, _make_path(0x100, []))])
        assert graph.nodes[0x100].depth == 1
        assert graph.has_edge(0x100, 0xAAA)

    def test_orphaned_result_adds_nothing(self):
        graph = merge_results([_make_result(0xAAA)])
        assert len(graph) == 0
        assert graph.edges == []

    def test_nodes_beyond_visual_depth_are_dropped(self):
        chain = list(range(1, 31)) + [0xAAA]
        graph = merge_results([_make_result(0xAAA, _make_path(0x100, chain))])
        assert max(n.depth for n in graph.nodes.values()) == MAX_VISUAL_DEPTH
        assert len(graph) == MAX_VISUAL_DEPTH + 1
        assert 0x100 not in graph.nodes

    def test_incremental_add_matches_batch(self):
        results = [
            _make_result(0xA1, _make_path(0x100, [0xB, 0xA1])),
            _make_result(0xA2, _make_path(0x100, [0xB, 0xA2])),
        ]
        builder = OverlayBuilder()
        for r in results:
            builder.add(r)
        batch = merge_results(results)
        assert builder.graph.nodes == batch.nodes
        assert builder.graph.edges == batch.edges

    def test_self_reference_adds_no_edge(self):
        graph = merge_results([_make_result(0xAAA, _make_path(0x1, [0x1, 0xAAA]))])
        assert not graph.has_edge(0x1, 0x1)


# ── Layout ────────────────────────────────────────────────────

class TestLayout:
    def test_rows_and_coordinates(self):
        positions = compute_layout(merge_results([_scenario()]))
        # one node per row: (2000 - 230) // 2
        assert positions[0x100].x == positions[0xBBB].x == positions[0xAAA].x == 885
        assert [positions[a].y for a in (0x100, 0xBBB, 0xAAA)] == [50, 150, 250]

    def test_row_is_ordered_by_reference_count(self):
        results = [
            _make_result(0xA1, _make_path(0x100, [0xB1, 0xA1])),
            _make_result(0xA2, _make_path(0x200, [0xB2, 0xA2])),
            _make_result(0xA3, _make_path(0x200, [0xB2, 0xA3])),
        ]
        graph = merge_results(results)
        positions = compute_layout(graph)
        # 0xB2 is referenced twice and comes first despite being seen later
        assert positions[0xB2].x < positions[0xB1].x
        assert positions[0xB2].y == positions[0xB1].y

    def test_ties_keep_first_sighting_order(self):
        results = [_make_result(t, _make_path(0x100 + t, [t])) for t in (0xA1, 0xA2, 0xA3)]
        positions = compute_layout(merge_results(results))
        xs = [positions[t].x for t in (0xA1, 0xA2, 0xA3)]
        assert xs == sorted(xs)
        assert xs[1] - xs[0] == 230

    def test_wide_row_starts_at_margin(self):
        results = [_make_result(t, _make_path(0x1000 + t, [t])) for t in range(1, 13)]
        positions = compute_layout(merge_results(results))
        row = sorted(positions[t].x for t in range(1, 13))
        assert row[0] == 50
        assert row[-1] == 50 + 11 * 230

    def test_layout_is_deterministic(self):
        results = [
            _make_result(0xA1, _make_path(0x100, [0xB, 0xA1])),
            _make_result(0xA2, _make_path(0x200, [0xB, 0xC, 0xA2])),
        ]
        assert compute_layout(merge_results(results)) == compute_layout(merge_results(results))

    def test_canvas_size(self):
        layout = LayeredLayout()
        positions = layout.layout(merge_results([_scenario()]))
        assert layout.canvas_size(positions) == (885 + 180 + 100, 250 + 40 + 100)
        assert layout.canvas_size({}) == (0, 0)
