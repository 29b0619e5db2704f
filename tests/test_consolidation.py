"""Tests for consolidation opportunities and migration steps."""

from redundancy_audit.consolidation import ConsolidationPlanner, migration_complexity, package_stem
from redundancy_audit.models import (
    EstimatedSavings,
    FunctionalityOverlap,
    MethodInfo,
    MethodOverlap,
    ServiceDuplicate,
    ServiceInfo,
)


def _service(path, loc=100, complexity=10, methods=4):
    return ServiceInfo(
        name="XService",
        path=path,
        group="admin",
        category="utility",
        methods=[
            MethodInfo(f"m{i}", "", [], "void", False, 1, 1, "") for i in range(methods)
        ],
        interfaces=[],
        imports=[],
        exports=[],
        lines_of_code=loc,
        complexity=complexity,
    )


def _duplicate(primary, dup, score):
    return ServiceDuplicate(
        primary_service=primary,
        duplicate_services=[dup],
        similarity_score=score,
        duplicated_methods=["m0"],
        consolidation_strategy="",
        estimated_savings=EstimatedSavings(),
        migration_risk="low",
    )


def _overlap(paths, method_count):
    return FunctionalityOverlap(
        category="utility",
        services=paths,
        overlapping_methods=[MethodOverlap(f"m{i}", paths, 1.0) for i in range(method_count)],
        overlap_percentage=50.0,
        suggested_consolidation="",
        impact_assessment="",
        extraction_target="packages/shared-utility/",
    )


class TestOpportunities:
    def test_merge_from_duplicate(self):
        a, b = _service("/ws/a.service.ts"), _service("/ws/b.service.ts", loc=80, complexity=6)
        planner = ConsolidationPlanner([a, b])

        opps = planner.opportunities([_duplicate(a.path, b.path, 0.95)], [])

        assert len(opps) == 1
        opp = opps[0]
        assert opp.type == "merge_services"
        assert opp.description == "Merge duplicate services: a.service.ts and b.service.ts"
        assert opp.estimated_savings == EstimatedSavings(lines_of_code=80, files=1, complexity=6)
        assert opp.priority == "high"
        assert opp.migration_complexity == "low"

    def test_extract_common_needs_three_methods(self):
        a, b = _service("/ws/a.service.ts"), _service("/ws/b.service.ts")
        planner = ConsolidationPlanner([a, b])

        assert planner.opportunities([], [_overlap([a.path, b.path], 2)]) == []
        opps = planner.opportunities([], [_overlap([a.path, b.path], 3)])

        assert opps[0].type == "extract_common"
        # ratio 3/4 of 200 LOC halved, of 20 complexity at 30%
        assert opps[0].estimated_savings == EstimatedSavings(lines_of_code=75, files=0, complexity=4)
        assert opps[0].priority == "medium"

    def test_sorted_by_priority(self):
        a, b, c = (_service(f"/ws/{n}.service.ts") for n in "abc")
        planner = ConsolidationPlanner([a, b, c])

        opps = planner.opportunities(
            [_duplicate(a.path, b.path, 0.75), _duplicate(a.path, c.path, 0.99)], []
        )

        assert [o.priority for o in opps] == ["high", "medium"]


class TestMigrationSteps:
    def test_merge_and_extract_steps(self):
        a, b = _service("/ws/a.service.ts"), _service("/ws/b.service.ts")
        planner = ConsolidationPlanner([a, b])
        opps = planner.opportunities(
            [_duplicate(a.path, b.path, 0.95)], [_overlap([a.path, b.path], 3)]
        )

        steps = planner.migration_steps(opps)

        assert [s.type for s in steps] == ["create", "move", "delete", "create", "modify"]
        assert [s.order for s in steps] == [1, 2, 3, 4, 5]
        assert [s.dependencies for s in steps] == [[], [1], [2], [], [4]]
        assert steps[0].affected_files == ["packages/shared-a/"]
        assert steps[2].affected_files == [b.path]
        assert steps[3].affected_files == ["packages/shared-utilities/"]


class TestHelpers:
    def test_migration_complexity(self):
        assert [migration_complexity(n) for n in (1, 2, 3, 4, 5)] == ["low", "low", "medium", "medium", "high"]

    def test_package_stem(self):
        assert package_stem("/ws/market-analysis.service.ts") == "market-analysis"
        assert package_stem("/ws/util.ts") == "util"
