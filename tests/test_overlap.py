"""Tests for functionality overlap and cross-group duplication."""

from redundancy_audit.overlap import (
    CrossGroupDuplicationAnalyzer,
    FunctionalityOverlapAnalyzer,
    kebab,
    method_differences,
)

MARKET = '''import {{ Injectable }} from '@nestjs/common';

interface Report {{
  score: number;
}}

export class MarketAnalysisService {{
  {async_kw}analyze(region: string): {ret} {{
    return region;
  }}

  score(value: number): number {{
    return value;
  }}

  {extra}
}}
'''


def _market(async_kw="", ret="string", extra=""):
    return MARKET.format(async_kw=async_kw, ret=ret, extra=extra)


class TestFunctionalityOverlap:
    def test_overlap_within_category(self, make_service):
        admin = make_service(_market(), path="/ws/apps/admin/market-analysis.service.ts", group="admin")
        bff = make_service(
            _market(async_kw="async ", ret="Promise<string>"),
            path="/ws/apps/bff/market-analysis.service.ts",
            group="bff",
        )

        overlaps = FunctionalityOverlapAnalyzer().analyze([admin, bff])

        assert len(overlaps) == 1
        overlap = overlaps[0]
        assert overlap.category == "market-analysis"
        assert [m.method_name for m in overlap.overlapping_methods] == ["analyze", "score"]
        analyze = overlap.overlapping_methods[0]
        assert "Different return types" in analyze.differences
        assert "Mixed async/sync implementations" in analyze.differences
        assert overlap.overlapping_methods[1].similarity_score == 1.0
        assert overlap.overlap_percentage == 100.0
        assert overlap.suggested_consolidation == (
            "Create shared market-analysis package and remove duplicates from admin and bff"
        )
        assert overlap.extraction_target == "packages/shared-market-analysis/"
        assert overlap.impact_assessment.startswith("Low impact")

    def test_single_service_categories_skipped(self, make_service):
        admin = make_service(_market(), path="/ws/market-analysis.service.ts")
        other = make_service(_market(), path="/ws/location.service.ts")

        assert FunctionalityOverlapAnalyzer().analyze([admin, other]) == []

    def test_same_group_merge_suggestion(self, make_service):
        a = make_service(_market(), path="/ws/a/market.service.ts", group="admin")
        b = make_service(
            _market(extra="extra(): void {\n    return;\n  }"),
            path="/ws/b/market.service.ts",
            group="admin",
        )

        overlap = FunctionalityOverlapAnalyzer().analyze([a, b])[0]

        assert overlap.suggested_consolidation == "Merge 2 market-analysis services into single optimized service"
        assert overlap.overlap_percentage == 80.0


class TestCrossGroupDuplication:
    def test_methods_and_interfaces(self, make_service):
        admin = make_service(_market(), path="/ws/apps/admin/market-analysis.service.ts", group="admin")
        bff = make_service(_market(), path="/ws/apps/bff/market-analysis.service.ts", group="bff")

        results = CrossGroupDuplicationAnalyzer().analyze([admin, bff])

        assert len(results) == 1
        dup = results[0]
        assert [(e.type, e.name) for e in dup.duplicated_elements] == [
            ("method", "analyze"),
            ("method", "score"),
            ("interface", "Report"),
        ]
        assert dup.duplicated_elements[2].similarity == 0.9
        assert dup.approach == "shared_package"
        assert dup.estimated_effort == "medium"
        assert dup.shared_package_name == "shared-market-analysis"
        assert dup.shared_dependencies == ["@nestjs/common"]

    def test_dissimilar_signatures_excluded(self, make_service):
        admin = make_service(_market(), path="/ws/admin/market.service.ts", group="admin")
        bff = make_service(
            _market(async_kw="async ", ret="Promise<string>"),
            path="/ws/bff/market.service.ts",
            group="bff",
        )

        dup = CrossGroupDuplicationAnalyzer().analyze([admin, bff])[0]

        assert "analyze" not in [e.name for e in dup.duplicated_elements]
        assert dup.approach == "split_responsibility"
        assert dup.estimated_effort == "low"

    def test_same_group_pairs_ignored(self, make_service):
        a = make_service(_market(), path="/ws/a.service.ts", group="admin")
        b = make_service(_market(), path="/ws/b.service.ts", group="admin")

        assert CrossGroupDuplicationAnalyzer().analyze([a, b]) == []


class TestHelpers:
    def test_kebab(self):
        assert kebab("MarketAnalysis") == "market-analysis"

    def test_no_differences(self, make_service):
        service = make_service(_market(), path="/ws/a.service.ts")

        assert method_differences(service.methods[:1] * 2) == []
