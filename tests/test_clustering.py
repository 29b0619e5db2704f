"""Tests for single-linkage clustering and consolidation recommendations."""

import pytest

from redundancy_audit.clustering import (
    ClusterEngine,
    consolidation_potential,
    dominant_cluster_type,
)
from redundancy_audit.models import ClusterType, ServiceCluster, ServiceInfo


def _service(name, category="utility", loc=100, complexity=5):
    return ServiceInfo(
        name=name,
        path=f"/ws/{name}.service.ts",
        group="admin",
        category=category,
        methods=[],
        interfaces=[],
        imports=[],
        exports=[],
        lines_of_code=loc,
        complexity=complexity,
    )


class TestClusterEngine:
    def test_groups_similar_services(self):
        services = [_service("a"), _service("b"), _service("c")]
        matrix = [
            [1.0, 0.9, 0.1],
            [0.9, 1.0, 0.2],
            [0.1, 0.2, 1.0],
        ]

        clusters = ClusterEngine().cluster(services, matrix)

        assert len(clusters) == 1
        assert clusters[0].services == [services[0].path, services[1].path]
        assert clusters[0].average_similarity == pytest.approx(0.9)

    def test_no_singletons(self):
        services = [_service("a"), _service("b")]
        matrix = [[1.0, 0.6], [0.6, 1.0]]

        assert ClusterEngine().cluster(services, matrix) == []

    def test_members_link_to_seed(self):
        services = [_service(n) for n in "abcd"]
        matrix = [
            [1.0, 0.7, 0.65, 0.1],
            [0.7, 1.0, 0.2, 0.9],
            [0.65, 0.2, 1.0, 0.1],
            [0.1, 0.9, 0.1, 1.0],
        ]

        clusters = ClusterEngine().cluster(services, matrix)

        assert len(clusters) == 1
        members = clusters[0].services
        assert members == [services[0].path, services[1].path, services[2].path]
        for path in members:
            i = [s.path for s in services].index(path)
            others = [[s.path for s in services].index(p) for p in members if p != path]
            assert any(matrix[i][j] > 0.6 for j in others)

    def test_cluster_type_and_potential(self):
        services = [
            _service("a", category="openai", loc=600, complexity=60),
            _service("b", category="openai", loc=600, complexity=60),
        ]
        matrix = [[1.0, 0.8], [0.8, 1.0]]

        cluster = ClusterEngine().cluster(services, matrix)[0]

        assert cluster.cluster_type == ClusterType.OPENAI_SERVICES
        # size and complexity terms are capped at 1
        assert cluster.consolidation_potential == pytest.approx(0.4 * 0.8 + 0.3 + 0.3)


class TestHelpers:
    def test_potential_formula(self):
        members = [_service("a", loc=250, complexity=10), _service("b", loc=250, complexity=20)]

        assert consolidation_potential(members, 0.7) == pytest.approx(0.28 + 0.15 + 0.09)

    @pytest.mark.parametrize(
        "categories,expected",
        [
            (["market-analysis", "market-analysis", "openai"], ClusterType.MARKET_ANALYSIS),
            (["location", "location"], ClusterType.LOCATION_SERVICES),
            (["strategic", "expansion"], ClusterType.UTILITY_SERVICES),
        ],
    )
    def test_dominant_type(self, categories, expected):
        members = [_service(str(i), category=c) for i, c in enumerate(categories)]

        assert dominant_cluster_type(members) == expected


class TestRecommendations:
    def _cluster(self, potential, size=2):
        return ServiceCluster(
            services=[f"/ws/{i}.ts" for i in range(size)],
            average_similarity=0.85,
            cluster_type=ClusterType.UTILITY_SERVICES,
            consolidation_potential=potential,
        )

    def test_threshold_and_priority(self):
        recs = ClusterEngine.recommend([self._cluster(0.4), self._cluster(0.6), self._cluster(0.9)])

        assert [r.priority for r in recs] == ["medium", "high"]
        assert recs[0].description == "Merge utility_services services with 85.0% similarity"
        assert "Eliminate duplicate code" in recs[0].benefits
        assert "Potential breaking changes" in recs[0].risks

    def test_effort_by_size(self):
        recs = ClusterEngine.recommend([self._cluster(0.9, size=3), self._cluster(0.9, size=4)])

        assert [r.effort for r in recs] == ["medium", "high"]

    def test_build_matrix_payload(self):
        services = [_service("a", loc=2000, complexity=100), _service("b", loc=2000, complexity=100)]
        matrix = [[1.0, 0.95], [0.95, 1.0]]

        result = ClusterEngine().build(services, matrix)

        assert result.services == ["a", "b"]
        assert len(result.clusters) == 1
        assert len(result.recommendations) == 1
        assert result.recommendations[0].priority == "high"

    def test_potential_just_over_threshold_is_recommended(self):
        services = [_service("a", loc=250, complexity=12), _service("b", loc=250, complexity=12)]
        matrix = [[1.0, 0.6951], [0.6951, 1.0]]

        result = ClusterEngine().build(services, matrix)

        assert result.clusters[0].consolidation_potential == pytest.approx(0.50004)
        assert result.clusters[0].consolidation_potential > 0.5
        assert [r.priority for r in result.recommendations] == ["medium"]
