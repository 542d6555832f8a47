"""
Tests for resource aggregation, sufficiency checks and template ranking.
"""

from kaspa_aio.core.models.resources import ResourceRequirement, SystemResources
from kaspa_aio.core.services.resources import (
    ResourceAggregator,
    check_sufficiency,
    detect_system_resources,
    recommend_templates,
)


class TestAggregate:
    """Tests for summing profile requirements."""

    def test_core_and_indexers(self, catalog):
        req = ResourceAggregator(catalog).aggregate(["indexer-services", "core"])
        assert req.profiles == ["core", "indexer-services"]
        assert (req.min_cpu, req.min_memory, req.min_disk) == (6, 12, 600)
        assert (req.recommended_cpu, req.recommended_memory, req.recommended_disk) == (12, 24, 2500)

    def test_additive_over_disjoint_sets(self, catalog):
        agg = ResourceAggregator(catalog)
        a = agg.aggregate(["core", "mining"])
        b = agg.aggregate(["indexer-services", "developer-mode"])
        both = agg.aggregate(["core", "mining", "indexer-services", "developer-mode"])
        for field in ("min_cpu", "min_memory", "min_disk", "recommended_cpu",
                      "recommended_memory", "recommended_disk"):
            assert getattr(both, field) == getattr(a, field) + getattr(b, field)

    def test_empty(self, catalog):
        req = ResourceAggregator(catalog).aggregate([])
        assert req == ResourceRequirement()

    def test_additional(self, catalog):
        impact = ResourceAggregator(catalog).additional(["core"], ["core", "indexer-services"])
        assert impact["additional"] == {"minCpu": 4, "minMemory": 8, "minDisk": 500}
        assert impact["current"]["minMemory"] == 4
        assert impact["new"]["minMemory"] == 12


class TestSufficiency:
    """Tests for comparing a host with a requirement."""

    REQ = ResourceRequirement(
        min_cpu=2, min_memory=4, min_disk=100,
        recommended_cpu=4, recommended_memory=8, recommended_disk=500,
    )

    def test_comfortable(self):
        report = check_sufficiency(self.REQ, SystemResources(cpu=8, memory=16, disk=1000))
        assert report.sufficient
        assert report.shortfalls == []
        assert report.warnings == []

    def test_below_minimum(self):
        report = check_sufficiency(self.REQ, SystemResources(cpu=8, memory=2, disk=1000))
        assert not report.sufficient
        assert len(report.shortfalls) == 1
        assert report.shortfalls[0]["metric"] == "memory"
        assert report.shortfalls[0]["severity"] == "high"

    def test_between_minimum_and_recommended(self):
        report = check_sufficiency(self.REQ, SystemResources(cpu=3, memory=16, disk=1000))
        assert report.sufficient
        assert [w["metric"] for w in report.warnings] == ["cpu"]
        assert report.warnings[0]["severity"] == "medium"


class TestRecommendTemplates:
    """Tests for template ranking."""

    BIG = SystemResources(cpu=16, memory=64, disk=5000)

    def test_use_case_match_ranks_first(self, catalog):
        ranked = recommend_templates(catalog.templates, self.BIG, "mining")
        assert ranked[0]["template"] == "mining-setup"
        assert ranked[0]["score"] == 12
        assert "Perfect match for your use case" in ranked[0]["reasons"]

    def test_ties_keep_catalog_order(self, catalog):
        ranked = recommend_templates(catalog.templates, self.BIG, "mining")
        rest = [r["template"] for r in ranked[1:]]
        assert rest == [
            "beginner-setup",
            "full-node",
            "home-node",
            "public-node",
            "developer-setup",
        ]

    def test_personal_prefers_beginner(self, catalog):
        ranked = recommend_templates(catalog.templates, self.BIG, "personal")
        assert ranked[0]["template"] == "beginner-setup"
        assert ranked[0]["score"] == 14
        assert ranked[1]["template"] == "home-node"

    def test_insufficient_memory(self, catalog):
        ranked = recommend_templates(catalog.templates, SystemResources(cpu=1, memory=2, disk=10))
        assert all(r["suitability"] == "insufficient" for r in ranked)
        assert not any(r["recommended"] for r in ranked)


class TestDetection:
    """Tests for host resource detection."""

    def test_snapshot_non_negative(self, tmp_path):
        snapshot = detect_system_resources(str(tmp_path))
        assert snapshot.cpu >= 0
        assert snapshot.memory >= 0
        assert snapshot.disk >= 0

    def test_missing_path_reports_zero_disk(self, tmp_path):
        snapshot = detect_system_resources(str(tmp_path / "does-not-exist"))
        assert snapshot.disk == 0
