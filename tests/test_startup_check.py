"""
Tests for the cached startup dependency check.
"""

import pytest

from kaspa_aio.core.services.startup_check import StartupDependencyChecker


class FakeChecker:
    """Records calls; services in ``failing`` have one critical failure."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def validate_multiple_services(self, services, timeout=None, check_connectivity=True):
        self.calls.append((list(services), check_connectivity))
        results = {
            name: {
                "service": name,
                "valid": name not in self.failing,
                "summary": {"critical_failures": 1 if name in self.failing else 0},
            }
            for name in services
        }
        return {"services": results}


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestCheckProfiles:
    """Tests for mapping profiles onto checked services."""

    def test_services_follow_profiles(self, catalog):
        fake = FakeChecker()
        report = StartupDependencyChecker(catalog, checker=fake).check_profiles(
            ["indexer-services", "kaspa-user-applications", "core"],
        )
        assert report["profiles"] == ["core", "kaspa-user-applications", "indexer-services"]
        assert report["services"] == [
            "kaspa-explorer", "kasia-app", "k-social", "simply-kaspa-indexer", "kasia-indexer",
        ]
        assert report["ready"] is True
        assert report["cached"] is False
        assert fake.calls[0][1] is False

    def test_nothing_to_check(self, catalog):
        fake = FakeChecker()
        report = StartupDependencyChecker(catalog, checker=fake).check_profiles(["core"])
        assert report["services"] == []
        assert report["ready"] is True
        assert fake.calls == []

    def test_app_failure_suggests_local_indexers(self, catalog):
        fake = FakeChecker(failing={"kasia-app"})
        report = StartupDependencyChecker(catalog, checker=fake).check_profiles(
            ["core", "kaspa-user-applications"],
        )
        assert report["ready"] is False
        assert report["criticalFailures"] == {"kasia-app": 1}
        assert [r["title"] for r in report["recommendations"]] == ["Run Indexers Locally"]

    def test_indexer_failure_without_node(self, catalog):
        fake = FakeChecker(failing={"kasia-indexer"})
        report = StartupDependencyChecker(catalog, checker=fake).check_profiles(
            ["indexer-services"],
        )
        assert [r["title"] for r in report["recommendations"]] == ["Add a Local Node"]

    def test_indexer_failure_with_node(self, catalog):
        fake = FakeChecker(failing={"kasia-indexer"})
        report = StartupDependencyChecker(catalog, checker=fake).check_profiles(
            ["core", "indexer-services"],
        )
        assert report["ready"] is False
        assert report["recommendations"] == []


class TestCache:
    """Tests for result caching."""

    def test_second_call_is_cached(self, catalog, clock):
        fake = FakeChecker()
        checker = StartupDependencyChecker(catalog, checker=fake, clock=clock)
        checker.check_profiles(["kaspa-user-applications"])
        clock.now += 10
        again = checker.check_profiles(["kaspa-user-applications"])
        assert again["cached"] is True
        assert len(fake.calls) == 1

    def test_order_of_ids_does_not_matter(self, catalog, clock):
        fake = FakeChecker()
        checker = StartupDependencyChecker(catalog, checker=fake, clock=clock)
        checker.check_profiles(["indexer-services", "core"])
        assert checker.check_profiles(["core", "indexer-services"])["cached"] is True

    def test_force_bypasses_cache(self, catalog, clock):
        fake = FakeChecker()
        checker = StartupDependencyChecker(catalog, checker=fake, clock=clock)
        checker.check_profiles(["kaspa-user-applications"])
        report = checker.check_profiles(["kaspa-user-applications"], force=True)
        assert report["cached"] is False
        assert len(fake.calls) == 2

    def test_expired_entry_is_refreshed(self, catalog, clock):
        fake = FakeChecker()
        checker = StartupDependencyChecker(catalog, checker=fake, cache_ttl=60, clock=clock)
        checker.check_profiles(["kaspa-user-applications"])
        clock.now += 61
        assert checker.check_profiles(["kaspa-user-applications"])["cached"] is False
        assert len(fake.calls) == 2

    def test_clear_cache(self, catalog, clock):
        fake = FakeChecker()
        checker = StartupDependencyChecker(catalog, checker=fake, clock=clock)
        checker.check_profiles(["kaspa-user-applications"])
        checker.clear_cache()
        checker.check_profiles(["kaspa-user-applications"])
        assert len(fake.calls) == 2
