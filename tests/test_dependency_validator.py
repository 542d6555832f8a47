"""
Tests for the dependency validator — selection, addition, removal, graph.
"""

import pytest

from kaspa_aio.core.config.loader import EngineSettings
from kaspa_aio.core.models.validation import (
    ALREADY_INSTALLED,
    CIRCULAR_DEPENDENCY,
    CONFLICT,
    DATA_LOSS,
    DEPENDENT_PROFILE,
    LAST_NODE_REMOVAL,
    MISSING_PREREQUISITE,
    NOT_INSTALLED,
    PORT_COLLISION,
    PREREQUISITE_BREAK,
    RESOURCE_SHORTFALL,
    SHARED_SERVICE,
)
from kaspa_aio.core.services.catalog import UnknownProfileError
from kaspa_aio.core.services.dependency_validator import DependencyValidator


@pytest.fixture
def validator(catalog) -> DependencyValidator:
    return DependencyValidator(catalog)


class TestSelection:
    """Tests for validating a fresh selection."""

    def test_valid_full_node(self, validator):
        result = validator.validate_selection(["core", "kaspa-user-applications", "indexer-services"])
        assert result.valid
        assert result.errors == []
        assert result.startup_order[:2] == ["kaspa-node", "wallet"]
        assert result.requirements.min_memory == 16

    def test_empty_selection_is_valid(self, validator):
        result = validator.validate_selection([])
        assert result.valid
        assert result.resolved_profiles == []

    def test_mining_alone_misses_prerequisite(self, validator):
        result = validator.validate_selection(["mining"])
        assert not result.valid
        assert result.error_types() == [MISSING_PREREQUISITE]
        assert result.errors[0].prerequisites == ["core", "archive-node"]

    def test_port_collision_between_profiles(self, make_catalog):
        cat = make_catalog(
            {"id": "a", "services": [{"name": "timescaledb", "ports": [5432]}]},
            {"id": "b", "services": [{"name": "postgres", "ports": [5432]}]},
        )
        result = DependencyValidator(cat).validate_selection(["a", "b"])
        assert not result.valid
        assert result.error_types() == [PORT_COLLISION]
        assert result.errors[0].port == 5432
        assert "5432" in result.errors[0].message

    def test_conflict_reported_with_ports(self, validator):
        result = validator.validate_selection(["core", "archive-node"])
        assert not result.valid
        assert CONFLICT in result.error_types()
        assert PORT_COLLISION in result.error_types()
        titles = [r.title for r in result.recommendations]
        assert "Resolve Profile Conflicts" in titles

    def test_cycle(self, make_catalog):
        cat = make_catalog(
            {"id": "a", "dependencies": ["b"]},
            {"id": "b", "dependencies": ["a"]},
        )
        result = DependencyValidator(cat).validate_selection(["a"])
        assert not result.valid
        assert result.has_dependency_issues
        assert result.dependency_issues[0]["cycle"] == ["a", "b", "a"]
        assert result.recommendations[0].priority == "critical"

    def test_memory_warning_above_threshold(self, catalog):
        validator = DependencyValidator(catalog, settings=EngineSettings(high_memory_threshold_gb=10))
        result = validator.validate_selection(["core", "indexer-services"])
        assert result.valid
        assert result.warning_types() == [RESOURCE_SHORTFALL]
        assert result.warnings[0].severity == "medium"

    def test_unknown_profile_raises(self, validator):
        with pytest.raises(UnknownProfileError):
            validator.validate_selection(["core", "ghost"])

    def test_report(self, validator):
        report = validator.get_validation_report(["mining", "core"])
        assert report["profiles"] == ["core", "mining"]
        assert report["summary"]["valid"] is True
        assert report["startupOrder"] == ["kaspa-node", "wallet", "kaspa-stratum"]
        assert report["graph"]["metadata"]["prerequisiteCount"] == 1


class TestAddition:
    """Tests for adding a profile to an installation."""

    def test_dependency_prerequisite_loop_blocks_addition(self, make_catalog):
        cat = make_catalog(
            {"id": "app", "dependencies": ["api"]},
            {"id": "api", "prerequisites": ["app"]},
        )
        validator = DependencyValidator(cat)
        result = validator.validate_addition("app", ["api"])
        assert not result.can_add
        assert CIRCULAR_DEPENDENCY in result.error_types()

        selection = validator.validate_selection(["app"])
        assert not selection.valid
        assert CIRCULAR_DEPENDENCY in [e.type for e in selection.errors]

    def test_mining_without_node(self, validator):
        result = validator.validate_addition("mining", [])
        assert not result.can_add
        assert MISSING_PREREQUISITE in result.error_types()
        issue = result.errors[result.error_types().index(MISSING_PREREQUISITE)]
        assert issue.prerequisites == ["core", "archive-node"]

    def test_mining_with_archive_node(self, validator):
        result = validator.validate_addition("mining", ["archive-node"])
        assert result.can_add
        suggestion = result.integration["suggestions"][0]
        assert suggestion["type"] == "mining_node_connection"
        assert "Archive" in suggestion["description"]

    def test_apps_next_to_local_indexers(self, validator):
        result = validator.validate_addition(
            "kaspa-user-applications", ["core", "indexer-services"],
        )
        assert result.can_add
        assert result.errors == []

        suggestion = result.integration["suggestions"][0]
        assert suggestion["type"] == "app_indexer_connection"
        recommended = [o for o in suggestion["options"] if o["recommended"]]
        assert len(recommended) == 1
        assert recommended[0]["id"] == "local_indexers"
        assert recommended[0]["config"]["KASIA_INDEXER_URL"] == "http://kasia-indexer:3004"

        titles = [r.title for r in result.recommendations]
        assert "Review Integration Options" in titles
        assert titles[-1] == "Backup Configuration Before Adding"

    def test_resource_impact(self, validator):
        result = validator.validate_addition("indexer-services", ["core"])
        impact = result.integration["resourceImpact"]["additional"]
        assert impact == {"minCpu": 4, "minMemory": 8, "minDisk": 500}
        assert result.integration["newServices"][0] == "timescaledb"

    def test_already_installed(self, validator):
        result = validator.validate_addition("core", ["core"])
        assert not result.can_add
        assert result.error_types() == [ALREADY_INSTALLED]

    @pytest.mark.parametrize("adding, installed", [
        ("archive-node", ["core"]),
        ("core", ["archive-node"]),
    ])
    def test_conflict_either_direction(self, validator, adding, installed):
        result = validator.validate_addition(adding, installed)
        assert not result.can_add
        assert CONFLICT in result.error_types()

    def test_dependencies_auto_included(self, make_catalog):
        cat = make_catalog(
            {"id": "base", "services": [{"name": "db"}]},
            {"id": "app", "dependencies": ["base"], "services": [{"name": "web"}]},
        )
        result = DependencyValidator(cat).validate_addition("app", [])
        assert result.can_add
        assert result.integration["autoIncluded"] == ["base"]
        assert result.startup_order == ["db", "web"]

    def test_conflict_through_auto_included_dependency(self, make_catalog):
        cat = make_catalog(
            {"id": "old"},
            {"id": "lib", "conflicts": ["old"]},
            {"id": "app", "dependencies": ["lib"]},
        )
        result = DependencyValidator(cat).validate_addition("app", ["old"])
        assert not result.can_add
        assert result.errors[0].profiles == ["lib", "old"]

    def test_existing_collisions_not_blamed_on_addition(self, make_catalog):
        cat = make_catalog(
            {"id": "a", "services": [{"name": "x", "ports": [80]}]},
            {"id": "b", "services": [{"name": "y", "ports": [80]}]},
            {"id": "c", "services": [{"name": "z", "ports": [81]}]},
        )
        result = DependencyValidator(cat).validate_addition("c", ["a", "b"])
        assert result.can_add


class TestRemoval:
    """Tests for removing a profile from an installation."""

    def test_last_node(self, validator):
        result = validator.validate_removal("core", ["core"])
        assert not result.can_remove
        assert result.error_types() == [LAST_NODE_REMOVAL]
        assert result.errors[0].severity == "critical"
        assert result.errors[0].alternatives == ["archive-node"]
        assert result.recommendations[0].title == "Install Alternative Node Profile"

    def test_prerequisite_break(self, validator):
        result = validator.validate_removal("core", ["core", "mining"])
        assert not result.can_remove
        assert result.error_types() == [PREREQUISITE_BREAK, LAST_NODE_REMOVAL]
        assert result.prerequisite_issues[0]["profile"] == "mining"
        assert result.errors[0].alternatives == ["archive-node"]

    def test_other_node_keeps_mining_satisfied(self, validator):
        result = validator.validate_removal("core", ["core", "archive-node", "mining"])
        assert result.can_remove
        assert result.remaining_profiles == ["archive-node", "mining"]

    def test_not_installed(self, validator):
        result = validator.validate_removal("mining", ["core"])
        assert not result.can_remove
        assert result.error_types() == [NOT_INSTALLED]

    def test_hard_dependents_block(self, make_catalog):
        cat = make_catalog({"id": "base"}, {"id": "app", "dependencies": ["base"]})
        result = DependencyValidator(cat).validate_removal("base", ["base", "app"])
        assert not result.can_remove
        assert result.error_types() == [DEPENDENT_PROFILE]
        assert result.dependent_profiles == ["app"]
        assert result.errors[0].dependentProfiles == ["app"]

    def test_shared_services_keep_running(self, make_catalog):
        cat = make_catalog(
            {"id": "p1", "services": [{"name": "shared-db"}, {"name": "a"}]},
            {"id": "p2", "services": [{"name": "shared-db"}, {"name": "b"}]},
        )
        result = DependencyValidator(cat).validate_removal("p1", ["p1", "p2"])
        assert result.can_remove
        assert result.warning_types() == [SHARED_SERVICE]
        assert result.shared_services == ["shared-db"]
        assert result.services_to_stop == ["a"]
        assert result.service_impacts == [{"service": "shared-db", "sharedWith": ["p2"]}]

    def test_data_impact(self, validator):
        result = validator.validate_removal("indexer-services", ["core", "indexer-services"])
        assert result.can_remove
        assert DATA_LOSS in result.warning_types()
        assert result.data_impact[0]["name"] == "Indexer Databases"
        assert result.data_impact[0]["critical"] is True
        assert result.recommendations[-1].title == "Backup Data Before Removal"

    def test_remove_then_add_round_trip(self, validator):
        current = ["core", "kaspa-user-applications", "indexer-services"]
        removal = validator.validate_removal("indexer-services", current)
        assert removal.can_remove
        addition = validator.validate_addition("indexer-services", removal.remaining_profiles)
        assert addition.can_add


class TestGraph:
    """Tests for the dependency graph view."""

    def test_nodes_and_edges(self, make_catalog):
        cat = make_catalog(
            {"id": "base"},
            {"id": "alt"},
            {"id": "app", "dependencies": ["base"], "prerequisites": ["alt"],
             "conflicts": ["legacy"]},
            {"id": "legacy"},
        )
        graph = DependencyValidator(cat).build_dependency_graph(["app", "alt", "legacy"])
        nodes = {n.id: n for n in graph.nodes}
        assert set(nodes) == {"base", "alt", "app", "legacy"}
        assert nodes["base"].required and not nodes["base"].selected
        assert nodes["app"].selected

        edges = {(e.source, e.target, e.type) for e in graph.edges}
        assert edges == {
            ("app", "base", "dependency"),
            ("app", "alt", "prerequisite"),
            ("app", "legacy", "conflict"),
        }
        assert graph.metadata == {
            "profileCount": 4,
            "dependencyCount": 1,
            "prerequisiteCount": 1,
            "conflictCount": 1,
        }

    def test_absent_prerequisite_has_no_edge(self, validator):
        graph = validator.build_dependency_graph(["mining"])
        assert graph.edges == []
        assert graph.metadata["profileCount"] == 1
