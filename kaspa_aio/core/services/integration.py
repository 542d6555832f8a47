"""
Integration suggestions offered when a profile joins an installation.

Each suggestion describes how the new profile should wire itself to
what is already running.  Every suggestion marks exactly one option as
recommended and carries the concrete environment values that option
would set.  Nothing here is applied automatically: the wizard shows the
options and the user chooses.
"""

from __future__ import annotations

from collections.abc import Iterable


def _option(
    option_id: str,
    label: str,
    description: str,
    impact: str,
    config: dict[str, str],
    recommended: bool = False,
) -> dict:
    return {
        "id": option_id,
        "label": label,
        "description": description,
        "recommended": recommended,
        "impact": impact,
        "config": dict(config),
    }


def _indexer_node_connection(current: set[str]) -> dict | None:
    if "core" not in current:
        return None
    return {
        "type": "indexer_node_connection",
        "title": "Indexer Node Connection",
        "description": "Configure how indexers connect to your local Kaspa node",
        "required": True,
        "options": [
            _option(
                "local_node",
                "Connect to Local Node",
                "All indexers will connect to your local Kaspa node",
                "Reduces external dependencies, improves performance",
                {
                    "KASPA_NODE_URL": "http://kaspa-node:16110",
                    "USE_LOCAL_NODE": "true",
                    "INDEXER_NODE_TYPE": "local",
                },
                recommended=True,
            ),
            _option(
                "public_network",
                "Use Public Network",
                "Indexers will connect to the public Kaspa network",
                "Maintains current setup, relies on external services",
                {"USE_LOCAL_NODE": "false", "INDEXER_NODE_TYPE": "public"},
            ),
            _option(
                "mixed",
                "Mixed Configuration",
                "Some indexers use the local node, others the public network",
                "Flexible but more complex configuration",
                {
                    "KASIA_INDEXER_NODE": "local",
                    "K_INDEXER_NODE": "public",
                    "SIMPLY_KASPA_INDEXER_NODE": "local",
                },
            ),
        ],
    }


def _app_indexer_connection(current: set[str]) -> dict | None:
    if "indexer-services" not in current:
        return None
    return {
        "type": "app_indexer_connection",
        "title": "Application Indexer Connection",
        "description": "Configure which indexers your applications will use",
        "required": True,
        "options": [
            _option(
                "local_indexers",
                "Use Local Indexers",
                "Applications will connect to your local indexer services",
                "Faster response times, no external API limits",
                {
                    "KASIA_INDEXER_URL": "http://kasia-indexer:3004",
                    "K_INDEXER_URL": "http://k-indexer:3005",
                    "SIMPLY_KASPA_INDEXER_URL": "http://simply-kaspa-indexer:3006",
                    "USE_LOCAL_INDEXERS": "true",
                },
                recommended=True,
            ),
            _option(
                "public_apis",
                "Use Public APIs",
                "Applications will use public indexer APIs",
                "Relies on external services, may have rate limits",
                {
                    "USE_LOCAL_INDEXERS": "false",
                    "KASIA_INDEXER_URL": "https://api.kasia.io",
                    "K_INDEXER_URL": "https://api.k-social.io",
                    "SIMPLY_KASPA_INDEXER_URL": "https://api.simplykaspa.io",
                },
            ),
            _option(
                "mixed_indexers",
                "Mixed Configuration",
                "Some apps use local indexers, others use public APIs",
                "Flexible configuration, partial local optimization",
                {
                    "KASIA_APP_INDEXER": "local",
                    "K_SOCIAL_INDEXER": "local",
                    "KASPA_EXPLORER_INDEXER": "public",
                },
            ),
        ],
    }


def _mining_node_connection(current: set[str]) -> dict | None:
    if "core" in current:
        node_type = "Core"
    elif "archive-node" in current:
        node_type = "Archive"
    else:
        return None
    return {
        "type": "mining_node_connection",
        "title": "Mining Node Connection",
        "description": f"Configure mining connection to your local {node_type} node",
        "required": True,
        "options": [
            _option(
                "local_node",
                f"Connect to Local {node_type} Node",
                f"Mining will connect directly to your local {node_type} node",
                "Direct connection, optimal mining performance",
                {
                    "KASPA_NODE_URL": "http://kaspa-node:16110",
                    "MINING_NODE_TYPE": node_type.lower(),
                    "USE_LOCAL_NODE": "true",
                },
                recommended=True,
            ),
        ],
    }


def _node_service_integration(current: set[str]) -> dict | None:
    has_indexers = "indexer-services" in current
    has_apps = "kaspa-user-applications" in current
    if not (has_indexers or has_apps):
        return None

    affected = []
    if has_indexers:
        affected.append("indexer services")
    if has_apps:
        affected.append("user applications")

    return {
        "type": "node_service_integration",
        "title": "Existing Service Integration",
        "description": (
            f"Configure how your existing {' and '.join(affected)} "
            "will integrate with the new local node"
        ),
        "required": True,
        "options": [
            _option(
                "integrate_all",
                "Integrate with All Services",
                "Reconfigure existing services to use the new local node",
                "Optimizes all services to use the local node, improves performance",
                {
                    "RECONFIGURE_EXISTING": "true",
                    "NODE_INTEGRATION": "full",
                    "UPDATE_INDEXER_CONNECTIONS": "true" if has_indexers else "false",
                    "UPDATE_APP_CONNECTIONS": "true" if has_apps else "false",
                },
                recommended=True,
            ),
            _option(
                "keep_separate",
                "Keep Services Independent",
                "Run the local node independently, existing services keep their configuration",
                "No changes to existing services, less optimization",
                {"NODE_INTEGRATION": "none", "RECONFIGURE_EXISTING": "false"},
            ),
        ],
    }


# profile being added → builders consulted in order
_RULES = {
    "indexer-services": (_indexer_node_connection,),
    "kaspa-user-applications": (_app_indexer_connection,),
    "mining": (_mining_node_connection,),
    "core": (_node_service_integration,),
}


def integration_suggestions(profile_id: str, current_profiles: Iterable[str]) -> list[dict]:
    """Connection options for adding ``profile_id`` next to ``current_profiles``."""
    current = set(current_profiles)
    suggestions = []
    for build in _RULES.get(profile_id, ()):
        suggestion = build(current)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions


def recommended_config(suggestion: dict) -> dict[str, str]:
    """Config payload of the suggestion's recommended option."""
    for option in suggestion.get("options", []):
        if option.get("recommended"):
            return dict(option["config"])
    return {}
