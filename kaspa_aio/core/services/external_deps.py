"""
External dependency checks — can a service reach what it needs?

Read-only network probes with a bounded timeout each:

    api / rpc / stylesheet / font-cdn / script-cdn   HEAD request, 2xx-3xx ok
    websocket                                        DNS lookup, then HEAD on
                                                     the http(s) equivalent;
                                                     404 also counts as up

Probes for independent dependencies run concurrently on a thread pool
and are joined before a result is returned.  There are no retries.
Results are advisory: an unreachable dependency never blocks anything
unless the caller asks for ``require_critical``.
"""

from __future__ import annotations

import logging
import socket
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeout

from kaspa_aio.core.models.dependency import ExternalDependency
from kaspa_aio.core.models.validation import EXTERNAL_UNREACHABLE, Issue
from kaspa_aio.core.services.catalog import ProfileCatalog

logger = logging.getLogger(__name__)

USER_AGENT = "Kaspa-AIO-Dependency-Validator/1.0"

# Endpoints used to tell "no internet at all" apart from "one service down"
CONNECTIVITY_ENDPOINTS = (
    "https://www.google.com",
    "https://www.cloudflare.com",
    "https://api.kaspa.org/info",
)


# ── Probes ─────────────────────────────────────────────────────


def _error_kind(exc: BaseException) -> str:
    """Map a probe exception to a guidance key."""
    if isinstance(exc, urllib.error.HTTPError):
        if exc.code in (401, 403):
            return "auth"
        if exc.code >= 500:
            return "server"
        return "http"
    reason = getattr(exc, "reason", exc)
    if isinstance(reason, socket.gaierror) or isinstance(exc, socket.gaierror):
        return "dns"
    if isinstance(reason, (socket.timeout, TimeoutError)) or isinstance(exc, TimeoutError):
        return "timeout"
    if "timed out" in str(exc).lower():
        return "timeout"
    return "connection"


def probe_http(url: str, timeout: float = 5, ok_statuses: Iterable[int] = ()) -> dict:
    """HEAD a URL.

    Returns::

        {"reachable": True, "url": "https://...", "status": 200, "latency_ms": 42}
        or
        {"reachable": False, "url": "https://...", "status": 503,
         "error": "...", "error_kind": "server", "latency_ms": 40}
    """
    extra_ok = set(ok_statuses)
    start = time.monotonic()

    try:
        req = urllib.request.Request(
            url,
            method="HEAD",
            headers={"User-Agent": USER_AGENT},
        )
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = resp.getcode()
            elapsed = int((time.monotonic() - start) * 1000)
            return {
                "reachable": 200 <= status < 400 or status in extra_ok,
                "url": url,
                "status": status,
                "latency_ms": elapsed,
            }
    except urllib.error.HTTPError as exc:
        elapsed = int((time.monotonic() - start) * 1000)
        if exc.code in extra_ok:
            return {"reachable": True, "url": url, "status": exc.code, "latency_ms": elapsed}
        return {
            "reachable": False,
            "url": url,
            "status": exc.code,
            "error": f"HTTP {exc.code}: {exc.reason}",
            "error_kind": _error_kind(exc),
            "latency_ms": elapsed,
        }
    except Exception as exc:
        elapsed = int((time.monotonic() - start) * 1000)
        return {
            "reachable": False,
            "url": url,
            "status": None,
            "error": str(exc)[:200],
            "error_kind": _error_kind(exc),
            "latency_ms": elapsed,
        }


def _resolve(host: str, port: int, timeout: float) -> None:
    """getaddrinfo bounded by ``timeout``; raises TimeoutError when it runs over."""
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dns")
    try:
        pool.submit(socket.getaddrinfo, host, port).result(timeout=timeout)
    except FuturesTimeout as exc:
        raise TimeoutError(f"DNS lookup for {host} timed out after {timeout}s") from exc
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def probe_websocket(url: str, timeout: float = 5) -> dict:
    """Check a ws:// or wss:// endpoint without opening a WebSocket.

    Resolves the host, then HEADs the http(s) equivalent.  Many WebSocket
    endpoints answer 404 to plain HTTP, so 404 counts as reachable.
    The lookup and the request share the one ``timeout`` budget.
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    secure = parsed.scheme == "wss"
    port = parsed.port or (443 if secure else 80)
    start = time.monotonic()

    try:
        _resolve(host, port, timeout)
    except TimeoutError as exc:
        return {
            "reachable": False,
            "url": url,
            "status": None,
            "error": str(exc),
            "error_kind": "timeout",
            "latency_ms": int((time.monotonic() - start) * 1000),
        }
    except OSError as exc:
        return {
            "reachable": False,
            "url": url,
            "status": None,
            "error": f"DNS lookup failed for {host}: {exc}",
            "error_kind": "dns",
            "latency_ms": int((time.monotonic() - start) * 1000),
        }

    http_url = urllib.parse.urlunparse(
        parsed._replace(scheme="https" if secure else "http")
    )
    remaining = max(timeout - (time.monotonic() - start), 0.1)
    result = probe_http(http_url, timeout=remaining, ok_statuses=(404,))
    result["url"] = url
    return result


def probe(dependency: ExternalDependency, timeout: float | None = None) -> dict:
    """Run the probe appropriate for the dependency type."""
    effective = timeout if timeout is not None else dependency.timeout
    if dependency.type == "websocket":
        return probe_websocket(dependency.url, timeout=effective)
    return probe_http(dependency.url, timeout=effective)


def check_internet_connectivity(timeout: float = 5) -> dict:
    """Probe a few well-known endpoints; connected if any answers."""
    results = [probe_http(url, timeout=timeout) for url in CONNECTIVITY_ENDPOINTS]
    return {
        "connected": any(r["reachable"] for r in results),
        "results": results,
    }


# ── Guidance ───────────────────────────────────────────────────

_ERROR_SUGGESTIONS: dict[str, list[str]] = {
    "timeout": [
        "Check your internet connection",
        "Verify firewall settings allow outbound HTTPS traffic",
        "Try increasing the probe timeout",
    ],
    "dns": [
        "Check DNS settings on this host",
        "Try a public DNS server such as 1.1.1.1 or 8.8.8.8",
        "Verify the hostname is spelled correctly",
    ],
    "server": [
        "The remote service is having problems. Try again later",
    ],
    "auth": [
        "The endpoint rejected the request. Check API credentials or access restrictions",
    ],
}

_TYPE_FALLBACKS: dict[str, list[str]] = {
    "stylesheet": ["Host the stylesheets locally"],
    "font-cdn": ["Host the fonts locally"],
    "script-cdn": ["Host the scripts locally"],
    "websocket": ["Check that proxies and firewalls allow WebSocket connections"],
    "rpc": ["Make sure the kaspa-node service is running and synced"],
}


def build_guidance(service: str, dependency: ExternalDependency, result: dict) -> dict:
    """Severity, impact and remediation hints for a failed probe."""
    kind = result.get("error_kind", "connection")
    suggestions = list(
        _ERROR_SUGGESTIONS.get(kind, [f"Check network connectivity to {dependency.url}"])
    )

    if dependency.type == "api" and dependency.critical:
        fallback = [
            "Switch to local indexer services instead of public APIs",
            "Enable the indexer-services profile",
        ]
    else:
        fallback = list(_TYPE_FALLBACKS.get(dependency.type, []))

    if dependency.critical:
        impact = f"{service} will not work correctly without {dependency.name}"
    else:
        impact = f"{service} may render or behave in a degraded way without {dependency.name}"

    return {
        "severity": "critical" if dependency.critical else "warning",
        "impact": impact,
        "suggestions": suggestions,
        "fallback": fallback,
    }


# ── Checker ────────────────────────────────────────────────────


class ExternalDependencyChecker:
    """Probe the declared external dependencies of services.

    Args:
        catalog: Source of per-service dependency declarations.
        timeout: Deadline per probe overriding the declared one.
        max_workers: Thread pool size for concurrent probes.
    """

    def __init__(
        self,
        catalog: ProfileCatalog,
        timeout: float | None = None,
        max_workers: int = 8,
    ):
        self.catalog = catalog
        self.timeout = timeout
        self.max_workers = max_workers

    def validate_service_dependencies(
        self,
        service: str,
        timeout: float | None = None,
        require_critical: bool = False,
    ) -> dict:
        """Probe every external dependency of ``service``.

        ``valid`` is False iff a critical dependency is unreachable.
        ``blocking`` is only set when the caller passes ``require_critical``.
        """
        deps = self.catalog.external_dependencies(service)
        deadline = timeout if timeout is not None else self.timeout

        probed = self._probe_all(deps, deadline)
        entries = []
        warnings = []
        for dep, result in zip(deps, probed):
            entry = {
                "name": dep.name,
                "url": dep.url,
                "type": dep.type,
                "critical": dep.critical,
                "internal": dep.internal,
                "available": result["reachable"],
                "status": result.get("status"),
                "latency_ms": result.get("latency_ms"),
                "error": result.get("error"),
            }
            if not result["reachable"]:
                entry["guidance"] = build_guidance(service, dep, result)
                warnings.append(Issue(
                    type=EXTERNAL_UNREACHABLE,
                    message=f"{dep.name} ({dep.url}) is unreachable",
                    severity="high" if dep.critical else "low",
                    service=service,
                    dependency=dep.name,
                ).to_dict())
            entries.append(entry)

        unavailable = [e for e in entries if not e["available"]]
        critical_failures = [e for e in unavailable if e["critical"]]
        valid = not critical_failures

        if not entries:
            message = "No external dependencies"
        elif critical_failures:
            message = f"{len(critical_failures)} critical dependencies unavailable"
        elif unavailable:
            message = f"{len(unavailable)} optional dependencies unavailable"
        else:
            message = "All dependencies available"

        logger.info("Dependency check for %s: %s", service, message)
        return {
            "service": service,
            "valid": valid,
            "blocking": require_critical and not valid,
            "dependencies": entries,
            "warnings": warnings,
            "summary": {
                "total": len(entries),
                "available": len(entries) - len(unavailable),
                "unavailable": len(unavailable),
                "critical_failures": len(critical_failures),
            },
            "message": message,
        }

    def validate_multiple_services(
        self,
        services: Iterable[str],
        timeout: float | None = None,
        check_connectivity: bool = True,
    ) -> dict:
        """Check several services at once plus general internet reachability."""
        names = list(dict.fromkeys(services))
        results: dict[str, dict] = {}

        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(names) or 1))) as pool:
            futures = {
                pool.submit(self.validate_service_dependencies, name, timeout): name
                for name in names
            }
            for future in as_completed(futures):
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    logger.warning("Dependency check for %s failed: %s", name, e)
                    results[name] = {
                        "service": name,
                        "valid": False,
                        "dependencies": [],
                        "summary": {"total": 0, "available": 0, "unavailable": 0,
                                    "critical_failures": 0},
                        "message": f"Check failed: {e}",
                    }

        ordered = {name: results[name] for name in names}
        connectivity = (
            check_internet_connectivity(timeout or 5) if check_connectivity else None
        )
        failing = [name for name, r in ordered.items() if not r["valid"]]

        return {
            "valid": not failing,
            "services": ordered,
            "connectivity": connectivity,
            "summary": {
                "total": len(names),
                "valid": len(names) - len(failing),
                "failing": failing,
            },
            "recommendations": _overall_recommendations(ordered, connectivity),
        }

    def _probe_all(self, deps: list[ExternalDependency], timeout: float | None) -> list[dict]:
        if not deps:
            return []
        results: list[dict | None] = [None] * len(deps)
        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(deps)))) as pool:
            futures = {pool.submit(probe, dep, timeout): i for i, dep in enumerate(deps)}
            for future in as_completed(futures):
                i = futures[future]
                try:
                    results[i] = future.result()
                except Exception as e:
                    logger.warning("Probe of %s failed: %s", deps[i].url, e)
                    results[i] = {
                        "reachable": False,
                        "url": deps[i].url,
                        "error": str(e)[:200],
                        "error_kind": "connection",
                    }
        return [r for r in results if r is not None]


def _overall_recommendations(results: dict[str, dict], connectivity: dict | None) -> list[dict]:
    recs = []
    if connectivity is not None and not connectivity["connected"]:
        recs.append({
            "priority": "critical",
            "title": "No Internet Connectivity",
            "message": "None of the reference endpoints answered. Services relying on "
                       "public APIs will not work; consider running local indexers and a local node.",
        })
    for name, result in results.items():
        if result["summary"].get("critical_failures"):
            recs.append({
                "priority": "high",
                "title": f"Critical Dependencies Unavailable for {name}",
                "message": result["message"],
            })
    return recs
