"""
External dependency declarations — endpoints a service needs at runtime.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

DependencyType = Literal[
    "api",
    "websocket",
    "rpc",
    "stylesheet",
    "font-cdn",
    "script-cdn",
]


class ExternalDependency(BaseModel):
    """A remote endpoint a service relies on.

    ``critical`` dependencies make the owning service non-functional when
    unreachable; ``internal`` ones live on the Compose network and are
    only resolvable from inside it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    type: DependencyType = "api"
    critical: bool = False
    timeout: float = 5.0
    internal: bool = False
