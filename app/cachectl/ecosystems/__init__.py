"""Ecosystem strategies.

One strategy per supported ecosystem, looked up with :func:`get_strategy`.
"""

from cachectl.ecosystems.base import EcosystemStrategy
from cachectl.ecosystems.go import GoEcosystem
from cachectl.ecosystems.node import NodeEcosystem
from cachectl.ecosystems.python import PythonEcosystem
from cachectl.ecosystems.rust import RustEcosystem
from cachectl.models.project import Ecosystem

STRATEGIES: dict[Ecosystem, EcosystemStrategy] = {
    Ecosystem.GO: GoEcosystem(),
    Ecosystem.NODE: NodeEcosystem(),
    Ecosystem.PYTHON: PythonEcosystem(),
    Ecosystem.RUST: RustEcosystem(),
}


def get_strategy(ecosystem: Ecosystem) -> EcosystemStrategy:
    """Return the strategy registered for an ecosystem."""
    return STRATEGIES[ecosystem]


__all__ = [
    "STRATEGIES",
    "EcosystemStrategy",
    "GoEcosystem",
    "NodeEcosystem",
    "PythonEcosystem",
    "RustEcosystem",
    "get_strategy",
]
