"""Ordered collection of replicas driven by a replica-exchange run."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

from ..errors import ConfigurationError
from ..units import same_units

if TYPE_CHECKING:
    from ..forcefields import ForceField, Interaction
    from ..reporters import ExchangeReporter, Reporter
    from ..system import System


class ReplicaSystem:
    """
    Replicas of one physical system plus an optional exchange reporter.

    Every replica owns its particle state, force field and neighbor list;
    no two replicas share mutable arrays. All replicas must agree on atom
    count, dimensionality and units.

    Attributes:
        replicas: Replica systems, in index order.
        exchange_reporter: Receives every successful exchange.
    """

    def __init__(
        self,
        replicas: Sequence[System],
        exchange_reporter: ExchangeReporter | None = None,
    ) -> None:
        """
        Initialize replica system.

        Args:
            replicas: Replica systems.
            exchange_reporter: Reporter for successful exchanges.

        Raises:
            ConfigurationError: If the replicas are inconsistent.
        """
        self.replicas: list[System] = list(replicas)
        self.exchange_reporter = exchange_reporter
        self._validate()

    def _validate(self) -> None:
        if not self.replicas:
            raise ConfigurationError("ReplicaSystem needs at least one replica")

        first = self.replicas[0]
        for index, replica in enumerate(self.replicas[1:], start=1):
            for attribute in ("n_atoms", "n_dims", "force_units", "energy_units"):
                value = getattr(replica, attribute)
                expected = getattr(first, attribute)
                if attribute.endswith("_units"):
                    matches = same_units(value, expected)
                else:
                    matches = value == expected
                if not matches:
                    raise ConfigurationError(
                        f"Replica {index} has {attribute}={value} "
                        f"but replica 0 has {expected}"
                    )

        arrays = [r.positions for r in self.replicas] + [r.velocities for r in self.replicas]
        if len({id(a) for a in arrays}) != len(arrays):
            raise ConfigurationError("Replicas must not share position or velocity arrays")

    @classmethod
    def from_system(
        cls,
        system: System,
        n_replicas: int,
        force_fields: Sequence[ForceField | Iterable[Interaction]] | None = None,
        reporters: Sequence[Iterable[Reporter]] | None = None,
        exchange_reporter: ExchangeReporter | None = None,
    ) -> ReplicaSystem:
        """
        Build replicas as deep copies of a template system.

        Args:
            system: Template system.
            n_replicas: Number of replicas.
            force_fields: Per-replica interactions (Hamiltonian exchange).
                          Defaults to copies of the template's.
            reporters: Per-replica reporters. Defaults to none.
            exchange_reporter: Reporter for successful exchanges.
        """
        if n_replicas < 1:
            raise ConfigurationError(f"n_replicas must be positive, got {n_replicas}")
        for name, values in (("force_fields", force_fields), ("reporters", reporters)):
            if values is not None and len(values) != n_replicas:
                raise ConfigurationError(
                    f"{name} has {len(values)} entries for {n_replicas} replicas"
                )

        replicas = [
            system.copy(
                force_field=None if force_fields is None else force_fields[i],
                reporters=None if reporters is None else reporters[i],
            )
            for i in range(n_replicas)
        ]
        return cls(replicas, exchange_reporter=exchange_reporter)

    @property
    def n_replicas(self) -> int:
        """Return the number of replicas."""
        return len(self.replicas)

    def __len__(self) -> int:
        return len(self.replicas)

    def __getitem__(self, index: int) -> System:
        return self.replicas[index]

    def __iter__(self) -> Iterator[System]:
        return iter(self.replicas)
