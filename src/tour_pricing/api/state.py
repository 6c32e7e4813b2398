"""
Shared service instances for the API process.
"""
from ..config.settings import get_settings
from ..services.commission import CommissionStore
from ..services.propagation import TierPropagator
from ..services.snapshots import TotalsSnapshotStore
from ..storage.repository import PriceRepository


class EngineState:
    """One repository and the services built on it."""

    def __init__(self, repository: PriceRepository):
        self.repository = repository
        self.commission = CommissionStore(repository)
        self.propagator = TierPropagator(repository)
        self.snapshots = TotalsSnapshotStore(repository)


engine = EngineState(PriceRepository(settings=get_settings()))


def replace_engine(repository: PriceRepository) -> EngineState:
    """Rebuild the services on another repository (tests, alternate backends)."""
    global engine
    engine = EngineState(repository)
    return engine


def get_engine() -> EngineState:
    return engine
