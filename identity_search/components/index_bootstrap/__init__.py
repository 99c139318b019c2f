"""Index bootstrap component - creates the identity index before indexing starts."""

from .component import backoff_delay, run_ensure_ready
from .models import BootstrapStatus, EnsureReadyInput, EnsureReadyOutput
from .ports import IndexAdminPort, SleeperPort
from .schema import IDENTITY_INDEX_MAPPINGS, build_index_settings
from .state import IndexReadiness, IndexState, ReadinessSnapshot

__all__ = [
    # Entry points
    "run_ensure_ready",
    "backoff_delay",
    # Models
    "BootstrapStatus",
    "EnsureReadyInput",
    "EnsureReadyOutput",
    # State
    "IndexReadiness",
    "IndexState",
    "ReadinessSnapshot",
    # Schema
    "IDENTITY_INDEX_MAPPINGS",
    "build_index_settings",
    # Ports
    "IndexAdminPort",
    "SleeperPort",
]
