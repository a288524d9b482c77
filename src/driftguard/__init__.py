"""DriftGuard: session and scope coordination for coding agents."""

__version__ = "0.1.0"

# Public API
from driftguard.config import Config, get_config, load_config
from driftguard.coordination import ClaimResult, ScopeClaim, ScopeCoordinator
from driftguard.errors import (
    DelegationError,
    DriftGuardError,
    IntentMissingError,
    NoActiveTaskError,
    StateTransitionError,
)
from driftguard.session import (
    DriftGuardState,
    FocusState,
    SessionEngine,
    StrictnessLevel,
    Task,
)

__all__ = [
    # Engine
    "SessionEngine",
    "DriftGuardState",
    "FocusState",
    "StrictnessLevel",
    "Task",
    # Scope
    "ClaimResult",
    "ScopeClaim",
    "ScopeCoordinator",
    # Errors
    "DelegationError",
    "DriftGuardError",
    "IntentMissingError",
    "NoActiveTaskError",
    "StateTransitionError",
    # Config
    "Config",
    "get_config",
    "load_config",
    "__version__",
]
