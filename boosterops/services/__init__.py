"""
Service layer for boosterops.

Contains the workflows that drive boosters through the infrastructure
clients:
- BoosterOrchestrator: The booster x branch processing loop
- ReleaseWorkflow: Release, production tags and release reverts
- OPERATIONS: Registry of named booster operations
- ConfirmationGate: Operator confirmation for destructive actions

Services are the primary API for commands to use.
"""

from .confirmation import Answer, ConfirmationGate
from .context import BoosterContext, RunEnvironment
from .operations import OPERATIONS, BoundOperation, OperationSpec, bind, operation
from .orchestrator import BoosterOrchestrator
from .release_service import ReleaseState, ReleaseWorkflow

__all__ = [
    'Answer',
    'ConfirmationGate',
    'BoosterContext',
    'RunEnvironment',
    'OPERATIONS',
    'BoundOperation',
    'OperationSpec',
    'bind',
    'operation',
    'BoosterOrchestrator',
    'ReleaseState',
    'ReleaseWorkflow',
]
