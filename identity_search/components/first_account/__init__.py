"""First-account component - escalates the first identity ever created."""

from .component import decide_roles, run_resolve
from .models import ResolveInput, ResolveOutput, RoleAssignment
from .ports import IdentityRepoPort

__all__ = [
    "run_resolve",
    "decide_roles",
    "ResolveInput",
    "ResolveOutput",
    "RoleAssignment",
    "IdentityRepoPort",
]
