"""Identity admin component - administrative changes to identities."""

from .component import can_manage_identities, run_delete_identity, run_update_identity
from .models import DeleteIdentityInput, IdentityOutput, UpdateIdentityInput

__all__ = [
    "run_update_identity",
    "run_delete_identity",
    "can_manage_identities",
    "UpdateIdentityInput",
    "DeleteIdentityInput",
    "IdentityOutput",
]
