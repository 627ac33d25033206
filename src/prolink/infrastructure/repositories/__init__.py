"""Repositories bound to an open connection.

The caller owns the transaction. Writers pass the connection of a
``Vault.transaction()`` so every statement joins the surrounding unit
of work; readers pass a ``Vault.snapshot()`` connection, whose SELECTs
all see the same committed state.
"""

from prolink.infrastructure.repositories.connections import ConnectionGraph
from prolink.infrastructure.repositories.invitations import InvitationStore
from prolink.infrastructure.repositories.profiles import ProfileDirectory

__all__ = ["ConnectionGraph", "InvitationStore", "ProfileDirectory"]
