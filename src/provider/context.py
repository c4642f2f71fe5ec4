"""
Request-scoped credential context.

The client authentication gate stamps the authenticated client identifier
into a ``CredentialContext`` which is passed, as a value, to the token flow
handling the same request.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class CredentialContext(BaseModel):
    """Immutable per-request context carrying the authenticated client."""
    model_config = ConfigDict(frozen=True)

    client_id: str = ""


def with_client_id(ctx: Optional[CredentialContext], client_id: str) -> CredentialContext:
    """Return a copy of ``ctx`` holding ``client_id``; ``ctx`` is left untouched."""
    if ctx is None:
        return CredentialContext(client_id=client_id)
    return ctx.model_copy(update={"client_id": client_id})


def context_client_id(ctx: Optional[CredentialContext]) -> str:
    """Return the client id stored in ``ctx``, or an empty string if there is none."""
    if ctx is None:
        return ""
    return ctx.client_id
