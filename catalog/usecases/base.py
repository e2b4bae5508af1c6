"""Helpers shared by the use case orchestrators."""

from catalog.database import StoreError, Transaction
from catalog.errors import InfrastructureError


async def commit(tx: Transaction) -> None:
    """Commit ``tx``, turning a store failure into an internal error."""
    try:
        await tx.commit()
    except StoreError as e:
        raise InfrastructureError("failed to commit transaction") from e
