"""Shop scoping for shop-owned data (work orders)."""

from uuid import UUID

from app.core.exceptions import NoShopAssignmentError
from app.schemas.auth import Identity


def resolve_shop_scope(actor: Identity) -> UUID | None:
    """
    Get shop_id for query scoping.

    Returns None (unrestricted) for superadmins. Every other caller gets its
    own shop, and every list/detail query MUST filter by it.

    Raises:
        NoShopAssignmentError: non-superadmin without a shop
    """
    if actor.is_super_admin():
        return None
    if not actor.has_shop():
        raise NoShopAssignmentError()
    return actor.shop_id
