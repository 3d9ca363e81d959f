# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Optional, Tuple

from ..errors import NotSiteMemberError, SiteNotFoundError
from ..models import Site
from ..store import Store

# Roles allowed to publish changes.
WRITE_ROLES = frozenset({"owner", "admin", "editor"})


def load_site(store: Store, site_id: str) -> Site:
    site = store.get_site(site_id)
    if site is None:
        raise SiteNotFoundError("Site not found", details={"site_id": site_id})
    return site


def require_member(store: Store, site_id: str, user_id: Optional[str], *, write: bool = True) -> Tuple[Site, str]:
    """Return (site, role) when ``user_id`` may act on the site."""
    site = load_site(store, site_id)
    role = store.get_member_role(site_id, user_id) if user_id else None
    if role is None:
        raise NotSiteMemberError("Not a member of this site")
    if write and role not in WRITE_ROLES:
        raise NotSiteMemberError(f"Role '{role}' cannot publish changes to this site")
    return site, role
