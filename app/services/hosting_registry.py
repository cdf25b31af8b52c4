# File: app/services/hosting_registry.py

"""
Registry of public hosted sites (subdomain -> owner directory).
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import HostingError, SiteNotFoundError
from app.models.hosting_site import HostingSite

logger = logging.getLogger(__name__)


class HostingRegistry:
    def __init__(self, db: Session, owner_uuid: str):
        self.db = db
        self.owner_uuid = owner_uuid

    def get(self, subdomain: str) -> HostingSite:
        """Return the caller's site, raising SiteNotFoundError otherwise."""
        site = self.db.get(HostingSite, subdomain)
        if site is None or site.owner_uuid != self.owner_uuid:
            raise SiteNotFoundError(subdomain)
        return site

    def create(self, subdomain: str, root_dir: str) -> HostingSite:
        if self.db.get(HostingSite, subdomain) is not None:
            raise HostingError(f"Subdomain already taken: {subdomain}")
        site = HostingSite(subdomain=subdomain, owner_uuid=self.owner_uuid, root_dir=root_dir)
        self.db.add(site)
        self.db.commit()
        logger.info("[HOSTING] Created site %s -> %s", subdomain, root_dir)
        return site

    def update(self, subdomain: str, root_dir: str) -> HostingSite:
        site = self.get(subdomain)
        if site.root_dir != root_dir:
            site.root_dir = root_dir
            self.db.commit()
        return site


def lookup_site(db: Session, subdomain: str) -> Optional[HostingSite]:
    """Public lookup used when serving hosted files; no owner check."""
    return db.get(HostingSite, subdomain)
