# File: app/services/hosting_service.py

"""
Public hosting for project images.

Each account owns one hosted site (a subdomain bound to the
"roomify-hosting" directory of its file store). The site's slug is cached
in the key-value store under settings.hosting_config_key, and project
images are written to

    roomify-hosting/projects/<project id>/<label>.<ext>

which is served publicly as

    https://<subdomain>.<hosting domain>/projects/<project id>/<label>.<ext>
"""

import logging
import secrets
import string
import time
from typing import Literal, Optional

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import RoomifyError, SiteNotFoundError
from app.services.backend_session import BackendSession
from app.services.image_converter import (
    ResolvedBlob,
    fetch_blob_from_url,
    get_image_extension,
    image_url_to_png_blob,
)

logger = logging.getLogger(__name__)

AssetLabel = Literal["source", "rendered", "image3d"]

_BASE36 = string.digits + string.ascii_lowercase


class HostingConfig(BaseModel):
    subdomain: str


class HostedAsset(BaseModel):
    url: str


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def create_hosting_slug() -> str:
    """Timestamp-derived slug with a random suffix, e.g. roomify-lz3k9a2b-x81kq0."""
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"roomify-{stamp}-{suffix}"


def is_hosted_url(url: Optional[str]) -> bool:
    return bool(url) and isinstance(url, str) and settings.hosting_domain in url


def get_hosted_url(hosting: HostingConfig, file_path: str) -> Optional[str]:
    """
    Public URL for a store path under the hosting root.

    The root prefix is dropped because the subdomain already points at it.
    """
    if not hosting or not hosting.subdomain or not file_path:
        return None
    root = settings.hosting_root_dir.strip("/")
    rel = file_path.strip("/")
    if rel == root:
        rel = ""
    elif rel.startswith(root + "/"):
        rel = rel[len(root) + 1:]
    return f"https://{hosting.subdomain}.{settings.hosting_domain}/{rel}"


def asset_path(project_id: str, label: str, ext: str) -> str:
    return f"{settings.hosting_root_dir}/projects/{project_id}/{label}.{ext}"


def get_or_create_hosting_config(session: BackendSession) -> Optional[HostingConfig]:
    """
    Return the account's hosting config, creating the site on first use.

    Returns None when signed out or when the hosting backend fails; callers
    treat None as "hosting unavailable".
    """
    if not session.is_signed_in:
        return None

    root_dir = settings.hosting_root_dir
    try:
        existing = session.kv.get(settings.hosting_config_key)
        if existing:
            config = HostingConfig.model_validate(existing)
            try:
                session.hosting.get(config.subdomain)
                session.files.mkdir(root_dir, create_missing_parents=True)
                session.hosting.update(config.subdomain, root_dir)
                return config
            except SiteNotFoundError as e:
                logger.warning("[HOSTING] %s, creating a new site", e)

        subdomain = create_hosting_slug()
        session.files.mkdir(root_dir, create_missing_parents=True)
        site = session.hosting.create(subdomain, root_dir)
        config = HostingConfig(subdomain=site.subdomain)
        session.kv.set(settings.hosting_config_key, config.model_dump())
        return config
    except Exception as e:
        logger.error("[HOSTING] Error getting or creating hosting config: %s", e)
        session.rollback()
        return None


async def upload_image_to_hosting(
    session: BackendSession,
    *,
    hosting: Optional[HostingConfig],
    url: str,
    project_id: str,
    label: AssetLabel,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[HostedAsset]:
    """
    Copy an image into the project's hosted folder and return its public URL.

    Already-hosted URLs are returned unchanged without a write. "rendered"
    images are always stored as PNG; other labels keep their format. Any
    failure yields None.
    """
    if not hosting or not url:
        return None

    if is_hosted_url(url):
        return HostedAsset(url=url)

    if not session.is_signed_in:
        return None

    try:
        resolved: Optional[ResolvedBlob]
        if label == "rendered":
            resolved = await image_url_to_png_blob(url, client=client)
        else:
            resolved = await fetch_blob_from_url(url, client=client)
        if resolved is None:
            return None

        ext = get_image_extension(resolved.content_type, url)
        file_path = asset_path(project_id, label, ext)
        session.files.mkdir(file_path.rsplit("/", 1)[0], create_missing_parents=True)
        session.files.write(file_path, resolved.content, overwrite=True)

        hosted_url = get_hosted_url(hosting, file_path)
        if not hosted_url:
            logger.error("[HOSTING] Failed to generate hosted URL for %s", file_path)
            return None
        return HostedAsset(url=hosted_url)
    except (RoomifyError, OSError, ValueError) as e:
        logger.error("[HOSTING] Error uploading %s image for project %s: %s", label, project_id, e)
        return None
