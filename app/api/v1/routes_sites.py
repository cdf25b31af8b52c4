# app/api/v1/routes_sites.py
"""
Serves hosted site files, standing in for https://<subdomain>.<hosting domain>/.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.services.file_store import FileStore
from app.services.hosting_registry import lookup_site

router = APIRouter(tags=["sites"])


@router.get("/sites/{subdomain}/{file_path:path}")
def serve_hosted_file(subdomain: str, file_path: str, db: Session = Depends(get_db)):
    """
    GET /sites/{subdomain}/projects/<id>/<label>.<ext>
    """
    site = lookup_site(db, subdomain)
    if site is None:
        raise HTTPException(status_code=404, detail=f"Site {subdomain} not found")

    files = FileStore(site.owner_uuid)
    try:
        target = files.resolve(f"{site.root_dir}/{file_path}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid path")

    if not target.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(target)
