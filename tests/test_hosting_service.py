# File: tests/test_hosting_service.py

import asyncio
import io

from PIL import Image

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.hosting_site import HostingSite
from app.services.hosting_service import (
    HostingConfig,
    create_hosting_slug,
    get_hosted_url,
    get_or_create_hosting_config,
    is_hosted_url,
    upload_image_to_hosting,
)
from app.services.image_converter import to_data_url
from conftest import image_client


def _upload(session, hosting, url, project_id="42", label="source", client=None):
    return asyncio.run(
        upload_image_to_hosting(
            session, hosting=hosting, url=url, project_id=project_id, label=label, client=client
        )
    )


def test_signed_out_has_no_hosting(signed_out):
    assert get_or_create_hosting_config(signed_out) is None


def test_hosting_config_is_stable(signed_in):
    first = get_or_create_hosting_config(signed_in)
    second = get_or_create_hosting_config(signed_in)
    assert first is not None
    assert first.subdomain == second.subdomain
    assert signed_in.kv.get(settings.hosting_config_key) == {"subdomain": first.subdomain}
    assert signed_in.files.resolve(settings.hosting_root_dir).is_dir()


def test_hosting_config_recreated_when_site_is_gone(signed_in, db):
    first = get_or_create_hosting_config(signed_in)
    db.delete(db.get(HostingSite, first.subdomain))
    db.commit()

    second = get_or_create_hosting_config(signed_in)
    assert second is not None
    assert second.subdomain != first.subdomain
    assert signed_in.kv.get(settings.hosting_config_key) == {"subdomain": second.subdomain}


def test_slug_shape():
    slug = create_hosting_slug()
    assert slug.startswith("roomify-")
    assert len(slug.split("-")) == 3
    assert create_hosting_slug() != slug


def test_hosted_url_strips_root():
    config = HostingConfig(subdomain="roomify-abc")
    url = get_hosted_url(config, "roomify-hosting/projects/42/source.png")
    assert url == f"https://roomify-abc.{settings.hosting_domain}/projects/42/source.png"
    assert is_hosted_url(url)
    assert not is_hosted_url("https://example.com/plan.png")


def test_upload_data_url_scenario(signed_in, png_bytes):
    hosting = get_or_create_hosting_config(signed_in)
    asset = _upload(signed_in, hosting, to_data_url(png_bytes, "image/png"))

    assert asset is not None
    assert asset.url.endswith("/projects/42/source.png")
    assert signed_in.files.read("roomify-hosting/projects/42/source.png") == png_bytes


def test_upload_already_hosted_url_is_unchanged(signed_in):
    hosting = get_or_create_hosting_config(signed_in)
    url = f"https://{hosting.subdomain}.{settings.hosting_domain}/projects/7/source.png"

    asset = _upload(signed_in, hosting, url, project_id="7")
    assert asset.url == url
    assert not signed_in.files.exists("roomify-hosting/projects/7")


def test_upload_rejects_missing_inputs(signed_in, png_bytes):
    hosting = get_or_create_hosting_config(signed_in)
    assert _upload(signed_in, None, to_data_url(png_bytes)) is None
    assert _upload(signed_in, hosting, "") is None


def test_rendered_label_is_normalized_to_png(signed_in, jpeg_bytes):
    hosting = get_or_create_hosting_config(signed_in)
    asset = _upload(signed_in, hosting, to_data_url(jpeg_bytes, "image/jpeg"), label="rendered")

    assert asset.url.endswith("/projects/42/rendered.png")
    stored = signed_in.files.read("roomify-hosting/projects/42/rendered.png")
    with Image.open(io.BytesIO(stored)) as img:
        assert img.format == "PNG"


def test_source_label_keeps_format(signed_in, jpeg_bytes):
    hosting = get_or_create_hosting_config(signed_in)
    client = image_client({"https://cdn.test/plan.jpg": (200, jpeg_bytes, "image/jpeg")})
    asset = _upload(signed_in, hosting, "https://cdn.test/plan.jpg", client=client)

    assert asset.url.endswith("/projects/42/source.jpg")
    assert signed_in.files.read("roomify-hosting/projects/42/source.jpg") == jpeg_bytes


def test_reupload_overwrites(signed_in, png_bytes):
    hosting = get_or_create_hosting_config(signed_in)
    _upload(signed_in, hosting, to_data_url(b"old", "image/png"))
    _upload(signed_in, hosting, to_data_url(png_bytes, "image/png"))
    assert signed_in.files.read("roomify-hosting/projects/42/source.png") == png_bytes


def test_fetch_failure_collapses_to_none(signed_in):
    hosting = get_or_create_hosting_config(signed_in)
    client = image_client({})
    assert _upload(signed_in, hosting, "https://cdn.test/gone.png", client=client) is None
    assert _upload(signed_in, hosting, "data:image/png;base64") is None


def test_hosted_file_is_served(client, signed_in, png_bytes):
    hosting = get_or_create_hosting_config(signed_in)
    _upload(signed_in, hosting, to_data_url(png_bytes, "image/png"))

    resp = client.get(f"/sites/{hosting.subdomain}/projects/42/source.png")
    assert resp.status_code == 200
    assert resp.content == png_bytes

    assert client.get(f"/sites/{hosting.subdomain}/projects/42/none.png").status_code == 404
    assert client.get("/sites/no-such-site/projects/42/source.png").status_code == 404


def test_failed_site_creation_leaves_session_usable(signed_in, db, monkeypatch):
    taken = create_hosting_slug()
    other = SessionLocal()
    try:
        other.add(HostingSite(subdomain=taken, owner_uuid="someone-else", root_dir="x"))
        other.commit()
    finally:
        other.close()

    def racing_create(subdomain, root_dir):
        db.add(HostingSite(subdomain=taken, owner_uuid=signed_in.user_id, root_dir=root_dir))
        db.flush()

    monkeypatch.setattr(signed_in.hosting, "create", racing_create)
    assert get_or_create_hosting_config(signed_in) is None

    signed_in.kv.set("after-failure", {"ok": True})
    assert signed_in.kv.get("after-failure") == {"ok": True}
