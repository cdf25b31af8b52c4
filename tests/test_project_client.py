# File: tests/test_project_client.py

"""
ProjectStoreClient against the real worker API, in-process.
"""

import asyncio

import httpx

from app.core.config import settings
from app.schemas.project import ProjectRecord
from app.services.image_converter import to_data_url
from app.services.project_client import ProjectStoreClient
from conftest import asgi_client, image_client


def _store(session, **kwargs):
    return ProjectStoreClient(
        session, base_url="http://testserver", http_client=asgi_client(), **kwargs
    )


def _record(**overrides):
    data = {"id": "100", "name": "Loft", "sourceImage": "", "timestamp": 100}
    data.update(overrides)
    return ProjectRecord.model_validate(data)


def test_create_hosts_source_and_persists(signed_in, png_bytes):
    store = _store(signed_in)
    item = _record(sourceImage=to_data_url(png_bytes), sourcePath="tmp/local.png")
    saved = asyncio.run(store.create(item))

    assert saved is not None
    assert saved.source_image.endswith("/projects/100/source.png")
    assert settings.hosting_domain in saved.source_image
    assert saved.updated_at
    assert saved.source_path is None

    stored = signed_in.kv.get(f"{settings.project_key_prefix}100")
    assert stored["sourceImage"] == saved.source_image
    assert "sourcePath" not in stored
    assert signed_in.files.read("roomify-hosting/projects/100/source.png") == png_bytes


def test_create_hosts_rendered_image_as_png(signed_in, png_bytes, jpeg_bytes):
    store = _store(signed_in)
    item = _record(
        sourceImage=to_data_url(png_bytes),
        renderedImage=to_data_url(jpeg_bytes, "image/jpeg"),
    )
    saved = asyncio.run(store.create(item))
    assert saved.rendered_image.endswith("/projects/100/rendered.png")


def test_create_without_resolvable_source_writes_nothing(signed_in):
    store = _store(signed_in, image_client=image_client({}))

    assert asyncio.run(store.create(_record(sourceImage=""))) is None
    assert asyncio.run(store.create(_record(sourceImage="https://cdn.test/404.png"))) is None
    assert signed_in.kv.list(f"{settings.project_key_prefix}*") == []


def test_update_keeps_already_hosted_urls(signed_in, png_bytes):
    store = _store(signed_in)
    saved = asyncio.run(store.create(_record(sourceImage=to_data_url(png_bytes))))

    hosted_3d = saved.source_image.replace("source.png", "image3d.png")
    updated = asyncio.run(store.update(saved.model_copy(update={"image_3d": hosted_3d})))

    assert updated.source_image == saved.source_image
    assert updated.image_3d == hosted_3d


def test_get_missing_project_returns_none(signed_in):
    assert asyncio.run(_store(signed_in).get("missing-id")) is None


def test_get_round_trip(signed_in, png_bytes):
    store = _store(signed_in)
    saved = asyncio.run(store.create(_record(sourceImage=to_data_url(png_bytes))))
    fetched = asyncio.run(_store(signed_in).get("100"))
    assert fetched == saved


def test_list_sorted_newest_first(signed_in, png_bytes):
    for pid, ts in (("1", 10), ("2", 30), ("3", 20)):
        asyncio.run(
            _store(signed_in).create(
                _record(id=pid, timestamp=ts, sourceImage=to_data_url(png_bytes))
            )
        )
    projects = asyncio.run(_store(signed_in).list())
    assert [p.id for p in projects] == ["2", "3", "1"]


def test_signed_out_or_unconfigured_degrades(signed_out, signed_in, png_bytes):
    store = _store(signed_out)
    assert asyncio.run(store.create(_record(sourceImage=to_data_url(png_bytes)))) is None
    assert asyncio.run(store.get("100")) is None
    assert asyncio.run(store.list()) == []

    unconfigured = ProjectStoreClient(signed_in, base_url="")
    unconfigured.base_url = ""
    assert asyncio.run(unconfigured.list()) == []
    assert asyncio.run(unconfigured.get("100")) is None


def test_unreadable_records_are_skipped(signed_in, png_bytes):
    store = _store(signed_in)
    asyncio.run(store.create(_record(id="good", sourceImage=to_data_url(png_bytes))))
    signed_in.kv.set(
        f"{settings.project_key_prefix}bad",
        {"id": "bad", "sourceImage": "https://x.puter.site/a.png", "timestamp": "yesterday"},
    )
    signed_in.kv.set(
        f"{settings.project_key_prefix}worse",
        {"id": "worse", "sourceImage": "https://x.puter.site/a.png", "isPublic": None},
    )

    assert asyncio.run(store.get("bad")) is None
    assert asyncio.run(store.get("worse")) is None
    assert [p.id for p in asyncio.run(store.list())] == ["good"]


def test_non_json_responses_degrade(signed_in):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>", headers={"content-type": "text/html"})

    store = ProjectStoreClient(
        signed_in,
        base_url="http://testserver",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    hosted = _record(sourceImage="https://x.puter.site/projects/100/source.png")

    assert asyncio.run(store.get("100")) is None
    assert asyncio.run(store.list()) == []
    assert asyncio.run(store.create(hosted)) is None


def test_save_with_unreadable_echo_returns_none(signed_in):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"saved": True, "project": {"timestamp": "soon"}})

    store = ProjectStoreClient(
        signed_in,
        base_url="http://testserver",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    hosted = _record(sourceImage="https://x.puter.site/projects/100/source.png")
    assert asyncio.run(store.create(hosted)) is None
