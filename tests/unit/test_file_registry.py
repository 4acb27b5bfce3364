from pathlib import Path

import pytest

from rastergraph.application.services.graph_service import RepositoryGraph, open_repository
from rastergraph.application.services.project_service import ProjectService
from rastergraph.core.config import AppPaths
from rastergraph.core.errors import (
    ContentStoreError,
    InvalidRoleError,
    RetrieveError,
    SaveError,
    ValidationError,
)
from rastergraph.core.vocab import PCDM_FILE, PCDM_USE_ORIGINAL_FILE, PCDM_USE_THUMBNAIL_IMAGE
from rastergraph.domain.models.resource import RASTER_FILE, Resource
from rastergraph.infrastructure.content.store import ContentStore


class RejectingStore:
    def store(self, data: bytes) -> str:
        raise ContentStoreError("disk full")

    def retrieve(self, handle: str) -> bytes:
        raise ContentStoreError("unavailable")

    def discard(self, handle: str) -> None:
        return None

    def exists(self, handle: str) -> bool:
        return False


def _bootstrap(tmp_path: Path, content_store: ContentStore | None = None) -> RepositoryGraph:
    data_dir = tmp_path / ".rastergraph"
    paths = AppPaths(
        project_root=tmp_path,
        data_dir=data_dir,
        db_path=data_dir / "rastergraph.db",
        content_dir=data_dir / "content",
    )
    ProjectService(paths).init_project()
    return open_repository(paths, content_store=content_store)


def _saved_raster_file(graph: RepositoryGraph) -> Resource:
    resource = graph.resources.new(RASTER_FILE)
    resource.apply_depositor_metadata("depositor")
    return graph.resources.save(resource)


def test_original_file_can_be_saved_and_read_back(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    original_file = registry.build_original_file()
    registry.attach_content(original_file, "original_file")
    registry.save(original_file)

    current = registry.original_file
    assert current is original_file
    assert current.content == b"original_file"
    assert current.is_new is False
    assert current.has_type(PCDM_FILE)
    assert current.has_type(PCDM_USE_ORIGINAL_FILE)


def test_reading_a_role_before_building_does_not_create_one(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    assert registry.get("original_file") is None
    assert registry.preview is None
    assert registry.thumbnail is None
    assert registry.get("original_file") is None


def test_building_a_thumbnail_initializes_an_unsaved_typed_file(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    preview = registry.build_thumbnail()

    assert preview.is_new is True
    assert PCDM_USE_THUMBNAIL_IMAGE in preview.type_tags
    assert PCDM_FILE in preview.type_tags


def test_build_typed_adds_tag_alongside_file_type(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    preview = registry.build_typed("preview", PCDM_USE_THUMBNAIL_IMAGE)
    assert preview.type_tags == [PCDM_FILE, PCDM_USE_THUMBNAIL_IMAGE]
    assert registry.preview is preview

    listed = registry.build_typed("files", PCDM_USE_THUMBNAIL_IMAGE)
    assert listed.type_tags == [PCDM_FILE, PCDM_USE_THUMBNAIL_IMAGE]
    assert registry.add_type(listed, PCDM_FILE).type_tags == [PCDM_FILE, PCDM_USE_THUMBNAIL_IMAGE]


def test_preview_content_is_buffered_until_save(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    thumbnail = registry.build_thumbnail()
    registry.attach_content(thumbnail, "preview")

    assert registry.preview.content == b"preview"
    assert registry.preview.is_new is True
    assert thumbnail.digest_sha256 is None


def test_unknown_role_is_rejected(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    with pytest.raises(InvalidRoleError):
        registry.build("sidecar")
    with pytest.raises(InvalidRoleError):
        registry.get("sidecar")


def test_list_role_is_read_through_files_not_get(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))
    registry.build("files")

    with pytest.raises(ValidationError, match="files"):
        registry.get("files")
    assert len(registry.files) == 1


def test_saving_a_file_of_an_unsaved_resource_fails(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    resource = graph.resources.new(RASTER_FILE)
    registry = graph.resources.files(resource)

    original_file = registry.build_original_file()
    registry.attach_content(original_file, b"bytes")

    with pytest.raises(SaveError):
        registry.save(original_file)
    assert original_file.is_new is True


def test_saving_without_content_fails(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    with pytest.raises(SaveError):
        registry.save(registry.build_original_file())


def test_content_store_failure_surfaces_as_save_error(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path, content_store=RejectingStore())
    registry = graph.resources.files(_saved_raster_file(graph))

    original_file = registry.build_original_file()
    registry.attach_content(original_file, "original_file")

    with pytest.raises(SaveError) as excinfo:
        registry.save(original_file)
    assert isinstance(excinfo.value.__cause__, ContentStoreError)
    assert original_file.is_new is True


def test_rebuilding_a_role_replaces_the_reference_only(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))
    file_repo = graph.resources.file_repo

    first = registry.build_original_file()
    registry.attach_content(first, "first")
    registry.save(first)

    second = registry.build_original_file()
    assert second is not first
    assert second.is_new is True
    assert registry.original_file is second
    assert file_repo.get_by_id(first.id) is not None

    registry.attach_content(second, "second")
    registry.save(second)

    stored_first = file_repo.get_by_id(first.id)
    assert stored_first is not None
    assert stored_first.role is None
    assert file_repo.get_by_id(second.id).role == "original_file"


def test_saved_files_are_loaded_for_a_reloaded_resource(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    resource = _saved_raster_file(graph)
    registry = graph.resources.files(resource)

    original_file = registry.build_original_file()
    registry.attach_content(original_file, "original_file", mime_type="image/tiff", original_name="dem.tif")
    thumbnail = registry.build_thumbnail()
    registry.attach_content(thumbnail, "preview")
    graph.resources.save(resource)

    reloaded = graph.resources.reload(resource)
    assert reloaded is not None
    fresh = graph.resources.files(reloaded)
    assert fresh is not registry

    assert fresh.original_file.content == b"original_file"
    assert fresh.original_file.mime_type == "image/tiff"
    assert fresh.original_file.original_name == "dem.tif"
    assert fresh.original_file.is_new is False
    assert fresh.preview.content == b"preview"
    assert fresh.preview.type_tags == [PCDM_FILE, PCDM_USE_THUMBNAIL_IMAGE]


def test_files_assignment_replaces_the_list(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    resource = _saved_raster_file(graph)
    registry = graph.resources.files(resource)

    file = registry.build("files")
    registry.attach_content(file, "I'm a file")
    extra = registry.build("files")
    registry.attach_content(extra, "extra")
    graph.resources.save(resource)

    registry.set_files([file])
    graph.resources.save(resource)

    assert [a.id for a in registry.files] == [file.id]
    reloaded = graph.resources.reload(resource)
    assert [a.content for a in graph.resources.files(reloaded).files] == [b"I'm a file"]
    assert graph.resources.file_repo.get_by_id(extra.id).role is None


def test_files_assignment_takes_a_file_out_of_its_thumbnail_slot(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    resource = _saved_raster_file(graph)
    registry = graph.resources.files(resource)

    file = registry.build("files")
    registry.attach_content(file, "I'm a file")
    preview = registry.build_typed("thumbnail", PCDM_USE_THUMBNAIL_IMAGE)
    registry.attach_content(preview, "preview")

    registry.set_files([file, preview])
    assert registry.thumbnail is None
    graph.resources.save(resource)

    fresh = graph.resources.files(graph.resources.reload(resource))
    assert fresh.thumbnail is None
    assert sorted(a.id for a in fresh.files) == sorted([file.id, preview.id])
    assert {a.role for a in fresh.files} == {"files"}
    assert preview.has_type(PCDM_USE_THUMBNAIL_IMAGE)


def test_files_assignment_moves_a_saved_thumbnail(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    resource = _saved_raster_file(graph)
    registry = graph.resources.files(resource)

    thumbnail = registry.build_thumbnail()
    registry.attach_content(thumbnail, "thumb")
    registry.save(thumbnail)

    registry.set_files([thumbnail])
    graph.resources.save(resource)

    assert graph.resources.file_repo.get_by_id(thumbnail.id).role == "files"
    fresh = graph.resources.files(graph.resources.reload(resource))
    assert fresh.thumbnail is None
    assert [a.content for a in fresh.files] == [b"thumb"]


def test_delete_removes_row_and_unreferenced_content(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    original_file = registry.build_original_file()
    registry.attach_content(original_file, "original_file")
    registry.save(original_file)
    digest = original_file.digest_sha256
    assert graph.content_store.exists(digest)

    registry.delete(original_file)

    assert registry.original_file is None
    assert graph.resources.file_repo.get_by_id(original_file.id) is None
    assert not graph.content_store.exists(digest)


def test_shared_content_survives_deleting_one_file(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    registry = graph.resources.files(_saved_raster_file(graph))

    original_file = registry.build_original_file()
    registry.attach_content(original_file, "same bytes")
    registry.save(original_file)
    copy = registry.build("files")
    registry.attach_content(copy, "same bytes")
    registry.save(copy)

    registry.delete(copy)

    assert graph.content_store.exists(original_file.digest_sha256)
    assert registry.original_file.content == b"same bytes"


def test_attachment_of_another_resource_is_rejected(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    first = graph.resources.files(_saved_raster_file(graph))
    second = graph.resources.files(_saved_raster_file(graph))

    foreign = first.build_original_file()
    first.attach_content(foreign, "x")

    with pytest.raises(ValidationError):
        second.save(foreign)


def test_missing_content_surfaces_as_retrieve_error(tmp_path: Path) -> None:
    graph = _bootstrap(tmp_path)
    resource = _saved_raster_file(graph)
    registry = graph.resources.files(resource)

    original_file = registry.build_original_file()
    registry.attach_content(original_file, "original_file")
    registry.save(original_file)

    blob = graph.content_store.archive_abspath_for_digest(original_file.digest_sha256)
    blob.unlink()

    fresh = graph.resources.files(graph.resources.reload(resource))
    with pytest.raises(RetrieveError):
        fresh.get("original_file")
