"""Input normalization and source resolution tests."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from scan_convert.core.errors import InputError
from scan_convert.files.registry import FileRecord, FileRegistry, InMemoryFileRegistry
from scan_convert.files.storage import LocalStorageStrategy, StorageStrategy
from scan_convert.pipeline.resolver import normalize_input, output_filename, resolve_source

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _record(file_id: str, *, user: str = "u1", minutes: int = 0, **kw) -> FileRecord:
    defaults = dict(
        type="application/pdf",
        filepath=f"/uploads/{user}/{file_id}.pdf",
        filename=f"{file_id}.pdf",
    )
    defaults.update(kw)
    return FileRecord(file_id=file_id, user=user, updated_at=T0 + timedelta(minutes=minutes), **defaults)


class _FailingStorage(StorageStrategy):
    async def get_download_url(self, record: FileRecord) -> str:
        raise RuntimeError("signing backend down")


class _BrokenRegistry(FileRegistry):
    async def get(self, file_id: str):
        raise RuntimeError("db down")

    async def latest_pdf(self, user: str, name_hint: str | None = None):
        raise RuntimeError("db down")


# ---------------------------------------------------------------------------
# normalize_input
# ---------------------------------------------------------------------------

def test_normalize_mapping_with_wire_aliases() -> None:
    req = normalize_input({"fileUrl": "https://x/a.pdf", "timeoutMs": 5000, "language": "German"})
    assert req.file_url == "https://x/a.pdf"
    assert req.timeout_ms == 5000
    assert req.language == "German"


def test_normalize_json_string() -> None:
    req = normalize_input('{"base64": "JVBERg==", "filename": "out.docx"}')
    assert req.content_base64 == "JVBERg=="
    assert req.filename == "out.docx"


def test_normalize_bare_string_is_filename_hint() -> None:
    req = normalize_input("scan-2024.pdf")
    assert req.filename == "scan-2024.pdf"
    assert not req.has_source


@pytest.mark.parametrize("raw", [None, "", "   ", "[1, 2]", "42", b"", 3.14])
def test_normalize_empty_or_non_object_input(raw) -> None:
    req = normalize_input(raw)
    assert req.model_dump(exclude_none=True) == {}


def test_normalize_ignores_unknown_keys() -> None:
    req = normalize_input({"filePath": "/tmp/a.pdf", "colour": "blue"})
    assert req.file_path == "/tmp/a.pdf"


def test_normalize_rejects_invalid_field_values() -> None:
    with pytest.raises(InputError):
        normalize_input({"timeoutMs": -1})


# ---------------------------------------------------------------------------
# output_filename
# ---------------------------------------------------------------------------

def test_docx_filename_preserved_verbatim() -> None:
    assert output_filename("My Report v2.docx") == "My Report v2.docx"


@pytest.mark.parametrize("name", [None, "", "scan.pdf", "report.DOCX", "report.docx.bak"])
def test_other_filenames_replaced_with_default(name) -> None:
    assert output_filename(name) == "converted.docx"


def test_custom_default_and_extension() -> None:
    assert output_filename("a.pdf", default="out.rtf", extension=".rtf") == "out.rtf"
    assert output_filename("a.rtf", default="out.rtf", extension=".rtf") == "a.rtf"


# ---------------------------------------------------------------------------
# resolve_source
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_no_source_and_no_user_is_input_error() -> None:
    registry = InMemoryFileRegistry([_record("f1")])
    with pytest.raises(InputError):
        await resolve_source(normalize_input({}), registry=registry)


@pytest.mark.asyncio
async def test_no_source_without_registry_is_input_error() -> None:
    with pytest.raises(InputError):
        await resolve_source(normalize_input({"filename": "x.docx"}), user_id="u1")


@pytest.mark.asyncio
async def test_explicit_source_is_kept() -> None:
    registry = InMemoryFileRegistry([_record("f1")])
    req = await resolve_source(normalize_input({"filePath": "/tmp/in.pdf"}), user_id="u1", registry=registry)
    assert req.file_path == "/tmp/in.pdf"
    assert req.file_url is None


@pytest.mark.asyncio
async def test_latest_pdf_for_user_selected_by_timestamp() -> None:
    registry = InMemoryFileRegistry(
        [
            _record("old", minutes=0),
            _record("newest", minutes=30),
            _record("middle", minutes=10),
            _record("image", minutes=60, type="image/png"),
            _record("other-user", user="u2", minutes=90),
        ]
    )
    req = await resolve_source(normalize_input({}), user_id="u1", registry=registry)

    assert req.file_url == "/uploads/u1/newest.pdf"
    assert req.filename == "newest.pdf"


@pytest.mark.asyncio
async def test_same_timestamp_ties_break_deterministically() -> None:
    registry = InMemoryFileRegistry([_record("a", minutes=5), _record("b", minutes=5)])
    first = await resolve_source(normalize_input({}), user_id="u1", registry=registry)
    second = await resolve_source(normalize_input({}), user_id="u1", registry=registry)
    assert first.file_url == second.file_url == "/uploads/u1/b.pdf"


@pytest.mark.asyncio
async def test_filename_hint_filters_candidates() -> None:
    registry = InMemoryFileRegistry(
        [
            _record("invoice-march", minutes=0, filepath="/uploads/u1/Invoice-March.pdf"),
            _record("contract", minutes=20),
        ]
    )
    req = await resolve_source(normalize_input("invoice"), user_id="u1", registry=registry)
    assert req.file_url == "/uploads/u1/Invoice-March.pdf"
    # hint was given, so it is kept as the requested name
    assert req.filename == "invoice"


@pytest.mark.asyncio
async def test_user_supplied_filename_is_not_overwritten() -> None:
    registry = InMemoryFileRegistry([_record("f1", filepath="/uploads/u1/out.docx-source.pdf")])
    req = await resolve_source(normalize_input({"filename": "out.docx"}), user_id="u1", registry=registry)
    assert req.filename == "out.docx"


@pytest.mark.asyncio
async def test_file_id_resolves_through_storage_strategy() -> None:
    registry = InMemoryFileRegistry([_record("f1")])
    storage = LocalStorageStrategy(base_url="https://chat.example.com")
    req = await resolve_source(normalize_input({"file_id": "f1"}), registry=registry, storage=storage)

    assert req.file_url == "https://chat.example.com/uploads/u1/f1.pdf"
    assert req.filename == "f1.pdf"


@pytest.mark.asyncio
async def test_signing_failure_falls_back_to_stored_path() -> None:
    registry = InMemoryFileRegistry([_record("f1")])
    req = await resolve_source(
        normalize_input({"file_id": "f1"}), registry=registry, storage=_FailingStorage()
    )
    assert req.file_url == "/uploads/u1/f1.pdf"


@pytest.mark.asyncio
async def test_signing_can_be_disabled() -> None:
    registry = InMemoryFileRegistry([_record("f1")])
    storage = LocalStorageStrategy(base_url="https://chat.example.com")
    req = await resolve_source(
        normalize_input({"file_id": "f1"}), registry=registry, storage=storage, refresh_signed_urls=False
    )
    assert req.file_url == "/uploads/u1/f1.pdf"


@pytest.mark.asyncio
async def test_unknown_file_id_falls_through_to_latest_upload() -> None:
    registry = InMemoryFileRegistry([_record("f1")])
    req = await resolve_source(normalize_input({"file_id": "missing"}), user_id="u1", registry=registry)
    assert req.file_url == "/uploads/u1/f1.pdf"


@pytest.mark.asyncio
async def test_registry_errors_are_skipped_then_input_error() -> None:
    with pytest.raises(InputError):
        await resolve_source(normalize_input({"file_id": "f1"}), user_id="u1", registry=_BrokenRegistry())
