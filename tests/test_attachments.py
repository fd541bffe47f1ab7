import base64

import pytest

from email_send_node.attachments import (
    BinaryData,
    BinaryDataNotFound,
    ItemBinaryStore,
    decode_base64,
    guess_mime,
    resolve_attachments,
    split_property_names,
)
from email_send_node.errors import AttachmentResolutionWarning


class DummyStore:
    def __init__(self, entries):
        self.entries = entries
        self.lookups = []

    async def get_binary(self, item_index, property_name):
        self.lookups.append((item_index, property_name))
        try:
            return self.entries[property_name]
        except KeyError:
            raise BinaryDataNotFound(f"no binary '{property_name}'") from None


def test_split_property_names():
    assert split_property_names("a, ,b,") == ["a", "b"]
    assert split_property_names("") == []


def test_decode_base64_tolerates_missing_padding():
    encoded = base64.b64encode(b"hello").decode().rstrip("=")
    assert decode_base64(encoded) == b"hello"


def test_decode_base64_invalid():
    with pytest.raises(ValueError, match="Invalid base64"):
        decode_base64("***")


def test_guess_mime():
    assert guess_mime("report.pdf") == ("application", "pdf")
    assert guess_mime("noextension") == ("application", "octet-stream")


@pytest.mark.asyncio
async def test_missing_attachment_is_skipped_with_warning():
    store = DummyStore({"a": BinaryData(data=b"A", file_name="a.txt")})
    warnings = []

    attachments = await resolve_attachments("a, ,b", store, 0, warnings=warnings)

    assert [att.filename for att in attachments] == ["a.txt"]
    assert attachments[0].content == b"A"
    assert attachments[0].cid == "a"
    assert store.lookups == [(0, "a"), (0, "b")]
    assert len(warnings) == 1
    assert isinstance(warnings[0], AttachmentResolutionWarning)
    assert "'b'" in warnings[0].message


@pytest.mark.asyncio
async def test_filename_falls_back_to_property_name():
    store = DummyStore({"invoice": BinaryData(data=b"%PDF", mime_type="application/pdf")})

    attachments = await resolve_attachments("invoice", store, 3)

    assert attachments[0].filename == "invoice"
    assert attachments[0].mime_type == "application/pdf"


@pytest.mark.asyncio
async def test_order_preserved():
    store = DummyStore({
        "first": BinaryData(data=b"1", file_name="1.txt"),
        "second": BinaryData(data=b"2", file_name="2.txt"),
    })

    attachments = await resolve_attachments("second,first", store, 0)

    assert [att.cid for att in attachments] == ["second", "first"]


class TestItemBinaryStore:
    """Tests for the item based binary store."""

    @pytest.mark.asyncio
    async def test_inline_base64(self):
        items = [{"binary": {"data": {
            "data": base64.b64encode(b"payload").decode(),
            "fileName": "p.bin",
            "mimeType": "application/octet-stream",
        }}}]
        store = ItemBinaryStore(items)

        binary = await store.get_binary(0, "data")

        assert binary.data == b"payload"
        assert binary.file_name == "p.bin"
        assert binary.mime_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_path_relative_to_base_dir(self, tmp_path):
        (tmp_path / "doc.txt").write_bytes(b"from disk")
        store = ItemBinaryStore([{"binary": {"doc": {"path": "doc.txt"}}}], base_dir=str(tmp_path))

        binary = await store.get_binary(0, "doc")

        assert binary.data == b"from disk"
        assert binary.file_name is None

    @pytest.mark.asyncio
    async def test_path_traversal_refused(self, tmp_path):
        base = tmp_path / "base"
        base.mkdir()
        (tmp_path / "secret.txt").write_text("secret")
        store = ItemBinaryStore([{"binary": {"doc": {"path": "../secret.txt"}}}], base_dir=str(base))

        with pytest.raises(ValueError, match="Path traversal"):
            await store.get_binary(0, "doc")

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        store = ItemBinaryStore([{"binary": {"doc": {"path": "nope.txt"}}}], base_dir=str(tmp_path))

        with pytest.raises(FileNotFoundError):
            await store.get_binary(0, "doc")

    @pytest.mark.asyncio
    async def test_missing_property(self):
        store = ItemBinaryStore([{"json": {}}])

        with pytest.raises(BinaryDataNotFound, match="no binary property 'data'"):
            await store.get_binary(0, "data")

    @pytest.mark.asyncio
    async def test_missing_item(self):
        store = ItemBinaryStore([])

        with pytest.raises(BinaryDataNotFound):
            await store.get_binary(2, "data")

    @pytest.mark.asyncio
    async def test_entry_without_content(self):
        store = ItemBinaryStore([{"binary": {"data": {"fileName": "x.txt"}}}])

        with pytest.raises(ValueError, match="neither data nor path"):
            await store.get_binary(0, "data")
