"""
Test streaming zip construction and image recompression entries.
"""

import uuid
import zipfile
from io import BytesIO
from pathlib import Path

from PIL import Image

from microtools.models.artifacts import ArchiveEntry, UploadedArtifact
from microtools.services.archive import compressed_image_entries, iter_zip
from microtools.services.images import encode_image, recompress_image, resize_image


def _artifact(tmp_path, name, data):
    path = tmp_path / f"upload-{uuid.uuid4().hex[:8]}{Path(name).suffix}"
    path.write_bytes(data)
    return UploadedArtifact(temp_path=path, original_name=name, declared_size=len(data))


class TestIterZip:
    """Test incremental archive output."""

    def test_entries_in_order(self, tmp_path):
        """Test that buffer and file entries land in the archive in order."""
        on_disk = tmp_path / "big.bin"
        on_disk.write_bytes(b"x" * 300_000)
        entries = [
            ArchiveEntry(name="first.txt", data=b"hello"),
            ArchiveEntry(name="second.bin", path=on_disk),
            ArchiveEntry(name="third.txt", data=b"world"),
        ]

        chunks = list(iter_zip(entries))
        assert len(chunks) > 1

        with zipfile.ZipFile(BytesIO(b"".join(chunks))) as archive:
            assert archive.namelist() == ["first.txt", "second.bin", "third.txt"]
            assert archive.read("first.txt") == b"hello"
            assert archive.read("second.bin") == b"x" * 300_000
            assert archive.getinfo("second.bin").compress_type == zipfile.ZIP_DEFLATED
            assert archive.testzip() is None

    def test_empty_archive(self):
        """Test that no entries still yields a valid archive."""
        with zipfile.ZipFile(BytesIO(b"".join(iter_zip([])))) as archive:
            assert archive.namelist() == []


class TestCompressedImageEntries:
    """Test per-image recompression with fallback."""

    def test_recompressed_names(self, tmp_path, image_bytes):
        """Test that processed images are renamed with a -compressed suffix."""
        artifacts = [
            _artifact(tmp_path, "holiday.jpg", image_bytes("JPEG")),
            _artifact(tmp_path, "logo.png", image_bytes("PNG")),
        ]
        entries = list(compressed_image_entries(artifacts, 50))
        assert [entry.name for entry in entries] == ["holiday-compressed.jpg", "logo-compressed.png"]
        assert all(entry.data for entry in entries)
        assert Image.open(BytesIO(entries[0].data)).format == "JPEG"

    def test_unreadable_image_bundled_verbatim(self, tmp_path, image_bytes):
        """Test that a broken image is bundled unchanged under its original name."""
        broken = _artifact(tmp_path, "broken.jpg", b"definitely not a jpeg")
        artifacts = [_artifact(tmp_path, "ok.png", image_bytes("PNG")), broken]

        entries = list(compressed_image_entries(artifacts, 80))

        assert [entry.name for entry in entries] == ["ok-compressed.png", "broken.jpg"]
        assert entries[1].path == broken.temp_path
        assert entries[1].data is None

    def test_unknown_extension_bundled_verbatim(self, tmp_path):
        """Test that a file without a writable image format is kept as is."""
        artifact = _artifact(tmp_path, "notes.xyz", b"plain bytes")
        entries = list(compressed_image_entries([artifact], 80))
        assert entries[0].name == "notes.xyz"


class TestImageTransforms:
    """Test Pillow transforms."""

    def test_rgba_to_jpeg_flattened(self):
        """Test that transparency is flattened onto white for JPEG."""
        image = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        with Image.open(BytesIO(encode_image(image, "JPEG", 80))) as decoded:
            assert decoded.mode == "RGB"
            assert decoded.getpixel((5, 5))[0] > 240

    def test_cmyk_to_png_converted(self):
        """Test that modes PNG cannot store are converted first."""
        image = Image.new("CMYK", (10, 10), (0, 128, 128, 0))
        with Image.open(BytesIO(encode_image(image, "PNG"))) as decoded:
            assert decoded.format == "PNG"
            assert decoded.mode == "RGB"

    def test_16_bit_grayscale_to_png(self):
        """Test that 16-bit grayscale stays grayscale."""
        image = Image.new("I;16", (10, 10), 1000)
        with Image.open(BytesIO(encode_image(image, "PNG"))) as decoded:
            assert decoded.format == "PNG"
            assert decoded.size == (10, 10)

    def test_recompress_keeps_format(self, tmp_path, image_bytes):
        """Test recompression in the source format."""
        path = tmp_path / "in.webp"
        path.write_bytes(image_bytes("WEBP"))
        with Image.open(BytesIO(recompress_image(path, "webp", 40))) as decoded:
            assert decoded.format == "WEBP"

    def test_resize_one_dimension_keeps_aspect(self, tmp_path, image_bytes):
        """Test that a single dimension scales the other proportionally."""
        path = tmp_path / "in.png"
        path.write_bytes(image_bytes("PNG", size=(200, 100)))
        with Image.open(BytesIO(resize_image(path, 100, None))) as decoded:
            assert decoded.size == (100, 50)
        with Image.open(BytesIO(resize_image(path, None, 25))) as decoded:
            assert decoded.size == (50, 25)

    def test_resize_both_dimensions_fits_box(self, tmp_path, image_bytes):
        """Test that two dimensions produce exactly that box."""
        path = tmp_path / "in.png"
        path.write_bytes(image_bytes("PNG", size=(200, 100)))
        with Image.open(BytesIO(resize_image(path, 60, 60))) as decoded:
            assert decoded.size == (60, 60)
            assert decoded.format == "PNG"


class TestDuplicateNames:
    """Test that repeated member names never collide."""

    def test_repeated_names_suffixed(self):
        """Test that later duplicates get -1, -2 before the extension."""
        entries = [
            ArchiveEntry(name="a.jpg", data=b"one"),
            ArchiveEntry(name="a.jpg", data=b"two"),
            ArchiveEntry(name="a.jpg", data=b"three"),
            ArchiveEntry(name="README", data=b"four"),
            ArchiveEntry(name="README", data=b"five"),
        ]
        with zipfile.ZipFile(BytesIO(b"".join(iter_zip(entries)))) as archive:
            assert archive.namelist() == ["a.jpg", "a-1.jpg", "a-2.jpg", "README", "README-1"]
            assert archive.read("a-2.jpg") == b"three"

    def test_suffix_skips_taken_name(self):
        """Test that a generated name never shadows an earlier entry."""
        entries = [
            ArchiveEntry(name="a-1.jpg", data=b"one"),
            ArchiveEntry(name="a.jpg", data=b"two"),
            ArchiveEntry(name="a.jpg", data=b"three"),
        ]
        with zipfile.ZipFile(BytesIO(b"".join(iter_zip(entries)))) as archive:
            assert archive.namelist() == ["a-1.jpg", "a.jpg", "a-2.jpg"]
