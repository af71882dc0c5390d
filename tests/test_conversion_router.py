"""
Test conversion routing, tool argument building and parameter parsing.
"""

from pathlib import Path

import pytest

from microtools.exceptions import InvalidParameterError, UnsupportedConversionError
from microtools.models.artifacts import ConversionCategory, UploadedArtifact
from microtools.services.images import clamp_quality, parse_dimension, pillow_format
from microtools.services.office import build_convert_args, expected_output
from microtools.services.pdf import build_distill_args, resolve_pdf_preset
from microtools.services.proxies import build_twitter_args, is_twitter_url
from microtools.services.router import classify, plan_job
from microtools.services.transcoder import build_transcode_args
from microtools.services.youtube import extract_links, is_youtube_url
from microtools.utils.fs import TempStorage


class TestClassify:
    """Test source/target classification."""

    @pytest.mark.parametrize("source,target", [("jpg", "png"), ("jpeg", "webp"), ("webp", "jpg"), ("png", "png")])
    def test_image_pairs(self, source, target):
        """Test pairs handled in-process."""
        assert classify(source, target) is ConversionCategory.IMAGE

    @pytest.mark.parametrize("source,target", [("mp4", "mp3"), ("wav", "mp3"), ("mp3", "wav"), ("mp4", "mp4")])
    def test_media_pairs(self, source, target):
        """Test pairs handled by FFmpeg."""
        assert classify(source, target) is ConversionCategory.MEDIA

    @pytest.mark.parametrize("source", ["docx", "doc", "odt", "pptx", "xlsx", "txt"])
    def test_document_pairs(self, source):
        """Test pairs handled by LibreOffice."""
        assert classify(source, "pdf") is ConversionCategory.DOCUMENT

    def test_normalizes_case_and_dot(self):
        """Test that extensions are compared case-insensitively."""
        assert classify(".PNG", "JPG") is ConversionCategory.IMAGE

    def test_unsupported_pair(self):
        """Test that unknown pairs are rejected with both extensions."""
        with pytest.raises(UnsupportedConversionError) as exc_info:
            classify("exe", "pdf")
        assert exc_info.value.details == {"source": "exe", "target": "pdf"}
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("source,target", [("png", "mp3"), ("pdf", "docx"), ("mp4", "pdf"), ("gif", "png")])
    def test_cross_category_rejected(self, source, target):
        """Test that pairs spanning categories are rejected."""
        with pytest.raises(UnsupportedConversionError):
            classify(source, target)


class TestPlanJob:
    """Test output path planning."""

    def _artifact(self, storage, name):
        path = storage.allocate("upload", Path(name).suffix)
        path.write_bytes(b"data")
        return UploadedArtifact(temp_path=path, original_name=name, declared_size=4)

    def test_media_output_allocated(self, tmp_path):
        """Test that media jobs get a fresh output with the target suffix."""
        storage = TempStorage(tmp_path)
        with storage.scope() as scope:
            job = plan_job(self._artifact(storage, "clip.mp4"), "mp3", scope)
            assert job.output_path.suffix == ".mp3"
            assert job.output_path in scope.paths

    def test_document_output_predicted(self, tmp_path):
        """Test that document jobs track the file soffice will write."""
        storage = TempStorage(tmp_path)
        with storage.scope() as scope:
            artifact = self._artifact(storage, "report.docx")
            job = plan_job(artifact, "pdf", scope)
            assert job.output_path == artifact.temp_path.with_suffix(".pdf")
            assert job.output_path in scope.paths
            assert job.options["profile_dir"] in scope.paths

    def test_document_profiles_not_shared(self, tmp_path):
        """Test that each document job gets its own LibreOffice profile."""
        storage = TempStorage(tmp_path)
        with storage.scope() as scope:
            first = plan_job(self._artifact(storage, "a.docx"), "pdf", scope)
            second = plan_job(self._artifact(storage, "b.docx"), "pdf", scope)
            assert first.options["profile_dir"] != second.options["profile_dir"]

    def test_image_has_no_output_path(self, tmp_path):
        """Test that image jobs produce a buffer, not a file."""
        storage = TempStorage(tmp_path)
        with storage.scope() as scope:
            job = plan_job(self._artifact(storage, "photo.png"), "webp", scope)
            assert job.output_path is None


class TestParameters:
    """Test form parameter parsing."""

    @pytest.mark.parametrize("raw,expected", [
        (None, 80),
        ("abc", 80),
        ("", 80),
        ("5", 10),
        ("150", 100),
        ("55", 55),
        (" 70 ", 70),
        (10, 10),
    ])
    def test_clamp_quality(self, raw, expected):
        """Test quality defaulting and clamping."""
        assert clamp_quality(raw) == expected

    @pytest.mark.parametrize("level,preset", [
        ("low", "/screen"),
        ("medium", "/ebook"),
        ("high", "/printer"),
        ("HIGH", "/printer"),
        ("extreme", "/ebook"),
        (None, "/ebook"),
    ])
    def test_resolve_pdf_preset(self, level, preset):
        """Test level to Ghostscript preset mapping."""
        assert resolve_pdf_preset(level) == preset

    def test_parse_dimension(self):
        """Test resize dimension parsing."""
        assert parse_dimension(None, "width", 100) is None
        assert parse_dimension(" ", "width", 100) is None
        assert parse_dimension("42", "width", 100) == 42

    @pytest.mark.parametrize("raw", ["0", "-3", "101", "wide", "1.5"])
    def test_parse_dimension_rejects(self, raw):
        """Test rejection of out-of-range and non-integer dimensions."""
        with pytest.raises(InvalidParameterError):
            parse_dimension(raw, "width", 100)

    def test_pillow_format(self):
        """Test extension to Pillow format resolution."""
        assert pillow_format("jpg") == "JPEG"
        assert pillow_format(".webp") == "WEBP"
        assert pillow_format("exe") is None
        assert pillow_format("") is None


class TestToolArguments:
    """Test argument vectors handed to external tools."""

    def test_distill_args(self):
        """Test the Ghostscript pdfwrite invocation."""
        args = build_distill_args(Path("/w/in.pdf"), Path("/w/out.pdf"), "/screen")
        assert args[0] == "-sDEVICE=pdfwrite"
        assert "-dPDFSETTINGS=/screen" in args
        assert "-dBATCH" in args and "-dNOPAUSE" in args
        assert "-sOutputFile=/w/out.pdf" in args
        assert args[-1] == "/w/in.pdf"

    def test_transcode_args(self):
        """Test the FFmpeg invocation."""
        assert build_transcode_args(Path("/w/a.mp4"), Path("/w/b.mp3")) == ["-y", "-i", "/w/a.mp4", "/w/b.mp3"]

    def test_convert_args(self):
        """Test the LibreOffice invocation and its predicted output."""
        args = build_convert_args(Path("/w/upload-1.docx"), "pdf", Path("/w"), Path("/w/soffice-profile-1"))
        assert args == [
            "-env:UserInstallation=file:///w/soffice-profile-1",
            "--headless", "--convert-to", "pdf", "--outdir", "/w", "/w/upload-1.docx",
        ]
        assert expected_output(Path("/w/upload-1.docx"), "pdf", Path("/w")) == Path("/w/upload-1.pdf")

    def test_twitter_args_end_options(self):
        """Test that the URL follows ``--`` so it is never parsed as a flag."""
        args = build_twitter_args("--exec=rm", Path("/w/t.mp4"))
        assert args[-2:] == ["--", "--exec=rm"]


class TestUrlChecks:
    """Test URL recognition for download endpoints."""

    @pytest.mark.parametrize("url,expected", [
        ("https://twitter.com/user/status/1", True),
        ("https://x.com/user/status/1", True),
        ("https://mobile.twitter.com/user/status/1", True),
        ("https://notx.com/user/status/1", False),
        ("ftp://x.com/file", False),
        ("x.com/user/status/1", False),
    ])
    def test_is_twitter_url(self, url, expected):
        """Test Twitter/X host matching."""
        assert is_twitter_url(url) is expected

    @pytest.mark.parametrize("url,expected", [
        ("https://www.youtube.com/watch?v=abc", True),
        ("https://youtu.be/abc", True),
        ("https://example.com/watch?v=abc", False),
        ("javascript:alert(1)", False),
    ])
    def test_is_youtube_url(self, url, expected):
        """Test YouTube host matching."""
        assert is_youtube_url(url) is expected

    def test_extract_links(self):
        """Test quality ladder mapping from yt-dlp formats."""
        formats = [
            {"height": 360, "vcodec": "none", "url": "https://audio"},
            {"height": 360, "vcodec": "avc1", "url": "https://v360"},
            {"height": 720, "vcodec": "vp9", "url": "https://v720"},
            {"height": 1080, "vcodec": "avc1"},
        ]
        links = extract_links(formats)
        assert list(links) == ["144p", "240p", "360p", "480p", "720p", "1080p"]
        assert links["360p"] == "https://v360"
        assert links["720p"] == "https://v720"
        assert links["1080p"] is None
        assert links["144p"] is None
