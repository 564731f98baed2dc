"""Tests for blogimage.core.materializer - the generate, tag and save pipeline.

A FakeProvider stands in for Gemini, so every test runs offline and writes
only into a temporary directory.

Tests cover:
- End-to-end success with provenance embedded into a PNG.
- Geometry advisories (native mismatch and dimension drift).
- Non-PNG images written unchanged.
- Validation and not-configured failures that never reach the provider.
- Provider, empty-data and write failures.
- Secret redaction in error text.
"""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path

from blogimage.core.config import BlogImageConfig
from blogimage.core.errors import ErrorKind, ProviderError
from blogimage.core.materializer import ImageMaterializer, build_provider_prompt
from blogimage.core.models import AdvisoryCategory, GenerationRequest
from blogimage.core.png_metadata import read_text_chunks
from blogimage.providers.base import ProviderRegistry


def _run(registry: ProviderRegistry, config: BlogImageConfig, **request):
    materializer = ImageMaterializer(registry, config)
    request.setdefault("prompt", "a lighthouse at dusk")
    return asyncio.run(materializer.materialize(GenerationRequest(**request)))


def _files(directory: Path) -> list[Path]:
    return [p for p in directory.rglob("*") if p.is_file()] if directory.exists() else []


class TestBuildProviderPrompt:
    def test_without_title(self):
        assert build_provider_prompt("a cat", None) == "a cat"

    def test_with_title(self):
        assert build_provider_prompt("a cat", "Pets") == 'For a blog post titled "Pets": a cat'


# ---------------------------------------------------------------------------
# Success paths.
# ---------------------------------------------------------------------------


class TestSuccess:
    """Test successful materialization."""

    def test_ghost_banner_end_to_end(self, fake_registry, fake_provider, test_config, png_bytes):
        """Exact 1200x675 output is saved with provenance and no advisory."""
        outcome = _run(fake_registry, test_config, format="ghost-banner")

        assert outcome.success is True
        assert outcome.error_kind is None
        assert outcome.advisory is None
        assert (outcome.width, outcome.height) == (1200, 675)
        assert outcome.model == "fake-model-1"

        saved = outcome.saved_path.read_bytes()
        assert outcome.saved_path.parent == test_config.output_dir.resolve()
        assert outcome.saved_path.name.startswith("blog-image-")
        assert outcome.saved_path.suffix == ".png"
        assert outcome.byte_size == len(saved)
        assert outcome.image_data == saved

        texts = read_text_chunks(saved)
        assert texts["Description"] == "a lighthouse at dusk"
        assert texts["AI-Model"] == "fake-model-1"
        assert texts["AI-Provider"] == "gemini"
        assert texts["Image-Format"] == "ghost-banner"
        overhead = sum(12 + len(k) + 1 + len(v.encode("utf-8")) for k, v in texts.items())
        assert len(saved) == len(png_bytes) + overhead

    def test_provider_receives_preset_geometry(self, fake_registry, fake_provider, test_config):
        _run(
            fake_registry,
            test_config,
            format="instagram-story",
            quality="high",
            style="watercolor",
            title="Spring Notes",
        )
        (options,) = fake_provider.calls
        assert (options.width, options.height) == (1080, 1920)
        assert options.aspect_ratio == "9:16"
        assert options.quality == "high"
        assert options.style == "watercolor"
        assert options.prompt == 'For a blog post titled "Spring Notes": a lighthouse at dusk'

    def test_title_used_as_filename_prefix(self, fake_registry, test_config):
        outcome = _run(fake_registry, test_config, title="Evening Walks!")
        assert outcome.saved_path.name.startswith("evening-walks-")
        assert read_text_chunks(outcome.saved_path.read_bytes())["Title"] == "Evening Walks!"

    def test_explicit_file_path(self, fake_registry, test_config, temp_dir):
        outcome = _run(fake_registry, test_config, output_path=str(temp_dir / "covers" / "post"))
        assert outcome.saved_path == (temp_dir / "covers" / "post.png").resolve()
        assert outcome.saved_path.exists()

    def test_directory_path(self, fake_registry, test_config, temp_dir):
        outcome = _run(fake_registry, test_config, output_path=str(temp_dir) + "/")
        assert outcome.saved_path.parent == temp_dir.resolve()

    def test_directory_path_with_title(self, fake_registry, test_config, temp_dir):
        """A title also names files generated inside a supplied directory."""
        outcome = _run(
            fake_registry, test_config, title="Night Shift", output_path=str(temp_dir) + "/"
        )
        assert outcome.saved_path.parent == temp_dir.resolve()
        assert outcome.saved_path.name.startswith("night-shift-")
        assert outcome.saved_path.suffix == ".png"

    def test_mime_base64_with_line_breaks(self, fake_registry_factory, test_config, png_bytes):
        """Base64 wrapped at 76 columns decodes like a single line."""
        wrapped = base64.encodebytes(png_bytes).decode("ascii")
        assert "\n" in wrapped
        registry, _ = fake_registry_factory(encoded=wrapped)
        outcome = _run(registry, test_config)
        assert outcome.success is True
        saved = outcome.saved_path.read_bytes()
        assert read_text_chunks(saved)["Description"] == "a lighthouse at dusk"

    def test_non_png_written_unchanged(self, fake_registry_factory, test_config):
        jpeg = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-jpeg-payload"
        registry, _ = fake_registry_factory(image=jpeg, mime_type="image/jpeg")
        outcome = _run(registry, test_config)
        assert outcome.success is True
        assert outcome.saved_path.suffix == ".jpg"
        assert outcome.saved_path.read_bytes() == jpeg
        assert outcome.byte_size == len(jpeg)

    def test_to_result(self, fake_registry, test_config):
        result = _run(fake_registry, test_config).to_result()
        assert result.success is True
        assert result.message.startswith("Image generated and saved to ")
        saved = Path(result.image.saved_to).read_bytes()
        assert base64.b64decode(result.image.base64_data) == saved
        assert result.image.dimensions.requested_width == 1200
        assert result.image.file_size.endswith("B")
        assert result.warning is None


class TestGeometryAdvisories:
    """Test geometry reconciliation inside the pipeline."""

    def test_native_mismatch(self, fake_registry_factory, test_config):
        registry, _ = fake_registry_factory(width=1536, height=864)
        outcome = _run(registry, test_config, format="og-image")
        assert outcome.success is True
        assert (outcome.width, outcome.height) == (1200, 630)
        assert outcome.advisory.category is AdvisoryCategory.NATIVE_MISMATCH
        assert "1.91:1" in outcome.to_result().warning

    def test_dimension_drift(self, fake_registry_factory, test_config):
        registry, _ = fake_registry_factory(width=1536, height=864)
        outcome = _run(registry, test_config, format="ghost-banner")
        assert (outcome.width, outcome.height) == (1536, 864)
        assert outcome.advisory.category is AdvisoryCategory.DIMENSION_DRIFT

    def test_unknown_dimensions_assume_requested(self, fake_registry_factory, test_config):
        registry, _ = fake_registry_factory()
        outcome = _run(registry, test_config, format="square")
        assert (outcome.width, outcome.height) == (1024, 1024)
        assert outcome.advisory is None


# ---------------------------------------------------------------------------
# Failure paths.
# ---------------------------------------------------------------------------


class TestValidationFailures:
    """Invalid requests never reach the provider."""

    def test_unknown_format(self, fake_registry, fake_provider, test_config):
        outcome = _run(fake_registry, test_config, format="billboard")
        assert outcome.error_kind is ErrorKind.INVALID_INPUT
        assert "Unknown format: billboard" in outcome.error
        assert fake_provider.calls == []

    def test_short_prompt(self, fake_registry, fake_provider, test_config):
        outcome = _run(fake_registry, test_config, prompt="  a ")
        assert outcome.error_kind is ErrorKind.INVALID_INPUT
        assert fake_provider.calls == []

    def test_unknown_provider(self, fake_registry, fake_provider, test_config):
        outcome = _run(fake_registry, test_config, provider="dalle")
        assert outcome.error_kind is ErrorKind.INVALID_INPUT
        assert "gemini" in outcome.error
        assert fake_provider.calls == []

    def test_default_provider_comes_from_config(self, fake_registry, fake_provider, test_config):
        """Requests without a provider use ``default_provider``."""
        cfg = test_config.model_copy(update={"default_provider": "house"})
        outcome = _run(fake_registry, cfg)
        assert outcome.error_kind is ErrorKind.INVALID_INPUT
        assert "Unknown provider: house" in outcome.error
        assert fake_provider.calls == []


class TestNotConfigured:
    def test_no_provider_call_and_no_files(self, fake_registry_factory, test_config):
        registry, provider = fake_registry_factory(configured=False)
        outcome = _run(registry, test_config)
        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.NOT_CONFIGURED
        assert "GOOGLE_API_KEY" in outcome.error
        assert provider.calls == []
        assert not test_config.output_dir.exists()


class TestProviderFailures:
    """Upstream failures leave the filesystem untouched."""

    def test_retryable_provider_error(
        self, fake_registry_factory, test_config, retryable_provider_error
    ):
        registry, _ = fake_registry_factory(error=retryable_provider_error)
        outcome = _run(registry, test_config)
        assert outcome.error_kind is ErrorKind.PROVIDER_FAILURE
        assert outcome.retryable is True
        assert "503" in outcome.error
        assert _files(test_config.output_dir) == []

    def test_non_retryable_provider_error(self, fake_registry_factory, test_config):
        registry, _ = fake_registry_factory(error=ProviderError("400 bad prompt", "gemini"))
        outcome = _run(registry, test_config)
        assert outcome.retryable is False

    def test_unexpected_exception(self, fake_registry_factory, test_config):
        registry, _ = fake_registry_factory(error=RuntimeError("socket closed"))
        outcome = _run(registry, test_config)
        assert outcome.error_kind is ErrorKind.PROVIDER_FAILURE
        assert outcome.error == "socket closed"

    def test_empty_image_data(self, fake_registry_factory, test_config):
        registry, _ = fake_registry_factory(image=b"")
        outcome = _run(registry, test_config)
        assert outcome.error_kind is ErrorKind.EMPTY_IMAGE_DATA
        assert outcome.retryable is True
        assert _files(test_config.output_dir) == []


class TestWriteFailure:
    def test_parent_is_a_file(self, fake_registry, test_config, temp_dir):
        """The image is generated but the directory cannot be created."""
        blocker = temp_dir / "blocker"
        blocker.write_bytes(b"")
        outcome = _run(fake_registry, test_config, output_path=str(blocker / "image.png"))
        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.WRITE_FAILURE
        assert "generated" in outcome.error
        assert outcome.saved_path is None

    def test_image_bytes_survive(self, fake_registry, test_config, temp_dir):
        """The tagged image is returned so the caller can save it elsewhere."""
        blocker = temp_dir / "blocker"
        blocker.write_bytes(b"")
        outcome = _run(fake_registry, test_config, output_path=str(blocker / "image.png"))
        assert outcome.error_kind is ErrorKind.WRITE_FAILURE
        assert read_text_chunks(outcome.image_data)["AI-Model"] == "fake-model-1"
        assert outcome.byte_size == len(outcome.image_data)

        result = outcome.to_result()
        assert result.success is False
        assert base64.b64decode(result.image.base64_data) == outcome.image_data
        assert result.image.saved_to is None
        assert result.image.dimensions.width == 1200


class TestSecretRedaction:
    def test_api_key_removed_from_error(self, temp_dir):
        secret = "configured-secret-value-123"
        cfg = BlogImageConfig(output_dir=str(temp_dir), google_api_key=secret, _env_file=None)
        registry = ProviderRegistry(cfg)

        class LeakyProvider:
            name = "gemini"

            def is_configured(self):
                return True

            async def generate_image(self, options):
                raise RuntimeError(f"401 from https://example.test/?key={secret} ({secret})")

            def get_supported_aspect_ratios(self):
                return ["1:1"]

            def get_max_resolution(self):
                return (1024, 1024)

        registry.register("gemini", lambda c: LeakyProvider())
        outcome = _run(registry, cfg)
        assert outcome.error_kind is ErrorKind.PROVIDER_FAILURE
        assert secret not in outcome.error
        assert "[REDACTED]" in outcome.error
