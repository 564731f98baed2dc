"""Shared pytest fixtures for Blog Image Generator tests."""

from __future__ import annotations

import base64
import io
import shutil
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from blogimage.api.main import create_app
from blogimage.core.config import BlogImageConfig
from blogimage.core.errors import ProviderError
from blogimage.providers.base import ImageGenerationOptions, ProviderRegistry, ProviderResult


def make_png(width: int = 16, height: int = 9, color=(200, 80, 40)) -> bytes:
    """Encode a small solid-colour PNG with Pillow.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        color: RGB fill colour.

    Returns:
        Encoded PNG bytes.
    """
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeProvider:
    """In-memory provider that records calls instead of hitting the network.

    Attributes:
        calls: Options passed to every ``generate_image`` call.
        encoded: Base64 text returned verbatim instead of encoding ``image``.
    """

    name = "fake"

    def __init__(
        self,
        *,
        configured: bool = True,
        image: bytes | None = None,
        mime_type: str = "image/png",
        width: int | None = None,
        height: int | None = None,
        error: Exception | None = None,
        model: str = "fake-model-1",
        encoded: str | None = None,
    ) -> None:
        self.configured = configured
        self.image = image if image is not None else make_png()
        self.mime_type = mime_type
        self.width = width
        self.height = height
        self.error = error
        self.model = model
        self.encoded = encoded
        self.calls: list[ImageGenerationOptions] = []

    def is_configured(self) -> bool:
        return self.configured

    async def generate_image(self, options: ImageGenerationOptions) -> ProviderResult:
        self.calls.append(options)
        if self.error is not None:
            raise self.error
        return ProviderResult(
            base64_data=(
                self.encoded
                if self.encoded is not None
                else base64.b64encode(self.image).decode("ascii")
            ),
            mime_type=self.mime_type,
            width=self.width,
            height=self.height,
            model=self.model,
        )

    def get_supported_aspect_ratios(self) -> list[str]:
        return ["1:1", "16:9"]

    def get_max_resolution(self) -> tuple[int, int]:
        return (2048, 2048)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> BlogImageConfig:
    """Create a test configuration writing into a temporary directory.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        BlogImageConfig instance for testing
    """
    return BlogImageConfig(
        output_dir=str(temp_dir / "generated-images"),
        google_api_key=None,
        _env_file=None,
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A real 16x9 PNG file."""
    return make_png()


@pytest.fixture
def fake_provider() -> FakeProvider:
    """A configured fake provider returning a PNG at the preset size."""
    return FakeProvider(width=1200, height=675)


@pytest.fixture
def fake_registry(test_config: BlogImageConfig, fake_provider: FakeProvider) -> ProviderRegistry:
    """Registry exposing ``fake_provider`` under the name ``gemini``."""
    registry = ProviderRegistry(test_config)
    registry.register("gemini", lambda cfg: fake_provider)
    return registry


@pytest.fixture
def retryable_provider_error() -> ProviderError:
    return ProviderError("Gemini API error: 503 Service Unavailable", "gemini", retryable=True)


@pytest.fixture
def test_client(test_config: BlogImageConfig, fake_registry: ProviderRegistry):
    """FastAPI TestClient wired to the fake provider registry.

    Yields:
        TestClient with the application lifespan running.
    """
    with TestClient(create_app(test_config, fake_registry)) as client:
        yield client


@pytest.fixture
def fake_registry_factory(test_config: BlogImageConfig):
    """Build a registry around a freshly configured FakeProvider.

    Returns:
        Callable taking FakeProvider keyword arguments and returning
        ``(registry, provider)``.
    """

    def _build(**kwargs) -> tuple[ProviderRegistry, FakeProvider]:
        provider = FakeProvider(**kwargs)
        registry = ProviderRegistry(test_config)
        registry.register("gemini", lambda cfg: provider)
        return registry, provider

    return _build
