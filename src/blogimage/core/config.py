"""Configuration management for the Blog Image Generator.

This module provides centralized configuration management using Pydantic Settings.
Project settings are loaded from environment variables with the BLOGIMAGE_ prefix.
Two well-known variables are honoured without the prefix because they are shared
with other tooling:

- ``IMAGE_OUTPUT_DIR``: default directory for generated images
- ``GOOGLE_API_KEY``: credential for the Gemini provider

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables
2. .env file in the project root
3. Default values defined in BlogImageConfig

Example .env file:
    GOOGLE_API_KEY=your-api-key
    IMAGE_OUTPUT_DIR=/srv/blog/images
    BLOGIMAGE_GEMINI_MODEL=gemini-2.5-flash-image
    BLOGIMAGE_SERVER_PORT=8000

Global Configuration Instance
------------------------------
A global `config` instance is created at module import time. It is the
read-only snapshot that the provider registry and the API are built from.

    from blogimage.core.config import config

    print(config.output_dir)
    print(config.has_google_api_key)

Directory Management
--------------------
The configuration does not create any directories. The output directory is
created lazily by the output resolver right before an image is written, so a
request that fails upstream leaves no trace on disk.
"""

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OUTPUT_DIRNAME = "generated-images"


class BlogImageConfig(BaseSettings):
    """Main configuration for the Blog Image Generator.

    Attributes
    ----------
    Output Settings:
        output_dir : Path
            Directory used when a request does not name an output path.
            Relative values are resolved against the current working directory
            at write time.
        filename_prefix : str
            Prefix for generated filenames (``<prefix>-<timestamp>.<ext>``).

    Provider Settings:
        default_provider : str
            Provider used when a request does not name one.
        google_api_key : SecretStr | None
            Gemini API key. Never logged or echoed in error messages.
        gemini_model : str
            Model used for ``standard`` quality requests.
        gemini_pro_model : str
            Model used for ``high`` quality requests.
        request_timeout : float
            Upstream request timeout in seconds.

    Server Settings:
        server_host : str
            Bind address for the HTTP API.
        server_port : int
            Port for the HTTP API (1024-65535).

    Examples
    --------
    Create a configuration for tests:

        >>> cfg = BlogImageConfig(output_dir="/tmp/images", google_api_key=None, _env_file=None)
        >>> cfg.has_google_api_key
        False
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BLOGIMAGE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Output settings
    output_dir: Path = Field(
        default=Path(DEFAULT_OUTPUT_DIRNAME),
        validation_alias=AliasChoices("IMAGE_OUTPUT_DIR", "BLOGIMAGE_OUTPUT_DIR"),
        description="Default directory for generated images",
    )
    filename_prefix: str = Field(
        default="blog-image",
        min_length=1,
        description="Prefix for generated image filenames",
    )

    # Provider settings
    default_provider: str = Field(
        default="gemini",
        description="Provider used when a request does not name one",
    )
    google_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "BLOGIMAGE_GOOGLE_API_KEY"),
        description="API key for the Gemini provider",
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash-image",
        description="Gemini model for standard quality",
    )
    gemini_pro_model: str = Field(
        default="gemini-3-pro-image-preview",
        description="Gemini model for high quality",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Upstream request timeout in seconds",
    )

    # Server settings
    server_host: str = Field(
        default="127.0.0.1",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )

    @property
    def has_google_api_key(self) -> bool:
        """Return True when a non-empty Gemini key is configured."""
        return bool(self.google_api_key and self.google_api_key.get_secret_value().strip())


# Global configuration instance, read once at startup.
config = BlogImageConfig()
