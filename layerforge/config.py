"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    ASSET_ROOT: Path = Path.cwd()  # Base directory for relative sources

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8090

    # Source fetching
    FETCH_TIMEOUT: float = 10.0  # Seconds
    USER_AGENT: str = "SVGRenderer/1.0"
    CACHE_MAX_BYTES: int = 200 * 1024 * 1024  # 200 MB
    FAILURE_TTL: float = 30.0  # Seconds a failed fetch stays cached

    # Rendering
    MAX_DESIGN_SIZE: int = 10000  # Max width/height in pixels
    VALIDATE_OUTPUT: bool = True
    EMBED_IMAGES: bool = True  # Inline fetched images as data URIs
    RASTER_SUPERSAMPLE: int = 1

    model_config = {"env_prefix": "LAYERFORGE_"}


settings = Settings()
