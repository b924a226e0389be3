"""
Settings access
Typed, read-only view over the project config.toml
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .logger import get_logger, load_project_config

logger = get_logger(__name__)


class ConversionConfig(BaseModel):
    """Tunables for classification, strategy selection and the quality search"""

    model_config = ConfigDict(frozen=True)

    target_format: str = "webp"
    skip_max_bytes: int = 200_000
    ssim_threshold: float = Field(default=0.96, ge=0.0, le=1.0)
    comparison_canvas: int = Field(default=512, gt=0)
    preview_width: int = Field(default=800, gt=0)
    preview_height: int = Field(default=600, gt=0)
    lossless_effort: int = Field(default=6, ge=0, le=6)
    flat_entropy: float = 4.5
    dark_mean: float = 60.0
    high_detail_entropy: float = 6.0
    fetch_timeout: float = Field(default=30.0, gt=0)


class Settings:
    """Read-only settings loaded from the project configuration"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = config if config is not None else load_project_config()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dotted key

        Args:
            key: Dotted path, e.g. "conversion.ssim_threshold"
            default: Returned when any path segment is missing

        Returns:
            Configured value or default
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_conversion_config(self) -> ConversionConfig:
        """Build the conversion config, falling back to defaults per key"""
        values: Dict[str, Any] = {}
        values.update(self.get("conversion", {}) or {})
        values.update(self.get("classification", {}) or {})

        timeout = self.get("fetch.timeout")
        if timeout is not None:
            values["fetch_timeout"] = timeout

        known = {k: v for k, v in values.items() if k in ConversionConfig.model_fields}
        return ConversionConfig(**known)


_global_settings: Optional[Settings] = None


def get_settings(reset: bool = False) -> Settings:
    """Get or create the settings instance"""
    global _global_settings

    if _global_settings is None or reset:
        _global_settings = Settings()
        logger.debug("Settings loaded")

    return _global_settings


def get_conversion_config() -> ConversionConfig:
    """Shortcut for the conversion section of the project config"""
    try:
        return get_settings().get_conversion_config()
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read conversion config, using defaults: {e}")
        return ConversionConfig()
