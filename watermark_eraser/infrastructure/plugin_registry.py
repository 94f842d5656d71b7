"""Plugin registry - discovers and loads image model backends via entry points."""

from __future__ import annotations

import logging
from functools import lru_cache
from importlib.metadata import entry_points
from typing import TYPE_CHECKING

from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..application.ports.image_model import ImageModel

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Registry for discovering and loading backend plugins.
    
    Uses entry points for plugin discovery:
    - watermark_eraser.models: ImageModel implementations
    
    Third-party packages can register plugins:
    
    [project.entry-points."watermark_eraser.models"]
    my_backend = "my_package:MyImageModel"
    """
    
    MODEL_GROUP = "watermark_eraser.models"
    DEFAULT_BACKEND = "gemini"
    
    @classmethod
    @lru_cache(maxsize=1)
    def discover_models(cls) -> dict[str, type]:
        """Discover all available image model backends.
        
        Returns:
            Dict mapping backend names to classes
        """
        models = {}
        
        for ep in entry_points(group=cls.MODEL_GROUP):
            try:
                models[ep.name] = ep.load()
                logger.debug(f"Discovered backend: {ep.name}")
            except Exception as e:
                logger.warning(f"Failed to load backend {ep.name}: {e}")
        
        # Built-in backend always wins its name
        from ..adapters.models.gemini_adapter import GeminiImageModel
        models[cls.DEFAULT_BACKEND] = GeminiImageModel
        
        return models
    
    @classmethod
    def create_model(
        cls,
        name: str,
        **kwargs
    ) -> "ImageModel":
        """Create image model instance by backend name.
        
        Args:
            name: Backend name (e.g., 'gemini')
            **kwargs: Constructor arguments
            
        Returns:
            ImageModel instance
            
        Raises:
            ConfigurationError: If backend not found
        """
        models = cls.discover_models()
        
        if name not in models:
            available = ", ".join(cls.list_available_models())
            raise ConfigurationError(
                f"Unknown backend: {name}. Available: {available}",
                config_key="backend"
            )
        
        return models[name](**kwargs)
    
    @classmethod
    def list_available_models(cls) -> list[str]:
        """List available backend names."""
        return list(cls.discover_models().keys())
