"""Tests for backend discovery."""

import pytest

from watermark_eraser.adapters.models.gemini_adapter import GeminiImageModel
from watermark_eraser.exceptions import ConfigurationError
from watermark_eraser.infrastructure.plugin_registry import PluginRegistry


def test_builtin_backend_listed():
    assert PluginRegistry.DEFAULT_BACKEND in PluginRegistry.list_available_models()


def test_create_gemini():
    model = PluginRegistry.create_model("gemini", api_key="k", temperature=0.5)
    assert isinstance(model, GeminiImageModel)
    assert model.name == "gemini-2.5-flash-image"


def test_unknown_backend():
    with pytest.raises(ConfigurationError) as exc_info:
        PluginRegistry.create_model("nope")
    assert exc_info.value.config_key == "backend"
    assert "gemini" in exc_info.value.message
