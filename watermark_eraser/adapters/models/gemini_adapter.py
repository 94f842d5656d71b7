"""Gemini adapter - implements the ImageModel port with google-genai."""

from __future__ import annotations

import base64
import logging

from google import genai
from google.genai import types as genai_types

from ...config import (
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_S,
    MODE_PROMPTS,
)
from ...domain.value_objects.config import ProcessMode
from ...exceptions import ConfigurationError, ExternalServiceError
from ...utils.env import load_api_key

logger = logging.getLogger(__name__)


class GeminiImageModel:
    """Adapter for Gemini image-editing models."""
    
    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = DEFAULT_MODEL_NAME,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: genai.Client | None = None
    ):
        self._api_key = api_key
        self._model_name = model_name
        self._temperature = temperature
        self._timeout_s = timeout_s
        self._client = client
    
    @property
    def name(self) -> str:
        return self._model_name
    
    def _get_client(self) -> genai.Client:
        """Create the client on first use."""
        if self._client is not None:
            return self._client
        
        api_key = self._api_key or load_api_key()
        if not api_key:
            raise ConfigurationError(
                "Gemini API key is missing. Set GEMINI_API_KEY or store one with "
                "'watermark-eraser --save-api-key'",
                config_key="GEMINI_API_KEY"
            )
        
        self._client = genai.Client(
            api_key=api_key,
            http_options=genai_types.HttpOptions(timeout=int(self._timeout_s * 1000))
        )
        return self._client
    
    def build_contents(
        self,
        image_png: bytes,
        mode: ProcessMode,
        mask_png: bytes | None = None
    ) -> list[genai_types.Part]:
        """Assemble the request parts: image, optional mask, instruction.
        
        A manual request without a mask is sent with the auto instruction.
        """
        mode = ProcessMode(mode)
        parts = [genai_types.Part.from_bytes(data=image_png, mime_type="image/png")]
        
        if mode == ProcessMode.TILED:
            prompt = MODE_PROMPTS[ProcessMode.TILED.value]
        elif mask_png:
            parts.append(genai_types.Part.from_bytes(data=mask_png, mime_type="image/png"))
            prompt = MODE_PROMPTS[ProcessMode.MANUAL.value]
        else:
            prompt = MODE_PROMPTS[ProcessMode.AUTO.value]
        
        parts.append(genai_types.Part.from_text(text=prompt))
        return parts
    
    def generate(
        self,
        image_png: bytes,
        mode: ProcessMode,
        mask_png: bytes | None = None
    ) -> bytes:
        """Call Gemini and return the first image it produces."""
        client = self._get_client()
        contents = self.build_contents(image_png, mode, mask_png)
        
        logger.info(f"Calling {self._model_name} ({ProcessMode(mode).value} mode)")
        try:
            response = client.models.generate_content(
                model=self._model_name,
                contents=contents,
                config=genai_types.GenerateContentConfig(
                    temperature=self._temperature,
                    response_modalities=["IMAGE", "TEXT"],
                ),
            )
        except Exception as e:
            raise ExternalServiceError(
                f"Gemini request failed: {e}", model_id=self._model_name
            ) from e
        
        data = self.extract_image(response)
        if data is None:
            raise ExternalServiceError(
                "No image data received from AI.", model_id=self._model_name
            )
        return data
    
    @staticmethod
    def extract_image(response: object) -> bytes | None:
        """Return the first inline image payload of a response, if any."""
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    data = inline.data
                    if isinstance(data, str):
                        data = base64.b64decode(data)
                    return data
        return None
