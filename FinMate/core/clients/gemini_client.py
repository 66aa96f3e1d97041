"""
Text Generation Client
Thin wrapper over the Gemini SDK exposing a single generate(prompt) call
"""

import os
import logging
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from utils.exceptions import TextGenerationException
from utils.helpers import StringUtils

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-1.5-pro'

class GeminiConfig:
    """Gemini configuration management"""

    def __init__(self, api_key: str = None, model_name: str = None):
        self.api_key = api_key if api_key is not None else os.getenv('GEMINI_API_KEY', '')
        self.model_name = model_name or os.getenv('GEMINI_MODEL', DEFAULT_MODEL)

class TextGenerationClient:
    """Generates free text from a prompt.

    Every failure mode (missing key, quota, network, blocked or empty
    response) surfaces as TextGenerationException so callers handle them
    the same way.
    """

    def __init__(self, config: GeminiConfig = None):
        self.config = config or GeminiConfig()
        self._model = None

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.config.api_key)
            self._model = genai.GenerativeModel(model_name=self.config.model_name)
            logger.info(
                f"Gemini model {self.config.model_name} initialized with key "
                f"{StringUtils.mask_key(self.config.api_key)}"
            )
        return self._model

    def generate(self, prompt: str, temperature: Optional[float] = None, top_k: Optional[int] = None,
                 top_p: Optional[float] = None, max_output_tokens: Optional[int] = None) -> str:
        """Return the generated text for prompt"""
        if not self.is_configured:
            raise TextGenerationException("Gemini API key is not configured", "GENERATION_DISABLED")

        generation_config = {
            key: value for key, value in {
                'temperature': temperature,
                'top_k': top_k,
                'top_p': top_p,
                'max_output_tokens': max_output_tokens,
            }.items() if value is not None
        }

        try:
            response = self._get_model().generate_content(
                prompt, generation_config=generation_config or None
            )
            text = response.text
        except google_exceptions.ResourceExhausted as e:
            raise TextGenerationException(f"Gemini quota exceeded: {e}", "RATE_LIMITED") from e
        except Exception as e:
            raise TextGenerationException(f"Gemini request failed: {e}", "GENERATION_FAILED") from e

        if not text or not text.strip():
            raise TextGenerationException("Gemini returned an empty response", "EMPTY_RESPONSE")

        logger.debug(f"Received response from Gemini: {text[:100]}...")
        return text
