"""
Gemini voxel provider implementation.

Uses the Gemini generateContent REST API directly via requests.
API key: set GEMINI_API_KEY env var or pass via ProviderConfig.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from voxel_provider import (
    GenerationOptions, GenerationServiceError, ProviderAuthError, ProviderConfig,
    ProviderRateLimitError, ProviderTimeoutError, RESPONSE_SCHEMA,
    VoxelProvider, build_concept_prompt, build_model_instruction,
)
from voxels import ModelCategory

logger = logging.getLogger(__name__)


def split_data_uri(data_uri: str) -> Tuple[str, str]:
    """Split "data:image/png;base64,AAAA" into ("image/png", "AAAA")."""
    header, sep, data = data_uri.partition(",")
    if not sep:
        # bare base64 payload
        return "image/png", data_uri
    mime = header[len("data:"):].split(";")[0] if header.startswith("data:") else ""
    return mime or "image/png", data


class GeminiProvider(VoxelProvider):
    """Voxel provider backed by the Gemini API."""

    @property
    def name(self) -> str:
        return "gemini"

    def _headers(self):
        return {
            "x-goog-api-key": self.config.api_key,
            "Content-Type": "application/json",
        }

    def _url(self, model_name):
        return f"{self.config.base_url}/models/{model_name}:generateContent"

    def request_elements(self, prompt, category, image_data_uri=None, options=None):
        options = options or GenerationOptions()
        parts: List[Dict[str, Any]] = [
            {"text": build_model_instruction(ModelCategory(category), options)},
            {"text": f'Subject: "{prompt}"'},
        ]
        if image_data_uri:
            mime, data = split_data_uri(image_data_uri)
            if not data:
                raise GenerationServiceError("Reference image has no data")
            parts.append({"inlineData": {"mimeType": mime, "data": data}})

        payload = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "maxOutputTokens": self.config.max_output_tokens,
                "thinkingConfig": {"thinkingBudget": self.config.thinking_budget},
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

        logger.info("Submitting model request to %s", self.config.model_name)
        data = self._post(self.config.model_name, payload)
        text = "".join(
            part.get("text", "")
            for part in self._candidate_parts(data)
            if not part.get("thought")
        )
        logger.info("Received %d characters of structured output", len(text))
        return text

    def generate_concept_image(self, prompt, category, options=None):
        options = options or GenerationOptions()
        payload = {
            "contents": [{
                "role": "user",
                "parts": [{"text": build_concept_prompt(prompt, ModelCategory(category), options)}],
            }],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": "1:1"},
            },
        }

        logger.info("Submitting concept image request: %s", prompt)
        data = self._post(self.config.image_model_name, payload)
        for part in self._candidate_parts(data):
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                return f"data:{mime};base64,{inline['data']}"
        raise GenerationServiceError("Failed to generate concept sheet: no image in response")

    def _post(self, model_name, payload) -> Dict[str, Any]:
        try:
            resp = requests.post(
                self._url(model_name),
                json=payload,
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            raise ProviderTimeoutError(
                f"Request timed out after {self.config.timeout_seconds}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise GenerationServiceError(f"Gemini request failed: {e}") from e

        self._check_response(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise GenerationServiceError(f"Gemini returned a non-JSON body: {e}") from e

    def _check_response(self, resp):
        """Check HTTP response for errors."""
        if resp.status_code == 429:
            raise ProviderRateLimitError("Gemini rate limit exceeded")
        if resp.status_code in (401, 403):
            raise ProviderAuthError(
                f"Gemini authentication failed ({resp.status_code}). "
                "Check your GEMINI_API_KEY."
            )
        if resp.status_code >= 400:
            raise GenerationServiceError(
                f"Gemini API error {resp.status_code}: {resp.text}"
            )

    def _candidate_parts(self, data) -> List[Dict[str, Any]]:
        """Parts of the first candidate's content."""
        candidates = data.get("candidates") or []
        if not candidates:
            feedback = data.get("promptFeedback", {})
            raise GenerationServiceError(f"Gemini returned no candidates: {feedback}")
        content = candidates[0].get("content") or {}
        return content.get("parts") or []


def create_provider(api_key: Optional[str] = None) -> GeminiProvider:
    """Provider configured from the environment."""
    return GeminiProvider(ProviderConfig.from_env(api_key))
