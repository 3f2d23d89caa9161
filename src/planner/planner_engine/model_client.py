"""Generative model client used for activity extraction."""

import os
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from dotenv import load_dotenv
from google import genai
from google.genai import types

from .utils import ModelCallError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_S = 120


@dataclass
class ImageBlob:
    """Encoded image sent alongside the prompt text."""
    data: bytes
    mime_type: str = "image/png"
    source: str = ""


ModelContent = Union[str, Sequence[Union[str, ImageBlob]]]


class GeminiModelClient:
    """Calls Gemini and returns the raw response text."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S
    ):
        """
        Initialize the client.

        Args:
            api_key: Gemini API key
            model: Model name
            timeout_s: Request timeout in seconds; a timeout fails the whole call
        """
        self.model = model
        self.timeout_s = timeout_s
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    @classmethod
    def from_env(cls) -> 'GeminiModelClient':
        """Build a client from GEMINI_API_KEY, PLANNER_MODEL and PLANNER_MODEL_TIMEOUT_S."""
        load_dotenv()

        api_key = os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise RuntimeError("Missing GEMINI_API_KEY in environment or .env")

        return cls(
            api_key=api_key,
            model=os.getenv("PLANNER_MODEL", DEFAULT_MODEL),
            timeout_s=float(os.getenv("PLANNER_MODEL_TIMEOUT_S", DEFAULT_TIMEOUT_S)),
        )

    def generate(self, system_instruction: str, content: ModelContent) -> str:
        """
        Send the prompt and return the response text.

        Args:
            system_instruction: Instructions describing the expected JSON
            content: Prompt text, or a sequence of text and ImageBlob parts

        Returns:
            Response text (expected to be JSON)

        Raises:
            ModelCallError: If the request fails or times out
        """
        if isinstance(content, str):
            contents = content
        else:
            contents = [
                types.Part.from_bytes(data=part.data, mime_type=part.mime_type)
                if isinstance(part, ImageBlob) else part
                for part in content
            ]

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=contents,
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    response_mime_type="application/json",
                    temperature=0,
                ),
            )
        except Exception as e:
            raise ModelCallError(f"Model call failed ({self.model}): {type(e).__name__}: {e}") from e

        return response.text or ""


def get_model_client(model_client: Optional[object] = None) -> object:
    """Return the given client or one configured from the environment."""
    return model_client if model_client is not None else GeminiModelClient.from_env()
