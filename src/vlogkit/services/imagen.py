"""Guide image generation with Google Imagen on Vertex AI."""

import base64
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
import requests

from ..config import config
from ..errors import GuideImageError

logger = logging.getLogger(__name__)

GUIDE_PROMPT_TEMPLATE = (
    "Simple storyboard illustration that shows a smartphone videographer how to "
    "frame this vlog shot. No text in the image. Shot: {description}"
)
GUIDE_NEGATIVE_PROMPT = "text, watermark, logo"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class ImagenClient:
    """Calls the Imagen ``predict`` endpoint and stores the first image.

    Credentials come from Application Default Credentials and are refreshed
    for every request.
    """

    DEFAULT_LOCATION = "us-central1"
    GUIDE_ASPECT_RATIO = "9:16"

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: str = DEFAULT_LOCATION,
        model: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        self._project_id = project_id or config.google_cloud_project
        self._location = location
        self._model = model or config.imagen_model
        self._timeout = timeout

        if not self._project_id:
            raise ValueError("GOOGLE_CLOUD_PROJECT not set")

    @property
    def model(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{self._model}:predict"
        )

    def _access_token(self) -> str:
        credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
        credentials.refresh(google.auth.transport.requests.Request())
        return credentials.token

    def _predict(self, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._access_token()}"}
        response = requests.post(self.endpoint, json=body, headers=headers, timeout=self._timeout)
        if response.status_code != 200:
            raise GuideImageError(f"Imagen API error {response.status_code}: {response.text[:500]}")
        return response.json()

    def generate_image(
        self,
        prompt: str,
        output_path: Path,
        aspect_ratio: str = "1:1",
        negative_prompt: Optional[str] = None,
    ) -> Path:
        """Generate one image for ``prompt`` and write it to ``output_path``.

        Args:
            prompt: Text description of the image.
            output_path: Where to save the PNG.
            aspect_ratio: '1:1', '16:9', '9:16', '4:3' or '3:4'.
            negative_prompt: Things to keep out of the image.

        Returns:
            ``output_path``.

        Raises:
            GuideImageError: If the request fails or returns no image.
        """
        parameters: Dict[str, Any] = {"sampleCount": 1, "aspectRatio": aspect_ratio}
        if negative_prompt:
            parameters["negativePrompt"] = negative_prompt

        logger.info(f"Generating image with {self._model}: {prompt[:50]}...")
        try:
            payload = self._predict({"instances": [{"prompt": prompt}], "parameters": parameters})
        except GuideImageError:
            raise
        except (google.auth.exceptions.GoogleAuthError, requests.RequestException, ValueError) as e:
            raise GuideImageError(f"Imagen request failed: {e}") from e

        predictions = payload.get("predictions") or []
        image_data = predictions[0].get("bytesBase64Encoded") if predictions else None
        if not image_data:
            raise GuideImageError("Imagen returned no image")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(base64.b64decode(image_data))
        logger.info(f"Saved image to {output_path}")
        return output_path

    def generate_guide_image(self, prompt: str, output_path: Path) -> Path:
        """Vertical storyboard image for a segment's shot description."""
        return self.generate_image(
            GUIDE_PROMPT_TEMPLATE.format(description=prompt),
            output_path,
            aspect_ratio=self.GUIDE_ASPECT_RATIO,
            negative_prompt=GUIDE_NEGATIVE_PROMPT,
        )
