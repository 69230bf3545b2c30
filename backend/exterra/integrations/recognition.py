"""Image recognition backends that label windows and doors in facade photos.

Two interchangeable backends implement :class:`ImageRecognizer`:

- :class:`ClarifaiRecognizer` posts the photo to Clarifai's general image
  recognition model and reads back concepts (and regions when present).
- :class:`VlmRecognizer` asks the Anthropic Vision API to list the
  openings it sees as JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import anthropic
import requests
from anthropic.types import ImageBlockParam, TextBlockParam

from exterra.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

CLARIFAI_URL = (
    "https://api.clarifai.com/v2/models/general-image-recognition/outputs"
)
_CLARIFAI_SUCCESS = 10000


@dataclass(frozen=True)
class Concept:
    """One recognised label.

    ``box`` is ``(left, top, right, bottom)`` as fractions of the image
    width/height when the backend localises the concept.
    """

    name: str
    score: float
    box: tuple[float, float, float, float] | None = None


class ImageRecognizer(Protocol):
    def recognize(self, image_base64: str, media_type: str = "image/jpeg") -> list[Concept]:
        """Label the image. Raises UpstreamServiceError on any failure."""
        ...


# ---------------------------------------------------------------------------
# Clarifai
# ---------------------------------------------------------------------------


class ClarifaiRecognizer:
    """Clarifai general-image-recognition client."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 4.0,
        session: requests.Session | None = None,
        url: str = CLARIFAI_URL,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._session = session or requests.Session()
        self._url = url

    def recognize(self, image_base64: str, media_type: str = "image/jpeg") -> list[Concept]:
        try:
            response = self._session.post(
                self._url,
                headers={
                    "Authorization": f"Key {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={"inputs": [{"data": {"image": {"base64": image_base64}}}]},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            msg = f"Clarifai request failed: {exc}"
            raise UpstreamServiceError(msg) from exc
        return self._parse(data)

    @staticmethod
    def _parse(data: Any) -> list[Concept]:
        try:
            status = data.get("status", {}).get("code", _CLARIFAI_SUCCESS)
            output = data["outputs"][0]["data"]
        except (AttributeError, KeyError, IndexError, TypeError) as exc:
            msg = "Unexpected Clarifai response structure"
            raise UpstreamServiceError(msg) from exc
        if status != _CLARIFAI_SUCCESS:
            msg = f"Clarifai returned status {status}"
            raise UpstreamServiceError(msg)

        # Image-level concepts only count when no region was returned.
        regions = output.get("regions") or []
        concepts: list[Concept] = []
        try:
            for region in regions:
                bbox = region["region_info"]["bounding_box"]
                box = (
                    float(bbox["left_col"]),
                    float(bbox["top_row"]),
                    float(bbox["right_col"]),
                    float(bbox["bottom_row"]),
                )
                for concept in region.get("data", {}).get("concepts") or []:
                    concepts.append(
                        Concept(str(concept["name"]), float(concept["value"]), box)
                    )
            if not regions:
                for concept in output.get("concepts") or []:
                    concepts.append(
                        Concept(str(concept["name"]), float(concept["value"]))
                    )
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed Clarifai concept: {exc}"
            raise UpstreamServiceError(msg) from exc
        return concepts


# ---------------------------------------------------------------------------
# Anthropic Vision
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = (
    "You are an exterior remodeling estimator looking at a photo of one "
    "side of a house.\n\n"
    "List every window and every exterior door you can see. For each one "
    "give a confidence between 0 and 1 and its bounding box as fractions "
    "of the image width and height.\n\n"
    "Output ONLY a JSON object matching exactly this schema:\n\n"
    "```json\n"
    "{\n"
    '  "openings": [\n'
    '    {"name": "<window or door>", "score": <0-1>, '
    '"box": [<left>, <top>, <right>, <bottom>]}\n'
    "  ]\n"
    "}\n"
    "```\n\n"
    "Wrap the JSON in ```json ... ``` code fences. Use an empty list when "
    "no openings are visible."
)


class VlmRecognizer:
    """Recognises windows and doors with the Anthropic Vision API."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5-20250929",
        timeout: float = 4.0,
    ) -> None:
        self._client = anthropic.Anthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )
        self._model = model

    def recognize(self, image_base64: str, media_type: str = "image/jpeg") -> list[Concept]:
        content: list[ImageBlockParam | TextBlockParam] = [
            ImageBlockParam(
                type="image",
                source={
                    "type": "base64",
                    "media_type": media_type,
                    "data": image_base64,
                },
            ),
            TextBlockParam(type="text", text="List the windows and doors."),
        ]
        try:
            response = self._client.messages.create(
                model=self._model,
                max_tokens=1024,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.APIError as exc:
            msg = f"Vision request failed: {exc}"
            raise UpstreamServiceError(msg) from exc

        text = "\n".join(b.text for b in response.content if b.type == "text")
        return self._parse(text)

    @staticmethod
    def _parse(text: str) -> list[Concept]:
        json_str = _extract_json(text)
        if json_str is None:
            msg = "No JSON block found in vision response"
            raise UpstreamServiceError(msg)
        try:
            data = json.loads(json_str)
            concepts = []
            for item in data["openings"]:
                box = item.get("box")
                concepts.append(
                    Concept(
                        name=str(item["name"]),
                        score=float(item.get("score", 0.0)),
                        box=tuple(float(v) for v in box) if box and len(box) == 4 else None,
                    )
                )
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed vision response: {exc}"
            raise UpstreamServiceError(msg) from exc
        return concepts


def _extract_json(text: str) -> str | None:
    """Extract JSON from ```json ... ``` code fences."""
    start = text.find("```json")
    if start == -1:
        start = text.find("```")
        if start == -1:
            return None
        start += 3
    else:
        start += 7

    end = text.find("```", start)
    if end == -1:
        return None
    return text[start:end].strip()
