import base64
import logging

import requests

from config import settings
from errors import UpstreamError, ValidationError

log = logging.getLogger("taleteller")


def generate_image(prompt: str) -> str:
    """Generate one image for `prompt` and return it base64-encoded.

    Whatever goes wrong upstream, the caller only sees a generic
    UpstreamError; the details are logged here.
    """
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt is required")

    if not settings.STABILITY_API_KEY:
        log.error("STABILITY ERROR: STABILITY_API_KEY is not configured")
        raise UpstreamError("Image generation failed")

    headers = {
        "Authorization": f"Bearer {settings.STABILITY_API_KEY}",
        "Accept": "image/*",
    }
    data = {"prompt": prompt, "output_format": settings.IMAGE_OUTPUT_FORMAT}

    log.info("Generating image for prompt: %s", prompt[:80])
    try:
        # files= forces a multipart body, which the endpoint requires
        response = requests.post(
            settings.STABILITY_API_URL,
            headers=headers,
            files={"none": ""},
            data=data,
        )
        response.raise_for_status()
    except requests.HTTPError as e:
        log.error("STABILITY ERROR: %s %s", e.response.status_code, e.response.text[:500])
        raise UpstreamError("Image generation failed") from e
    except requests.RequestException as e:
        log.error("STABILITY ERROR: %s", e)
        raise UpstreamError("Image generation failed") from e

    return base64.b64encode(response.content).decode("ascii")
