import logging
from typing import Optional, Any, Dict, List
import httpx
from app.config import settings

logger = logging.getLogger(__name__)


GEMINI_REST_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

# Traffic emergencies need frank safety advice, so dangerous-content blocking is off.
SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_ONLY_HIGH"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_LOW_AND_ABOVE"},
]


def _extract_text_from_api_response(resp: Any) -> str:
    """Try to extract a human-readable response text from various API shapes.

    Gemini normally answers with candidates[0].content.parts[*].text but
    blocked or truncated answers come back with other shapes.
    """
    if resp is None:
        return ""
    if isinstance(resp, str):
        return resp
    if isinstance(resp, dict):
        candidates = resp.get("candidates")
        if isinstance(candidates, list) and candidates:
            parts = (candidates[0].get("content") or {}).get("parts") or []
            texts = [p.get("text", "") for p in parts if isinstance(p, dict)]
            if any(texts):
                return "".join(texts)
        for key in ("response", "text", "output", "answer"):
            if key in resp and isinstance(resp[key], str):
                return resp[key]
    return ""


async def send_message(
    prompt: str,
    model: Optional[str] = None,
    response_mime_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Send a prompt to Gemini (or return a mock response in DEV).

    Args:
        prompt: Text prompt
        model: Model name
        response_mime_type: e.g. "application/json" to request structured output
    """
    model = model or settings.GEMINI_MODEL

    if settings.DEBUG_MOCK_GEMINI or not settings.GOOGLE_API_KEY:
        if response_mime_type == "application/json":
            text = '{"articleSuggestions": ["(mock) Artículo sugerido"]}'
        else:
            text = f"(mock) Respuesta a: {prompt[-200:]}"
        logger.debug("Using mock Gemini response")
        return {"model": model, "response": text, "raw": {"mock": True}}

    # API Key is appended as a query parameter
    url = f"{GEMINI_REST_ENDPOINT.format(model=model)}?key={settings.GOOGLE_API_KEY}"
    headers = {"Content-Type": "application/json"}

    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "safetySettings": SAFETY_SETTINGS,
    }
    if response_mime_type:
        payload["generationConfig"] = {"responseMimeType": response_mime_type}

    logger.debug("Sending prompt to Gemini model %s", model)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            r = await client.post(url, json=payload, headers=headers)
            r.raise_for_status()
            raw = r.json()
            return {"model": model, "response": _extract_text_from_api_response(raw), "raw": raw}
        except httpx.HTTPStatusError as e:
            logger.error("Gemini API HTTP Error: %s - Response: %s", e, e.response.text)
            raise RuntimeError(f"Gemini API Error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Gemini API General Error: %s", e)
            raise RuntimeError(f"Failed to call Gemini API: {e}") from e
