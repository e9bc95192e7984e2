"""
AI advisor flows backed by Gemini: free-form traffic advice and article
suggestions for a given infraction.
"""

import json
import logging
import re
from typing import List, Optional

from app.models.article import Article
from app.models.catalog import infraction_name
from app.prompts import ARTICLE_SUGGESTIONS_PROMPT_TEMPLATE, TRAFFIC_ADVICE_PROMPT_TEMPLATE
from app.services import gemini_service

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


async def answer_traffic_query(user_query: str) -> str:
    """Concise advice in Spanish for a question about Mexican traffic law"""
    prompt = TRAFFIC_ADVICE_PROMPT_TEMPLATE.format(user_query=user_query.strip())
    result = await gemini_service.send_message(prompt)
    advice = (result.get("response") or "").strip()
    if not advice:
        raise RuntimeError("Gemini returned an empty answer")
    return advice


def parse_suggestions(text: str) -> List[str]:
    """
    Pull the suggestion list out of the model output.

    Accepts the requested JSON object, JSON wrapped in prose or code fences,
    or, as a last resort, a bulleted/numbered list.
    """
    text = (text or "").strip()
    match = _JSON_BLOCK.search(text)
    if match:
        try:
            data = json.loads(match.group(0))
            items = data.get("articleSuggestions") if isinstance(data, dict) else None
            if isinstance(items, list):
                return [str(i).strip() for i in items if str(i).strip()]
        except json.JSONDecodeError:
            logger.debug("Suggestion output is not valid JSON, falling back to lines")

    lines = []
    for line in text.splitlines():
        cleaned = re.sub(r"^\s*(?:[-*•]|\d+[.)])\s*", "", line).strip().strip('"')
        if cleaned and not cleaned.startswith(("{", "}", "`")):
            lines.append(cleaned)
    return lines


async def suggest_relevant_articles(
    traffic_infraction: str, articles: Optional[List[Article]] = None
) -> List[str]:
    """Article titles relevant to an infraction id or name"""
    known = "\n".join(f"- {a.title}" for a in (articles or [])) or "(ninguno)"
    prompt = ARTICLE_SUGGESTIONS_PROMPT_TEMPLATE.format(
        traffic_infraction=infraction_name(traffic_infraction.strip()),
        known_articles=known,
    )
    result = await gemini_service.send_message(prompt, response_mime_type="application/json")
    return parse_suggestions(result.get("response", ""))
