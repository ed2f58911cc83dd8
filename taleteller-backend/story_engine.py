import json
import logging
from typing import List, Optional

from openai import OpenAI
from pydantic import ValidationError as SchemaError

from config import settings
from errors import UpstreamError, ValidationError
from schemas import Choice, ContinueResponse, SuggestionSet

log = logging.getLogger("taleteller")

_client: Optional[OpenAI] = None


def _get_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(base_url=settings.LLM_BASE_URL, api_key=settings.GROQ_API_KEY)
    return _client


def clean_json_string(text: str) -> str:
    start = text.find('{')
    end = text.rfind('}')
    if start != -1 and end != -1:
        return text[start:end+1]
    return text


GRAMMAR_INSTRUCTION = """
You are an editor for {mode} fiction.
Check the scene for grammar, spelling, punctuation and awkward phrasing.
Keep the author's voice and the tone of the genre.
Return your response strictly as a VALID JSON object with this exact schema:
{{
    "hasIssues": true,
    "improvedVersion": "The full corrected scene",
    "suggestions": [
        {{"original": "text as written", "suggested": "replacement", "reason": "why"}}
    ]
}}
If nothing needs fixing, return {{"hasIssues": false, "suggestions": []}}.
"""

CHOICES_INSTRUCTION = """
You are a creative story engine for {mode} stories.
Propose exactly {count} distinct ways the plot could continue from the current scene.
Return your response strictly as a VALID JSON object with this exact schema:
{{
    "choices": [
        {{"id": 1, "title": "Short title", "description": "One or two sentences on what happens"}}
    ]
}}
"""

CONTINUE_INSTRUCTION = """
You are a creative story engine for {mode} stories.
Write the next scene of the story, following the path the author picked.
Match the existing style, keep it to a few paragraphs, and do not repeat earlier text.
Return your response strictly as a VALID JSON object with this exact schema:
{{"continuation": "The next scene..."}}
"""


def _complete_json(system_instruction: str, user_prompt: str, what: str) -> dict:
    try:
        completion = _get_client().chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_prompt},
            ],
            temperature=settings.LLM_TEMPERATURE,
            response_format={"type": "json_object"},
        )
        raw_content = completion.choices[0].message.content or ""
    except Exception as e:
        log.error("%s: LLM request failed: %s", what, e)
        raise UpstreamError(f"Failed to {what}") from e

    try:
        return json.loads(clean_json_string(raw_content))
    except json.JSONDecodeError as e:
        log.error("%s: invalid JSON from LLM: %s | raw=%r", what, e, raw_content[:500])
        raise UpstreamError(f"Failed to {what}") from e


def grammar_check(text: str, mode: str) -> SuggestionSet:
    if not text or not text.strip():
        raise ValidationError("Text is required")
    data = _complete_json(
        GRAMMAR_INSTRUCTION.format(mode=mode),
        f"Genre: {mode}\nSCENE:\n{text}",
        "check grammar",
    )
    try:
        result = SuggestionSet.model_validate(data)
    except SchemaError as e:
        log.error("check grammar: unexpected reply shape: %s", e)
        raise UpstreamError("Failed to check grammar") from e

    if result.has_issues and not result.improved_version:
        # Nothing to accept, so there is nothing to offer
        log.warning("check grammar: issues flagged without an improved version")
        return SuggestionSet(has_issues=False, suggestions=result.suggestions)
    return result


def generate_choices(story_context: str, mode: str, current_scene: str) -> List[Choice]:
    if not story_context or not story_context.strip():
        raise ValidationError("Story context is required")
    user_prompt = (
        f"Genre: {mode}\nSTORY SO FAR:\n{story_context}\n"
        f"CURRENT SCENE:\n{current_scene}\nOffer the next plot choices."
    )
    data = _complete_json(
        CHOICES_INSTRUCTION.format(mode=mode, count=settings.CHOICE_COUNT),
        user_prompt,
        "generate choices",
    )
    raw_choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(raw_choices, list):
        log.error("generate choices: reply has no choices list: %r", data)
        raise UpstreamError("Failed to generate choices")

    choices = []
    for item in raw_choices:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title", "")).strip()
        description = str(item.get("description", "")).strip()
        if not title and not description:
            continue
        # Ids are positional within the batch, whatever the model numbered them
        choices.append(Choice(id=len(choices) + 1, title=title or description, description=description or title))

    if not choices:
        log.error("generate choices: no usable choices in reply: %r", data)
        raise UpstreamError("Failed to generate choices")
    if len(choices) != settings.CHOICE_COUNT:
        log.info("generate choices: got %d choices, asked for %d", len(choices), settings.CHOICE_COUNT)
    return choices


def continue_scene(story_context: str, mode: str, selected_choice: str) -> str:
    if not selected_choice or not selected_choice.strip():
        raise ValidationError("A selected choice is required")
    user_prompt = (
        f"Genre: {mode}\nPREVIOUS STORY:\n{story_context}\n"
        f"CHOSEN PATH: {selected_choice}\nContinue naturally."
    )
    data = _complete_json(CONTINUE_INSTRUCTION.format(mode=mode), user_prompt, "continue scene")
    try:
        result = ContinueResponse.model_validate(data)
    except SchemaError as e:
        log.error("continue scene: unexpected reply shape: %s", e)
        raise UpstreamError("Failed to continue scene") from e

    continuation = result.continuation.strip()
    if not continuation:
        log.error("continue scene: empty continuation")
        raise UpstreamError("Failed to continue scene")
    return continuation
