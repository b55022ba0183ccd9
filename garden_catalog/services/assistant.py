"""
Gemini-backed garden assistant.

Sends the conversation to Gemini with a system prompt that asks for a single
JSON object describing what the user wants done, and turns the reply into an
:class:`AssistantAction`.  Applying the action to the catalog is the job of
``chat_service``; this module never touches the database.

Public API
----------
GeminiAssistantService.interpret(history, message) -> AssistantAction
GeminiAssistantService.build_contents(history, message) -> List[types.Content]
parse_assistant_action(data, raw_text) -> AssistantAction
parse_json_reply(text) -> (success, value)
"""
from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google import genai
from google.genai import types

from garden_catalog.config import settings
from garden_catalog.models.schemas import AssistantActionType
from garden_catalog.utils.helpers import to_int

logger = logging.getLogger(__name__)


class AssistantUnavailableError(Exception):
    """Raised when Gemini cannot be reached or returns nothing usable."""


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class PlantDraft:
    """A plant the assistant wants added; not yet persisted."""

    common_name: str
    scientific_name: Optional[str] = None
    quantity: int = 1
    notes: Optional[str] = None


@dataclasses.dataclass
class AssistantAction:
    """Parsed intent from one model reply."""

    action: AssistantActionType
    response: str = ""
    bed_name: Optional[str] = None
    plants: List[PlantDraft] = dataclasses.field(default_factory=list)
    plant_names: List[str] = dataclasses.field(default_factory=list)
    raw_text: str = ""
    parsed: bool = True  # False when the reply was not valid JSON


# ---------------------------------------------------------------------------
# Prompt template: edit to tune the assistant without touching logic
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are a helpful garden assistant that helps users catalog and manage their garden plants.

Reply with exactly ONE JSON object choosing one of these actions.

1. Adding plants:
{
  "action": "add_plants",
  "bedName": "name of the garden bed",
  "plants": [{"commonName": "plant name", "scientificName": "optional", "quantity": 1, "notes": "optional"}],
  "response": "Your friendly response to the user"
}

2. Removing/deleting plants:
{
  "action": "remove_plants",
  "bedName": "name of the garden bed",
  "plantNames": ["tomato", "basil"],
  "response": "Your friendly confirmation message"
}

3. Removing/deleting an entire bed:
{
  "action": "remove_bed",
  "bedName": "name of the garden bed to remove",
  "response": "Your friendly confirmation message"
}

4. Just chatting or asking questions:
{
  "action": "chat",
  "response": "Your friendly response"
}

Examples:
- "Remove the tomato from my herb garden" -> action: "remove_plants", bedName: "herb garden", plantNames: ["tomato"]
- "Delete the vegetable bed" -> action: "remove_bed", bedName: "vegetable bed"
- "Add basil to my herb garden" -> action: "add_plants", bedName: "herb garden", plants: [{"commonName": "basil", "quantity": 1}]

Always include the "response" field with a friendly message.\
"""


# ---------------------------------------------------------------------------
# JSON reply parsing
# ---------------------------------------------------------------------------

def _try_json(text: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return False, None


def _first_object(text: str) -> str:
    """Return the first balanced ``{...}`` block in *text*, or ''."""
    start = text.find("{")
    if start == -1:
        return ""

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""


def parse_json_reply(text: str) -> Tuple[bool, Any]:
    """
    Parse a model reply that should be a JSON object.

    JSON mode normally returns clean output, but replies are still tolerated
    when wrapped in markdown fences, followed by trailing commas, or embedded
    in prose.

    Returns ``(success, parsed_value)``.
    """
    if not text or not text.strip():
        return False, None

    candidate = text.strip()
    ok, value = _try_json(candidate)
    if ok:
        return True, value

    candidate = re.sub(r"^```(?:json)?\s*", "", candidate, flags=re.IGNORECASE)
    candidate = re.sub(r"\s*```$", "", candidate).strip()
    ok, value = _try_json(candidate)
    if ok:
        return True, value

    fragment = _first_object(candidate) or candidate
    if fragment != candidate:
        ok, value = _try_json(fragment)
        if ok:
            return True, value

    # Last resort: drop trailing commas, which may also touch string values
    ok, value = _try_json(re.sub(r",(\s*[}\]])", r"\1", fragment))
    if ok:
        return True, value

    logger.warning("parse_json_reply: could not parse reply. Preview: %s", text[:300])
    return False, None


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def parse_assistant_action(data: Any, raw_text: str = "") -> AssistantAction:
    """
    Validate a decoded reply into an :class:`AssistantAction`.

    An action missing the fields it needs (no bed name, an empty plant list)
    is downgraded to ``chat`` so the friendly ``response`` is still shown.
    """
    if isinstance(data, list) and data and isinstance(data[0], dict):
        data = data[0]
    if not isinstance(data, dict):
        return AssistantAction(action=AssistantActionType.CHAT, raw_text=raw_text)

    response = _clean_str(data.get("response")) or ""
    bed_name = _clean_str(data.get("bedName") or data.get("bed_name"))
    chat = AssistantAction(action=AssistantActionType.CHAT, response=response, raw_text=raw_text)

    try:
        action_type = AssistantActionType(str(data.get("action", "chat")).strip().lower())
    except ValueError:
        logger.info("Unknown assistant action %r; treating as chat", data.get("action"))
        return chat

    if action_type == AssistantActionType.ADD_PLANTS:
        drafts: List[PlantDraft] = []
        for item in data.get("plants") or []:
            if not isinstance(item, dict):
                continue
            name = _clean_str(item.get("commonName") or item.get("common_name"))
            if not name:
                continue
            drafts.append(
                PlantDraft(
                    common_name=name,
                    scientific_name=_clean_str(item.get("scientificName") or item.get("scientific_name")),
                    quantity=to_int(item.get("quantity"), 1),
                    notes=_clean_str(item.get("notes")),
                )
            )
        if not bed_name or not drafts:
            return chat
        return AssistantAction(
            action=action_type,
            response=response,
            bed_name=bed_name,
            plants=drafts,
            raw_text=raw_text,
        )

    if action_type == AssistantActionType.REMOVE_PLANTS:
        names = data.get("plantNames") or data.get("plant_names") or []
        if isinstance(names, str):
            names = [names]
        plant_names = [n for n in (_clean_str(x) for x in names) if n]
        if not bed_name or not plant_names:
            return chat
        return AssistantAction(
            action=action_type,
            response=response,
            bed_name=bed_name,
            plant_names=plant_names,
            raw_text=raw_text,
        )

    if action_type == AssistantActionType.REMOVE_BED:
        if not bed_name:
            return chat
        return AssistantAction(
            action=action_type,
            response=response,
            bed_name=bed_name,
            raw_text=raw_text,
        )

    return chat


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class GeminiAssistantService:
    """
    Conversation-to-action extraction via Gemini ``generate_content``.

    The client is created on first use so the service can be constructed
    (and its parsing exercised) without an API key.
    """

    SYSTEM_PROMPT = _SYSTEM_PROMPT
    ROLE_MAP: Dict[str, str] = {"assistant": "model", "model": "model", "user": "user"}

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.history_limit = (
            history_limit if history_limit is not None else settings.CHAT_HISTORY_LIMIT
        )
        self.timeout = float(settings.GEMINI_TIMEOUT)
        self._client: Optional[genai.Client] = None

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def build_contents(
        self,
        history: Sequence[Dict[str, Any]],
        message: str,
    ) -> List[types.Content]:
        """
        Convert stored turns plus the new message into Gemini contents.

        Turns with empty content are dropped, ``assistant`` becomes the
        ``model`` role, and only the last ``history_limit`` prior turns are
        kept (0 keeps everything).
        """
        turns: List[types.Content] = []
        for turn in history:
            if not isinstance(turn, dict):
                continue
            content = str(turn.get("content") or "").strip()
            if not content:
                continue
            role = self.ROLE_MAP.get(str(turn.get("role", "user")), "user")
            turns.append(types.Content(role=role, parts=[types.Part(text=content)]))

        if self.history_limit > 0:
            turns = turns[-self.history_limit:]

        turns.append(types.Content(role="user", parts=[types.Part(text=message)]))
        return turns

    async def interpret(
        self,
        history: Sequence[Dict[str, Any]],
        message: str,
    ) -> AssistantAction:
        """
        Ask Gemini what to do with *message* given the prior *history*.

        Raises:
            AssistantUnavailableError: the model call failed.
        """
        contents = self.build_contents(history, message)
        text = await self._call_llm(self.SYSTEM_PROMPT, contents)

        ok, data = parse_json_reply(text)
        if not ok:
            return AssistantAction(
                action=AssistantActionType.CHAT,
                raw_text=text,
                parsed=False,
            )

        action = parse_assistant_action(data, raw_text=text)
        logger.info("Assistant action: %s (bed=%r)", action.action.value, action.bed_name)
        return action

    # ------------------------------------------------------------------
    # Core LLM caller
    # ------------------------------------------------------------------

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _call_llm(self, system_prompt: str, contents: List[types.Content]) -> str:
        """
        Call Gemini in JSON mode and return the reply text.

        Raises AssistantUnavailableError on timeout, transport or API errors.
        """
        try:
            response = await asyncio.wait_for(
                self._get_client().aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=types.GenerateContentConfig(
                        system_instruction=system_prompt,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("_call_llm: Gemini timed out after %.0f s", self.timeout)
            raise AssistantUnavailableError("Gemini request timed out") from exc
        except Exception as exc:
            logger.error("_call_llm: Gemini error: %s", exc)
            raise AssistantUnavailableError(str(exc)) from exc

        return getattr(response, "text", None) or ""
