"""
Chat orchestration: conversation history in, catalog changes and a reply out.

Flow for one user message
-------------------------
1. Load the user's active conversation and append the user turn.
2. Ask the assistant for an action (skipped when Gemini is not configured).
3. Apply the action to the catalog (add plants, remove plants, remove a bed).
4. Append the assistant turn and persist the conversation, whatever happened
   in steps 2-3.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Optional

from garden_catalog.config import settings
from garden_catalog.models.database_models import User
from garden_catalog.models.schemas import AssistantActionType
from garden_catalog.services.assistant import (
    AssistantAction,
    AssistantUnavailableError,
    GeminiAssistantService,
)
from garden_catalog.services.catalog import CatalogStore
from garden_catalog.utils.helpers import load_json_list, normalize_name

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canned replies
# ---------------------------------------------------------------------------

NOT_CONFIGURED_REPLY = (
    "I'm not fully configured yet (missing Gemini API key), but I've saved your "
    "message! You can still browse your garden beds and I'll remember our conversation."
)
UNAVAILABLE_REPLY = (
    "I'm having trouble connecting to my AI service right now. Could you try again "
    "in a moment? Your message has been saved."
)
UNPARSEABLE_REPLY = "I'm sorry, I had trouble processing that."
DEFAULT_REPLY = "Got it!"


@dataclasses.dataclass
class ChatResult:
    """Returned by ChatService.handle_message."""

    message: str
    conversation_id: str
    action: AssistantActionType


class ChatService:
    """Turns chat messages into catalog operations for one user."""

    def __init__(
        self,
        store: CatalogStore,
        assistant: Optional[GeminiAssistantService] = None,
    ) -> None:
        self.store = store
        self.assistant = assistant or GeminiAssistantService()

    async def handle_message(self, user: User, message: str) -> ChatResult:
        """
        Process one user message end to end.

        The conversation is saved even when the assistant is not configured
        or fails; only the reply text differs.
        """
        conversation = await self.store.get_latest_conversation(user.id)
        history: List[Dict[str, str]] = load_json_list(conversation.messages) if conversation else []
        prior_turns = list(history)
        history.append({"role": "user", "content": message})

        action_type = AssistantActionType.CHAT
        if not settings.gemini_configured:
            reply = NOT_CONFIGURED_REPLY
        else:
            try:
                action = await self.assistant.interpret(prior_turns, message)
                action_type = action.action
                reply = await self.apply_action(user.id, action)
            except AssistantUnavailableError as exc:
                logger.warning("Assistant unavailable for user=%s: %s", user.id, exc)
                reply = UNAVAILABLE_REPLY

        history.append({"role": "assistant", "content": reply})
        conversation = await self.store.save_conversation(user.id, history, conversation)
        await self.store.touch_user(user)

        return ChatResult(
            message=reply,
            conversation_id=conversation.id,
            action=action_type,
        )

    # ------------------------------------------------------------------
    # Action handlers
    # ------------------------------------------------------------------

    async def apply_action(self, user_id: str, action: AssistantAction) -> str:
        """Perform *action* against the catalog and return the reply text."""
        if not action.parsed:
            return (action.raw_text or "").strip() or UNPARSEABLE_REPLY

        if action.action == AssistantActionType.ADD_PLANTS:
            return await self._add_plants(user_id, action)
        if action.action == AssistantActionType.REMOVE_PLANTS:
            return await self._remove_plants(user_id, action)
        if action.action == AssistantActionType.REMOVE_BED:
            return await self._remove_bed(user_id, action)

        return action.response or action.raw_text or DEFAULT_REPLY

    async def _add_plants(self, user_id: str, action: AssistantAction) -> str:
        bed = await self.store.find_bed_by_name(user_id, action.bed_name)
        if bed is None:
            bed = await self.store.create_bed(user_id=user_id, bed_name=action.bed_name)

        added: List[str] = []
        for draft in action.plants:
            await self.store.create_plant(
                bed_id=bed.id,
                common_name=draft.common_name,
                scientific_name=draft.scientific_name,
                quantity=draft.quantity,
                notes=draft.notes,
            )
            added.append(f"{draft.quantity} {draft.common_name}")

        logger.info("[Chat] Added %s to bed %r", ", ".join(added), bed.bed_name)
        return action.response or f'Added {len(added)} plant(s) to "{action.bed_name}"!'

    async def _remove_plants(self, user_id: str, action: AssistantAction) -> str:
        bed = await self.store.find_bed_by_name(user_id, action.bed_name)
        if bed is None:
            return f'I couldn\'t find a bed called "{action.bed_name}". Could you check the name?'

        remaining = await self.store.list_plants(bed.id)
        removed: List[str] = []
        for name in action.plant_names:
            wanted = normalize_name(name)
            match = next((p for p in remaining if normalize_name(p.common_name) == wanted), None)
            if match is None:
                continue
            await self.store.delete_plant(match)
            remaining.remove(match)
            removed.append(match.common_name)

        if not removed:
            return (
                f'I couldn\'t find those plants in "{action.bed_name}". '
                "Could you check the names?"
            )
        return action.response or f'Removed {", ".join(removed)} from "{action.bed_name}".'

    async def _remove_bed(self, user_id: str, action: AssistantAction) -> str:
        bed = await self.store.find_bed_by_name(user_id, action.bed_name, allow_suffix_match=True)
        if bed is None:
            beds = await self.store.list_beds(user_id)
            logger.info(
                "[Chat] Bed not found: %r. Available beds: %s",
                action.bed_name,
                [b.bed_name for b in beds],
            )
            if not beds:
                return (
                    f'I couldn\'t find a bed called "{action.bed_name}". '
                    "You don't have any beds yet."
                )
            names = ", ".join(b.bed_name for b in beds)
            return (
                f'I couldn\'t find a bed called "{action.bed_name}". '
                f"You have: {names}. Could you check the name?"
            )

        bed_name = bed.bed_name
        await self.store.delete_bed(bed)
        return action.response or f'Deleted the garden bed "{bed_name}" and all its plants.'
