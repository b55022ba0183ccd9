"""
Tests for POST /api/chat and GET /api/conversations/{user_id}.

Gemini is replaced by the ``fake_gemini`` fixture; each test scripts the JSON
the model would return and checks the resulting catalog changes and reply.
"""
import pytest
from httpx import AsyncClient

from garden_catalog.services.assistant import AssistantUnavailableError
from garden_catalog.services.chat_service import (
    NOT_CONFIGURED_REPLY,
    UNAVAILABLE_REPLY,
    UNPARSEABLE_REPLY,
)
from tests.conftest import create_bed, create_plant, create_user


async def _send(client: AsyncClient, user_id: str, message: str):
    return await client.post("/api/chat", json={"message": message, "userId": user_id})


async def _plant_names(client: AsyncClient, bed_id: str):
    resp = await client.get("/api/plants", params={"bedId": bed_id})
    return sorted(p["commonName"] for p in resp.json())


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("message", ["", "   "])
async def test_empty_message_rejected(client: AsyncClient, message):
    user_id = await create_user(client)
    resp = await _send(client, user_id, message)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Message cannot be empty"


@pytest.mark.asyncio
async def test_unknown_user_rejected(client: AsyncClient):
    resp = await _send(client, "ghost", "hello")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_missing_user_id_is_validation_error(client: AsyncClient):
    resp = await client.post("/api/chat", json={"message": "hello"})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Assistant not configured / unavailable
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_not_configured_still_saves_message(client: AsyncClient):
    user_id = await create_user(client)
    resp = await _send(client, user_id, "Add basil to my herb garden")
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == NOT_CONFIGURED_REPLY
    assert data["action"] == "chat"
    assert data["conversationId"]

    conv = await client.get(f"/api/conversations/{user_id}")
    assert conv.status_code == 200
    messages = conv.json()["messages"]
    assert messages == [
        {"role": "user", "content": "Add basil to my herb garden"},
        {"role": "assistant", "content": NOT_CONFIGURED_REPLY},
    ]

    # Nothing was cataloged
    beds = await client.get("/api/beds", params={"userId": user_id})
    assert beds.json() == []


@pytest.mark.asyncio
async def test_assistant_unavailable_uses_fallback(client: AsyncClient, fake_gemini):
    fake_gemini(AssistantUnavailableError("boom"))
    user_id = await create_user(client)

    resp = await _send(client, user_id, "hello?")
    assert resp.status_code == 200
    assert resp.json()["message"] == UNAVAILABLE_REPLY
    assert resp.json()["action"] == "chat"

    conv = await client.get(f"/api/conversations/{user_id}")
    assert conv.json()["messages"][-1]["content"] == UNAVAILABLE_REPLY


@pytest.mark.asyncio
async def test_unparseable_reply_is_shown_verbatim(client: AsyncClient, fake_gemini):
    fake_gemini("Sorry, I can only talk about plants.")
    user_id = await create_user(client)

    resp = await _send(client, user_id, "what's the weather?")
    assert resp.json()["message"] == "Sorry, I can only talk about plants."
    assert resp.json()["action"] == "chat"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   \n"])
async def test_empty_model_reply_uses_apology(client: AsyncClient, fake_gemini, reply):
    fake_gemini(reply)
    user_id = await create_user(client)

    resp = await _send(client, user_id, "hello")
    assert resp.status_code == 200
    assert resp.json()["message"] == UNPARSEABLE_REPLY
    assert resp.json()["action"] == "chat"


@pytest.mark.asyncio
async def test_chat_without_response_falls_back_to_model_text(client: AsyncClient, fake_gemini):
    fake_gemini({"action": "chat"})
    user_id = await create_user(client)

    resp = await _send(client, user_id, "hello")
    assert resp.json()["action"] == "chat"
    assert resp.json()["message"] == '{"action": "chat"}'


# ---------------------------------------------------------------------------
# Conversation history
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_no_conversation_yet(client: AsyncClient):
    user_id = await create_user(client)
    resp = await client.get(f"/api/conversations/{user_id}")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No conversation found"


@pytest.mark.asyncio
async def test_conversation_for_unknown_user(client: AsyncClient):
    resp = await client.get("/api/conversations/ghost")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "No conversation found"


@pytest.mark.asyncio
async def test_chat_turns_accumulate_in_one_conversation(client: AsyncClient, fake_gemini):
    calls = fake_gemini(
        {"action": "chat", "response": "Hello gardener!"},
        {"action": "chat", "response": "Tomatoes like full sun."},
    )
    user_id = await create_user(client)

    first = await _send(client, user_id, "hi")
    second = await _send(client, user_id, "Where should tomatoes go?")
    assert first.json()["conversationId"] == second.json()["conversationId"]
    assert second.json()["message"] == "Tomatoes like full sun."

    conv = await client.get(f"/api/conversations/{user_id}")
    assert [m["content"] for m in conv.json()["messages"]] == [
        "hi",
        "Hello gardener!",
        "Where should tomatoes go?",
        "Tomatoes like full sun.",
    ]

    # The second call carries the earlier exchange with assistant mapped to model
    contents = calls[1]["contents"]
    assert [c.role for c in contents] == ["user", "model", "user"]
    assert contents[-1].parts[0].text == "Where should tomatoes go?"
    assert "garden assistant" in calls[1]["system_prompt"]


@pytest.mark.asyncio
async def test_chat_updates_user_last_active(client: AsyncClient, fake_gemini):
    fake_gemini({"action": "chat", "response": "Hi"})
    user_id = await create_user(client)
    before = (await client.get(f"/api/users/{user_id}")).json()["lastActive"]

    await _send(client, user_id, "hello")
    after = (await client.get(f"/api/users/{user_id}")).json()["lastActive"]
    assert after >= before


# ---------------------------------------------------------------------------
# add_plants
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_plants_creates_bed(client: AsyncClient, fake_gemini):
    fake_gemini({
        "action": "add_plants",
        "bedName": "Herb Garden",
        "plants": [
            {"commonName": "Basil", "quantity": 3},
            {"commonName": "Thyme", "scientificName": "Thymus vulgaris"},
        ],
    })
    user_id = await create_user(client)

    resp = await _send(client, user_id, "I planted 3 basil and a thyme in my herb garden")
    assert resp.status_code == 200
    data = resp.json()
    assert data["action"] == "add_plants"
    assert data["message"] == 'Added 2 plant(s) to "Herb Garden"!'

    beds = (await client.get("/api/beds", params={"userId": user_id})).json()
    assert [b["bedName"] for b in beds] == ["Herb Garden"]
    plants = (await client.get("/api/plants", params={"bedId": beds[0]["id"]})).json()
    by_name = {p["commonName"]: p for p in plants}
    assert by_name["Basil"]["quantity"] == 3
    assert by_name["Thyme"]["quantity"] == 1
    assert by_name["Thyme"]["scientificName"] == "Thymus vulgaris"


@pytest.mark.asyncio
async def test_add_plants_reuses_existing_bed_case_insensitively(client: AsyncClient, fake_gemini):
    fake_gemini({
        "action": "add_plants",
        "bedName": "herb garden",
        "plants": [{"commonName": "Mint"}],
        "response": "Mint added!",
    })
    user_id = await create_user(client)
    bed_id = await create_bed(client, user_id, "Herb Garden")
    await create_plant(client, bed_id, "Basil")

    resp = await _send(client, user_id, "add mint to the herb garden")
    assert resp.json()["message"] == "Mint added!"

    beds = (await client.get("/api/beds", params={"userId": user_id})).json()
    assert len(beds) == 1
    assert await _plant_names(client, bed_id) == ["Basil", "Mint"]


@pytest.mark.asyncio
async def test_add_plants_without_plants_is_chat(client: AsyncClient, fake_gemini):
    fake_gemini({
        "action": "add_plants",
        "bedName": "Herb Garden",
        "plants": [],
        "response": "Which plants would you like to add?",
    })
    user_id = await create_user(client)

    resp = await _send(client, user_id, "add some stuff")
    assert resp.json()["action"] == "chat"
    assert resp.json()["message"] == "Which plants would you like to add?"
    assert (await client.get("/api/beds", params={"userId": user_id})).json() == []


# ---------------------------------------------------------------------------
# remove_plants
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remove_plants(client: AsyncClient, fake_gemini):
    fake_gemini({
        "action": "remove_plants",
        "bedName": "Vegetables",
        "plantNames": ["tomato", "zucchini"],
    })
    user_id = await create_user(client)
    bed_id = await create_bed(client, user_id, "Vegetables")
    await create_plant(client, bed_id, "Tomato")
    await create_plant(client, bed_id, "Kale")

    resp = await _send(client, user_id, "remove the tomato and zucchini from vegetables")
    assert resp.json()["action"] == "remove_plants"
    assert resp.json()["message"] == 'Removed Tomato from "Vegetables".'
    assert await _plant_names(client, bed_id) == ["Kale"]


@pytest.mark.asyncio
async def test_remove_plants_unknown_bed(client: AsyncClient, fake_gemini):
    fake_gemini({
        "action": "remove_plants",
        "bedName": "Orchard",
        "plantNames": ["apple"],
        "response": "Done!",
    })
    user_id = await create_user(client)

    resp = await _send(client, user_id, "remove the apple from the orchard")
    assert resp.json()["message"] == (
        'I couldn\'t find a bed called "Orchard". Could you check the name?'
    )


@pytest.mark.asyncio
async def test_remove_plants_none_matching(client: AsyncClient, fake_gemini):
    fake_gemini({
        "action": "remove_plants",
        "bedName": "Vegetables",
        "plantNames": ["pumpkin"],
        "response": "Removed!",
    })
    user_id = await create_user(client)
    bed_id = await create_bed(client, user_id, "Vegetables")
    await create_plant(client, bed_id, "Kale")

    resp = await _send(client, user_id, "remove the pumpkin")
    assert resp.json()["message"] == (
        'I couldn\'t find those plants in "Vegetables". Could you check the names?'
    )
    assert await _plant_names(client, bed_id) == ["Kale"]


# ---------------------------------------------------------------------------
# remove_bed
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remove_bed_with_suffix_match(client: AsyncClient, fake_gemini):
    fake_gemini({"action": "remove_bed", "bedName": "vegetable bed"})
    user_id = await create_user(client)
    bed_id = await create_bed(client, user_id, "Vegetable")
    plant_id = await create_plant(client, bed_id, "Carrot")

    resp = await _send(client, user_id, "delete the vegetable bed")
    assert resp.json()["action"] == "remove_bed"
    assert resp.json()["message"] == 'Deleted the garden bed "Vegetable" and all its plants.'

    assert (await client.get(f"/api/beds/{bed_id}")).status_code == 404
    assert (await client.get(f"/api/plants/{plant_id}")).status_code == 404


@pytest.mark.asyncio
async def test_remove_bed_not_found_lists_beds(client: AsyncClient, fake_gemini):
    fake_gemini({"action": "remove_bed", "bedName": "Orchard"})
    user_id = await create_user(client)
    await create_bed(client, user_id, "Herbs")

    resp = await _send(client, user_id, "delete the orchard")
    assert resp.json()["message"] == (
        'I couldn\'t find a bed called "Orchard". You have: Herbs. Could you check the name?'
    )


@pytest.mark.asyncio
async def test_remove_bed_when_user_has_none(client: AsyncClient, fake_gemini):
    fake_gemini({"action": "remove_bed", "bedName": "Orchard"})
    user_id = await create_user(client)

    resp = await _send(client, user_id, "delete the orchard")
    assert resp.json()["message"] == (
        'I couldn\'t find a bed called "Orchard". You don\'t have any beds yet.'
    )


@pytest.mark.asyncio
async def test_remove_bed_only_touches_own_beds(client: AsyncClient, fake_gemini):
    fake_gemini({"action": "remove_bed", "bedName": "Shared Name"})
    owner = await create_user(client, email="owner@example.com")
    other = await create_user(client, email="other@example.com")
    other_bed = await create_bed(client, other, "Shared Name")

    resp = await _send(client, owner, "delete shared name")
    assert "couldn't find" in resp.json()["message"]
    assert (await client.get(f"/api/beds/{other_bed}")).status_code == 200
