"""Tests for submissions, boards and card ordering."""

import pytest
from httpx import AsyncClient


async def make_board(client: AsyncClient, headers: dict, lists=("Inbox", "Editing", "Done")) -> dict:
    board = (await client.post("/v1/boards", headers=headers, json={"title": "Production"})).json()
    for title in lists:
        response = await client.post(
            f"/v1/boards/{board['id']}/lists", headers=headers, json={"title": title}
        )
        assert response.status_code == 201
    return (await client.get(f"/v1/boards/{board['id']}", headers=headers)).json()


async def add_cards(client: AsyncClient, headers: dict, list_id: int, titles) -> list[dict]:
    cards = []
    for title in titles:
        response = await client.post(
            f"/v1/lists/{list_id}/cards", headers=headers, json={"title": title}
        )
        assert response.status_code == 201
        cards.append(response.json())
    return cards


async def card_titles(client: AsyncClient, headers: dict, board_id: int) -> dict[str, list[str]]:
    board = (await client.get(f"/v1/boards/{board_id}", headers=headers)).json()
    result = {}
    for board_list in board["lists"]:
        assert [c["position"] for c in board_list["cards"]] == list(range(len(board_list["cards"])))
        result[board_list["title"]] = [c["title"] for c in board_list["cards"]]
    return result


# ============== Submissions ==============


@pytest.mark.asyncio
async def test_create_and_get_submission(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/v1/submissions",
        headers=auth_headers,
        json={
            "title": "Product launch video",
            "urgency": "critical",
            "requestedDueDate": "2026-11-01",
            "notes": "Use the new logo",
        },
    )
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "pending"
    assert created["urgency"] == "critical"
    assert created["requestedDueDate"] == "2026-11-01"
    assert created["attachments"] == []

    response = await client.get(f"/v1/submissions/{created['id']}", headers=auth_headers)
    assert response.json()["title"] == "Product launch video"


@pytest.mark.asyncio
async def test_clients_only_see_their_submissions(
    client: AsyncClient,
    auth_headers: dict,
    other_auth_headers: dict,
    admin_headers: dict,
    submission_id: int,
):
    await client.post("/v1/submissions", headers=other_auth_headers, json={"title": "Other"})

    mine = (await client.get("/v1/submissions", headers=auth_headers)).json()
    assert mine["total"] == 1
    assert mine["submissions"][0]["id"] == submission_id

    inbox = (await client.get("/v1/submissions", headers=admin_headers)).json()
    assert inbox["total"] == 2

    response = await client.get(f"/v1/submissions/{submission_id}", headers=other_auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_triages_submission(
    client: AsyncClient, auth_headers: dict, admin_headers: dict, submission_id: int
):
    response = await client.patch(
        f"/v1/submissions/{submission_id}",
        headers=admin_headers,
        json={"status": "in_review", "adminNotes": "Needs subtitles"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_review"
    assert response.json()["adminNotes"] == "Needs subtitles"

    filtered = (
        await client.get("/v1/submissions", headers=admin_headers, params={"status": "in_review"})
    ).json()
    assert [s["id"] for s in filtered["submissions"]] == [submission_id]

    response = await client.patch(
        f"/v1/submissions/{submission_id}", headers=auth_headers, json={"status": "done"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_promote_submission_to_card(
    client: AsyncClient, auth_headers: dict, admin_headers: dict, submission_id: int, blob_store
):
    target = (
        await client.post(
            "/v1/uploads/direct-target",
            headers=auth_headers,
            json={
                "parentType": "submission",
                "parentId": submission_id,
                "fileName": "ref.png",
                "mimeType": "image/png",
            },
        )
    ).json()
    blob_store.put_presigned(target["uploadUrl"], b"\x89PNG")
    await client.post(
        f"/v1/submissions/{submission_id}/attachments",
        headers=auth_headers,
        json={"fileName": "ref.png", "fileUrl": target["publicUrl"], "mimeType": "image/png"},
    )

    board = await make_board(client, admin_headers)
    inbox = board["lists"][0]
    await add_cards(client, admin_headers, inbox["id"], ["Existing"])

    response = await client.post(
        f"/v1/submissions/{submission_id}/card",
        headers=admin_headers,
        json={"listId": inbox["id"]},
    )
    assert response.status_code == 201
    card = response.json()
    assert card["position"] == 0
    assert card["submissionId"] == submission_id
    assert card["title"] == "Spring campaign edit"
    assert card["priority"] == "urgent"

    assert (await card_titles(client, admin_headers, board["id"]))["Inbox"] == [
        "Spring campaign edit",
        "Existing",
    ]

    card_files = (
        await client.get(f"/v1/cards/{card['id']}/attachments", headers=admin_headers)
    ).json()
    assert [a["fileUrl"] for a in card_files] == [target["publicUrl"]]
    assert card_files[0]["parentType"] == "card"

    submission = (await client.get(f"/v1/submissions/{submission_id}", headers=auth_headers)).json()
    assert submission["status"] == "in_production"
    assert submission["assignedBoardId"] == board["id"]
    assert submission["assignedCardId"] == card["id"]
    assert len(submission["attachments"]) == 1


@pytest.mark.asyncio
async def test_client_cannot_promote(client: AsyncClient, auth_headers: dict, submission_id: int):
    response = await client.post(
        f"/v1/submissions/{submission_id}/card", headers=auth_headers, json={"listId": 1}
    )
    assert response.status_code == 403


# ============== Boards ==============


@pytest.mark.asyncio
async def test_board_lists_in_order(client: AsyncClient, admin_headers: dict):
    board = await make_board(client, admin_headers)
    assert [lst["title"] for lst in board["lists"]] == ["Inbox", "Editing", "Done"]
    assert [lst["position"] for lst in board["lists"]] == [0, 1, 2]

    boards = (await client.get("/v1/boards", headers=admin_headers)).json()
    assert [b["id"] for b in boards] == [board["id"]]


@pytest.mark.asyncio
async def test_insert_list_at_position_renumbers(client: AsyncClient, admin_headers: dict):
    board = await make_board(client, admin_headers)
    response = await client.post(
        f"/v1/boards/{board['id']}/lists",
        headers=admin_headers,
        json={"title": "Review", "position": 1},
    )
    assert response.json()["position"] == 1

    board = (await client.get(f"/v1/boards/{board['id']}", headers=admin_headers)).json()
    assert [lst["title"] for lst in board["lists"]] == ["Inbox", "Review", "Editing", "Done"]
    assert [lst["position"] for lst in board["lists"]] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_move_list(client: AsyncClient, admin_headers: dict):
    board = await make_board(client, admin_headers)
    done = board["lists"][2]

    response = await client.patch(
        f"/v1/lists/{done['id']}/move", headers=admin_headers, json={"position": 0}
    )
    assert response.status_code == 200

    board = (await client.get(f"/v1/boards/{board['id']}", headers=admin_headers)).json()
    assert [lst["title"] for lst in board["lists"]] == ["Done", "Inbox", "Editing"]
    assert [lst["position"] for lst in board["lists"]] == [0, 1, 2]


@pytest.mark.asyncio
async def test_move_card_within_list(client: AsyncClient, admin_headers: dict):
    board = await make_board(client, admin_headers)
    inbox = board["lists"][0]
    cards = await add_cards(client, admin_headers, inbox["id"], ["A", "B", "C", "D"])

    response = await client.patch(
        f"/v1/cards/{cards[3]['id']}/move", headers=admin_headers, json={"position": 1}
    )
    assert response.json()["position"] == 1
    assert (await card_titles(client, admin_headers, board["id"]))["Inbox"] == ["A", "D", "B", "C"]


@pytest.mark.asyncio
async def test_move_card_between_lists_keeps_positions_contiguous(
    client: AsyncClient, admin_headers: dict
):
    board = await make_board(client, admin_headers)
    inbox, editing = board["lists"][0], board["lists"][1]
    cards = await add_cards(client, admin_headers, inbox["id"], ["A", "B", "C"])
    await add_cards(client, admin_headers, editing["id"], ["X", "Y"])

    response = await client.patch(
        f"/v1/cards/{cards[0]['id']}/move",
        headers=admin_headers,
        json={"listId": editing["id"], "position": 1},
    )
    assert response.status_code == 200
    assert response.json()["listId"] == editing["id"]

    titles = await card_titles(client, admin_headers, board["id"])
    assert titles["Inbox"] == ["B", "C"]
    assert titles["Editing"] == ["X", "A", "Y"]

    # Past-the-end positions append
    await client.patch(
        f"/v1/cards/{cards[1]['id']}/move",
        headers=admin_headers,
        json={"listId": editing["id"], "position": 99},
    )
    titles = await card_titles(client, admin_headers, board["id"])
    assert titles["Inbox"] == ["C"]
    assert titles["Editing"] == ["X", "A", "Y", "B"]


@pytest.mark.asyncio
async def test_move_card_to_unknown_list(client: AsyncClient, admin_headers: dict):
    board = await make_board(client, admin_headers)
    [card] = await add_cards(client, admin_headers, board["lists"][0]["id"], ["A"])

    response = await client.patch(
        f"/v1/cards/{card['id']}/move", headers=admin_headers, json={"listId": 999, "position": 0}
    )
    assert response.status_code == 404
    assert response.json()["code"] == "list_not_found"


@pytest.mark.asyncio
async def test_admin_attaches_file_to_card(client: AsyncClient, admin_headers: dict, blob_store):
    board = await make_board(client, admin_headers)
    [card] = await add_cards(client, admin_headers, board["lists"][0]["id"], ["A"])

    target = (
        await client.post(
            "/v1/uploads/direct-target",
            headers=admin_headers,
            json={"parentType": "card", "parentId": card["id"], "fileName": "v1.mp4", "mimeType": "video/mp4"},
        )
    ).json()
    assert target["storagePath"].startswith(f"cards/{card['id']}/")
    blob_store.put_presigned(target["uploadUrl"], b"\x00\x00\x00\x18ftyp")

    response = await client.post(
        f"/v1/cards/{card['id']}/attachments",
        headers=admin_headers,
        json={"fileName": "v1.mp4", "fileUrl": target["publicUrl"], "mimeType": "video/mp4"},
    )
    assert response.status_code == 201
    assert response.json()["fileType"] == "video"
