import httpx
import pytest
from fastapi.testclient import TestClient

from order_assistant.fastapi_agent import create_app


@pytest.fixture
def app(assistant):
    return create_app(assistant, run_sweeps=False)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["backend"] == "templates"


async def test_chat_creates_session(client):
    response = await client.post("/chat", json={"message": "Hola"})
    assert response.status_code == 200
    body = response.json()
    assert body["sessionId"].startswith("session_")
    assert body["context"]["currentStep"] == "browsing"
    assert "Bienvenido" in body["message"]


async def test_chat_validation(client):
    assert (await client.post("/chat", json={})).status_code == 422
    assert (await client.post("/chat", json={"message": ""})).status_code == 422

    response = await client.post("/chat", json={"message": "   "})
    assert response.status_code == 500
    assert response.json()["detail"] == "El mensaje no puede estar vacío."


@pytest.mark.parametrize("path", ["/context/nope", "/history/nope", "/stats/nope", "/export/nope"])
async def test_unknown_session_is_404(client, path):
    response = await client.get(path)
    assert response.status_code == 404
    assert response.json()["detail"] == "Sesión no encontrada"


async def test_delete_unknown_session_is_404(client):
    assert (await client.delete("/history/nope")).status_code == 404


async def test_ordering_flow(client):
    session_id = (await client.post("/chat", json={"message": "Hola", "session_id": "web-1"})).json()["sessionId"]
    assert session_id == "web-1"

    response = await client.post("/chat", json={"message": "Quiero pollo", "session_id": session_id})
    assert response.json()["context"]["currentStep"] == "ordering"

    response = await client.post("/order/add-item", json={"session_id": session_id, "item_id": 1, "quantity": 2})
    assert response.status_code == 200
    assert response.json()["data"]["cart"]["totalAmount"] == 700

    response = await client.get("/order/cart", params={"session_id": session_id})
    assert "RD$700" in response.json()["message"]

    response = await client.post("/order/confirm", json={"session_id": session_id})
    assert response.status_code == 200
    assert response.json()["data"]["order"]["total_amount"] == 700

    context = (await client.get(f"/context/{session_id}")).json()
    assert context["currentStep"] == "completed"
    assert context["cart"]["items"] == []

    history = (await client.get(f"/history/{session_id}")).json()
    assert history["metadata"]["totalMessages"] == 6
    assert "Quiero pollo" in history["summary"]
    assert len((await client.get(f"/history/{session_id}", params={"limit": 2})).json()["messages"]) == 2

    stats = (await client.get(f"/stats/{session_id}")).json()
    assert stats["user_messages"] == 2

    export = (await client.get(f"/export/{session_id}")).json()
    assert export["export"]["finalContext"]["step"] == "completed"

    search = (await client.get("/search", params={"current_step": "completed"})).json()
    assert search["total"] == 1
    assert search["results"][0]["sessionId"] == session_id

    assert (await client.get("/global-stats")).json()["total_conversations"] == 1

    assert (await client.delete(f"/history/{session_id}")).json() == {"deleted": True, "sessionId": session_id}
    assert (await client.get(f"/context/{session_id}")).status_code == 404


async def test_tool_errors_are_400(client):
    response = await client.post("/order/add-item", json={"session_id": "s1", "item_id": 99})
    assert response.status_code == 400
    assert "ID 99" in response.json()["detail"]

    assert (await client.post("/order/confirm", json={"session_id": "s1"})).status_code == 400
    assert (await client.get("/menu/search", params={"query": " "})).status_code == 400


async def test_clear_cart(client):
    await client.post("/order/add-item", json={"session_id": "s1", "item_id": 2, "quantity": 1})
    response = await client.delete("/order/clear", params={"session_id": "s1"})
    assert response.status_code == 200
    assert response.json()["data"]["cart"]["items"] == []


async def test_menu_routes(client):
    menu = (await client.get("/menu")).json()
    assert len(menu["menu"]) == 6
    assert menu["categories"] == ["bebidas", "pescado", "pollo", "postres", "res"]

    assert len((await client.get("/menu", params={"category": "pollo"})).json()["menu"]) == 2

    found = (await client.get("/menu/search", params={"query": "chinola"})).json()
    assert found["data"]["items"][0]["id"] == 5

    item = (await client.get("/menu/item/6")).json()
    assert item["data"]["item"]["name"] == "Flan de Coco"
    assert (await client.get("/menu/item/99")).status_code == 404


def test_websocket_chat(app):
    with TestClient(app) as test_client:
        with test_client.websocket_connect("/ws/ws-1") as websocket:
            websocket.send_json({"message": "Hola"})
            reply = websocket.receive_json()
            assert reply["type"] == "message"
            assert reply["session_id"] == "ws-1"
            assert reply["current_step"] == "browsing"

            websocket.send_json({"message": "¿Qué hay en el menú?"})
            reply = websocket.receive_json()
            assert reply["action"] == "get_menu"

    assert app.state.assistant.get_history("ws-1").metadata.total_messages == 4


async def test_update_and_remove_routes(client):
    await client.post("/order/add-item", json={"session_id": "s1", "item_id": 5, "quantity": 1})

    response = await client.put("/order/update-quantity", json={"session_id": "s1", "item_id": 5, "quantity": 3})
    assert response.status_code == 200
    assert response.json()["data"]["cart"]["totalAmount"] == 240

    bad = await client.put("/order/update-quantity", json={"session_id": "s1", "item_id": 5, "quantity": 0})
    assert bad.status_code == 400

    response = await client.delete("/order/remove-item", params={"session_id": "s1", "item_id": 5})
    assert response.status_code == 200
    assert response.json()["data"]["cart"]["items"] == []
    assert (await client.delete("/order/remove-item", params={"session_id": "s1", "item_id": 5})).status_code == 400


@pytest.mark.parametrize("params,expected", [
    ({"date_from": "2020-01-01T00:00:00Z"}, 1),
    ({"date_from": "2020-01-01T00:00:00+02:00", "date_to": "2030-01-01T00:00:00-05:00"}, 1),
    ({"date_to": "2020-01-01T00:00:00Z"}, 0),
])
async def test_search_accepts_timezone_aware_dates(client, params, expected):
    await client.post("/chat", json={"message": "Hola", "session_id": "tz-1"})

    response = await client.get("/search", params=params)
    assert response.status_code == 200
    assert response.json()["total"] == expected


def test_websocket_survives_malformed_frames(app):
    with TestClient(app) as test_client:
        with test_client.websocket_connect("/ws/ws-2") as websocket:
            websocket.send_text("esto no es json")
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json(["Hola"])
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"message": 42})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"message": "Hola", "user_id": ["u1"]})
            reply = websocket.receive_json()
            assert reply["type"] == "message"
            assert reply["current_step"] == "browsing"

    assert app.state.assistant.get_context("ws-2").user_id is None
