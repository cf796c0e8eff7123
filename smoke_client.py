#!/usr/bin/env python3
"""
Smoke client for a running ordering assistant API
"""
import asyncio
import json

import httpx
import websockets

BASE_URL = "http://localhost:8000"
WS_URL = "ws://localhost:8000"


class AssistantAPISmoke:
    def __init__(self):
        self.session_id = None
        self.client = httpx.AsyncClient(base_url=BASE_URL)

    async def check_health(self):
        print("🔍 Checking health...")
        response = await self.client.get("/health")
        print(f"✅ Health: {response.json()}")

    async def check_menu(self):
        print("\n🔍 Checking menu endpoints...")
        response = await self.client.get("/menu")
        menu = response.json()
        print(f"✅ Menu loaded: {len(menu['menu'])} items, categories {menu['categories']}")

        response = await self.client.get("/menu/search", params={"query": "pollo"})
        print(f"✅ Search: {response.json()['message'][:80]}...")

        response = await self.client.get("/menu/item/1")
        print(f"✅ Item details: {response.json()['data']['item']['name']}")

    async def check_chat(self):
        print("\n🔍 Checking chat...")
        response = await self.client.post("/chat", json={"message": "Hola"})
        reply = response.json()
        self.session_id = reply["sessionId"]
        print(f"✅ Session {self.session_id}: {reply['message'][:80]}...")

        response = await self.client.post("/chat", json={"message": "Quiero pollo", "session_id": self.session_id})
        print(f"✅ Reply: {response.json()['message'][:80]}...")

    async def check_order(self):
        print("\n🔍 Checking order flow...")
        response = await self.client.post(
            "/order/add-item",
            json={"session_id": self.session_id, "item_id": 1, "quantity": 2, "notes": "sin picante"},
        )
        print(f"✅ Added: {response.json()['message'][:80]}...")

        response = await self.client.get("/order/cart", params={"session_id": self.session_id})
        print(f"✅ Cart: {response.json()['message'][:80]}...")

        response = await self.client.post("/order/confirm", json={"session_id": self.session_id})
        order = response.json()["data"]["order"]
        print(f"✅ Order {order['order_id']} total {order['total_amount']}")

    async def check_history(self):
        print("\n🔍 Checking history...")
        response = await self.client.get(f"/stats/{self.session_id}")
        print(f"✅ Stats: {response.json()}")
        response = await self.client.get("/global-stats")
        print(f"✅ Global stats: {response.json()}")

    async def check_websocket(self):
        print("\n🔍 Checking WebSocket chat...")
        try:
            async with websockets.connect(f"{WS_URL}/ws/smoke_session") as websocket:
                await websocket.send(json.dumps({"message": "¿Qué tienen en el menú?"}))
                reply = json.loads(await websocket.recv())
                print(f"✅ WebSocket reply ({reply['action']}): {reply['content'][:80]}...")
        except (OSError, websockets.exceptions.WebSocketException) as e:
            print(f"❌ WebSocket check failed: {e}")

    async def run_all(self):
        print("🍽️ Ordering assistant API smoke run")
        print("=" * 50)
        try:
            await self.check_health()
            await self.check_menu()
            await self.check_chat()
            await self.check_order()
            await self.check_history()
            await self.check_websocket()
            print("\n✅ Smoke run completed")
        except (httpx.HTTPError, KeyError) as e:
            print(f"\n❌ Smoke run failed: {e}")
        finally:
            await self.client.aclose()


async def main():
    await AssistantAPISmoke().run_all()


if __name__ == "__main__":
    print("Make sure the API is running on http://localhost:8000")
    print("Run: python start_fastapi.py")
    print()
    asyncio.run(main())
