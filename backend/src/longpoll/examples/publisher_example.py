import asyncio
import sys

import httpx

async def main(client_id: str, message: str):
    url = f"http://localhost:8000/publish/{client_id}"
    async with httpx.AsyncClient() as client:
        print("Client Message: ", message)
        resp = await client.post(url, json={"message": message})
        # 404: the client has never polled; 503: an event is already pending
        print("Server:", resp.status_code, resp.json())

if __name__ == "__main__":
    args = sys.argv[1:]
    asyncio.run(main(args[0] if args else "s1", args[1] if len(args) > 1 else "hello"))
