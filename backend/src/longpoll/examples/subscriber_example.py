import asyncio
import sys

import httpx  # to install: pip install httpx

async def main(client_id: str):
    url = f"http://localhost:8000/poll/{client_id}"
    # the server holds each poll open for up to 30s; leave headroom
    async with httpx.AsyncClient(timeout=httpx.Timeout(40.0)) as client:
        print("Awaiting messages... (press Ctrl+C to exit)")
        while True:
            resp = await client.get(url)
            if resp.status_code == 200:
                print("Received:", resp.json())
            elif resp.status_code != 204:
                print("Server:", resp.status_code, resp.text)
                await asyncio.sleep(1)

if __name__ == "__main__":
    try:
        asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "s1"))
    except KeyboardInterrupt:
        print("Stopped.")
