"""
Basic usage - Login, create a session and list its files
"""
import asyncio
from passshare import PassShareClient


async def main():
    # Persistent mode (keeps the logged-in user in passshare.db)
    async with PassShareClient("passshare") as client:
        client.on('notice', print)

        if not client.is_logged_in():
            await client.login("alice", "secret1", remember=True)

        passkey = await client.create_session()
        if passkey:
            print(f"Share this passkey: {passkey}")
            for f in await client.refresh():
                print(f"  {f.file_name} ({f.size} bytes) from {f.uploader_username}")


if __name__ == "__main__":
    asyncio.run(main())
