"""
Join a session, upload a file and download everything else
"""
import asyncio
import sys
from pathlib import Path
from passshare import PassShareClient


async def main(passkey: str, upload_path: str):
    async with PassShareClient("passshare") as client:
        client.on('notice', print)
        client.on('progress', lambda direction, key, percent: print(f"{direction} {key}: {percent}%"))

        if not await client.join_session(passkey):
            return

        await client.upload(upload_path)

        for f in client.files:
            if f.file_name != Path(upload_path).name:
                await client.download(f, dest_dir="downloads")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1], sys.argv[2]))
