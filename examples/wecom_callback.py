"""WeCom callback: turn an encrypted callback into a model reply."""

from __future__ import annotations

import asyncio
import os
import sys

from pico_agent import BedrockAPI, WeComCrypto, WeComCryptoError


async def main(signature: str, timestamp: str, nonce: str, payload: str) -> None:
    crypto = WeComCrypto(
        token=os.environ.get("WECOM_TOKEN", ""),
        encoding_aes_key=os.environ.get("WECOM_ENCODING_AES_KEY", ""),
    )
    try:
        message = crypto.open_message(signature, timestamp, nonce, payload)
    except WeComCryptoError as e:
        print(f"Rejected callback: {e}", file=sys.stderr)
        return

    async with BedrockAPI() as api:
        response = await api.chat([message])
    print(response.content)


if __name__ == "__main__":
    asyncio.run(main(*sys.argv[1:5]))
