"""Hello World: Simplest possible Bedrock conversation."""

import asyncio

from pico_agent import BedrockAPI, Message


async def main() -> None:
    messages = [
        Message.system("You are a friendly assistant."),
        Message.user("Hello! What is your name?"),
    ]
    async with BedrockAPI() as api:
        response = await api.chat(messages)
    print(response.content)


if __name__ == "__main__":
    asyncio.run(main())
