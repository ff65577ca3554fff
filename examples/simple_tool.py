"""Simple Tool: one round trip through a tool call."""

from __future__ import annotations

import asyncio
import logging

from pico_agent import BedrockAPI, Message, ToolCall, ToolDefinition

CALCULATOR = ToolDefinition(
    name="calculator",
    description="Evaluate a math expression",
    parameters={
        "type": "object",
        "properties": {"expr": {"type": "string"}},
        "required": ["expr"],
    },
)


def run_tool(call: ToolCall) -> str:
    expr = str(call.arguments.get("expr", ""))
    return str(eval(expr))  # noqa: S307


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    messages = [Message.user("What is 23 * 47?")]

    async with BedrockAPI() as api:
        response = await api.chat(messages, tools=[CALCULATOR])
        messages.append(response.to_message())

        for call in response.tool_calls:
            messages.append(Message.tool_result(call.id, run_tool(call)))

        if response.has_tool_calls():
            response = await api.chat(
                messages, tools=[CALCULATOR], options={"max_tokens": 512}
            )
            messages.append(response.to_message())

    for msg in messages:
        print(msg.to_dict())
    if response.usage is not None:
        print(response.usage.to_dict())


if __name__ == "__main__":
    asyncio.run(main())
