"""
Run Goal Example

This example drives one goal through plan -> execute -> review:
1. Build a provider from the environment (static by default)
2. Run the goal through a SuperAgent
3. Print the result and the recorded graph

Point it at a local llama-server with:

    SUPERAGENT_PROVIDER=openai_compatible LLAMA_ENDPOINT=http://127.0.0.1:8080 \
        python examples/01-run-goal/main.py "Summarise the release notes"

Run: python examples/01-run-goal/main.py [goal]
"""

import asyncio
import logging
import sys

from superagent import SuperAgent
from superagent.config import build_provider, get_settings
from superagent.memory import MemoryStore

PLAN = """1. Collect the merged changes
2. uppercase: group them by component
3. Write the summary"""


async def main(goal: str):
    settings = get_settings()
    if settings.provider == "static" and settings.static_response is None:
        settings = settings.model_copy(update={"static_response": PLAN})

    provider = build_provider(settings)
    await provider.start()

    agent = SuperAgent(
        provider,
        memory=MemoryStore(short_term_limit=settings.short_term_limit),
        timeout_seconds=settings.provider_timeout_seconds,
    )

    try:
        result = await agent.run_goal(goal)
    finally:
        await provider.stop()

    print(f"State: {result.state.value}")
    print(f"Success: {result.success}")
    print(f"Duration: {result.duration_ms:.2f}ms")
    print()

    if result.cause is not None:
        print(f"Cause: {result.cause}")
        print()

    print(result.artifact)
    print()
    print(agent.graph.render())


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(main(" ".join(sys.argv[1:]) or "Prepare the 1.2 release"))
