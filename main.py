import asyncio
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from config.config import Config
from context.session import ChatSession
from models.errors import StreamInterruptedError, TransportError
from models.search_result import SearchMode, SearchResult

HELP_TEXT = """
=== Available Commands ===
help              - Show this help message
clear             - Forget the conversation so far
history           - Show the stored conversation window
search <query>    - Quick web search (titles and links)
search! <query>   - Enriched web search (fetches and summarizes each page)
exit/quit         - Exit the program
"""


def print_result(index: int, result: SearchResult) -> None:
    print(f"  {index}. {result.title}")
    print(f"     {result.url}")
    if result.is_enriched:
        print(f"     [{result.reading_time} min read] {result.summary}")


async def run_search(session: ChatSession, query: str, mode: SearchMode) -> None:
    if not query:
        print("Usage: search <query>\n")
        return

    count = 0
    print()
    async for result in session.perform_search(query, mode=mode):
        count += 1
        print_result(count, result)
    print(f"\n[{count} results]\n")


async def run_chat(session: ChatSession, message: str) -> None:
    sys.stdout.write("\nAI: ")
    async for chunk in session.chat_stream(message):
        sys.stdout.write(chunk)
        sys.stdout.flush()
    print("\n")


async def main():
    config = Config()
    if not config.validate():
        return

    session = ChatSession.from_config(config)
    print(f"\n=== Local Assistant ({config.get_model_info()}) ===")
    print("Type 'exit' to quit, or 'help' for commands\n")

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, "You: ")).strip()

                if not user_input:
                    continue

                command = user_input.lower()

                if command in ('exit', 'quit'):
                    print("\nGoodbye!")
                    break

                if command == 'help':
                    print(HELP_TEXT)
                    continue

                if command == 'clear':
                    await session.clear_conversation()
                    print("Conversation cleared.\n")
                    continue

                if command == 'history':
                    print(session.window.summary())
                    print()
                    continue

                if command.startswith('search!'):
                    await run_search(session, user_input[len('search!'):].strip(), SearchMode.ENRICHED)
                    continue

                if command.startswith('search '):
                    await run_search(session, user_input[len('search '):].strip(), SearchMode.FAST)
                    continue

                await run_chat(session, user_input)

            except (KeyboardInterrupt, EOFError):
                print("\nExiting...")
                break
            except TransportError as e:
                print(f"\nError: {e}\n")
            except StreamInterruptedError as e:
                print(f"\n[Reply interrupted: {e}]\n")
    finally:
        await session.aclose()


if __name__ == "__main__":
    asyncio.run(main())
