import asyncio
import sys
import threading
import time
from collections import deque

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from config.config import Config
from context.conversation_store import ConversationStore
from models.errors import AskWebError
from models.search_response import SearchResponse
from orchestrator.core import AnswerOrchestrator, create_orchestrator_from_env
from server.dependencies import build_conversation_store
from utils.time_utils import format_relative_date

RECENT_QUERY_LIMIT = 5

CONTINUATION_PROMPTS = (
    "Ask a follow-up",
    "Dig deeper",
    "What else would you like to know?",
    "Keep going",
)

HELP_TEXT = """
=== Available Commands ===
help                 - Show this help message
new                  - Start a new chat
chats                - List saved chats
switch <n>           - Make chat number <n> current
rename <n> <title>   - Rename chat number <n>
delete <n>           - Delete chat number <n>
clear                - Delete every chat
retry                - Ask the last query again
recent               - Show recent queries
exit/quit            - Exit the program
"""


def show_loading_animation(stop_event: threading.Event) -> None:
    """
    Show a loading animation in the console.

    Args:
        stop_event: A threading.Event that will be set to stop the animation
    """
    while not stop_event.is_set():
        for char in '|/-\\':
            if stop_event.is_set():
                break
            sys.stdout.write(f'\r\033[93mSearching {char}\033[0m')
            sys.stdout.flush()
            time.sleep(0.1)

    # Clear the loading line
    sys.stdout.write('\r' + ' ' * 20 + '\r')
    sys.stdout.flush()


def prompt_for(store: ConversationStore) -> str:
    chat = store.get_current_chat()
    if chat is None or chat.is_empty:
        return "Ask anything"
    return CONTINUATION_PROMPTS[(len(chat.messages) - 1) % len(CONTINUATION_PROMPTS)]


def print_answer(response: SearchResponse) -> None:
    print(f"\n{response.answer}\n")
    if response.citations:
        print("Sources:")
        for citation in response.citations:
            print(f"  [{citation.index}] {citation.title} - {citation.url}")
        print()


def print_chats(store: ConversationStore) -> None:
    chats = store.chats
    if not chats:
        print("\nNo chats yet.\n")
        return
    print("\n=== Chats ===")
    for number, chat in enumerate(chats, start=1):
        marker = "*" if chat.id == store.current_chat_id else " "
        count = len(chat.messages)
        print(
            f"{marker} {number}. {chat.title} "
            f"({count} message{'s' if count != 1 else ''}, {format_relative_date(chat.updated_at)})"
        )
    print()


def chat_id_at(store: ConversationStore, number: str) -> str | None:
    """Resolve a 1-based chat number from the ``chats`` listing."""
    chats = store.chats
    try:
        index = int(number) - 1
    except ValueError:
        return None
    if 0 <= index < len(chats):
        return chats[index].id
    return None


async def ask(store: ConversationStore, orchestrator: AnswerOrchestrator, query: str) -> bool:
    """Run one query inside the current chat. Returns True on success."""
    stop_animation = threading.Event()
    loading_thread = threading.Thread(target=show_loading_animation, args=(stop_animation,))
    loading_thread.daemon = True
    loading_thread.start()

    store.set_loading(True)
    error = None
    try:
        response = await asyncio.to_thread(
            orchestrator.answer, query, store.conversation_context()
        )
    except AskWebError as e:
        error = e
    finally:
        store.set_loading(False)
        stop_animation.set()
        loading_thread.join()

    if error is not None:
        print(f"\nError: {error.message}\n")
        return False

    store.add_message_to_chat(query, response)
    print_answer(response)
    return True


def handle_command(
    store: ConversationStore, command: str, argument: str
) -> bool:
    """Apply a chat-management command. Returns False if it isn't one."""
    if command == "help":
        print(HELP_TEXT)
    elif command == "new":
        store.create_new_chat()
        print("\nStarted a new chat.\n")
    elif command == "chats":
        print_chats(store)
    elif command in ("switch", "delete", "rename"):
        number, _, title = argument.partition(" ")
        chat_id = chat_id_at(store, number)
        if chat_id is None:
            print("\nNo chat with that number. Type 'chats' to list them.\n")
        elif command == "switch":
            store.switch_to_chat(chat_id)
            print(f"\nSwitched to: {store.get_current_chat().title}\n")
        elif command == "delete":
            store.delete_chat(chat_id)
            print("\nChat deleted.\n")
        elif store.rename_chat(chat_id, title):
            print(f"\nRenamed to: {store.get_chat(chat_id).title}\n")
        else:
            print("\nUsage: rename <n> <title>\n")
    elif command == "clear":
        store.clear_all_chats()
        print("\nAll chats deleted.\n")
    else:
        return False
    return True


async def run(store: ConversationStore, orchestrator: AnswerOrchestrator) -> None:
    recent_queries: deque[str] = deque(maxlen=RECENT_QUERY_LIMIT)
    last_query: str | None = None

    print("\n=== AskWeb ===")
    print("Type a question to search the web, 'help' for commands, or 'exit' to quit\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, f"{prompt_for(store)}: ")).strip()
        except (KeyboardInterrupt, EOFError):
            print("\nExiting...")
            break

        if not user_input:
            continue

        command, _, argument = user_input.partition(" ")
        command = command.lower()

        if command in ("exit", "quit"):
            print("\nGoodbye!")
            break

        if command == "recent":
            if recent_queries:
                print("\n=== Recent Queries ===")
                for query in recent_queries:
                    print(f"  {query}")
                print()
            else:
                print("\nNo recent queries.\n")
            continue

        if command == "retry":
            if last_query is None:
                print("\nNothing to retry yet.\n")
                continue
            user_input = last_query
        elif handle_command(store, command, argument.strip()):
            continue

        last_query = user_input
        if user_input in recent_queries:
            recent_queries.remove(user_input)
        recent_queries.appendleft(user_input)

        await ask(store, orchestrator, user_input)

    if store.pending_title_count:
        await store.wait_for_pending_titles()


def main():
    config = Config()
    if not config.validate():
        print("Missing configuration. Check your .env file.")
        return

    try:
        orchestrator = create_orchestrator_from_env(config)
    except ValueError as e:
        print(f"Error initializing clients: {str(e)}")
        return

    print(f"Initialized {config.get_model_info()} with Tavily search")
    store = build_conversation_store(config)

    try:
        asyncio.run(run(store, orchestrator))
    except KeyboardInterrupt:
        print("\nExiting...")


if __name__ == "__main__":
    main()
