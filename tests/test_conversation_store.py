"""
Tests for ConversationStore: chat ordering, current-chat pointer, persistence
and asynchronous title synthesis.
"""

import asyncio
from datetime import timedelta

from conftest import make_response

from context.conversation_store import DEFAULT_CHAT_TITLE, GENERATING_TITLE, ConversationStore
from context.snapshot import deserialize_chats, serialize_chats
from context.storage import ChatStorage, InMemoryChatStorage
from context.title_synthesizer import TitleSynthesizer
from models.errors import PersistenceDegraded


class BrokenStorage(ChatStorage):
    def load(self):
        raise PersistenceDegraded("Could not read chat history")

    def save(self, snapshot):
        raise PersistenceDegraded("Could not write chat history")

    def clear(self):
        raise PersistenceDegraded("Could not erase chat history")


class SlowTitleSynthesizer(TitleSynthesizer):
    """Heuristic titles that only land after the caller yields to the loop."""

    async def synthesize(self, query, answer=""):
        await asyncio.sleep(0.01)
        return "Synthesized Title"


# -------------------------------------------------------------------
# Chat collection
# -------------------------------------------------------------------


def test_new_chats_are_inserted_first_and_become_current(store):
    first = store.create_new_chat()
    second = store.create_new_chat()

    assert [c.id for c in store.chats] == [second, first]
    assert store.current_chat_id == second
    assert store.get_current_chat().title == DEFAULT_CHAT_TITLE


def test_first_query_hint_becomes_the_initial_title(store):
    chat_id = store.create_new_chat("  Tell me about the history of the Roman Empire and its fall  ")
    title = store.get_chat(chat_id).title

    assert len(title) <= 50
    assert title.startswith("Tell me about the history")


def test_chat_ids_are_unique(store):
    ids = {store.create_new_chat() for _ in range(25)}
    assert len(ids) == 25


def test_add_message_without_current_chat_creates_one(store):
    message = store.add_message_to_chat("What is quantum computing?", make_response())

    chat = store.get_current_chat()
    assert chat is not None
    assert chat.messages == [message]
    assert store.chats[0].id == chat.id


def test_add_message_with_stale_pointer_creates_chat(store):
    store.create_new_chat()
    store.switch_to_chat("chat_does_not_exist")
    assert store.get_current_chat() is None

    store.add_message_to_chat("What is quantum computing?", make_response())

    assert len(store.chats) == 2
    assert store.get_current_chat().messages[0].query == "What is quantum computing?"


def test_messages_only_go_to_the_current_chat(store):
    chat_a = store.create_new_chat()
    store.add_message_to_chat("First question?", make_response("First question?"))
    chat_b = store.create_new_chat()
    store.add_message_to_chat("Second question?", make_response("Second question?"))

    assert [m.query for m in store.get_chat(chat_a).messages] == ["First question?"]
    assert [m.query for m in store.get_chat(chat_b).messages] == ["Second question?"]


def test_updated_chat_moves_to_front(store):
    older = store.create_new_chat()
    newer = store.create_new_chat()

    store.switch_to_chat(older)
    store.add_message_to_chat("Follow up?", make_response("Follow up?"))

    assert [c.id for c in store.chats] == [older, newer]


def test_message_timestamps_are_non_decreasing(store):
    store.add_message_to_chat("One?", make_response("One?"))
    chat = store.get_current_chat()
    # Pretend the clock ran ahead for the first message
    chat.messages[0].timestamp += timedelta(hours=1)

    store.add_message_to_chat("Two?", make_response("Two?"))

    first, second = chat.messages
    assert second.timestamp >= first.timestamp
    assert chat.updated_at >= chat.created_at


def test_conversation_context_is_current_chat_only(store):
    store.add_message_to_chat("Alpha?", make_response("Alpha?", "About alpha."))
    store.create_new_chat()
    store.add_message_to_chat("Beta?", make_response("Beta?", "About beta."))

    turns = store.conversation_context()
    assert [(t.query, t.answer) for t in turns] == [("Beta?", "About beta.")]


def test_switch_to_unknown_id_resolves_to_no_chat(store):
    store.create_new_chat()
    store.switch_to_chat("missing")

    assert store.current_chat_id == "missing"
    assert store.get_current_chat() is None
    assert store.conversation_context() == []


def test_delete_current_chat_moves_pointer_to_first_remaining(store):
    first = store.create_new_chat()
    second = store.create_new_chat()
    third = store.create_new_chat()

    store.delete_chat(third)

    assert store.get_chat(third) is None
    assert store.current_chat_id == second
    assert [c.id for c in store.chats] == [second, first]


def test_delete_other_chat_keeps_pointer(store):
    first = store.create_new_chat()
    second = store.create_new_chat()

    store.delete_chat(first)
    assert store.current_chat_id == second


def test_delete_last_chat_clears_pointer(store):
    only = store.create_new_chat()
    store.delete_chat(only)

    assert store.chats == []
    assert store.current_chat_id is None


def test_rename_chat(store):
    chat_id = store.create_new_chat()

    assert store.rename_chat(chat_id, "  Physics notes ")
    assert store.get_chat(chat_id).title == "Physics notes"
    assert not store.rename_chat(chat_id, "   ")
    assert not store.rename_chat("missing", "Title")


def test_set_loading(store):
    store.set_loading(True)
    assert store.is_loading
    store.set_loading(False)
    assert not store.is_loading


# -------------------------------------------------------------------
# Persistence
# -------------------------------------------------------------------


def test_every_mutation_is_persisted(storage, store):
    chat_id = store.create_new_chat()
    store.add_message_to_chat("What is quantum computing?", make_response())
    store.rename_chat(chat_id, "Qubits")

    reloaded = deserialize_chats(storage.value)
    assert [c.id for c in reloaded] == [chat_id]
    assert reloaded[0].title == "Qubits"
    assert reloaded[0].messages[0].response.answer == "It is [1]."


def test_history_survives_a_restart(storage, store):
    store.add_message_to_chat("What is quantum computing?", make_response())

    restarted = ConversationStore(storage)

    assert [c.id for c in restarted.chats] == [c.id for c in store.chats]
    # The current-chat pointer is not persisted
    assert restarted.current_chat_id is None


def test_clear_then_reload_is_empty(storage, store):
    store.add_message_to_chat("What is quantum computing?", make_response())
    store.clear_all_chats()

    assert store.chats == []
    assert store.current_chat_id is None
    assert ConversationStore(storage).chats == []


def test_corrupt_snapshot_starts_empty():
    store = ConversationStore(InMemoryChatStorage("{not json"))
    assert store.chats == []


def test_storage_failures_are_absorbed():
    store = ConversationStore(BrokenStorage())

    chat_id = store.create_new_chat()
    store.add_message_to_chat("What is quantum computing?", make_response())
    store.delete_chat(chat_id)
    store.clear_all_chats()

    assert store.chats == []


def test_stuck_placeholder_title_is_repaired_on_load(storage, store):
    store.add_message_to_chat("What is quantum computing?", make_response())
    chat = store.get_current_chat()
    chat.title = GENERATING_TITLE
    storage.save(serialize_chats(store.chats))

    restarted = ConversationStore(storage)

    assert restarted.get_chat(chat.id).title == "What is Quantum Computing?"
    assert GENERATING_TITLE not in storage.value


# -------------------------------------------------------------------
# Title synthesis
# -------------------------------------------------------------------


def test_title_without_event_loop_is_applied_immediately(store):
    store.add_message_to_chat("What is quantum computing?", make_response())

    assert store.get_current_chat().title == "What is Quantum Computing?"
    assert store.pending_title_count == 0


def test_only_first_message_triggers_title(store):
    store.add_message_to_chat("What is quantum computing?", make_response())
    store.add_message_to_chat("How do qubits work?", make_response("How do qubits work?"))

    assert store.get_current_chat().title == "What is Quantum Computing?"


def test_title_is_synthesized_in_background():
    async def scenario():
        store = ConversationStore(InMemoryChatStorage(), SlowTitleSynthesizer())
        store.add_message_to_chat("What is quantum computing?", make_response())

        assert store.get_current_chat().title == GENERATING_TITLE
        assert store.pending_title_count == 1

        await store.wait_for_pending_titles()
        return store

    store = asyncio.run(scenario())
    assert store.get_current_chat().title == "Synthesized Title"
    assert "Synthesized Title" in store.storage.value


def test_title_for_deleted_chat_is_dropped():
    async def scenario():
        store = ConversationStore(InMemoryChatStorage(), SlowTitleSynthesizer())
        store.add_message_to_chat("What is quantum computing?", make_response())
        chat_id = store.current_chat_id
        store.delete_chat(chat_id)
        saves_before = store.storage.save_count

        await store.wait_for_pending_titles()
        return store, chat_id, saves_before

    store, chat_id, saves_before = asyncio.run(scenario())
    assert store.get_chat(chat_id) is None
    assert store.chats == []
    assert store.storage.save_count == saves_before


def test_title_lands_on_its_own_chat_after_switching():
    async def scenario():
        store = ConversationStore(InMemoryChatStorage(), SlowTitleSynthesizer())
        store.add_message_to_chat("What is quantum computing?", make_response())
        titled = store.current_chat_id
        other = store.create_new_chat()

        await store.wait_for_pending_titles()
        return store, titled, other

    store, titled, other = asyncio.run(scenario())
    assert store.get_chat(titled).title == "Synthesized Title"
    assert store.get_chat(other).title == DEFAULT_CHAT_TITLE


def test_user_rename_wins_over_pending_title():
    async def scenario():
        store = ConversationStore(InMemoryChatStorage(), SlowTitleSynthesizer())
        store.add_message_to_chat("What is quantum computing?", make_response())
        store.rename_chat(store.current_chat_id, "My quantum notes")

        await store.wait_for_pending_titles()
        return store

    store = asyncio.run(scenario())
    assert store.get_current_chat().title == "My quantum notes"


def test_failing_synthesizer_falls_back_to_heuristic():
    class ExplodingSynthesizer(TitleSynthesizer):
        async def synthesize(self, query, answer=""):
            raise RuntimeError("boom")

    async def scenario():
        store = ConversationStore(InMemoryChatStorage(), ExplodingSynthesizer())
        store.add_message_to_chat("What is quantum computing?", make_response())
        await store.wait_for_pending_titles()
        return store

    store = asyncio.run(scenario())
    assert store.get_current_chat().title == "What is Quantum Computing?"


def test_overlapping_titles_resolve_to_their_own_chats():
    class EchoSynthesizer(TitleSynthesizer):
        delays = {"Alpha question?": 0.03, "Beta question?": 0.01}

        async def synthesize(self, query, answer=""):
            await asyncio.sleep(self.delays[query])
            return f"Title for {query}"

    async def scenario():
        store = ConversationStore(InMemoryChatStorage(), EchoSynthesizer())
        chat_a = store.create_new_chat()
        store.add_message_to_chat("Alpha question?", make_response("Alpha question?"))
        chat_b = store.create_new_chat()
        store.add_message_to_chat("Beta question?", make_response("Beta question?"))

        assert store.pending_title_count == 2
        await store.wait_for_pending_titles()
        return store, chat_a, chat_b

    store, chat_a, chat_b = asyncio.run(scenario())
    assert store.get_chat(chat_a).title == "Title for Alpha question?"
    assert store.get_chat(chat_b).title == "Title for Beta question?"
    reloaded = {c.id: c.title for c in deserialize_chats(store.storage.value)}
    assert reloaded == {chat_b: "Title for Beta question?", chat_a: "Title for Alpha question?"}
