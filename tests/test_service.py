"""
Tests for the session orchestrator.

Covers the conversation properties: append-only growth, user/model
pairing, first-turn personalization, no partial writes on failure, and
concurrent chats from one user.
"""
import threading
from unittest.mock import Mock

import pytest

from chat_session.db import create_db_engine
from chat_session.exceptions import OracleError, PersistenceError, UnauthenticatedError
from chat_session.memory import InMemoryHistoryStore, SqlHistoryStore
from chat_session.models import Role, Turn, UserIdentity, validate_pairing
from chat_session.security import TokenIssuer, ValidationError
from chat_session.service import ChatSessionService

from conftest import FakeOracle


@pytest.fixture
def service(resolver, memory_store, fake_oracle):
    return ChatSessionService(resolver, memory_store, fake_oracle)


class TestHandleChat:

    def test_first_chat_personalizes_and_stores_raw_message(
        self, service, fake_oracle, memory_store, ada_token
    ):
        """The oracle sees the introduction; the stored user turn does not."""
        response = service.handle_chat(ada_token, "hi")

        history, sent = fake_oracle.calls[0]
        assert history == ()
        assert "Ada" in sent and "hi" in sent
        assert sent == "My name is Ada. hi"

        assert response.text == "echo: My name is Ada. hi"
        assert response.turn_count == 2
        assert memory_store.load_or_create("user-ada").turns == (
            Turn.user("hi"),
            Turn.model("echo: My name is Ada. hi"),
        )

    def test_later_chat_sends_raw_message_and_full_history(self, service, fake_oracle, ada_token):
        service.handle_chat(ada_token, "hi")
        service.handle_chat(ada_token, "what's my name?")

        history, sent = fake_oracle.calls[1]
        assert sent == "what's my name?"
        assert [t.text for t in history] == ["hi", "echo: My name is Ada. hi"]

    def test_history_is_append_only_and_paired(self, service, ada_token):
        snapshots = []
        for n in range(5):
            service.handle_chat(ada_token, f"message {n}")
            snapshots.append(service.get_history(ada_token).turns)

        for earlier, later in zip(snapshots, snapshots[1:]):
            assert later[:len(earlier)] == earlier
            assert len(later) == len(earlier) + 2
        validate_pairing(snapshots[-1])

    def test_oracle_failure_leaves_history_unchanged(self, resolver, memory_store, ada_token):
        """A failed completion writes nothing, so the message can be resent."""
        ok = ChatSessionService(resolver, memory_store, FakeOracle())
        ok.handle_chat(ada_token, "hi")
        before = memory_store.load_or_create("user-ada").turns

        failing = ChatSessionService(resolver, memory_store, FakeOracle(error=OracleError("down")))
        with pytest.raises(OracleError):
            failing.handle_chat(ada_token, "second")

        assert memory_store.load_or_create("user-ada").turns == before

    def test_unexpected_oracle_exception_is_wrapped(self, resolver, memory_store, ada_token):
        service = ChatSessionService(resolver, memory_store, FakeOracle(error=RuntimeError("boom")))
        with pytest.raises(OracleError):
            service.handle_chat(ada_token, "hi")
        assert memory_store.load_or_create("user-ada").turns == ()

    def test_reply_withheld_when_append_fails(self, resolver, fake_oracle, ada_token):
        """The oracle succeeded but the save failed: the caller gets an error, not the reply."""
        store = Mock()
        store.load_or_create.return_value = InMemoryHistoryStore().load_or_create("user-ada")
        store.append_pair.side_effect = PersistenceError("write rejected")
        service = ChatSessionService(resolver, store, fake_oracle)

        with pytest.raises(PersistenceError):
            service.handle_chat(ada_token, "hi")
        assert len(fake_oracle.calls) == 1

    def test_store_exception_is_wrapped(self, resolver, fake_oracle, ada_token):
        store = Mock()
        store.load_or_create.side_effect = OSError("disk gone")
        service = ChatSessionService(resolver, store, fake_oracle)
        with pytest.raises(PersistenceError):
            service.handle_chat(ada_token, "hi")
        assert fake_oracle.calls == []

    def test_unauthenticated_chat_does_not_mutate(self, service, fake_oracle, memory_store, ada):
        foreign = TokenIssuer("another-secret").issue(ada)
        for credential in (None, "garbage", foreign):
            with pytest.raises(UnauthenticatedError):
                service.handle_chat(credential, "hi")
        assert fake_oracle.calls == []
        assert "user-ada" not in memory_store._histories

    def test_invalid_message_rejected_before_oracle(self, service, fake_oracle, ada_token):
        with pytest.raises(ValidationError):
            service.handle_chat(ada_token, "   ")
        assert fake_oracle.calls == []

    def test_message_length_limit(self, resolver, memory_store, fake_oracle, ada_token):
        service = ChatSessionService(resolver, memory_store, fake_oracle, max_message_length=5)
        with pytest.raises(ValidationError):
            service.handle_chat(ada_token, "too long")


class TestGetHistory:

    def test_empty_for_new_user(self, service, ada_token):
        history = service.get_history(ada_token)
        assert history.turns == ()
        assert history.to_wire() == []

    def test_requires_credential(self, service):
        with pytest.raises(UnauthenticatedError):
            service.get_history(None)

    def test_users_see_only_their_history(self, service, issuer, ada_token):
        grace_token = issuer.issue(UserIdentity(id="user-grace", display_name="Grace"))
        service.handle_chat(ada_token, "hi")
        assert service.get_history(grace_token).turns == ()
        assert len(service.get_history(ada_token).turns) == 2


class TestConcurrentChats:

    @pytest.mark.parametrize("backend", ["memory", "sql"])
    def test_same_user_concurrent_chats_keep_both_pairs(
        self, backend, resolver, ada_token, tmp_path
    ):
        """Both requests read the same snapshot; both pairs still end up stored."""
        engine = None
        if backend == "memory":
            store = InMemoryHistoryStore()
        else:
            engine = create_db_engine(f"sqlite:///{tmp_path / 'chat.db'}")
            store = SqlHistoryStore(engine)
            store.create_schema()

        # Neither request can append until both have called the oracle.
        oracle = FakeOracle(barrier=threading.Barrier(2))
        service = ChatSessionService(resolver, store, oracle)
        errors = []

        def chat(message):
            try:
                service.handle_chat(ada_token, message)
            except Exception as e:  # surfaced through the assertion below
                errors.append(e)

        threads = [threading.Thread(target=chat, args=(m,)) for m in ("first", "second")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        try:
            assert errors == []
            assert all(history == () for history, _ in oracle.calls)
            turns = store.load_or_create("user-ada").turns
            assert len(turns) == 4
            validate_pairing(turns)
            users = [t.text for t in turns if t.role == Role.USER]
            assert sorted(users) == ["first", "second"]
            for i in (0, 2):
                assert turns[i + 1].text == f"echo: My name is Ada. {turns[i].text}"
        finally:
            if engine is not None:
                engine.dispose()
