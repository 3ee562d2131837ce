"""Tests for QuestionStore."""
import logging
from unittest.mock import patch

import pytest

from askbox.models.schemas import NO_PARENT
from askbox.repositories.question import QuestionStore
from askbox.utils.exceptions import (
    InvalidInput,
    InvalidParent,
    NotFound,
    StorageUnavailable,
)


def _fresh(store):
    """A new store over the same file, freshly loaded."""
    other = QuestionStore(store.path)
    other.load()
    return other


def _assert_thread_integrity(store):
    index = store.thread_index
    for question_id in sorted(index_ids(index)):
        question = store.get(question_id)
        assert question.thread_id in index
        assert index[question.thread_id].count(question_id) == 1
    assert sorted(index_ids(index)) == sorted(qid for qid in range(1, store.next_id + 1) if qid in store)


def index_ids(index):
    return [qid for members in index.values() for qid in members]


class TestLoad:

    def test_missing_file_is_empty_store(self, tmp_path, caplog):
        store = QuestionStore(tmp_path / "questions.txt")

        with caplog.at_level(logging.WARNING):
            store.load()

        assert len(store) == 0
        assert store.next_id == 0
        assert store.thread_index == {}
        assert "empty question store" in caplog.text

    def test_load_rebuilds_threads_and_next_id(self, tmp_path):
        path = tmp_path / "questions.txt"
        path.write_text(
            "1,-1,1,2,0,Root one,\n"
            "2,1,3,2,1,Reply,Sure\n"
            "\n"
            "5,-1,2,1,0,Root two,\n"
            "7,1,1,2,0,Another reply,\n",
            encoding="utf-8",
        )
        store = QuestionStore(path)

        store.load()

        assert len(store) == 4
        assert store.next_id == 7
        assert store.thread_index == {1: [1, 2, 7], 5: [5]}

    def test_bad_lines_are_skipped(self, tmp_path, caplog):
        path = tmp_path / "questions.txt"
        path.write_text(
            "1,-1,1,2,0,Good,\n"
            "oops\n"
            "x,-1,1,2,0,Bad id,\n"
            "3,-1,1,2,0,Also good,\n",
            encoding="utf-8",
        )
        store = QuestionStore(path)

        with caplog.at_level(logging.WARNING):
            store.load()

        assert 1 in store and 3 in store
        assert len(store) == 2
        assert "Skipping line 2" in caplog.text
        assert "Skipping line 3" in caplog.text

    def test_reload_discards_memory_state(self, question_store):
        question_store.ask(1, 2, False, None, "Hi?")
        question_store.path.write_text("", encoding="utf-8")

        question_store.load()

        assert len(question_store) == 0
        assert question_store.next_id == 0

    def test_orphaned_reply_kept_under_its_parent(self, tmp_path, caplog):
        path = tmp_path / "questions.txt"
        path.write_text("1,-1,1,2,0,Root,\n4,3,1,2,0,Lost reply,\n", encoding="utf-8")
        store = QuestionStore(path)

        with caplog.at_level(logging.WARNING):
            store.load()

        assert store.thread_index == {1: [1], 3: [4]}
        assert store.orphaned_replies() == [4]
        assert "Thread 3 has no root question" in caplog.text
        with pytest.raises(InvalidParent):
            store.ask(1, 2, False, 3, "Reply to a missing root")

    def test_undecodable_line_is_skipped(self, tmp_path, caplog):
        path = tmp_path / "questions.txt"
        path.write_bytes(b"1,-1,1,2,0,Hi?,\n2,-1,1,2,0,caf\xe9,\n3,-1,2,1,0,Still here,\n")
        store = QuestionStore(path)

        with caplog.at_level(logging.WARNING):
            store.load()

        assert sorted(store.thread_index) == [1, 3]
        assert store.next_id == 3
        assert "not valid UTF-8" in caplog.text

    def test_unreadable_file_is_empty_store(self, tmp_path):
        store = QuestionStore(tmp_path / "questions.txt")

        with patch("askbox.repositories.question.read_file_lines", side_effect=StorageUnavailable("denied")):
            store.load()

        assert len(store) == 0


class TestAsk:

    def test_first_question_starts_thread(self, question_store):
        question = question_store.ask(1, 2, False, None, "Hi?")

        assert question.id == 1
        assert question.parent_id == NO_PARENT
        assert question.answer == ""
        assert question_store.thread_index == {1: [1]}

    def test_reply_joins_thread(self, question_store):
        question_store.ask(1, 2, False, None, "Hi?")

        reply = question_store.ask(3, 2, True, 1, "+1")

        assert reply.id == 2
        assert reply.parent_id == 1
        assert question_store.thread_index == {1: [1, 2]}

    def test_minus_one_parent_means_new_thread(self, question_store):
        question = question_store.ask(1, 2, False, NO_PARENT, "Hi?")

        assert question.is_thread_root

    def test_unknown_parent_rejected(self, question_store):
        with pytest.raises(InvalidParent):
            question_store.ask(1, 2, False, 99, "Reply to nothing")

        assert len(question_store) == 0
        assert question_store.next_id == 0

    def test_reply_cannot_be_parent(self, question_store):
        question_store.ask(1, 2, False, None, "Root")
        question_store.ask(1, 2, False, 1, "Reply")

        with pytest.raises(InvalidParent):
            question_store.ask(1, 2, False, 2, "Reply to reply")

    @pytest.mark.parametrize("text", ["", "a,b", "two\nlines"])
    def test_unstorable_text_rejected(self, question_store, text):
        with pytest.raises(InvalidInput):
            question_store.ask(1, 2, False, None, text)

        assert len(question_store) == 0
        assert question_store.next_id == 0

    def test_ask_persists(self, question_store):
        question_store.ask(1, 2, True, None, "Persisted?")

        assert question_store.path.read_text(encoding="utf-8") == "1,-1,1,2,1,Persisted?,\n"

    def test_ids_continue_after_reload(self, question_store):
        for n in range(3):
            question_store.ask(1, 2, False, None, f"Q{n}")
        reloaded = _fresh(question_store)

        ids = [reloaded.ask(2, 1, False, None, f"New {n}").id for n in range(4)]

        assert ids == [4, 5, 6, 7]

    def test_ids_never_reused_after_delete(self, question_store):
        question_store.ask(1, 2, False, None, "One")
        question_store.ask(1, 2, False, None, "Two")
        question_store.delete(2)

        assert question_store.ask(1, 2, False, None, "Three").id == 3

    def test_thread_integrity_holds(self, question_store):
        question_store.ask(1, 2, False, None, "A")
        question_store.ask(1, 2, False, None, "B")
        question_store.ask(2, 1, False, 1, "A reply")
        question_store.ask(3, 1, False, 2, "B reply")
        question_store.ask(3, 1, False, 1, "A reply 2")

        _assert_thread_integrity(question_store)
        assert question_store.thread_index == {1: [1, 3, 5], 2: [2, 4]}


class TestAnswer:

    def test_answer_sets_text(self, question_store):
        question_store.ask(1, 2, False, None, "Hi?")

        overwritten = question_store.answer(1, "Hello!")

        assert overwritten is False
        assert question_store.get(1).answer == "Hello!"
        assert _fresh(question_store).get(1).answer == "Hello!"

    def test_re_answer_overwrites_and_reports_it(self, question_store, caplog):
        question_store.ask(1, 2, False, None, "Hi?")
        question_store.answer(1, "First")

        with caplog.at_level(logging.WARNING):
            overwritten = question_store.answer(1, "Second")

        assert overwritten is True
        assert question_store.get(1).answer == "Second"
        assert "already answered" in caplog.text

    def test_same_answer_twice_is_idempotent(self, question_store):
        question_store.ask(1, 2, False, None, "Hi?")

        question_store.answer(1, "x")
        question_store.answer(1, "x")

        reloaded = _fresh(question_store)
        assert len(reloaded) == 1
        assert reloaded.get(1).answer == "x"

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_answer_rejected(self, question_store, text):
        question_store.ask(1, 2, False, None, "Hi?")
        question_store.answer(1, "Hello!")

        with pytest.raises(InvalidInput):
            question_store.answer(1, text)

        assert question_store.get(1).is_answered is True
        assert _fresh(question_store).get(1).answer == "Hello!"

    def test_unknown_question(self, question_store):
        with pytest.raises(NotFound):
            question_store.answer(5, "Nobody asked")

    def test_answer_with_delimiter_rejected(self, question_store):
        question_store.ask(1, 2, False, None, "Hi?")

        with pytest.raises(InvalidInput):
            question_store.answer(1, "Yes, hello")

        assert question_store.get(1).answer == ""


class TestDelete:

    def _build(self, store):
        store.ask(1, 2, False, None, "Root")       # 1
        store.ask(3, 2, False, 1, "Reply A")       # 2
        store.ask(1, 2, False, None, "Other root")  # 3
        store.ask(3, 2, False, 1, "Reply B")       # 4

    def test_root_delete_cascades(self, question_store):
        self._build(question_store)

        removed = question_store.delete(1)

        assert removed == [1, 2, 4]
        assert question_store.thread_index == {3: [3]}
        assert [q.id for q in _fresh(question_store).feed()] == []
        assert len(_fresh(question_store)) == 1

    def test_reply_delete_keeps_thread(self, question_store):
        self._build(question_store)

        removed = question_store.delete(2)

        assert removed == [2]
        assert question_store.thread_index == {1: [1, 4], 3: [3]}
        assert 1 in question_store and 4 in question_store
        _assert_thread_integrity(question_store)

    def test_unknown_question(self, question_store):
        with pytest.raises(NotFound):
            question_store.delete(1)

    def test_deleted_root_no_longer_accepts_replies(self, question_store):
        self._build(question_store)
        question_store.delete(1)

        with pytest.raises(InvalidParent):
            question_store.ask(1, 2, False, 1, "Too late")


class TestQueries:

    def test_questions_to_user_grouped_by_thread(self, question_store):
        question_store.ask(1, 2, False, None, "To 2")      # 1
        question_store.ask(2, 1, False, 1, "To 1 in 1")    # 2
        question_store.ask(3, 2, False, 1, "To 2 in 1")    # 3
        question_store.ask(1, 3, False, None, "To 3")      # 4
        question_store.ask(3, 2, False, 4, "To 2 in 4")    # 5

        assert question_store.questions_to_user(2) == {1: [1, 3], 4: [5]}
        assert question_store.questions_to_user(1) == {1: [2]}
        assert question_store.questions_to_user(9) == {}

    def test_questions_from_user(self, question_store):
        question_store.ask(1, 2, False, None, "a")
        question_store.ask(2, 1, False, None, "b")
        question_store.ask(1, 3, True, 2, "c")

        assert question_store.questions_from_user(1) == [1, 3]
        assert question_store.questions_from_user(2) == [2]
        assert question_store.questions_from_user(3) == []

    def test_feed_only_answered_in_id_order(self, question_store):
        for n in range(4):
            question_store.ask(1, 2, False, None, f"Q{n}")
        question_store.answer(3, "three")
        question_store.answer(1, "one")

        assert [(q.id, q.answer) for q in question_store.feed()] == [(1, "one"), (3, "three")]

    def test_feed_empty_without_answers(self, question_store):
        question_store.ask(1, 2, False, None, "Unanswered")

        assert question_store.feed() == []

    def test_thread_lookup(self, question_store):
        question_store.ask(1, 2, False, None, "Root")
        question_store.ask(1, 2, False, 1, "Reply")

        assert [q.text for q in question_store.thread(1)] == ["Root", "Reply"]
        with pytest.raises(NotFound):
            question_store.thread(2)

    def test_thread_index_is_a_copy(self, question_store):
        question_store.ask(1, 2, False, None, "Root")

        question_store.thread_index[1].append(99)

        assert question_store.thread_index == {1: [1]}


def test_documented_scenario(question_store):
    """Ask, answer, reply, group and cascade-delete against a real file."""
    first = question_store.ask(1, 2, False, None, "Hi?")
    assert (first.id, first.parent_id, first.answer) == (1, -1, "")

    question_store.answer(1, "Hello!")
    assert [(q.id, q.answer) for q in question_store.feed()] == [(1, "Hello!")]

    reply = question_store.ask(3, 2, True, 1, "+1")
    assert (reply.id, reply.parent_id) == (2, 1)
    assert question_store.questions_to_user(2) == {1: [1, 2]}

    assert question_store.delete(1) == [1, 2]
    assert len(_fresh(question_store)) == 0


def test_failed_save_keeps_memory_mutation(question_store):
    question_store.ask(1, 2, False, None, "Hi?")

    with patch("askbox.repositories.question.write_file_lines", side_effect=StorageUnavailable("disk full")):
        with pytest.raises(StorageUnavailable):
            question_store.answer(1, "Lost on disk")

    assert question_store.get(1).answer == "Lost on disk"
    assert _fresh(question_store).get(1).answer == ""
