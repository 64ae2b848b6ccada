import pytest

from tenq.domain.entities.message import (
    MessageType,
    QuestionMessage,
    ResponseMessage,
    SummaryMessage,
)
from tenq.domain.exceptions import (
    QuestionAlreadyAnsweredError,
    StaleConversationStateError,
)
from tenq.domain.value_objects.user_id import UserId

OWNER = UserId("user-1")
STRANGER = UserId("user-2")


async def answered_through(store, conversation_id, last: int) -> None:
    """Drive a fresh conversation so questions and responses 1..last exist."""
    for n in range(1, last + 1):
        await store.append_question(conversation_id, n, f"Question {n}?")
        await store.record_response(conversation_id, n, f"Answer {n}")


async def test_new_conversation_is_empty(store):
    created = await store.create_conversation(OWNER, "Career change")

    detail = await store.get_conversation(OWNER, created.id)

    assert detail.conversation.title == "Career change"
    assert detail.conversation.current_question_number == 0
    assert detail.conversation.completed is False
    assert detail.conversation.created_at.tzinfo is not None
    assert detail.messages == []


async def test_other_users_conversation_is_invisible(store):
    created = await store.create_conversation(OWNER, "Private")

    assert await store.get_conversation(STRANGER, created.id) is None
    assert await store.list_conversations(STRANGER, 100) == []
    assert await store.delete_conversation(STRANGER, created.id) is False
    assert await store.get_conversation(OWNER, created.id) is not None


async def test_list_is_newest_first_and_limited(store):
    for title in ("first", "second", "third"):
        await store.create_conversation(OWNER, title)

    listed = await store.list_conversations(OWNER, 2)

    assert [c.title for c in listed] == ["third", "second"]


async def test_messages_come_back_in_conversation_order(store):
    created = await store.create_conversation(OWNER, "Order")
    await answered_through(store, created.id, 2)
    await store.append_question(created.id, 3, "Question 3?")

    messages = await store.get_messages(created.id)

    assert [(m.type, m.question_number) for m in messages] == [
        (MessageType.QUESTION, 1),
        (MessageType.RESPONSE, 1),
        (MessageType.QUESTION, 2),
        (MessageType.RESPONSE, 2),
        (MessageType.QUESTION, 3),
    ]
    assert [m.id.value for m in messages] == sorted(m.id.value for m in messages)


async def test_append_question_advances_progress(store):
    created = await store.create_conversation(OWNER, "Progress")

    question = await store.append_question(created.id, 1, "Question 1?")

    assert isinstance(question, QuestionMessage)
    assert question.question_number == 1
    detail = await store.get_conversation(OWNER, created.id)
    assert detail.conversation.current_question_number == 1


async def test_append_question_requires_previous_progress(store):
    created = await store.create_conversation(OWNER, "Skip")

    with pytest.raises(StaleConversationStateError):
        await store.append_question(created.id, 2, "Question 2?")

    detail = await store.get_conversation(OWNER, created.id)
    assert detail.conversation.current_question_number == 0
    assert detail.messages == []


async def test_append_question_requires_previous_answer(store):
    created = await store.create_conversation(OWNER, "Unanswered")
    await store.append_question(created.id, 1, "Question 1?")

    with pytest.raises(StaleConversationStateError):
        await store.append_question(created.id, 2, "Question 2?")


async def test_record_response_once_per_question(store):
    created = await store.create_conversation(OWNER, "Twice")
    await store.append_question(created.id, 1, "Question 1?")

    response = await store.record_response(created.id, 1, "Answer")

    assert isinstance(response, ResponseMessage)
    with pytest.raises(QuestionAlreadyAnsweredError):
        await store.record_response(created.id, 1, "Answer again")
    responses = [
        m for m in await store.get_messages(created.id) if isinstance(m, ResponseMessage)
    ]
    assert len(responses) == 1


async def test_record_response_to_closed_question(store):
    created = await store.create_conversation(OWNER, "Closed")
    await answered_through(store, created.id, 1)
    await store.append_question(created.id, 2, "Question 2?")

    with pytest.raises(StaleConversationStateError):
        await store.record_response(created.id, 1, "Late answer")


async def test_replace_question_swaps_content(store):
    created = await store.create_conversation(OWNER, "Replace")
    await answered_through(store, created.id, 1)
    await store.append_question(created.id, 2, "Original?")

    replaced = await store.replace_question(created.id, 2, "Better?")

    questions = [
        m for m in await store.get_messages(created.id) if isinstance(m, QuestionMessage)
    ]
    assert [q.content for q in questions] == ["Question 1?", "Better?"]
    assert replaced.content == "Better?"


async def test_answered_question_cannot_be_replaced(store):
    created = await store.create_conversation(OWNER, "Answered")
    await answered_through(store, created.id, 1)

    with pytest.raises(StaleConversationStateError):
        await store.replace_question(created.id, 1, "Too late?")

    question = (await store.get_messages(created.id))[0]
    assert question.content == "Question 1?"


async def test_complete_with_summary(store):
    created = await store.create_conversation(OWNER, "Complete")
    await answered_through(store, created.id, 10)

    summary = await store.complete_with_summary(created.id, "You reflected a lot.")

    assert isinstance(summary, SummaryMessage)
    detail = await store.get_conversation(OWNER, created.id)
    assert detail.conversation.completed is True
    assert detail.conversation.summary == "You reflected a lot."
    assert len(detail.messages) == 21
    assert detail.messages[-1].id == summary.id
    assert isinstance(detail.messages[-1], SummaryMessage)


async def test_complete_requires_final_answer(store):
    created = await store.create_conversation(OWNER, "Early")
    await answered_through(store, created.id, 9)
    await store.append_question(created.id, 10, "Question 10?")

    with pytest.raises(StaleConversationStateError):
        await store.complete_with_summary(created.id, "Too early.")

    detail = await store.get_conversation(OWNER, created.id)
    assert detail.conversation.completed is False
    assert detail.summaries == []


async def test_complete_only_once(store):
    created = await store.create_conversation(OWNER, "Once")
    await answered_through(store, created.id, 10)
    await store.complete_with_summary(created.id, "First.")

    with pytest.raises(StaleConversationStateError):
        await store.complete_with_summary(created.id, "Second.")


async def test_replace_summary_keeps_one(store):
    created = await store.create_conversation(OWNER, "Resummarize")
    await answered_through(store, created.id, 10)
    await store.complete_with_summary(created.id, "First.")

    await store.replace_summary(created.id, "Second.")

    detail = await store.get_conversation(OWNER, created.id)
    assert [s.content for s in detail.summaries] == ["Second."]
    assert detail.conversation.summary == "Second."


async def test_replace_summary_requires_completion(store):
    created = await store.create_conversation(OWNER, "Open")

    with pytest.raises(StaleConversationStateError):
        await store.replace_summary(created.id, "Nope.")


async def test_delete_cascades_to_messages(store):
    created = await store.create_conversation(OWNER, "Delete me")
    await answered_through(store, created.id, 3)

    assert await store.delete_conversation(OWNER, created.id) is True

    assert await store.get_conversation(OWNER, created.id) is None
    assert await store.get_messages(created.id) == []


async def test_plain_operations(store):
    created = await store.create_conversation(OWNER, "Plain")

    await store.save_message(created.id, MessageType.QUESTION, "Question 1?", 1)
    await store.update_progress(created.id, 1)
    await store.save_message(created.id, MessageType.SUMMARY, "Draft.")
    await store.save_message(created.id, MessageType.SUMMARY, "Draft two.")

    assert await store.delete_messages_by_type(created.id, MessageType.SUMMARY) == 2
    assert await store.delete_question_message(created.id, 1) == 1
    assert await store.delete_question_message(created.id, 1) == 0

    await store.update_progress(created.id, 10)
    await store.update_summary(created.id, "Final.")
    conversation = (await store.get_conversation(OWNER, created.id)).conversation
    assert conversation.summary == "Final."


async def test_health_check(store):
    await store.health_check()
