import pytest

from quizbank.core.errors import NotFoundError, ValidationError
from quizbank.schemas.quiz.quiz_base import OptionView, QuestionView, QuizFull
from quizbank.services import quiz_session
from quizbank.services.quiz_session import QuizSession, SessionState


def build_quiz(quiz_id=7, n=10):
    return QuizFull(
        id=quiz_id,
        title=f"Quiz {quiz_id}",
        questions=[
            QuestionView(
                id=quiz_id * 100 + i,
                orig_no=i + 1,
                prompt=f"Q{i + 1}",
                options=[OptionView(i=0, text="A"), OptionView(i=1, text="B")],
                correct=[1],
            )
            for i in range(n)
        ],
    )


class FakeStore:
    """Loader that counts reads and can be told to fail."""

    def __init__(self, *quizzes):
        self.quizzes = {q.id: q for q in quizzes}
        self.reads = 0

    def __call__(self, quiz_id):
        self.reads += 1
        if quiz_id not in self.quizzes:
            raise NotFoundError(f"Quiz {quiz_id} not found")
        return self.quizzes[quiz_id]


@pytest.fixture
def store():
    return FakeStore(build_quiz(7), build_quiz(8, n=3))


def answer_all(session, choice):
    for q in session.shown:
        session = quiz_session.answer(session, q.id, choice)
    return session


def test_open_quiz_loads_all_by_default(store):
    session = quiz_session.open_quiz(QuizSession(), 7, store)
    assert session.state == SessionState.loaded
    assert session.title == "Quiz 7"
    assert len(session.shown) == 10
    assert session.answers == {}
    assert session.result is None


def test_open_quiz_applies_sampling(store):
    session = quiz_session.open_quiz(QuizSession(limit=4, randomize=False), 7, store)
    assert [q.orig_no for q in session.shown] == [1, 2, 3, 4]
    assert len(session.all_questions) == 10


def test_random_session_is_stable_across_reopen(store):
    first = quiz_session.open_quiz(QuizSession(limit=4, randomize=True), 7, store)
    again = quiz_session.open_quiz(first, 7, store)
    assert [q.id for q in first.shown] == [q.id for q in again.shown]


def test_failed_open_leaves_session_unchanged(store):
    session = quiz_session.open_quiz(QuizSession(), 7, store)
    with pytest.raises(NotFoundError):
        quiz_session.open_quiz(session, 99, store)
    assert session.quiz_id == 7
    assert session.state == SessionState.loaded


def test_grade_then_retry_then_grade(store):
    session = quiz_session.open_quiz(QuizSession(), 8, store)
    q1, q2, q3 = session.shown
    session = quiz_session.answer(session, q1.id, 1)
    session = quiz_session.answer(session, q2.id, 0)

    graded = quiz_session.grade(session)
    assert graded.state == SessionState.graded
    assert graded.result.correct_count == 1
    assert graded.wrong_ids == [q2.id, q3.id]
    assert graded.can_retry

    retried = quiz_session.retry(graded)
    assert retried.state == SessionState.retry_filtered
    assert [q.id for q in retried.shown] == [q2.id, q3.id]
    assert retried.answers == {}

    retried = quiz_session.answer(retried, q2.id, 1)
    regraded = quiz_session.grade(retried)
    assert regraded.result.total == 2
    assert regraded.wrong_ids == [q3.id]
    assert q1.id not in regraded.result.verdicts


def test_grading_and_retry_do_not_read_the_store(store):
    session = quiz_session.open_quiz(QuizSession(), 8, store)
    reads = store.reads
    session = quiz_session.grade(session)
    session = quiz_session.retry(session)
    quiz_session.grade(session)
    assert store.reads == reads


def test_retry_requires_wrong_answers(store):
    session = quiz_session.open_quiz(QuizSession(), 8, store)
    with pytest.raises(ValidationError):
        quiz_session.retry(session)

    perfect = quiz_session.grade(answer_all(session, 1))
    assert not perfect.can_retry
    with pytest.raises(ValidationError):
        quiz_session.retry(perfect)


def test_empty_session_rejects_answer_and_grade():
    with pytest.raises(ValidationError):
        quiz_session.grade(QuizSession())
    with pytest.raises(ValidationError):
        quiz_session.answer(QuizSession(), 1, 0)


def test_answer_validation(store):
    session = quiz_session.open_quiz(QuizSession(limit=2), 7, store)
    hidden = session.all_questions[-1]
    with pytest.raises(ValidationError):
        quiz_session.answer(session, hidden.id, 0)
    with pytest.raises(ValidationError):
        quiz_session.answer(session, session.shown[0].id, 5)

    cleared = quiz_session.answer(session, session.shown[0].id, None)
    assert cleared.answers == {session.shown[0].id: None}


def test_answer_does_not_mutate_previous_session(store):
    session = quiz_session.open_quiz(QuizSession(), 8, store)
    after = quiz_session.answer(session, session.shown[0].id, 1)
    assert session.answers == {}
    assert after.answers == {session.shown[0].id: 1}


def test_change_settings_reopens_and_discards_grading(store):
    session = quiz_session.open_quiz(QuizSession(), 7, store)
    graded = quiz_session.grade(session)

    changed = quiz_session.change_settings(graded, store, limit=3, randomize=True)
    assert changed.state == SessionState.loaded
    assert changed.result is None
    assert len(changed.shown) == 3
    assert changed.randomize is True


def test_change_settings_without_open_quiz_only_stores_them(store):
    session = quiz_session.change_settings(QuizSession(), store, limit=5)
    assert session.state == SessionState.empty
    assert session.limit == 5
    assert store.reads == 0


def test_new_open_supersedes_previous_quiz(store):
    session = quiz_session.open_quiz(QuizSession(), 7, store)
    session = quiz_session.grade(session)
    session = quiz_session.open_quiz(session, 8, store)
    assert session.quiz_id == 8
    assert session.state == SessionState.loaded
    assert len(session.shown) == 3
