"""
Quiz scoring tests.
"""

from lumina.classroom import PASS_PERCENT, score_quiz, unanswered_questions
from lumina.schemas import QuizQuestion


def _question(qid, answer):
    return QuizQuestion(id=qid, question="?", options=["a", "b", "c", "d"], correct_answer_index=answer)


def _quiz(size):
    return [_question(f"q-{i}", 0) for i in range(size)]


def _answers(size, correct):
    return {f"q-{i}": 0 if i < correct else 1 for i in range(size)}


class TestScoreQuiz:
    """Test scoring and the pass mark."""

    def test_all_correct(self):
        questions = [_question("q-1", 0), _question("q-2", 3)]
        result = score_quiz(questions, {"q-1": 0, "q-2": 3})
        assert result == {"score": 1.0, "percent": 100, "correct": 2, "total": 2, "passed": True}

    def test_unanswered_counts_as_wrong(self):
        questions = [_question("q-1", 0), _question("q-2", 3), _question("q-3", 1)]
        result = score_quiz(questions, {"q-1": 0, "q-2": 2})
        assert result["correct"] == 1
        assert result["score"] == 0.33
        assert result["percent"] == 33
        assert not result["passed"]

    def test_empty_quiz(self):
        assert score_quiz([], {}) == {"score": 1.0, "percent": 100, "correct": 0, "total": 0, "passed": True}

    def test_pass_mark_is_inclusive(self):
        assert PASS_PERCENT == 70
        assert score_quiz(_quiz(10), _answers(10, 7))["passed"]
        assert not score_quiz(_quiz(10), _answers(10, 6))["passed"]

    def test_just_below_pass_mark(self):
        result = score_quiz(_quiz(100), _answers(100, 69))
        assert result["percent"] == 69
        assert not result["passed"]
        assert score_quiz(_quiz(100), _answers(100, 70))["passed"]

    def test_lesson_quiz_from_course(self, make_course):
        course = make_course((2,), quiz=True)
        quiz = course.modules[0].lessons[1].quiz
        assert score_quiz(quiz, {"q-1-2": 1})["percent"] == 100
        assert score_quiz(quiz, {"q-1-2": 0})["percent"] == 0


class TestUnansweredQuestions:
    """Test detection of skipped questions."""

    def test_lists_missing_in_order(self):
        questions = [_question("q-1", 0), _question("q-2", 3), _question("q-3", 1)]
        assert unanswered_questions(questions, {"q-2": 1}) == ["q-1", "q-3"]

    def test_wrong_answer_is_still_answered(self):
        assert unanswered_questions([_question("q-1", 0)], {"q-1": 2}) == []
