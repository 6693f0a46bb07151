"""
Quiz scoring for lesson quizzes.

A lesson with a quiz is passed once every question has an answer and at
least PASS_PERCENT of them are correct.
"""

from lumina.schemas import QuizQuestion

PASS_PERCENT = 70


def unanswered_questions(questions: list[QuizQuestion], answers: dict[str, int]) -> list[str]:
    """IDs of questions with no selected option, in quiz order."""
    return [q.id for q in questions if q.id not in answers]


def score_quiz(questions: list[QuizQuestion], answers: dict[str, int]) -> dict:
    """
    Calculate quiz score.

    Args:
        questions: The lesson's quiz questions
        answers: Selected option index keyed by question ID; unanswered
            questions count as wrong

    Returns:
        Dict with score info; ``passed`` compares the exact ratio with
        PASS_PERCENT, before rounding
    """
    total = len(questions)
    if total == 0:
        return {"score": 1.0, "percent": 100, "correct": 0, "total": 0, "passed": True}

    correct = sum(
        1 for q in questions
        if answers.get(q.id) == q.correct_answer_index
    )
    score = correct / total
    return {
        "score": round(score, 2),
        "percent": round(score * 100),
        "correct": correct,
        "total": total,
        "passed": correct * 100 >= PASS_PERCENT * total,
    }
