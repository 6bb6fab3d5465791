from dataclasses import dataclass, field

from django.db.models import Min, Q

from .models import OPTION_LETTERS, Result


@dataclass
class ScoredSubmission:
    score: int = 0
    correct: int = 0
    wrong: int = 0
    total: int = 0
    accuracy: float = 0.0
    responses: list = field(default_factory=list)


def option_letter(selected):
    """Map an option index (0-3) to its letter, or ``None`` for anything else."""
    if isinstance(selected, bool) or not isinstance(selected, (int, float)):
        return None
    if isinstance(selected, float):
        if not selected.is_integer():
            return None
        selected = int(selected)
    if 0 <= selected < len(OPTION_LETTERS):
        return OPTION_LETTERS[selected]
    return None


def _question_id(value):
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def score_submission(test, responses):
    answer_key = dict(test.questions.values_list("id", "correct_option"))
    scored = ScoredSubmission(total=test.question_count)
    seen = set()

    for item in responses:
        if not isinstance(item, dict):
            continue
        question_id = _question_id(item.get("questionId"))
        raw_selected = item.get("selected")
        selected = option_letter(raw_selected)
        correct_option = answer_key.get(question_id)
        is_correct = bool(correct_option) and selected == correct_option

        if correct_option and question_id not in seen:
            seen.add(question_id)
            if is_correct:
                scored.correct += 1
            else:
                scored.wrong += 1

        scored.responses.append(
            {
                "questionId": question_id,
                "selected": selected,
                "correct": is_correct,
                "correctOption": correct_option,
                "selectedIndex": option_index(selected),
            }
        )

    scored.score = scored.correct * test.marks_correct
    if scored.total:
        scored.accuracy = round(scored.correct / scored.total * 100, 2)
    return scored


def option_index(letter):
    if letter in OPTION_LETTERS:
        return OPTION_LETTERS.index(letter)
    return None


def rank_for(result):
    better = Result.objects.filter(test_id=result.test_id).filter(
        Q(score__gt=result.score) | Q(score=result.score, time_taken_sec__lt=result.time_taken_sec)
    )
    return better.count() + 1


def first_attempt_leaderboard(test_id, limit):
    """Each user's first attempt at a test, best first, with a 1-based rank."""
    first_ids = (
        Result.objects.filter(test_id=test_id)
        .values("user")
        .annotate(first_id=Min("id"))
        .values_list("first_id", flat=True)
    )
    rows = (
        Result.objects.filter(id__in=list(first_ids))
        .select_related("user", "test")
        .order_by("-score", "time_taken_sec", "date", "id")[:limit]
    )
    ranked = []
    for position, row in enumerate(rows, start=1):
        row.rank = position
        ranked.append(row)
    return ranked
