"""Human-readable rendering of stored form responses.

Answers keep option ids; these helpers map them back to the current option
labels. Nothing here mutates a stored response.
"""

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from detaforms.schemas.forms import (
    CheckboxQuestion,
    MultipleChoiceQuestion,
    Question,
)

CHECKBOX_DELIMITER = ", "


def selected_option_ids(value: Any) -> list[str]:
    """Option ids chosen in a checkbox answer (list of ids or id→flag mapping)."""
    if isinstance(value, dict):
        return [str(option_id) for option_id, checked in value.items() if checked]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(option_id) for option_id in value]
    if value is None or value == "":
        return []
    return [str(value)]


def display_value(question: Question, value: Any) -> Any:
    """Label for a single answer; unknown option ids show up raw."""
    match question:
        case MultipleChoiceQuestion():
            return question.option_label(value) or value
        case CheckboxQuestion():
            labels = [question.option_label(option_id) or option_id for option_id in selected_option_ids(value)]
            return CHECKBOX_DELIMITER.join(labels)
        case _:
            if isinstance(value, (list, tuple)):
                return CHECKBOX_DELIMITER.join(str(item) for item in value)
            return value


def display_answers(questions: Sequence[Question], answers: dict[str, Any]) -> list[tuple[Question, Any]]:
    """Pair each stored answer with its question and display value.

    Follows the stored answer order; answers to deleted questions are skipped.
    """
    by_id = {question.id: question for question in questions}
    rows: list[tuple[Question, Any]] = []
    for question_id, value in answers.items():
        question = by_id.get(str(question_id))
        if question is None:
            continue
        rows.append((question, display_value(question, value)))
    return rows


def export_csv(
    questions: Sequence[Question],
    responses: Iterable[tuple[str, datetime, dict[str, Any]]],
) -> str:
    """Render responses as CSV: one row per response, one column per question.

    ``responses`` yields ``(response_id, submitted_at, answers)`` tuples.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    header = ["response_id", "submitted_at"]
    for i, question in enumerate(questions):
        header.append(f"Q{i + 1}: {question.title}")
    writer.writerow(header)

    for response_id, submitted_at, answers in responses:
        row = [str(response_id), submitted_at.isoformat() if submitted_at else ""]
        for question in questions:
            value = answers.get(question.id)
            if value is None:
                row.append("")
            else:
                row.append(str(display_value(question, value)))
        writer.writerow(row)

    return output.getvalue()
