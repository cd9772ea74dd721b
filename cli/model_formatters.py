# cli/model_formatters.py

# anything that renders domain objects or performs Gradebook read-only operations
from textwrap import dedent

import core.formatters as formatters
from core.rating import RatingStats
from models.gradebook import Gradebook, TableRow
from models.question import Question
from models.rating_bucket import RatingBucket
from models.student import Student

# === student formatters ===


def format_student_oneline(student: Student) -> str:
    return f"{student.id:<12} | {student.name}"


def format_student_multiline(student: Student, gradebook: Gradebook) -> str:
    final = gradebook.compute_final(student.id)
    bucket = gradebook.classify_student(student.id)
    finished_at = gradebook.completions.finished_at(student.id)

    return dedent(
        f"""\
        Student:
        ... ID: {student.id}
        ... Name: {student.name}
        ... Final: {formatters.format_final_score(final) or '[INCOMPLETE]'}
        ... Rating: {bucket.label if bucket else '[UNRATED]'}
        ... Completed: {finished_at or '[NOT YET]'}"""
    )


# === question formatters ===


def format_question_oneline(question: Question) -> str:
    return (
        f"Q{question.id:<4} | {question.name:<20} | "
        f"{question.full_score:>4} pts | weight {formatters.format_weight(question.weight)}"
    )


def format_question_multiline(question: Question) -> str:
    return dedent(
        f"""\
        Question:
        ... ID: {question.id}
        ... Name: {question.name}
        ... Full Score: {question.full_score}
        ... Weight: {formatters.format_weight(question.weight)}
        ... Comment: {question.comment or '[NONE]'}"""
    )


# === score formatters ===


def format_score_line(question: Question, score: int | None) -> str:
    shown = formatters.format_score_cell(score) or "-"
    return f"Q{question.id:<4} | {question.name:<20} | {shown:>4} / {question.full_score}"


def format_table(rows: list[TableRow], questions: list[Question]) -> str:
    header = ["ID", "Name"] + [f"Q{q.id}" for q in questions] + ["Final"]
    body = [[r.student_id, r.student_name] + r.scores + [r.final_display] for r in rows]

    widths = [
        max(len(line[i]) for line in [header] + body) for i in range(len(header))
    ]

    lines = [" | ".join(cell.ljust(w) for cell, w in zip(line, widths)) for line in [header] + body]
    lines.insert(1, "-+-".join("-" * w for w in widths))

    return "\n".join(lines)


# === rating formatters ===


def format_rating_oneline(bucket: RatingBucket) -> str:
    return f"{bucket.label:<8} | >= {bucket.min_score}"


def format_rating_stats_line(stats: RatingStats) -> str:
    return (
        f"{stats.label:<8} | >= {stats.min_score:>3} | "
        f"{stats.count:>4} | {formatters.format_percent(stats.ratio):>6}"
    )


def format_histogram(bins: list[int], bin_width: int) -> str:
    max_count = max(bins, default=0)
    lines = []

    for i, count in enumerate(bins):
        low = i * bin_width
        high = min(low + bin_width - 1, 100)
        label = f"{low:>3}" if low >= high else f"{low:>3}-{high:<3}"
        lines.append(f"{label:<7} | {count:>4} {formatters.format_histogram_bar(count, max_count)}")

    return "\n".join(lines)
