from __future__ import annotations

from app.models.evaluation import (
    CRITERION_FIELDS,
    FEEDBACK_FIELDS,
    AggregateResult,
    Evaluation,
    Feedback,
    Scores,
)


class EmptyInput(ValueError):
    pass


def round_half_up_mean(values: list[int]) -> int:
    """Mean of non-negative integers, ties rounded up.

    Integer arithmetic only, so 0.5 boundaries never depend on float error.
    """
    count = len(values)
    if count == 0:
        raise EmptyInput("Cannot average zero values")
    return (2 * sum(values) + count) // (2 * count)


def merge_feedback(evaluations: list[Evaluation], field: str, *, bold: bool = True) -> str:
    label = "**{name}:** {text}" if bold else "{name}: {text}"
    return "\n\n".join(
        label.format(name=evaluation.corretor, text=getattr(evaluation.feedback, field))
        for evaluation in evaluations
    )


def aggregate_label(count: int) -> str:
    return f"Média de {count} corretores"


def aggregate(evaluations: list[Evaluation], *, bold: bool = True) -> AggregateResult:
    """Per-criterion round-half-up mean; the total is the sum of the rounded criteria.

    Feedback labels are Markdown bold by default (`**name:** text`); pass
    `bold=False` for plain `name: text` labels.
    """
    if not evaluations:
        raise EmptyInput("Cannot aggregate an empty evaluation set")
    criteria = [
        round_half_up_mean([getattr(evaluation.scores, field) for evaluation in evaluations])
        for field in CRITERION_FIELDS
    ]
    feedback = Feedback(
        **{field: merge_feedback(evaluations, field, bold=bold) for field in FEEDBACK_FIELDS}
    )
    return AggregateResult(
        corretor=aggregate_label(len(evaluations)),
        scores=Scores.from_criteria(criteria),
        feedback=feedback,
    )
