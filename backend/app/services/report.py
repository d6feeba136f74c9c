"""Markdown export documents.

Rendering to HTML and rasterizing to PDF happen downstream; these functions
only assemble the document text.
"""

from __future__ import annotations

from app.models.evaluation import (
    CRITERIA,
    MAX_CRITERION_SCORE,
    MAX_TOTAL_SCORE,
    DisplayedResult,
    Evaluation,
)
from app.services.aggregator import EmptyInput, aggregate

EVALUATION_REPORT_FILENAME = "avaliacao-redacao.md"
STUDY_PLAN_REPORT_FILENAME = "plano-de-estudo-enem.md"

REPORT_TITLE = "# 📝 Relatório de Avaliação da Redação"
REPORT_SUBTITLE = "Análise detalhada gerada pela Plataforma de Redação ENEM com IA."


def _render_section(result: DisplayedResult, *, is_average: bool) -> str:
    heading = "📊 Média Final" if is_average else f"👨‍🏫 Avaliação: {result.corretor}"
    lines = [
        f"## {heading}",
        "",
        f"**{result.scores.total}** de {MAX_TOTAL_SCORE} pontos",
        "",
        f"_{result.corretor}_",
        "",
        "### Análise por Competência",
        "",
    ]
    for criterion in CRITERIA:
        score = getattr(result.scores, criterion.field)
        lines.extend(
            [
                f"#### Competência {criterion.id} - {criterion.title} "
                f"({score}/{MAX_CRITERION_SCORE})",
                "",
                getattr(result.feedback, criterion.field),
                "",
            ]
        )
    lines.extend(["### 💬 Comentários Gerais", "", result.feedback.geral])
    return "\n".join(lines)


def build_evaluation_report(
    evaluations: list[Evaluation],
    average: DisplayedResult | None = None,
) -> str:
    if not evaluations:
        raise EmptyInput("No evaluations to export")
    average = average or aggregate(evaluations)
    sections = [
        REPORT_TITLE,
        REPORT_SUBTITLE,
        _render_section(average, is_average=True),
        "---",
    ]
    sections.extend(
        _render_section(evaluation, is_average=False) for evaluation in evaluations
    )
    return "\n\n".join(sections) + "\n"


def build_study_plan_report(plan: str) -> str:
    if not plan.strip():
        raise EmptyInput("No study plan to export")
    return f"# Plano de Estudo Personalizado ✨\n\n{plan.strip()}\n"
