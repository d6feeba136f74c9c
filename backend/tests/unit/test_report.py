import pytest

from app.services.aggregator import EmptyInput
from app.services.report import build_evaluation_report, build_study_plan_report
from tests.factories import make_evaluation


def test_evaluation_report_puts_average_first_then_each_corrector():
    evaluations = [
        make_evaluation("Prof. Ana Silva", (160, 160, 160, 160, 160), note="Ana"),
        make_evaluation("Dr. Carlos Mendes", (200, 200, 200, 200, 200), note="Carlos"),
    ]

    report = build_evaluation_report(evaluations)

    average_at = report.index("## 📊 Média Final")
    ana_at = report.index("## 👨‍🏫 Avaliação: Prof. Ana Silva")
    carlos_at = report.index("## 👨‍🏫 Avaliação: Dr. Carlos Mendes")
    assert average_at < ana_at < carlos_at
    assert "**900** de 1000 pontos" in report
    assert "_Média de 2 corretores_" in report
    assert "#### Competência 5 - Proposta de Intervenção (180/200)" in report
    assert "**Prof. Ana Silva:** Ana c1" in report
    assert report.startswith("# 📝 Relatório de Avaliação da Redação")


def test_evaluation_report_requires_results():
    with pytest.raises(EmptyInput):
        build_evaluation_report([])


def test_study_plan_report():
    report = build_study_plan_report("## Semana 1\n- Ler editoriais\n")

    assert report.startswith("# Plano de Estudo Personalizado")
    assert report.endswith("- Ler editoriais\n")

    with pytest.raises(EmptyInput):
        build_study_plan_report("   ")
