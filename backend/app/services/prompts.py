from __future__ import annotations

from app.models.evaluation import CRITERIA, Corrector, Evaluation

CONSISTENCY_INSTRUCTION = (
    "Seja consistente e objetivo em suas avaliações, seguindo estritamente as "
    "diretrizes do ENEM para garantir que a mesma redação receba uma pontuação "
    "similar em múltiplas avaliações."
)

STUDY_PLAN_SYSTEM = (
    "Você é um pedagogo e tutor especializado em preparação para o ENEM. Sua tarefa "
    "é criar planos de estudo personalizados com base no desempenho dos alunos."
)

THEME_SYSTEM = (
    "Você é um assistente criativo especializado em criar temas para o Exame "
    "Nacional do Ensino Médio (ENEM) no Brasil."
)

_PERSONAS = (
    (
        "Prof. Ana Silva",
        "Você é a Prof. Ana Silva, uma educadora rigorosa com 25 anos de experiência. "
        "Seu foco é na gramática, estrutura textual e aderência à norma culta "
        "(Competências 1 e 4).",
    ),
    (
        "Dr. Carlos Mendes",
        "Você é o Dr. Carlos Mendes, um linguista. Sua especialidade é analisar a "
        "profundidade da argumentação e o uso de repertório sociocultural "
        "(Competências 2 e 3).",
    ),
    (
        "Profa. Maria Santos",
        "Você é a Profa. Maria Santos, uma socióloga. Você valoriza a relevância "
        "social do conteúdo e a qualidade da proposta de intervenção (Competência 5).",
    ),
)


def build_evaluation_prompt(essay_text: str | None) -> str:
    text = (essay_text or "").strip()
    if text:
        essay_section = f"Texto da redação:\n{text}"
    else:
        essay_section = "A redação está no arquivo anexo."
    return (
        "Você é um corretor do ENEM. Avalie a redação fornecida com base nas 5 "
        "competências oficiais do ENEM 2024. Forneça uma pontuação de 0 a 200 para "
        "cada competência (em múltiplos de 40) e um feedback detalhado, construtivo "
        "e específico para cada uma. Adicione também um feedback geral. A resposta "
        "DEVE seguir o schema JSON fornecido. Some a pontuação de cada competência "
        "para obter o total: o campo total deve ser exatamente a soma das cinco "
        "competências.\n\n"
        f"{essay_section}"
    )


def build_persona_set() -> list[Corrector]:
    return [
        Corrector(name=name, system=f"{framing} {CONSISTENCY_INSTRUCTION}")
        for name, framing in _PERSONAS
    ]


def _format_evaluation_summary(evaluation: Evaluation) -> str:
    lines = [f"### Corretor: {evaluation.corretor} (Nota Total: {evaluation.scores.total})"]
    for criterion in CRITERIA:
        score = getattr(evaluation.scores, criterion.field)
        feedback = getattr(evaluation.feedback, criterion.field)
        lines.append(f"- **Competência {criterion.id} ({score}/200):** {feedback}")
    lines.append(f"**Feedback Geral:** {evaluation.feedback.geral}")
    return "\n".join(lines)


def build_study_plan_prompt(evaluations: list[Evaluation]) -> str:
    summary = "\n\n---\n\n".join(
        _format_evaluation_summary(evaluation) for evaluation in evaluations
    )
    return (
        "Com base na seguinte avaliação de uma redação do ENEM, crie um plano de "
        "estudos conciso e prático para o aluno. O plano deve focar nos pontos fracos "
        "identificados e sugerir ações concretas e específicas para melhoria. "
        "Formate a resposta em Markdown, usando títulos e listas.\n\n"
        f"**Avaliações Recebidas:**\n\n{summary}"
    )


def build_theme_prompt() -> str:
    return (
        "Gere 5 propostas de tema para uma redação do ENEM. Os temas devem ser "
        "relevantes para a realidade brasileira atual, abrangendo áreas como "
        "sociedade, tecnologia, meio ambiente e cultura. Apresente os temas em "
        "formato de lista Markdown."
    )
