from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

CRITERION_FIELDS = (
    "competencia1",
    "competencia2",
    "competencia3",
    "competencia4",
    "competencia5",
)
FEEDBACK_FIELDS = CRITERION_FIELDS + ("geral",)
MAX_CRITERION_SCORE = 200
SCORE_STEP = 40
MAX_TOTAL_SCORE = MAX_CRITERION_SCORE * len(CRITERION_FIELDS)


@dataclass(frozen=True)
class Criterion:
    id: int
    field: str
    title: str
    description: str


CRITERIA = (
    Criterion(
        1,
        "competencia1",
        "Língua Portuguesa",
        "Domínio da modalidade escrita formal da língua portuguesa",
    ),
    Criterion(
        2,
        "competencia2",
        "Compreensão do Tema",
        "Compreender a proposta e aplicar conceitos de várias áreas",
    ),
    Criterion(
        3,
        "competencia3",
        "Argumentação",
        "Selecionar, relacionar, organizar e interpretar informações",
    ),
    Criterion(
        4,
        "competencia4",
        "Coesão e Coerência",
        "Demonstrar conhecimento dos mecanismos linguísticos",
    ),
    Criterion(
        5,
        "competencia5",
        "Proposta de Intervenção",
        "Elaborar proposta de intervenção para o problema abordado",
    ),
)


@dataclass(frozen=True)
class Scores:
    competencia1: int
    competencia2: int
    competencia3: int
    competencia4: int
    competencia5: int
    total: int

    @classmethod
    def from_criteria(cls, values: list[int] | tuple[int, ...]) -> "Scores":
        if len(values) != len(CRITERION_FIELDS):
            raise ValueError(f"Expected {len(CRITERION_FIELDS)} criterion scores")
        return cls(*values, total=sum(values))

    def criteria(self) -> tuple[int, ...]:
        return tuple(getattr(self, name) for name in CRITERION_FIELDS)

    def to_payload(self) -> dict[str, int]:
        payload = {name: getattr(self, name) for name in CRITERION_FIELDS}
        payload["total"] = self.total
        return payload


@dataclass(frozen=True)
class Feedback:
    competencia1: str
    competencia2: str
    competencia3: str
    competencia4: str
    competencia5: str
    geral: str

    def to_payload(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in FEEDBACK_FIELDS}


@dataclass(frozen=True)
class Evaluation:
    corretor: str
    scores: Scores
    feedback: Feedback

    def to_payload(self) -> dict[str, Any]:
        return {
            "corretor": self.corretor,
            "scores": self.scores.to_payload(),
            "feedback": self.feedback.to_payload(),
        }


@dataclass(frozen=True)
class AggregateResult:
    corretor: str
    scores: Scores
    feedback: Feedback

    def to_payload(self) -> dict[str, Any]:
        return {
            "corretor": self.corretor,
            "scores": self.scores.to_payload(),
            "feedback": self.feedback.to_payload(),
        }


@dataclass(frozen=True)
class Corrector:
    name: str
    system: str


AGGREGATE_VIEW = "aggregate"

ViewTarget = Union[Literal["aggregate"], int]
DisplayedResult = Union[AggregateResult, Evaluation]
