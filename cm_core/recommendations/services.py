# cm_core/recommendations/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from cm_core.recommendations.case_codes import generate_code
from cm_core.recommendations.resolver import RecommendationItem, recommend
from cm_core.rules.engine import EngineState, RuleEngine


@dataclass(frozen=True)
class Suggestion:
    case_code: str
    state: EngineState
    items: list[RecommendationItem]


class RecommendationService:
    @staticmethod
    def suggest(assessment: Mapping[str, Optional[str]]) -> Suggestion:
        """
        recommend(generate_code(assessment), evaluate(assessment)), keeping the
        intermediate code and engine state for display.
        """
        case_code = generate_code(assessment)
        state = RuleEngine.evaluate(assessment)
        return Suggestion(case_code=case_code, state=state, items=recommend(case_code, state))
