"""Goal analysis: work-area classification and complexity tiers.

Classification is deterministic pattern matching. Each area has one
word-bounded, case-insensitive pattern; areas are scanned in a fixed order
and appear in the analysis in that order, regardless of where their
keywords occur in the goal.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import List, Mapping, Pattern, Set

from .models import FALLBACK_AREA, GoalAnalysis, WorkArea


def _pattern(*terms: str) -> Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(terms) + r")\b", re.IGNORECASE)


AREA_PATTERNS: Mapping[str, Pattern[str]] = MappingProxyType({
    "frontend": _pattern(
        r"front[- ]?end", r"ui", r"ux", r"user interfaces?", r"interfaces?",
        r"user experience", r"screens?", r"pages?", r"components?",
        r"dashboards?", r"web ?site", r"css", r"react", r"vue", r"angular",
    ),
    "backend": _pattern(
        r"back[- ]?end", r"apis?", r"servers?", r"endpoints?",
        r"(?:micro)?services?", r"rest", r"graphql", r"integrations?",
    ),
    "auth": _pattern(
        r"auth", r"authenticat\w*", r"authoriz\w*", r"log[- ]?in",
        r"log[- ]?out", r"security", r"secure", r"permissions?",
        r"access control", r"sign[- ]?in", r"sign[- ]?up", r"oauth",
        r"sso", r"passwords?", r"roles?",
    ),
    "testing": _pattern(
        r"tests?", r"testing", r"qa", r"quality", r"validation",
        r"verification", r"e2e",
    ),
    "deployment": _pattern(
        r"deploy\w*", r"releases?", r"ci/cd", r"pipelines?", r"production",
        r"docker", r"kubernetes", r"hosting", r"infrastructure",
    ),
    "data": _pattern(
        r"data", r"databases?", r"migrations?", r"migrate", r"import",
        r"export", r"sync\w*", r"etl", r"analytics", r"schemas?",
    ),
    "mobile": _pattern(
        r"mobile", r"ios", r"android", r"iphone", r"ipad", r"tablets?",
        r"react native", r"flutter",
    ),
    "documentation": _pattern(
        r"documentation", r"documents?", r"docs?", r"readme", r"guides?",
        r"manuals?", r"wiki", r"tutorials?",
    ),
})

# Areas whose work is rarely trivial, whatever the goal length.
INHERENTLY_COMPLEX_AREAS = frozenset({"mobile", "backend", "auth", "deployment", "data"})

HIGH_AREA_COUNT = 4
MEDIUM_AREA_COUNT = 2
AREA_CAPS = MappingProxyType({"high": 6, "medium": 2, "low": 1})

HIGH_WORD_COUNT = 100
MEDIUM_WORD_COUNT = 30
HIGH_SENTENCE_COUNT = 5
MEDIUM_SENTENCE_COUNT = 3

_SENTENCE_SPLIT = re.compile(r"[.!?]")


def extract_keywords(text: str, pattern: Pattern[str]) -> Set[str]:
    """Return the distinct lowercased substrings of ``text`` matched by ``pattern``."""
    return {match.group(0).lower() for match in pattern.finditer(text or "")}


def count_words(text: str) -> int:
    return len((text or "").split())


def count_sentences(text: str) -> int:
    return len([s for s in _SENTENCE_SPLIT.split(text or "") if s.strip()])


def detect_work_areas(goal: str) -> List[WorkArea]:
    """Detect the named work areas mentioned in the goal, in scan order."""
    areas: List[WorkArea] = []
    for area_type, pattern in AREA_PATTERNS.items():
        keywords = extract_keywords(goal, pattern)
        if keywords:
            areas.append(WorkArea(type=area_type, keywords=sorted(keywords)))
    return areas


def _raise_to_medium(complexity: str) -> str:
    return "medium" if complexity == "low" else complexity


def analyze_goal(goal: str) -> GoalAnalysis:
    """Classify a goal into work areas and a complexity tier.

    The area-count rule runs first and also caps the area list; the
    inherent-area, word-count and sentence-count rules then adjust the tier
    without touching the list again. A goal capped to a single area can
    therefore still come out as ``high``.
    """
    goal = goal or ""
    detected = detect_work_areas(goal)
    word_count = count_words(goal)
    sentence_count = count_sentences(goal)

    complexity = "low"
    if len(detected) >= HIGH_AREA_COUNT:
        complexity = "high"
        work_areas = detected[: AREA_CAPS["high"]]
    elif len(detected) >= MEDIUM_AREA_COUNT:
        complexity = "medium"
        work_areas = detected[: AREA_CAPS["medium"]]
    else:
        work_areas = detected[: AREA_CAPS["low"]]

    if any(area.type in INHERENTLY_COMPLEX_AREAS for area in work_areas):
        complexity = _raise_to_medium(complexity)

    if word_count > HIGH_WORD_COUNT:
        complexity = "high"
    elif word_count > MEDIUM_WORD_COUNT:
        complexity = _raise_to_medium(complexity)

    if sentence_count >= HIGH_SENTENCE_COUNT:
        complexity = "high"
    elif sentence_count >= MEDIUM_SENTENCE_COUNT:
        complexity = _raise_to_medium(complexity)

    if not work_areas:
        work_areas = [WorkArea(type=FALLBACK_AREA, keywords=[])]

    return GoalAnalysis(
        goal=goal,
        work_areas=work_areas,
        complexity=complexity,
        word_count=word_count,
        sentence_count=sentence_count,
    )
