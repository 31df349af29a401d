"""
Quality report generation.

Maps a QualityAnalysis onto graded issues, fixed recommendation texts and a
single overall score. The mapping is deterministic: the same analysis always
produces the same report.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple

from ..scoring.metrics import clamp_unit
from ..scoring.quality_analyzer import QualityAnalysis

logger = logging.getLogger(__name__)


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class IssueCategory(str, Enum):
    BLUR = "blur"
    PERSPECTIVE = "perspective"
    LIGHTING = "lighting"
    WINDOWS = "windows"
    COMPOSITION = "composition"
    COLOR_BALANCE = "color_balance"
    DETAIL = "detail"


@dataclass(frozen=True)
class QualityIssue:
    severity: IssueSeverity
    category: IssueCategory
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class QualityReport:
    overall_score: float
    issues: List[QualityIssue] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def has_critical_issues(self) -> bool:
        return any(i.severity is IssueSeverity.CRITICAL for i in self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "issues": [issue.to_dict() for issue in self.issues],
            "recommendations": list(self.recommendations),
        }


# Score weights
SCORE_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    ("composition_score", 0.3),
    ("vertical_alignment", 0.2),
    ("room_depth_score", 0.15),
    ("lighting_uniformity", 0.15),
    ("color_balance", 0.1),
    ("detail_preservation", 0.1),
)

# Multiplicative penalties, compounding
BLUR_PENALTY = 0.5
PERSPECTIVE_PENALTY = 0.7
POOR_LIGHTING_PENALTY = 0.8

COMPOSITION_THRESHOLD = 0.6
COLOR_BALANCE_THRESHOLD = 0.7


def weighted_score(analysis: QualityAnalysis) -> float:
    """Weighted mean of the continuous scores before penalties."""
    total = 0.0
    weight_sum = 0.0
    for name, weight in SCORE_WEIGHTS:
        total += getattr(analysis, name) * weight
        weight_sum += weight
    return total / weight_sum


def apply_penalties(score: float, analysis: QualityAnalysis) -> float:
    if analysis.is_blurry:
        score *= BLUR_PENALTY
    if analysis.has_perspective_issues:
        score *= PERSPECTIVE_PENALTY
    if analysis.has_poor_lighting:
        score *= POOR_LIGHTING_PENALTY
    return clamp_unit(score)


def calculate_overall_score(analysis: QualityAnalysis) -> float:
    return apply_penalties(weighted_score(analysis), analysis)


class QualityReportGenerator:
    """Builds a QualityReport from a QualityAnalysis."""

    def generate(self, analysis: QualityAnalysis) -> QualityReport:
        issues: List[QualityIssue] = []
        recommendations: List[str] = []

        def flag(severity, category, description, *advice):
            issues.append(QualityIssue(severity=severity, category=category, description=description))
            recommendations.extend(advice)

        if analysis.is_blurry:
            flag(IssueSeverity.CRITICAL, IssueCategory.BLUR,
                 "Image is blurry or out of focus",
                 "Use a tripod or increase shutter speed",
                 "Ensure proper focus on key architectural elements")

        if analysis.has_perspective_issues:
            flag(IssueSeverity.MAJOR, IssueCategory.PERSPECTIVE,
                 "Vertical lines are not straight",
                 "Position camera parallel to walls",
                 "Use a tilt-shift lens or correct in post-processing")

        if analysis.has_poor_lighting:
            flag(IssueSeverity.MAJOR, IssueCategory.LIGHTING,
                 "Uneven or poor lighting conditions",
                 "Add supplementary lighting to dark areas",
                 "Shoot during optimal daylight hours")

        if analysis.window_overexposure:
            flag(IssueSeverity.MAJOR, IssueCategory.WINDOWS,
                 "Windows are overexposed",
                 "Use HDR techniques or flash to balance window exposure")

        if analysis.composition_score < COMPOSITION_THRESHOLD:
            flag(IssueSeverity.MINOR, IssueCategory.COMPOSITION,
                 "Suboptimal composition",
                 "Follow rule of thirds for better composition",
                 "Include leading lines to create depth")

        if analysis.color_balance < COLOR_BALANCE_THRESHOLD:
            flag(IssueSeverity.MINOR, IssueCategory.COLOR_BALANCE,
                 "Color cast or incorrect white balance",
                 "Use correct white balance setting",
                 "Consider using color checker card")

        report = QualityReport(
            overall_score=calculate_overall_score(analysis),
            issues=issues,
            recommendations=recommendations,
        )
        logger.debug(f"Report: score={report.overall_score:.3f}, {len(issues)} issues")
        return report
