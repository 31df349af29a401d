"""
Scoring Module

- quality_analyzer.py: Per-image QualityAnalysis
- composition.py: Composition sub-scores
- metrics.py: Technical metrics (noise, lighting, colour, detail)
- diagnostics.py: Scene diagnosis and enhancement settings
"""

from .quality_analyzer import QualityAnalyzer, QualityAnalysis, ImageAssessment
from .composition import CompositionScorer, CompositionBreakdown
from .diagnostics import (
    SceneDiagnostics,
    ImageDiagnosis,
    ContentType,
    EnhancementSettings,
    ColorTemperature,
    InteriorLighting,
    recommend_enhancement,
)

__all__ = [
    'QualityAnalyzer',
    'QualityAnalysis',
    'ImageAssessment',
    'CompositionScorer',
    'CompositionBreakdown',
    'SceneDiagnostics',
    'ImageDiagnosis',
    'ContentType',
    'EnhancementSettings',
    'ColorTemperature',
    'InteriorLighting',
    'recommend_enhancement',
]
