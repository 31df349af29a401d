"""
Unit tests for QualityAnalyzer and QualityAnalysis.
"""
import pytest
import numpy as np

from listing_quality.config import AnalysisConfig
from listing_quality.detection.edges import mean_edge_strength
from listing_quality.errors import ImageAnalysisError, InvalidImageError
from listing_quality.scoring.quality_analyzer import (
    QualityAnalyzer,
    QualityAnalysis,
    SCORE_FIELDS,
)


@pytest.fixture(scope="module")
def analyzer():
    return QualityAnalyzer()


@pytest.mark.unit
class TestScoresInRange:
    """Every continuous score stays inside [0, 1] on adversarial inputs."""

    @pytest.mark.parametrize("fixture_name", [
        "black_image", "white_image", "gray_image", "gradient_image",
        "striped_image", "checkerboard_image", "noise_image",
    ])
    def test_scores_bounded(self, analyzer, fixture_name, request):
        image = request.getfixturevalue(fixture_name)
        analysis = analyzer.analyze(image, fixture_name)
        for name in SCORE_FIELDS:
            value = getattr(analysis, name)
            assert 0.0 <= value <= 1.0, f"{name}={value}"


@pytest.mark.unit
class TestFlags:
    """Flags on simple scenes."""

    def test_black_frame(self, analyzer, black_image):
        analysis = analyzer.analyze(black_image)
        assert analysis.is_blurry
        assert analysis.has_poor_lighting
        assert not analysis.has_perspective_issues
        assert not analysis.window_overexposure
        assert analysis.vertical_alignment == 0.0
        assert analysis.composition_score == pytest.approx(0.1)

    def test_checkerboard_is_sharp(self, analyzer, checkerboard_image):
        assert not analyzer.analyze(checkerboard_image).is_blurry

    def test_assessment_details(self, analyzer, striped_image):
        assessment = analyzer.assess(striped_image, "striped")
        assert assessment.analysis.composition_score == assessment.composition.total
        assert assessment.analysis.room_depth_score == assessment.composition.room_depth
        assert assessment.lines
        assert assessment.histogram.total_pixels == striped_image.total_pixels
        assert "histogram" in assessment.to_dict()

    def test_mean_edge_strength_matches_edge_map(self, analyzer, checkerboard_image):
        assessment = analyzer.assess(checkerboard_image, "board")
        edges = analyzer.edge_detector.detect(checkerboard_image)
        assert assessment.mean_edge_strength == mean_edge_strength(edges)
        assert assessment.analysis.is_blurry == (mean_edge_strength(edges) < 12.0)

    def test_accepts_raw_arrays(self, analyzer):
        pixels = np.full((40, 60, 3), 90, dtype=np.uint8)
        assert isinstance(analyzer.analyze(pixels), QualityAnalysis)


@pytest.mark.unit
class TestValidation:
    """Malformed input fails fast."""

    def test_zero_size(self, analyzer):
        with pytest.raises(InvalidImageError):
            analyzer.analyze(np.zeros((0, 10, 3), dtype=np.uint8))

    def test_wrong_channels(self, analyzer):
        with pytest.raises(InvalidImageError):
            analyzer.analyze(np.zeros((10, 10), dtype=np.uint8))

    def test_dimension_bounds(self, gray_image):
        analyzer = QualityAnalyzer(AnalysisConfig(min_dimensions=(200, 200)))
        with pytest.raises(InvalidImageError):
            analyzer.analyze(gray_image)

    def test_unexpected_failure_is_wrapped(self, gray_image, monkeypatch):
        analyzer = QualityAnalyzer()

        def explode(image):
            raise RuntimeError("sensor exploded")

        monkeypatch.setattr(analyzer.edge_detector, "detect", explode)
        with pytest.raises(ImageAnalysisError) as exc_info:
            analyzer.analyze(gray_image, "kitchen_01.jpg")
        assert "kitchen_01.jpg" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, RuntimeError)


@pytest.mark.unit
class TestQualityAnalysis:
    """Clamping and serialisation of the result type."""

    def test_nan_and_out_of_range_are_clamped(self, analysis_factory):
        analysis = analysis_factory(noise_level=float('nan'), composition_score=1.7,
                                    color_balance=-0.3)
        assert analysis.noise_level == 0.0
        assert analysis.composition_score == 1.0
        assert analysis.color_balance == 0.0

    def test_flags_are_bools(self, analysis_factory):
        analysis = analysis_factory(is_blurry=np.bool_(True))
        assert analysis.is_blurry is True

    def test_immutable(self, analysis_factory):
        analysis = analysis_factory()
        with pytest.raises(Exception):
            analysis.noise_level = 0.5

    def test_to_dict(self, analysis_factory):
        data = analysis_factory().to_dict()
        assert len(data) == 11
        assert data["composition_score"] == 0.9
