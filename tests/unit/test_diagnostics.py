"""
Unit tests for scene diagnostics and enhancement recommendations.
"""
import pytest

from listing_quality.scoring.diagnostics import (
    ContentType,
    EnhancementSettings,
    ImageDiagnosis,
    SceneDiagnostics,
    recommend_enhancement,
)


def diagnosis(**flags):
    values = dict(
        is_underexposed=False,
        is_overexposed=False,
        is_yellow_cast=False,
        has_window=False,
        has_sky=False,
        is_twilight=False,
        needs_perspective_correction=False,
        needs_sharpening=False,
    )
    values.update(flags)
    return ImageDiagnosis(**values)


@pytest.mark.unit
class TestContentType:
    def test_parse(self):
        assert ContentType.parse("Living Room") is ContentType.LIVING_ROOM
        assert ContentType.parse("floor-plan") is ContentType.FLOOR_PLAN
        assert ContentType.parse(ContentType.VIEW) is ContentType.VIEW

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            ContentType.parse("garage")

    def test_thirteen_categories(self):
        assert len(list(ContentType)) == 13


@pytest.mark.unit
class TestRecommendEnhancement:
    """Room-specific presets plus global fixes."""

    def test_kitchen_reflective_surfaces(self):
        settings = recommend_enhancement(ContentType.KITCHEN, diagnosis())
        assert settings.sharpening_threshold == 0.4
        assert settings.highlight_protection == 0.92
        assert settings.white_balance_temp == -0.1
        assert settings.contrast_boost == 1.1

    def test_living_room_with_blown_window(self):
        settings = recommend_enhancement("living_room", diagnosis(has_window=True, is_overexposed=True))
        assert settings.window_recovery_strength == 1.5
        assert settings.highlight_protection == pytest.approx(0.95 + 0.1)
        assert settings.brightness_adjustment == -5.0

    def test_underexposed_bedroom(self):
        settings = recommend_enhancement(ContentType.BEDROOM, diagnosis(is_underexposed=True))
        assert settings.brightness_adjustment == 25.0
        assert settings.shadow_recovery == pytest.approx(0.8)

    def test_underexposed_soft_bedroom(self):
        settings = recommend_enhancement(ContentType.BEDROOM,
                                         diagnosis(is_underexposed=True, needs_sharpening=True))
        assert settings.brightness_adjustment == 22.0

    def test_exterior_sky(self):
        settings = recommend_enhancement(ContentType.EXTERIOR, diagnosis(has_sky=True))
        assert settings.exterior_sky_enhancement == 1.4
        assert settings.highlight_protection == 0.85

    def test_twilight_exterior(self):
        settings = recommend_enhancement(ContentType.EXTERIOR, diagnosis(is_twilight=True))
        assert settings == EnhancementSettings.twilight()

    def test_documents_use_defaults(self):
        settings = recommend_enhancement(ContentType.FLOOR_PLAN, diagnosis())
        assert settings == EnhancementSettings.default()

    def test_yellow_cast_cools(self):
        settings = recommend_enhancement(ContentType.TITLE_PAPER, diagnosis(is_yellow_cast=True))
        assert settings.white_balance_temp == pytest.approx(-0.15)

    def test_presets_are_fresh(self):
        recommend_enhancement(ContentType.BEDROOM, diagnosis(is_underexposed=True))
        assert EnhancementSettings.interior().brightness_adjustment == 0.0


@pytest.mark.unit
class TestSceneDiagnostics:
    """Diagnosis on synthetic images."""

    def test_black_is_underexposed(self, black_image):
        result = SceneDiagnostics().diagnose(black_image)
        assert result.is_underexposed
        assert not result.is_overexposed
        assert not result.has_window
        assert result.needs_sharpening

    def test_white_is_overexposed(self, white_image):
        result = SceneDiagnostics().diagnose(white_image)
        assert result.is_overexposed
        assert not result.is_underexposed

    def test_blue_sky_band(self):
        import numpy as np
        from listing_quality.imaging.pixel_buffer import PixelBuffer
        pixels = np.full((120, 160, 3), 60, dtype=np.uint8)
        pixels[:40] = (235, 240, 250)
        result = SceneDiagnostics().diagnose(PixelBuffer(pixels))
        assert result.has_sky

    def test_color_temperature(self, solid_image):
        temp = SceneDiagnostics().color_temperature(solid_image((255, 0, 0)))
        assert temp.temperature_offset == pytest.approx(2.0)
        assert temp.tint_offset == pytest.approx(-0.5)

    def test_interior_lighting(self, gray_image):
        lighting = SceneDiagnostics().interior_lighting(gray_image)
        assert lighting.ambient_level == pytest.approx(128 / 255)
        assert lighting.lighting_uniformity == pytest.approx(1.0)
        assert lighting.shadow_depth == pytest.approx(128 / 255)
