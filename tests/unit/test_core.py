import json
import logging
import pytest
from unittest.mock import MagicMock, patch

from fastapi import FastAPI
from prometheus_client import REGISTRY

from classifieds.config import Settings, build_algorithm_config
from classifieds.config.logging import JsonFormatter
from classifieds.core.exceptions import (
    AppException,
    NotFoundError,
    RankingServiceError,
    ValidationError,
)
from classifieds.core.telemetry import record_placement, setup_telemetry


class TestExceptions:
    def test_base_exception_defaults(self):
        exc = AppException("boom")
        assert exc.status_code == 500
        assert exc.to_dict() == {
            "error": {"code": "INTERNAL_ERROR", "message": "boom", "details": {}}
        }

    def test_validation_error(self):
        exc = ValidationError("bad range", details={"price_min": 10})
        assert exc.status_code == 400
        assert exc.to_dict()["error"]["code"] == "VALIDATION_ERROR"
        assert exc.to_dict()["error"]["details"] == {"price_min": 10}

    def test_not_found_error(self):
        exc = NotFoundError("Listing", "ad-999")
        assert exc.status_code == 404
        assert exc.message == "Listing not found: ad-999"
        assert exc.details == {"resource": "Listing", "identifier": "ad-999"}

    def test_ranking_service_error(self):
        exc = RankingServiceError("weights")
        assert exc.status_code == 500
        assert exc.error_code == "RANKING_ERROR"
        assert isinstance(exc, AppException)


class TestSettings:
    def test_defaults_build_default_config(self):
        config = build_algorithm_config(Settings())

        assert config.weights.plan_priority == 0.40
        assert config.homepage.featured_slots == 4
        assert config.homepage.rotation_interval == 30
        assert config.search.boost_premium_positions == 3
        assert config.search.mix_ratio == 0.3
        assert config.category.standard_ads_per_page == 20

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("HOMEPAGE_FEATURED_SLOTS", "6")
        monkeypatch.setenv("RANDOM_SEED", "42")

        settings = Settings()

        assert settings.RANDOM_SEED == 42
        assert build_algorithm_config(settings).homepage.featured_slots == 6

    def test_weights_not_summing_to_one_rejected(self):
        settings = Settings(WEIGHT_PLAN_PRIORITY=0.9)
        with pytest.raises(RankingServiceError):
            build_algorithm_config(settings)

    def test_negative_slot_count_rejected(self):
        settings = Settings(HOMEPAGE_REGULAR_SLOTS=-1)
        with pytest.raises(RankingServiceError):
            build_algorithm_config(settings)


class TestJsonFormatter:
    def _record(self, **extra):
        record = logging.LogRecord(
            name="classifieds.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="served %s",
            args=("homepage",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_basic_fields(self):
        payload = json.loads(JsonFormatter().format(self._record()))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "classifieds.test"
        assert payload["message"] == "served homepage"
        assert "view" not in payload

    def test_context_fields(self):
        record = self._record(view="category", category_id="vehicles")
        payload = json.loads(JsonFormatter().format(record))

        assert payload["view"] == "category"
        assert payload["category_id"] == "vehicles"


class TestTelemetry:
    def _placed(self, view, tier_group):
        return REGISTRY.get_sample_value(
            "classifieds_listings_placed_total",
            {"view": view, "tier_group": tier_group},
        ) or 0.0

    def test_record_placement_counts_by_tier_group(self):
        before_premium = self._placed("unit-test", "premium")
        before_regular = self._placed("unit-test", "regular")

        record_placement("unit-test", premium=3, regular=2)

        assert self._placed("unit-test", "premium") == before_premium + 3
        assert self._placed("unit-test", "regular") == before_regular + 2

    @patch("classifieds.core.telemetry.get_settings")
    @patch("classifieds.core.telemetry.Instrumentator")
    def test_setup_telemetry_prometheus_enabled(self, mock_instrumentator, mock_get_settings):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = True
        mock_settings.ENABLE_OTEL = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_instrumentator.assert_called_once()
        mock_instrumentator.return_value.instrument.assert_called_once_with(app)

    @patch("classifieds.core.telemetry.get_settings")
    @patch("classifieds.core.telemetry.trace")
    @patch("classifieds.core.telemetry.OTLPSpanExporter")
    @patch("classifieds.core.telemetry.BatchSpanProcessor")
    @patch("classifieds.core.telemetry.FastAPIInstrumentor")
    def test_setup_telemetry_otel_enabled(
        self, mock_fastapi_instr, mock_processor, mock_exporter, mock_trace, mock_get_settings
    ):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = False
        mock_settings.ENABLE_OTEL = True
        mock_settings.APP_NAME = "test"
        mock_settings.APP_VERSION = "1.0"
        mock_settings.DEBUG = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_fastapi_instr.instrument_app.assert_called_once()
        mock_processor.assert_called_once()
        mock_trace.set_tracer_provider.assert_called_once()

    @patch("classifieds.core.telemetry.get_settings")
    @patch("classifieds.core.telemetry.Instrumentator")
    @patch("classifieds.core.telemetry.FastAPIInstrumentor")
    def test_setup_telemetry_all_disabled(
        self, mock_fastapi_instr, mock_instrumentator, mock_get_settings
    ):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = False
        mock_settings.ENABLE_OTEL = False
        mock_get_settings.return_value = mock_settings

        setup_telemetry(FastAPI())

        mock_instrumentator.assert_not_called()
        mock_fastapi_instr.instrument_app.assert_not_called()
