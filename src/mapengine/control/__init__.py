"""Dashboard control — visibility store, chart/indicator state, controller."""

from mapengine.control.chart import ChartModel
from mapengine.control.controller import DashboardController
from mapengine.control.indicators import IndicatorPanel
from mapengine.control.visibility import VisibilityStateStore

__all__ = ["ChartModel", "DashboardController", "IndicatorPanel", "VisibilityStateStore"]
