"""
Scoring engine tests.

Pure computation: no database, items are plain objects.
"""

from dataclasses import dataclass
from decimal import Decimal

import pytest
from pydantic import TypeAdapter, ValidationError

from app.core.types import QualityScore, percent, round_half_up, score_to_percentage
from app.services.scoring import area_score, find_critical_items, recompute


@dataclass
class Item:
    cumplimiento_valor: str
    calif_valor: Decimal = Decimal("0")


def cumple(score):
    return Item("Cumple", Decimal(str(score)))


@dataclass
class Checked:
    descripcion: str
    calif_valor: Decimal
    comentarios_valor: str = ""
    cumplimiento_valor: str = "Cumple"


@dataclass
class Area:
    area_name: str
    items: list


class TestWorkedExample:
    """Area 1: Cumple 8, Cumple 10, No Cumple. Area 2: N/A, N/A."""

    @pytest.fixture
    def metrics(self):
        return recompute([
            [cumple(8), cumple(10), Item("No Cumple")],
            [Item("N/A"), Item("N/A")],
        ])

    def test_counts(self, metrics):
        assert metrics.total_areas == 2
        assert metrics.total_items == 5
        assert metrics.items_cumple == 2
        assert metrics.items_no_cumple == 1
        assert metrics.items_na == 2
        assert metrics.items_pending == 0

    def test_coverage_counts_na_as_evaluated(self, metrics):
        assert metrics.coverage_percentage == 100

    def test_compliance_excludes_na(self, metrics):
        assert metrics.compliance_percentage == 67

    def test_area_scores(self, metrics):
        assert metrics.area_scores == [Decimal("9.00"), Decimal("0.00")]

    def test_average_includes_zero_areas(self, metrics):
        """An all-N/A area scores 0 and still pulls the average down."""
        assert metrics.average_score == Decimal("4.50")
        assert score_to_percentage(metrics.average_score) == 45


class TestRecompute:
    """Edge cases of the metric formulas."""

    def test_no_items(self):
        metrics = recompute([])
        assert metrics.total_items == 0
        assert metrics.coverage_percentage == 0
        assert metrics.compliance_percentage == 0
        assert metrics.average_score == Decimal("0.00")

    def test_empty_area_counts_as_zero_score(self):
        metrics = recompute([[cumple(10)], []])
        assert metrics.total_areas == 2
        assert metrics.area_scores == [Decimal("10.00"), Decimal("0.00")]
        assert metrics.average_score == Decimal("5.00")

    def test_all_pending(self):
        metrics = recompute([[Item(""), Item("")]])
        assert metrics.items_pending == 2
        assert metrics.coverage_percentage == 0
        assert metrics.compliance_percentage == 0

    def test_only_na_gives_zero_compliance(self):
        metrics = recompute([[Item("N/A"), Item("N/A")]])
        assert metrics.coverage_percentage == 100
        assert metrics.compliance_percentage == 0

    def test_counts_always_add_up(self):
        metrics = recompute([
            [cumple(7), Item(""), Item("No Cumple")],
            [Item("N/A"), Item(""), cumple(5)],
        ])
        assert (
            metrics.items_cumple + metrics.items_no_cumple + metrics.items_na + metrics.items_pending
            == metrics.total_items
            == 6
        )
        assert metrics.coverage_percentage == 67

    def test_unknown_value_counts_as_pending(self):
        metrics = recompute([[Item("Maybe"), cumple(6)]])
        assert metrics.items_pending == 1
        assert metrics.coverage_percentage == 50

    def test_score_of_failed_items_is_ignored(self):
        failed = Item("No Cumple", Decimal("10"))
        assert area_score([failed, cumple(4)]) == Decimal("4")

    def test_recompute_is_deterministic(self):
        areas = [[cumple(8), cumple(9), Item("N/A")], [Item("No Cumple")]]
        assert recompute(areas) == recompute(areas)

    def test_average_is_rounded_half_up(self):
        # Area scores 9.125 and 0 -> mean 4.5625 -> 4.56
        metrics = recompute([[cumple("9.25"), cumple(9)], [Item("No Cumple")]])
        assert metrics.area_scores == [Decimal("9.13"), Decimal("0.00")]
        assert metrics.average_score == Decimal("4.56")


class TestRounding:
    """Half-up rounding helpers."""

    def test_percent_half_up(self):
        assert percent(1, 8) == 13  # 12.5
        assert percent(2, 3) == 67
        assert percent(1, 3) == 33

    def test_percent_zero_denominator(self):
        assert percent(0, 0) == 0

    def test_round_half_up_two_places(self):
        assert round_half_up(Decimal("4.125")) == Decimal("4.13")
        assert round_half_up(Decimal("4.124")) == Decimal("4.12")

    def test_score_to_percentage(self):
        assert score_to_percentage(Decimal("4.55")) == 46
        assert score_to_percentage(None) == 0

    def test_item_score_quantized_to_two_places(self):
        adapter = TypeAdapter(QualityScore)
        assert adapter.validate_python("0.005") == Decimal("0.01")
        assert adapter.validate_python(8.125) == Decimal("8.13")
        assert str(adapter.validate_python("9.5")) == "9.50"

    @pytest.mark.parametrize("value", ["-0.01", "10.004", "nan", True])
    def test_item_score_out_of_range(self, value):
        with pytest.raises(ValidationError):
            TypeAdapter(QualityScore).validate_python(value)


class TestCriticalItems:
    """Items scored above 0 and below the threshold are critical."""

    THRESHOLD = Decimal("8")

    @pytest.mark.parametrize(
        "score, critical",
        [
            ("0", False),
            ("0.01", True),
            ("5", True),
            ("7.99", True),
            ("8", False),
            ("10", False),
        ],
    )
    def test_threshold_edges(self, score, critical):
        areas = [Area("Lobby", [Checked("Piso limpio", Decimal(score))])]
        assert bool(find_critical_items(areas, self.THRESHOLD)) is critical

    def test_reports_area_and_comments_in_order(self):
        areas = [
            Area("Lobby", [Checked("Piso limpio", Decimal("9")), Checked("Mostrador", Decimal("6"), "Polvo")]),
            Area("Pasillos", [Checked("Extintores", Decimal("2.5"), "Vencidos")]),
        ]
        critical = find_critical_items(areas, self.THRESHOLD)
        assert [(c.area_name, c.descripcion, c.calif_valor, c.comentarios_valor) for c in critical] == [
            ("Lobby", "Mostrador", Decimal("6"), "Polvo"),
            ("Pasillos", "Extintores", Decimal("2.5"), "Vencidos"),
        ]

    def test_no_areas(self):
        assert find_critical_items([], self.THRESHOLD) == []
