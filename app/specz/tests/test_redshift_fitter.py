import numpy as np
import pytest

from specz.core.exceptions import InvalidInputError, NoMatchError
from specz.domain.models.correlation import CorrelationResult, Peak
from specz.domain.models.template import Template
from specz.domain.services.correlation_service import get_peaks
from specz.domain.services.redshift_fitter import (
    RedshiftFitter,
    binary_search,
    fit_around_index,
    get_fit,
    get_redshift_for_non_integer_index,
)

GAP = 1e-3
SIZE = 64


def centred_template(id, redshift=0.0, start=32, end=64):
    zs = np.power(10.0, (np.arange(SIZE) - SIZE / 2) * GAP) * (1 + redshift) - 1
    return Template(
        id=id,
        transform=None,
        log_lambda=np.arange(SIZE) * GAP,
        zs=zs[start:end],
        start_z_index=start,
        end_z_index=end,
        redshift=redshift,
    )


class TestBinarySearch:

    @pytest.mark.parametrize("val, expected", [
        (6, (2, 3)),
        (5, (2, 2)),
        (1, (0, 0)),
        (9, (4, 4)),
        (0, (0, 0)),
        (10, (4, 4)),
        (2, (0, 1)),
    ])
    def test_brackets(self, val, expected):
        assert binary_search([1, 3, 5, 7, 9], val) == expected

    def test_empty(self):
        with pytest.raises(InvalidInputError):
            binary_search([], 1.0)


class TestFitAroundIndex:

    def test_recovers_parabola_vertex(self):
        x = np.arange(5, dtype=float)
        assert fit_around_index(-(x - 2.3) ** 2, 2) == pytest.approx(2.3)

    def test_symmetric_peak(self):
        assert fit_around_index(np.array([1.0, 3.0, 4.0, 3.0, 1.0]), 2) == 2.0

    def test_boundary_and_flat(self):
        data = np.array([4.0, 3.0, 3.0, 3.0, 5.0])
        assert fit_around_index(data, 0) == 0.0
        assert fit_around_index(data, 4) == 4.0
        assert fit_around_index(data, 2) == 2.0


class TestGetFit:

    def test_fractional_index_to_redshift(self):
        template = centred_template("t", redshift=0.1, start=2, end=64)
        z = get_redshift_for_non_integer_index(template, 1.5)
        assert z == pytest.approx(10 ** ((1.5 + 2 - 32) * GAP) * 1.1 - 1)

    def test_odd_length_zero_lag(self):
        template = Template("odd", None, np.arange(7) * GAP, np.zeros(7), 0, 7, redshift=0.2)
        assert get_redshift_for_non_integer_index(template, 3) == pytest.approx(0.2)

    def test_integer_index_matches_axis(self):
        template = centred_template("t")
        for index in (0, 7, 20):
            assert get_redshift_for_non_integer_index(template, index) == pytest.approx(template.zs[index])

    def test_refines_to_correlation_maximum(self):
        template = centred_template("t")
        xcor = np.exp(-0.5 * ((np.arange(32) - 10.4) / 2.0) ** 2)
        z = get_fit(template, xcor, template.zs[9])
        assert z == pytest.approx(10 ** (10.4 * GAP) - 1, abs=1e-4)

    def test_no_usable_samples(self):
        template = centred_template("t")
        with pytest.raises(NoMatchError) as excinfo:
            get_fit(template, np.full(32, np.nan), template.zs[10])
        assert excinfo.value.template_id == "t"
        with pytest.raises(NoMatchError):
            get_fit(template, np.array([]), template.zs[10])


class TestBestMatches:

    def setup_method(self):
        self.templates = {"a": centred_template("a"), "b": centred_template("b"), "c": centred_template("c")}
        xcor_a = 5.0 * np.exp(-0.5 * ((np.arange(32) - 10.0) / 2.0) ** 2)
        xcor_b = 3.0 * np.exp(-0.5 * ((np.arange(32) - 20.0) / 2.0) ** 2)
        xcor_c = np.full(32, np.nan)
        self.results = {
            "a": CorrelationResult("a", self.templates["a"].zs, xcor_a, get_peaks(xcor_a, both=False)),
            "b": CorrelationResult("b", self.templates["b"].zs, xcor_b, get_peaks(xcor_b, both=False)),
            "c": CorrelationResult("c", self.templates["c"].zs, xcor_c, [Peak(10, 100.0)]),
        }

    def test_ranked_by_peak_value_skipping_unfittable(self, settings):
        matches = RedshiftFitter(settings).best_matches(self.results, self.templates)
        assert [m.template_id for m in matches] == ["a", "b"]
        assert matches[0].redshift == pytest.approx(self.templates["a"].zs[10])
        assert matches[1].redshift == pytest.approx(self.templates["b"].zs[20])
        assert matches[0].value == pytest.approx(5.0)
        assert matches[0].index == 10

    def test_limit(self, settings):
        matches = RedshiftFitter(settings).best_matches(self.results, self.templates, max_matches=1)
        assert len(matches) == 1
        assert matches[0].template_id == "a"
