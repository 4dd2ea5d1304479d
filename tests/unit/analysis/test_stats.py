"""Unit tests for vizbench.analysis.stats module."""

import math

import pytest

from vizbench.analysis import stats


class TestDescriptive:
    """Tests for basic descriptive statistics."""

    @pytest.mark.unit
    def test_empty_mean_and_std(self):
        assert stats.mean([]) == 0.0
        assert stats.std([]) == 0.0

    @pytest.mark.unit
    def test_population_std(self):
        assert stats.std([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    @pytest.mark.unit
    def test_median_is_upper_middle(self):
        assert stats.median([4, 1, 3, 2]) == 3
        assert stats.median([5, 1, 3]) == 3

    @pytest.mark.unit
    def test_nearest_rank_percentile(self):
        values = list(range(1, 11))
        assert stats.percentile(values, 25) == 3
        assert stats.percentile(values, 75) == 8
        assert stats.percentile(values, 50) == 5
        assert stats.percentile([7], 10) == 7

    @pytest.mark.unit
    def test_skewness_and_kurtosis(self):
        assert stats.skewness([1, 2, 3]) == pytest.approx(0.0)
        assert stats.kurtosis([1, 2, 3]) == pytest.approx(-1.5)
        assert stats.skewness([1, 1, 1, 10]) > 0

    @pytest.mark.unit
    def test_constant_values(self):
        assert stats.skewness([0.5, 0.5]) == 0.0
        assert stats.kurtosis([0.5, 0.5]) == 0.0

    @pytest.mark.unit
    def test_coefficient_of_variation(self):
        assert stats.coefficient_of_variation([2, 4]) == pytest.approx(100 / 3)
        assert stats.coefficient_of_variation([0, 0]) == 0.0

    @pytest.mark.unit
    def test_summarize(self):
        summary = stats.summarize([0.2, 0.4, 0.9])
        assert summary["count"] == 3
        assert summary["median"] == 0.4
        assert summary["min"] == 0.2
        assert summary["max"] == 0.9


class TestScoreBins:
    """Tests for score_bins."""

    @pytest.mark.unit
    def test_bin_layout(self):
        bins = stats.score_bins([])
        assert list(bins) == [f"{i / 10:.1f}" for i in range(11)]
        assert bins["0.3"]["range"] == "30-40%"
        assert bins["1.0"]["range"] == "100-110%"
        assert all(b["percentage"] == 0.0 for b in bins.values())

    @pytest.mark.unit
    def test_assignment(self):
        bins = stats.score_bins([0.3, 0.7, 1.0, 0.05, -0.1, 0.999])
        assert bins["0.3"]["count"] == 1
        assert bins["0.7"]["count"] == 1
        assert bins["1.0"]["count"] == 1
        assert bins["0.0"]["count"] == 1
        assert bins["0.9"]["count"] == 1
        assert sum(b["count"] for b in bins.values()) == 5
        assert bins["0.3"]["percentage"] == pytest.approx(16.67)


class TestNormality:
    """Tests for the normal fit helpers."""

    @pytest.mark.unit
    def test_normal_pdf_peak(self):
        assert stats.normal_pdf(0, 0, 1) == pytest.approx(1 / math.sqrt(2 * math.pi))

    @pytest.mark.unit
    def test_expected_counts_zero_sigma(self):
        bins = stats.score_bins([0.5, 0.5])
        assert stats.expected_normal_counts(bins, 0.5, 0.0, 2) == [0.0] * 11

    @pytest.mark.unit
    def test_expected_counts_sum_close_to_total(self):
        bins = stats.score_bins([])
        expected = stats.expected_normal_counts(bins, 0.55, 0.15, 100)
        assert sum(expected) == pytest.approx(100, rel=0.05)
        assert max(expected) == expected[5]

    @pytest.mark.unit
    def test_chi_square_skips_zero_expected(self):
        assert stats.chi_square([4, 3], [2, 0]) == pytest.approx(2.0)
        assert stats.chi_square([], []) == 0.0

    @pytest.mark.unit
    def test_cdf(self):
        result = stats.cdf([0.0, 0.5, 1.0])
        assert len(result["labels"]) == 21
        assert result["labels"][10] == "50%"
        assert result["values"][0] == pytest.approx(100 / 3)
        assert result["values"][10] == pytest.approx(200 / 3)
        assert result["values"][-1] == 100.0
        assert stats.cdf([])["values"][-1] == 0.0

    @pytest.mark.unit
    def test_normality_score(self):
        assert stats.normality_score(0, 0, 0) == 1.0
        assert stats.normality_score(4, 6, 60) == 0.0
        assert stats.normality_score(1, 1.5, 15) == pytest.approx(0.5)

    @pytest.mark.unit
    def test_describe_distribution(self):
        scores = [0.1, 0.4, 0.5, 0.5, 0.6, 0.9]
        profile = stats.describe_distribution(scores)
        assert profile["total"] == 6
        assert profile["mean"] == pytest.approx(0.5)
        assert profile["percentiles"]["p50"] == 0.5
        assert len(profile["expected_normal"]) == 11
        assert 0 <= profile["normality_score"] <= 1
        assert profile["cdf"]["values"][-1] == 100.0

    @pytest.mark.unit
    def test_describe_empty(self):
        with pytest.raises(ValueError):
            stats.describe_distribution([])


class TestInferential:
    """Tests for pearson, anova and amplified_zscore."""

    @pytest.mark.unit
    def test_pearson(self):
        assert stats.pearson([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert stats.pearson([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)
        assert stats.pearson([1, 1, 1], [1, 2, 3]) == 0.0
        assert stats.pearson([1, 2], [1]) == 0.0
        assert stats.pearson([], []) == 0.0

    @pytest.mark.unit
    def test_anova_no_difference(self):
        result = stats.anova([[1, 2, 3], [1, 2, 3]])
        assert result["f_statistic"] == pytest.approx(0.0)
        assert result["significant"] is False
        assert result["p_value"] == "> 0.05"
        assert result["df_between"] == 1
        assert result["df_within"] == 4

    @pytest.mark.unit
    def test_anova_separated_groups(self):
        result = stats.anova([[1.0, 1.1, 0.9], [5.0, 5.1, 4.9]])
        assert result["f_statistic"] > 100
        assert result["significant"] is True
        assert result["p_value"] == "< 0.05"

    @pytest.mark.unit
    def test_anova_degenerate(self):
        assert stats.anova([[1], [2]])["f_statistic"] == 0.0
        assert stats.anova([[1, 2, 3]])["f_statistic"] == 0.0
        assert stats.anova([[1, 2], []])["df_between"] == 0
        assert stats.anova([[1, 1], [2, 2]])["f_statistic"] == math.inf

    @pytest.mark.unit
    def test_amplified_zscore(self):
        assert stats.amplified_zscore([1, 2, 3]) == pytest.approx([15.0, 50.0, 85.0])
        assert stats.amplified_zscore([5, 5]) == [50.0, 50.0]
        assert stats.amplified_zscore([0.5], mu=0.5, sigma=0.1) == [50.0]
        shifted = stats.amplified_zscore([0.55], mu=0.5, sigma=0.1)[0]
        assert shifted == pytest.approx(50 + 1.25 / 6 * 70)
