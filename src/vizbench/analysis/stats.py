"""Descriptive statistics and normality checks for score distributions.

Pure functions over lists of floats. Scores are fractions in [0, 1] unless a
caller says otherwise; standard deviations are population deviations.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from ..constants import (
    ANOVA_SIGNIFICANCE_F,
    CDF_STEP_PERCENT,
    CHI_SQUARE_NORMALITY_SCALE,
    NORMALIZED_RANGE,
    SCORE_BIN_SIZE,
    ZSCORE_AMPLIFICATION,
    ZSCORE_CLAMP,
)


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def std(values: Sequence[float]) -> float:
    """Population standard deviation, 0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.std(values))


def median(values: Sequence[float]) -> float:
    """Upper middle element of the sorted values."""
    ordered = sorted(values)
    return float(ordered[len(ordered) // 2])


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile: the value at index ceil(p/100 * n) - 1."""
    ordered = sorted(values)
    index = math.ceil(p / 100 * len(ordered)) - 1
    return float(ordered[max(0, index)])


def _central_moment(values: Sequence[float], order: int) -> float:
    arr = np.asarray(values, dtype=float)
    return float(np.mean((arr - arr.mean()) ** order))


def skewness(values: Sequence[float]) -> float:
    """Population skewness; 0 when every value is equal."""
    sigma = std(values)
    if sigma == 0:
        return 0.0
    return _central_moment(values, 3) / sigma**3


def kurtosis(values: Sequence[float]) -> float:
    """Excess kurtosis (normal distribution = 0); 0 when every value is equal."""
    sigma = std(values)
    if sigma == 0:
        return 0.0
    return _central_moment(values, 4) / sigma**4 - 3


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Standard deviation as a percentage of the mean."""
    mu = mean(values)
    if mu == 0:
        return 0.0
    return std(values) / mu * 100


def score_bins(scores: Sequence[float], bin_size: float = SCORE_BIN_SIZE) -> dict[str, dict]:
    """Histogram scores in [0, 1] into fixed-width bins.

    Bins are keyed ``"0.0"`` .. ``"1.0"``; a score of exactly 1.0 (or above)
    lands in the last bin and negative scores are ignored.

    Returns:
        Mapping of bin key to ``{"range", "count", "percentage"}`` where range
        is a label such as ``"30-40%"`` and percentage has two decimals.
    """
    bin_count = int(round(1 / bin_size)) + 1
    bins: dict[str, dict] = {}
    keys = []
    for i in range(bin_count):
        start = i * bin_size
        key = f"{start:.1f}"
        keys.append(key)
        bins[key] = {
            "range": f"{start * 100:.0f}-{(start + bin_size) * 100:.0f}%",
            "count": 0,
            "percentage": 0.0,
        }

    for score in scores:
        # small epsilon so 0.3 / 0.1 does not floor to 2
        index = math.floor(score / bin_size + 1e-9)
        if index < 0:
            continue
        bins[keys[min(index, bin_count - 1)]]["count"] += 1

    total = len(scores)
    for item in bins.values():
        item["percentage"] = round(item["count"] / total * 100, 2) if total else 0.0
    return bins


def normal_pdf(x: float, mu: float, sigma: float) -> float:
    return float(np.exp(-((x - mu) ** 2) / (2 * sigma**2)) / (sigma * math.sqrt(2 * math.pi)))


def expected_normal_counts(
    bins: dict[str, dict],
    mu: float,
    sigma: float,
    total: int,
    bin_size: float = SCORE_BIN_SIZE,
) -> list[float]:
    """Expected count per bin under N(mu, sigma), evaluated at the bin midpoints.

    A zero sigma has no density, so every expected count is 0.
    """
    if sigma == 0:
        return [0.0 for _ in bins]
    return [
        normal_pdf(float(key) + bin_size / 2, mu, sigma) * bin_size * total for key in bins
    ]


def chi_square(observed: Sequence[float], expected: Sequence[float]) -> float:
    """Pearson chi-square statistic, skipping bins with no expected count."""
    total = 0.0
    for obs, exp in zip(observed, expected):
        if exp > 0:
            total += (obs - exp) ** 2 / exp
    return total


def cdf(values: Sequence[float], step_percent: int = CDF_STEP_PERCENT) -> dict[str, list]:
    """Empirical CDF sampled every ``step_percent`` from 0% to 100%."""
    arr = np.asarray(values, dtype=float)
    labels, points = [], []
    for pct in range(0, 101, step_percent):
        labels.append(f"{pct}%")
        points.append(float((arr <= pct / 100).sum() / len(arr) * 100) if len(arr) else 0.0)
    return {"labels": labels, "values": points}


def normality_score(skew: float, kurt: float, chi_sq: float) -> float:
    """Blend skewness, kurtosis and chi-square into a 0-1 normality score."""
    skew_score = max(0.0, 1 - abs(skew) / 2)
    kurt_score = max(0.0, 1 - abs(kurt) / 3)
    chi_score = max(0.0, 1 - chi_sq / CHI_SQUARE_NORMALITY_SCALE)
    return (skew_score + kurt_score + chi_score) / 3


def summarize(values: Sequence[float]) -> dict:
    """Count, mean, median, std, min and max of a non-empty sequence."""
    return {
        "count": len(values),
        "mean": mean(values),
        "median": median(values),
        "std": std(values),
        "min": float(min(values)),
        "max": float(max(values)),
    }


def describe_distribution(scores: Sequence[float]) -> dict:
    """Full distribution profile of 0-1 scores used by the score reports.

    Raises:
        ValueError: If ``scores`` is empty.
    """
    if len(scores) == 0:
        raise ValueError("Cannot describe an empty score distribution")

    mu = mean(scores)
    sigma = std(scores)
    skew = skewness(scores)
    kurt = kurtosis(scores)
    bins = score_bins(scores)
    expected = expected_normal_counts(bins, mu, sigma, len(scores))
    chi_sq = chi_square([b["count"] for b in bins.values()], expected)

    return {
        "total": len(scores),
        "mean": mu,
        "median": median(scores),
        "std": sigma,
        "min": float(min(scores)),
        "max": float(max(scores)),
        "percentiles": {
            "p25": percentile(scores, 25),
            "p50": median(scores),
            "p75": percentile(scores, 75),
            "p90": percentile(scores, 90),
        },
        "skewness": skew,
        "kurtosis": kurt,
        "chi_square": chi_sq,
        "normality_score": normality_score(skew, kurt, chi_sq),
        "bins": bins,
        "expected_normal": expected,
        "cdf": cdf(scores),
    }


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient, 0 when undefined."""
    n = len(x)
    if n == 0 or n != len(y):
        return 0.0
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    numerator = n * float((xs * ys).sum()) - float(xs.sum()) * float(ys.sum())
    denominator = math.sqrt(
        max(0.0, (n * float((xs**2).sum()) - float(xs.sum()) ** 2))
        * max(0.0, (n * float((ys**2).sum()) - float(ys.sum()) ** 2))
    )
    if denominator == 0:
        return 0.0
    return numerator / denominator


def anova(groups: Sequence[Sequence[float]]) -> dict:
    """One-way ANOVA over groups of scores.

    The F statistic is compared against a fixed cut-off rather than the F
    distribution, so ``p_value`` is only reported as "< 0.05" or "> 0.05".
    Empty groups are ignored; fewer than two groups, or no within-group degrees
    of freedom, give F = 0.
    """
    groups = [list(g) for g in groups if len(g) > 0]
    scores = [s for g in groups for s in g]
    df_between = len(groups) - 1
    df_within = len(scores) - len(groups)

    f_statistic = 0.0
    if df_between > 0 and df_within > 0:
        grand_mean = mean(scores)
        ss_between = sum(len(g) * (mean(g) - grand_mean) ** 2 for g in groups)
        ss_within = sum(sum((s - mean(g)) ** 2 for s in g) for g in groups)
        ms_between = ss_between / df_between
        ms_within = ss_within / df_within
        if ms_within > 0:
            f_statistic = ms_between / ms_within
        elif ms_between > 0:
            f_statistic = math.inf

    significant = f_statistic > ANOVA_SIGNIFICANCE_F
    return {
        "f_statistic": f_statistic,
        "p_value": "< 0.05" if significant else "> 0.05",
        "significant": significant,
        "df_between": max(df_between, 0),
        "df_within": max(df_within, 0),
    }


def amplified_zscore(
    values: Sequence[float],
    mu: float | None = None,
    sigma: float | None = None,
) -> list[float]:
    """Spread scores out by z-scoring, amplifying, clamping and rescaling.

    Each z-score is multiplied by 2.5, clamped to +/-3 and mapped linearly onto
    [15, 85]. ``mu`` and ``sigma`` default to the statistics of ``values``
    itself; pass population-wide values to normalize one group against all.
    A sigma of 0 is treated as 1.
    """
    if mu is None:
        mu = mean(values)
    if sigma is None:
        sigma = std(values)
    sigma = sigma or 1.0
    low, high = NORMALIZED_RANGE

    z = (np.asarray(values, dtype=float) - mu) / sigma * ZSCORE_AMPLIFICATION
    z = np.clip(z, -ZSCORE_CLAMP, ZSCORE_CLAMP)
    scaled = (z + ZSCORE_CLAMP) / (2 * ZSCORE_CLAMP) * (high - low) + low
    return [float(v) for v in scaled]
