"""Statistical analyses of workspace results, each written as an HTML report.

Every ``analyze_*`` function reads one workspace directory, returns its
statistics as a dict (including ``report_path``) and writes a self-contained
Chart.js page into the workspace.
"""

from __future__ import annotations

import html
import json
import logging
from collections.abc import Sequence
from pathlib import Path

from ..constants import (
    CHART_JS_CDN,
    CHI_SQUARE_CRITICAL,
    CHI_SQUARE_MARGINAL,
    CORRELATION_MODERATE,
    CORRELATION_REPORT_FILE,
    CORRELATION_STRONG,
    DATA_DIR,
    DIFFERENTIATION_REPORT_FILE,
    FSM_DIMENSIONS_REPORT_FILE,
    HUMAN_EVALUATION_FILE,
    LOW_PASS_RATE_THRESHOLD,
    MESOKURTIC_KURTOSIS,
    MODEL_COMPARISON_REPORT_FILE,
    MODEL_SIMILARITY_REPORT_FILE,
    NORMALITY_PARTIAL,
    NORMALITY_STRONG,
    PASS_RATE_REPORT_FILE,
    SCORE_REPORT_FILE,
    SIMILARITY_RESULTS_FILE,
    SYMMETRIC_SKEWNESS,
)
from ..errors import NoScoreDataError, WorkspaceError
from ..fsm.matching import DEFAULT_CATEGORY, ConceptCategories
from . import stats
from .results import extract_model_name, load_file_results, load_scores
from .templates import (
    COMPARISON_SCRIPT,
    CORRELATION_SCRIPT,
    DIFFERENTIATION_SCRIPT,
    DIMENSIONS_SCRIPT,
    DISTRIBUTION_SCRIPT,
    MODEL_SIMILARITY_SCRIPT,
    PAGE,
)

logger = logging.getLogger(__name__)

DIMENSIONS = {
    "structural": "Structural",
    "semantic": "Semantic",
    "overall": "Overall",
    "node_count": "Node Count Sim",
    "edge_count": "Edge Count Sim",
}

HUMAN_DIMENSIONS = {
    "overall": "overall_quality",
    "interactivity": "interactivity",
    "pedagogical": "pedagogical_effectiveness",
    "visual": "visual_quality",
}


# Interpretation


def interpret_skewness(skewness: float) -> str:
    if abs(skewness) < SYMMETRIC_SKEWNESS:
        return (
            "The distribution exhibits near-symmetric characteristics, "
            "consistent with normal distribution properties."
        )
    if skewness > 0:
        return (
            "The distribution shows positive skewness (right-skewed), "
            "indicating a concentration of lower scores."
        )
    return (
        "The distribution shows negative skewness (left-skewed), "
        "indicating a concentration of higher scores."
    )


def interpret_kurtosis(kurtosis: float) -> str:
    if abs(kurtosis) < MESOKURTIC_KURTOSIS:
        return (
            "The kurtosis value approximates that of a normal distribution "
            "(excess kurtosis close to 0)."
        )
    if kurtosis > 0:
        return (
            "The distribution exhibits leptokurtic characteristics (positive excess "
            "kurtosis), indicating high concentration around the mean."
        )
    return (
        "The distribution exhibits platykurtic characteristics (negative excess "
        "kurtosis), indicating high dispersion."
    )


def interpret_chi_square(chi_square: float) -> str:
    if chi_square < CHI_SQUARE_CRITICAL:
        return "The distribution passes the normality test (chi-square < 15.507, p > 0.05, df=9)."
    if chi_square < CHI_SQUARE_MARGINAL:
        return "The distribution marginally passes the normality test (p close to 0.05)."
    return "The distribution fails the normality test (chi-square > 20.09, p < 0.05, df=9)."


def interpret_normality(score: float) -> str:
    if score >= NORMALITY_STRONG:
        return (
            "The score distribution demonstrates strong adherence to normality, "
            "indicating reliable test results with appropriate difficulty calibration."
        )
    if score >= NORMALITY_PARTIAL:
        return (
            "The score distribution partially conforms to normality. Further optimization "
            "of test cases is recommended to improve distribution characteristics."
        )
    return (
        "The score distribution exhibits significant deviation from normality. Review of "
        "test design and implementation quality is strongly recommended."
    )


def interpret_correlation(r: float) -> str:
    if abs(r) >= CORRELATION_STRONG:
        return "strong"
    if abs(r) >= CORRELATION_MODERATE:
        return "moderate"
    return "weak"


# Rendering helpers


def _pct(value: float, digits: int = 1) -> str:
    return f"{value * 100:.{digits}f}%"


def _stat_cards(cards: Sequence[tuple[str, str]]) -> str:
    items = "".join(
        f'<div class="stat-card"><div class="stat-label">{html.escape(label)}</div>'
        f'<div class="stat-value">{html.escape(value)}</div></div>'
        for label, value in cards
    )
    return f'<div class="stats-grid">{items}</div>'


def _table(headers: Sequence[str], rows: Sequence[Sequence[object]]) -> str:
    head = "".join(f"<th>{html.escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(str(cell))}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def _chart(canvas_id: str, title: str) -> str:
    return (
        f'<div class="chart-container"><div class="chart-title">{html.escape(title)}</div>'
        f'<canvas id="{html.escape(canvas_id)}"></canvas></div>'
    )


def render_page(title: str, subtitle: str, body: str, data: dict, script: str) -> str:
    """Fill the report shell; ``data`` becomes the page's ``REPORT`` global."""
    payload = json.dumps(data, ensure_ascii=False).replace("</", "<\\/")
    return PAGE.substitute(
        title=html.escape(title),
        subtitle=html.escape(subtitle),
        chart_js=CHART_JS_CDN,
        body=body,
        data=payload,
        script=script,
    )


def _write_report(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    logger.info("Report written to %s", path)
    return path


def _distribution_body(summary: dict, noun: str) -> str:
    cards = _stat_cards(
        [
            ("Sample Size", str(summary["total"])),
            (f"Mean {noun}", _pct(summary["mean"], 2)),
            ("Median", _pct(summary["median"], 2)),
            ("Std. Deviation", _pct(summary["std"], 2)),
            ("Minimum", _pct(summary["min"], 2)),
            ("Maximum", _pct(summary["max"], 2)),
        ]
    )
    bins_table = _table(
        ["Range", "Count", "Percentage"],
        [(b["range"], b["count"], f'{b["percentage"]:.2f}%') for b in summary["bins"].values()],
    )
    p = summary["percentiles"]
    analysis = f"""
        <h2>I. Distribution Characteristics</h2>
        <div class="analysis">
            <p><strong>A. Skewness:</strong> {summary["skewness"]:.3f}</p>
            <p>{interpret_skewness(summary["skewness"])}</p>
            <p><strong>B. Kurtosis:</strong> {summary["kurtosis"]:.3f}</p>
            <p>{interpret_kurtosis(summary["kurtosis"])}</p>
            <p><strong>C. Chi-Square Test Statistic:</strong> {summary["chi_square"]:.3f}</p>
            <p>{interpret_chi_square(summary["chi_square"])}</p>
            <p><strong>D. Percentiles:</strong> 25th {_pct(p["p25"])}, 50th {_pct(p["p50"])},
               75th {_pct(p["p75"])}, 90th {_pct(p["p90"])}</p>
        </div>
        <div class="conclusion">
            <strong>II. Normality Assessment</strong>
            <p>Normality Score: {_pct(summary["normality_score"])}</p>
            <p>{interpret_normality(summary["normality_score"])}</p>
        </div>"""
    return (
        cards
        + '<div class="chart-grid">'
        + _chart("histogramChart", f"Figure 1. {noun} Distribution vs. Normal Distribution")
        + _chart("cdfChart", "Figure 2. Cumulative Distribution Function")
        + "</div>"
        + "<h2>Score Distribution</h2>"
        + bins_table
        + analysis
    )


def _distribution_data(summary: dict) -> dict:
    return {
        "bins": [{"range": b["range"], "count": b["count"]} for b in summary["bins"].values()],
        "expected": summary["expected_normal"],
        "cdf": summary["cdf"],
    }


def _log_summary(summary: dict, noun: str) -> None:
    logger.info(
        "%s over %d samples: mean %s, median %s, std %s, normality %s",
        noun,
        summary["total"],
        _pct(summary["mean"], 2),
        _pct(summary["median"], 2),
        _pct(summary["std"], 2),
        _pct(summary["normality_score"]),
    )


# Score distributions


def analyze_pass_rates(workspace_dir: Path) -> dict:
    """Distribution of per-file pass rates, with the failing files listed.

    Raises:
        NoScoreDataError: If the workspace has no test results.
    """
    workspace_dir = Path(workspace_dir)
    file_results, source = load_file_results(workspace_dir)
    summary = stats.describe_distribution([r.pass_rate for r in file_results])
    low = sorted(
        (r for r in file_results if r.pass_rate < LOW_PASS_RATE_THRESHOLD),
        key=lambda r: r.pass_rate,
    )
    summary["source"] = source
    summary["low_pass_rate_tests"] = [r.to_dict() for r in low]
    _log_summary(summary, "Pass rate")

    if low:
        low_section = _table(
            ["File", "Topic", "Pass Rate", "Passed / Total"],
            [(r.file_name, r.topic, _pct(r.pass_rate), f"{r.passed}/{r.total}") for r in low],
        )
    else:
        low_section = "<p>No test files have a pass rate below 50%.</p>"
    body = (
        _distribution_body(summary, "Pass Rate")
        + "<h2>Low Pass Rate Test Files (Pass Rate &lt; 50%)</h2>"
        + low_section
    )

    page = render_page(
        "Test Pass Rate Distribution Analysis",
        f"{workspace_dir.name} - {summary['total']} test files from {source}",
        body,
        _distribution_data(summary),
        DISTRIBUTION_SCRIPT,
    )
    summary["report_path"] = str(_write_report(workspace_dir / PASS_RATE_REPORT_FILE, page))
    return summary


def analyze_scores(workspace_dir: Path) -> dict:
    """Distribution of test scores, from pass rates or legacy data.json scores.

    Raises:
        NoScoreDataError: If the workspace has no score data at all.
    """
    workspace_dir = Path(workspace_dir)
    scores, source = load_scores(workspace_dir)
    summary = stats.describe_distribution(scores)
    summary["source"] = source
    _log_summary(summary, "Score")

    page = render_page(
        "Test Score Distribution Analysis",
        f"{workspace_dir.name} - {summary['total']} scores from {source}",
        _distribution_body(summary, "Score"),
        _distribution_data(summary),
        DISTRIBUTION_SCRIPT,
    )
    summary["report_path"] = str(_write_report(workspace_dir / SCORE_REPORT_FILE, page))
    return summary


def compare_models(workspace_dirs: Sequence[Path], output: Path | None = None) -> dict:
    """Compare score distributions of several workspaces, one model each.

    Workspaces without score data are skipped with a warning.

    Raises:
        ValueError: If fewer than two workspaces (or fewer than two with data)
            are given.
    """
    if len(workspace_dirs) < 2:
        raise ValueError("At least 2 workspaces are required for comparison")

    models = []
    for workspace_dir in workspace_dirs:
        try:
            scores, _ = load_scores(Path(workspace_dir))
        except NoScoreDataError:
            logger.warning("No valid score data found in %s, skipping", workspace_dir)
            continue
        bins = stats.score_bins(scores)
        models.append(
            {
                "name": extract_model_name(workspace_dir),
                "workspace": str(workspace_dir),
                "stats": stats.summarize(scores),
                "bins": bins,
                "cdf": stats.cdf(scores),
            }
        )
        logger.info("%s: %d samples", models[-1]["name"], len(scores))

    if len(models) < 2:
        raise ValueError("At least 2 valid datasets are required")

    rows = [
        (
            m["name"],
            m["stats"]["count"],
            _pct(m["stats"]["mean"], 2),
            _pct(m["stats"]["median"], 2),
            _pct(m["stats"]["std"], 2),
            _pct(m["stats"]["min"], 2),
            _pct(m["stats"]["max"], 2),
        )
        for m in models
    ]
    body = (
        "<h2>Summary Statistics</h2>"
        + _table(["Model", "n", "Mean", "Median", "Std Dev", "Min", "Max"], rows)
        + _chart("distributionChart", "Figure 1. Test Pass Rate Distribution Across Models")
        + _chart("cdfChart", "Figure 2. Cumulative Distribution Across Models")
    )
    first_bins = models[0]["bins"].values()
    data = {
        "labels": [b["range"] for b in first_bins],
        "cdfLabels": models[0]["cdf"]["labels"],
        "models": [
            {
                "name": m["name"],
                "percentages": [b["percentage"] for b in m["bins"].values()],
                "cdf": m["cdf"]["values"],
            }
            for m in models
        ],
    }
    output = Path(output) if output else Path.cwd() / MODEL_COMPARISON_REPORT_FILE
    page = render_page(
        "Model Score Distribution Comparison",
        f"{len(models)} models compared",
        body,
        data,
        COMPARISON_SCRIPT,
    )
    return {"models": models, "report_path": str(_write_report(output, page))}


# FSM similarity analyses


def load_similarity_results(workspace_dir: Path) -> list[dict]:
    """Per-file results of a batch similarity run.

    Accepts both the full report object and a bare list of results.

    Raises:
        WorkspaceError: If the results file is missing.
    """
    path = Path(workspace_dir) / SIMILARITY_RESULTS_FILE
    if not path.is_file():
        raise WorkspaceError(f"Similarity results not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    return data if isinstance(data, list) else data.get("results") or []


def _successful(results: list[dict]) -> list[dict]:
    return [r for r in results if r.get("success") and r.get("similarityResult")]


def _result_model(result: dict) -> str | None:
    model = result.get("model")
    if not model or model == "undefined":
        return None
    return model


def analyze_model_similarity(workspace_dir: Path) -> dict:
    """Average similarity per generating model.

    The model is read from ``data/<id>.json`` of each successfully compared FSM;
    results whose data file cannot be read are skipped.
    """
    workspace_dir = Path(workspace_dir)
    results = _successful(load_similarity_results(workspace_dir))

    grouped: dict[str, dict[str, list]] = {}
    for result in results:
        file_id = result["fsmFileName"].removesuffix(".json")
        try:
            data = json.loads(
                (workspace_dir / DATA_DIR / f"{file_id}.json").read_text(encoding="utf-8")
            )
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Cannot read data file for %s: %s", result["fsmFileName"], e)
            continue
        sim = result["similarityResult"]
        group = grouped.setdefault(
            data.get("model") or "unknown",
            {"combined": [], "structural": [], "semantic": [], "isomorphism": [], "concepts": []},
        )
        group["combined"].append(sim["combined_similarity"])
        group["structural"].append(sim["structural_similarity"]["overall"])
        group["semantic"].append(sim["semantic_similarity"]["overall"])
        group["isomorphism"].append(sim["isomorphism_similarity"])
        group["concepts"].append(result.get("concept"))

    model_stats = {
        model: {
            "count": len(g["combined"]),
            "average_similarity": stats.mean(g["combined"]),
            "average_structural": stats.mean(g["structural"]),
            "average_semantic": stats.mean(g["semantic"]),
            "average_isomorphism": stats.mean(g["isomorphism"]),
            "min_similarity": min(g["combined"]),
            "max_similarity": max(g["combined"]),
            "std_deviation": stats.std(g["combined"]),
            "concepts": g["concepts"],
        }
        for model, g in grouped.items()
    }
    model_stats = dict(
        sorted(model_stats.items(), key=lambda kv: kv[1]["average_similarity"], reverse=True)
    )

    rows = [
        (
            rank,
            model,
            s["count"],
            _pct(s["average_similarity"]),
            _pct(s["average_structural"]),
            _pct(s["average_semantic"]),
            _pct(s["average_isomorphism"]),
            f'{s["std_deviation"]:.3f}',
        )
        for rank, (model, s) in enumerate(model_stats.items(), start=1)
    ]
    body = (
        _table(
            ["Rank", "Model", "n", "Combined", "Structural", "Semantic", "Isomorphism", "Std"],
            rows,
        )
        + _chart("similarityChart", "Average FSM Similarity by Model")
    )
    data = {
        "models": list(model_stats),
        "combined": [s["average_similarity"] * 100 for s in model_stats.values()],
        "structural": [s["average_structural"] * 100 for s in model_stats.values()],
        "semantic": [s["average_semantic"] * 100 for s in model_stats.values()],
        "isomorphism": [s["average_isomorphism"] * 100 for s in model_stats.values()],
    }
    page = render_page(
        "FSM Similarity by Model",
        f"{workspace_dir.name} - {len(results)} successful comparisons",
        body,
        data,
        MODEL_SIMILARITY_SCRIPT,
    )
    path = _write_report(workspace_dir / MODEL_SIMILARITY_REPORT_FILE, page)
    return {"models": model_stats, "report_path": str(path)}


def _dimension_values(result: dict) -> dict[str, float]:
    sim = result["similarityResult"]
    structural = sim.get("structural_similarity") or {}
    semantic = sim.get("semantic_similarity") or {}
    return {
        "structural": (structural.get("overall") or 0) * 100,
        "semantic": (semantic.get("overall") or 0) * 100,
        "overall": (result.get("summary") or {}).get("score") or 0,
        "node_count": (structural.get("node_count_similarity") or 0) * 100,
        "edge_count": (structural.get("edge_count_similarity") or 0) * 100,
    }


def analyze_fsm_dimensions(workspace_dir: Path) -> dict:
    """Per-model profile across the similarity dimensions.

    Each dimension is normalized with :func:`stats.amplified_zscore` against the
    mean and deviation of all models together, so profiles are comparable.
    """
    workspace_dir = Path(workspace_dir)
    raw: dict[str, dict[str, list[float]]] = {}
    for result in _successful(load_similarity_results(workspace_dir)):
        model = _result_model(result)
        if model is None:
            continue
        values = _dimension_values(result)
        group = raw.setdefault(model, {dim: [] for dim in DIMENSIONS})
        for dim in DIMENSIONS:
            group[dim].append(values[dim])

    model_stats: dict[str, dict] = {model: {} for model in sorted(raw)}
    for dim in DIMENSIONS:
        everything = [v for group in raw.values() for v in group[dim]]
        mu, sigma = stats.mean(everything), stats.std(everything)
        for model in model_stats:
            values = raw[model][dim]
            normalized = stats.amplified_zscore(values, mu, sigma)
            model_stats[model][dim] = {
                "mean": stats.mean(normalized),
                "std": stats.std(normalized),
                "count": len(normalized),
                "raw_mean": stats.mean(values),
            }

    rows = [
        (model, *(f'{s[dim]["mean"]:.2f} ± {s[dim]["std"]:.2f}' for dim in DIMENSIONS))
        for model, s in model_stats.items()
    ]
    body = (
        "<p>All scores are normalized using a z-score transformation with 2.5x "
        "variance amplification, mapped onto [15, 85].</p>"
        + _table(["Model", *DIMENSIONS.values()], rows)
        + _chart("radarChart", "Multi-Dimensional Profile by Model")
    )
    data = {
        "labels": list(DIMENSIONS.values()),
        "models": [
            {"name": model, "values": [s[dim]["mean"] for dim in DIMENSIONS]}
            for model, s in model_stats.items()
        ],
    }
    page = render_page(
        "FSM Multi-Dimensional Analysis",
        workspace_dir.name,
        body,
        data,
        DIMENSIONS_SCRIPT,
    )
    path = _write_report(workspace_dir / FSM_DIMENSIONS_REPORT_FILE, page)
    return {"models": model_stats, "report_path": str(path)}


def _load_human_scores(workspace_dir: Path) -> list[dict]:
    path = Path(workspace_dir) / HUMAN_EVALUATION_FILE
    if not path.is_file():
        raise WorkspaceError(f"Human evaluation results not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    return [e for e in data.get("evaluations") or [] if e.get("human_evaluation")]


def analyze_correlation(workspace_dir: Path) -> dict:
    """Correlate normalized FSM scores with human ratings.

    Human ratings are on a 0-10 scale and converted to 0-100. FSM scores are
    normalized with :func:`stats.amplified_zscore` across all results and paired
    with human ratings by file id.

    Raises:
        WorkspaceError: If the similarity or human evaluation results are missing.
    """
    workspace_dir = Path(workspace_dir)
    results = [r for r in _successful(load_similarity_results(workspace_dir)) if _result_model(r)]
    evaluations = _load_human_scores(workspace_dir)

    raw_scores = [(r.get("summary") or {}).get("score") or 0 for r in results]
    mu, sigma = stats.mean(raw_scores), stats.std(raw_scores)
    normalized = stats.amplified_zscore(raw_scores, mu, sigma)

    human_by_file = {
        e["fileId"]: {
            dim: (e["human_evaluation"].get(key) or 0) * 10
            for dim, key in HUMAN_DIMENSIONS.items()
        }
        for e in evaluations
        if e.get("fileId")
    }

    models: dict[str, dict[str, list[float]]] = {}
    pairs = []
    for result, fsm_score in zip(results, normalized):
        models.setdefault(result["model"], {"fsm": [], "human": []})["fsm"].append(fsm_score)
        file_id = result["fsmFileName"].removesuffix(".json")
        human = human_by_file.get(file_id)
        if human:
            pairs.append(
                {
                    "fileId": file_id,
                    "concept": result.get("concept"),
                    "model": result["model"],
                    "category": result.get("category"),
                    "fsm": fsm_score,
                    **human,
                }
            )
    for evaluation in evaluations:
        if evaluation.get("model") in models:
            models[evaluation["model"]]["human"].append(
                (evaluation["human_evaluation"].get("overall_quality") or 0) * 10
            )

    model_stats = {
        model: {
            "fsm_count": len(s["fsm"]),
            "human_count": len(s["human"]),
            "avg_fsm": stats.mean(s["fsm"]),
            "std_fsm": stats.std(s["fsm"]),
            "avg_human": stats.mean(s["human"]),
            "std_human": stats.std(s["human"]),
        }
        for model, s in sorted(models.items())
    }
    fsm_values = [p["fsm"] for p in pairs]
    correlations = {
        dim: stats.pearson(fsm_values, [p[dim] for p in pairs]) for dim in HUMAN_DIMENSIONS
    }
    for dim, r in correlations.items():
        logger.info("FSM vs human %s: r = %.3f", dim, r)

    corr_rows = "".join(
        f'<tr><td>FSM vs Human {dim.title()}</td>'
        f'<td class="correlation-{interpret_correlation(r)}">{r:.3f}</td>'
        f"<td>{interpret_correlation(r)}</td></tr>"
        for dim, r in correlations.items()
    )
    body = (
        _table(
            ["Model", "FSM (normalized)", "Human", "n FSM", "n Human"],
            [
                (
                    model,
                    f'{s["avg_fsm"]:.2f} ± {s["std_fsm"]:.2f}',
                    f'{s["avg_human"]:.2f} ± {s["std_human"]:.2f}',
                    s["fsm_count"],
                    s["human_count"],
                )
                for model, s in model_stats.items()
            ],
        )
        + _chart("modelChart", "FSM and Human Scores by Model")
        + f"<h2>Correlation ({len(pairs)} matched files)</h2>"
        + "<table><thead><tr><th>Pair</th><th>Pearson r</th><th>Strength</th></tr></thead>"
        + f"<tbody>{corr_rows}</tbody></table>"
        + '<div class="chart-grid">'
        + "".join(
            _chart(f"scatter-{dim}", f"FSM vs Human {dim.title()}") for dim in HUMAN_DIMENSIONS
        )
        + "</div>"
    )
    data = {
        "dimensions": list(HUMAN_DIMENSIONS),
        "models": [
            {"name": model, "fsm": s["avg_fsm"], "human": s["avg_human"]}
            for model, s in model_stats.items()
        ],
        "pairs": pairs,
    }
    page = render_page(
        "FSM vs Human Correlation Analysis",
        workspace_dir.name,
        body,
        data,
        CORRELATION_SCRIPT,
    )
    path = _write_report(workspace_dir / CORRELATION_REPORT_FILE, page)
    return {
        "models": model_stats,
        "pairs": pairs,
        "correlations": correlations,
        "report_path": str(path),
    }


def analyze_fsm_differentiation(
    workspace_dir: Path,
    categories: ConceptCategories | None = None,
) -> dict:
    """Test whether FSM scores tell models (and concept categories) apart.

    Concepts are re-categorized with partial matching; scores are combined
    similarities on a 0-100 scale. A one-way ANOVA is run across models and
    across categories.
    """
    workspace_dir = Path(workspace_dir)
    categories = categories or ConceptCategories.load()

    by_model: dict[str, list[float]] = {}
    by_category: dict[str, dict[str, list[float]]] = {}
    for result in _successful(load_similarity_results(workspace_dir)):
        model = _result_model(result)
        if model is None:
            continue
        concept = result.get("concept")
        category = categories.category_for(concept, partial=True) if concept else DEFAULT_CATEGORY
        score = result["similarityResult"]["combined_similarity"] * 100
        by_model.setdefault(model, []).append(score)
        by_category.setdefault(category, {}).setdefault(model, []).append(score)

    model_stats = sorted(
        (
            {"model": model, **stats.summarize(scores), "cv": stats.coefficient_of_variation(scores)}
            for model, scores in by_model.items()
        ),
        key=lambda s: s["mean"],
        reverse=True,
    )
    model_anova = stats.anova(list(by_model.values()))
    category_anova = stats.anova(
        [[s for scores in models.values() for s in scores] for models in by_category.values()]
    )
    category_means = {
        category: [
            {"model": model, "mean": stats.mean(scores), "count": len(scores)}
            for model, scores in sorted(models.items())
        ]
        for category, models in sorted(by_category.items())
    }
    logger.info(
        "Model ANOVA F=%.4f (%s), category ANOVA F=%.4f (%s)",
        model_anova["f_statistic"],
        "significant" if model_anova["significant"] else "not significant",
        category_anova["f_statistic"],
        "significant" if category_anova["significant"] else "not significant",
    )

    cards = _stat_cards(
        [(s["model"], f'{s["mean"]:.2f}% ±{s["std"]:.2f} (n={s["count"]})') for s in model_stats]
    )
    anova_rows = [
        (
            name,
            f'{a["f_statistic"]:.4f}',
            a["p_value"],
            "Significant" if a["significant"] else "Not significant",
        )
        for name, a in (("Models", model_anova), ("Categories", category_anova))
    ]
    verdict = (
        "Inter-model differences are statistically significant: the FSM score "
        "differentiates the generating models."
        if model_anova["significant"]
        else "The F statistic shows some differences between models, but they are "
        "not statistically significant."
    )
    body = (
        cards
        + _table(
            ["Model", "n", "Mean", "Median", "Std", "Min", "Max", "CV %"],
            [
                (
                    s["model"],
                    s["count"],
                    f'{s["mean"]:.2f}',
                    f'{s["median"]:.2f}',
                    f'{s["std"]:.2f}',
                    f'{s["min"]:.2f}',
                    f'{s["max"]:.2f}',
                    f'{s["cv"]:.2f}',
                )
                for s in model_stats
            ],
        )
        + _chart("modelChart", "Mean FSM Score by Model")
        + "<h2>Statistical Significance Test (ANOVA)</h2>"
        + _table(["Grouping", "F", "p-value", "Conclusion"], anova_rows)
        + f'<div class="conclusion"><p>{html.escape(verdict)}</p></div>'
        + "<h2>Scores by Concept Category</h2>"
        + "".join(
            f"<h3>{html.escape(category)}</h3>"
            + _chart("category-" + "-".join(category.split()), category)
            for category in category_means
        )
    )
    data = {
        "models": [{"name": s["model"], "mean": s["mean"], "std": s["std"]} for s in model_stats],
        "categories": category_means,
    }
    page = render_page(
        "FSM Differentiation Analysis",
        workspace_dir.name,
        body,
        data,
        DIFFERENTIATION_SCRIPT,
    )
    path = _write_report(workspace_dir / DIFFERENTIATION_REPORT_FILE, page)
    return {
        "models": model_stats,
        "categories": category_means,
        "model_anova": model_anova,
        "category_anova": category_anova,
        "report_path": str(path),
    }
