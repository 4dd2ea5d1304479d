"""Command line entry point: python -m vizbench <command>."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

import httpx

from .config import VizbenchConfig
from .errors import VizbenchError

ANALYSES = (
    "pass-rate",
    "scores",
    "model-similarity",
    "dimensions",
    "correlation",
    "differentiation",
)


def workspace_dir(config: VizbenchConfig, workspace: str) -> Path:
    """Resolve a workspace argument given as a directory path or a workspace name."""
    candidate = Path(workspace)
    if candidate.is_dir():
        return candidate
    from .workspace import WorkspaceStore

    return WorkspaceStore(config.workspace_path).path(workspace)


def _pct(value: float) -> str:
    return f"{value * 100:.2f}%"


# -- Commands ----------------------------------------------------------------


def cmd_serve(args: argparse.Namespace, config: VizbenchConfig) -> int:
    import anyio

    from .server import serve

    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    anyio.run(serve, config)
    return 0


def cmd_generate(args: argparse.Namespace, config: VizbenchConfig) -> int:
    from .pipeline import GenerationWorkflow

    def echo(token: str) -> None:
        sys.stderr.write(token)
        sys.stderr.flush()

    workflow = GenerationWorkflow(config, on_token=echo if args.stream else None)
    result = asyncio.run(workflow.run(args.topic, args.workspace, model=args.model))
    if not result.success:
        print(f"Generation failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Generated {result.result_id} in {result.elapsed:.2f}s")
    for path in (result.fsm_path, result.html_path, result.test_path):
        print(f"  {path}")
    return 0


def cmd_similarity(args: argparse.Namespace, config: VizbenchConfig) -> int:
    from .fsm import run_batch_similarity

    report = asyncio.run(
        run_batch_similarity(
            workspace_dir(config, args.workspace),
            concurrency=args.concurrency or config.similarity_concurrency,
            categories_path=args.categories,
        )
    )
    stats = report["stats"]
    print(
        f"{stats['success']}/{stats['total']} compared, {stats['unmatched']} unmatched, "
        f"{stats['failed']} failed, average similarity {_pct(stats['avgSimilarity'])}"
    )
    for band, count in stats["similarityDistribution"].items():
        print(f"  {band:<10} {count}")
    return 0


def cmd_evaluate(args: argparse.Namespace, config: VizbenchConfig) -> int:
    from .evaluation import VisualEvaluator

    evaluator = VisualEvaluator(config)
    if args.html_id:
        evaluation = asyncio.run(evaluator.evaluate_html_file(args.workspace, args.html_id))
        print(json.dumps(evaluation, indent=2, ensure_ascii=False))
        return 0

    results = asyncio.run(evaluator.evaluate_workspace(args.workspace))
    failed = [r for r in results if r["status"] != "success"]
    for result in results:
        if result["status"] == "success":
            print(f"  {result['file']}: {result['evaluation'].get('overall_score')}")
        else:
            print(f"  {result['file']}: error: {result['error']}")
    print(f"Evaluated {len(results) - len(failed)}/{len(results)} files")
    return 1 if failed and len(failed) == len(results) else 0


def cmd_run_tests(args: argparse.Namespace, config: VizbenchConfig) -> int:
    from .analysis import run_suites

    code = run_suites(workspace_dir(config, args.workspace), args.pytest_args)
    if code != 0:
        print(f"pytest exited with code {code}", file=sys.stderr)
        return 1
    return 0


def cmd_analyze(args: argparse.Namespace, config: VizbenchConfig) -> int:
    from .analysis import reports

    analyses: dict[str, Callable[[Path], dict]] = {
        "pass-rate": reports.analyze_pass_rates,
        "scores": reports.analyze_scores,
        "model-similarity": reports.analyze_model_similarity,
        "dimensions": reports.analyze_fsm_dimensions,
        "correlation": reports.analyze_correlation,
        "differentiation": reports.analyze_fsm_differentiation,
    }
    result = analyses[args.analysis](workspace_dir(config, args.workspace))

    if args.analysis in ("pass-rate", "scores"):
        print(f"Samples: {result['total']} ({result['source']})")
        print(f"Mean: {_pct(result['mean'])}  Median: {_pct(result['median'])}")
        print(f"Std. deviation: {_pct(result['std'])}")
        print(f"Normality: {_pct(result['normality_score'])}")
        print(reports.interpret_normality(result["normality_score"]))
        for test in result.get("low_pass_rate_tests", [])[:10]:
            print(f"  low: {test['fileName']:<50} {_pct(test['passRate'])}")
    elif args.analysis == "correlation":
        for dim, r in result["correlations"].items():
            print(f"FSM vs human {dim}: r = {r:.3f} ({reports.interpret_correlation(r)})")
    elif args.analysis == "differentiation":
        for row in result["models"]:
            print(f"  {row['model']:<25} {row['mean']:.2f} ± {row['std']:.2f} (n={row['count']})")
        anova = result["model_anova"]
        print(f"ANOVA F = {anova['f_statistic']:.4f}, p {anova['p_value']}")
    else:
        print(f"{len(result['models'])} models analyzed")
    print(f"Report: {result['report_path']}")
    return 0


def cmd_compare(args: argparse.Namespace, config: VizbenchConfig) -> int:
    from .analysis import compare_models

    result = compare_models(
        [workspace_dir(config, w) for w in args.workspaces],
        Path(args.output) if args.output else None,
    )
    print(f"{'Model':<25}{'n':<8}{'Mean':<10}{'Median':<10}Std Dev")
    print("-" * 70)
    for model in result["models"]:
        s = model["stats"]
        print(
            f"{model['name']:<25}{s['count']:<8}{_pct(s['mean']):<10}"
            f"{_pct(s['median']):<10}{_pct(s['std'])}"
        )
    print(f"Report: {result['report_path']}")
    return 0


# -- Parser ------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vizbench",
        description="Generate, test and evaluate interactive algorithm visualizations.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="Run the workspace API server")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("generate", help="Design, implement and test one visualization")
    p.add_argument("topic")
    p.add_argument("--workspace", default="default")
    p.add_argument("--model", default=None)
    p.add_argument("--stream", action="store_true", help="Echo model output as it arrives")
    p.set_defaults(func=cmd_generate)

    p = sub.add_parser("similarity", help="Score every FSM of a workspace against ideal FSMs")
    p.add_argument("workspace")
    p.add_argument("--concurrency", type=int, default=None)
    p.add_argument("--categories", type=Path, default=None, help="concept-categories.json")
    p.set_defaults(func=cmd_similarity)

    p = sub.add_parser("evaluate", help="Visually evaluate generated pages")
    p.add_argument("workspace")
    p.add_argument("html_id", nargs="?", default=None)
    p.set_defaults(func=cmd_evaluate)

    p = sub.add_parser("run-tests", help="Run a workspace's generated suites")
    p.add_argument("workspace")
    p.add_argument("pytest_args", nargs=argparse.REMAINDER)
    p.set_defaults(func=cmd_run_tests)

    p = sub.add_parser("analyze", help="Statistical analysis reports")
    p.add_argument("analysis", choices=ANALYSES)
    p.add_argument("workspace")
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("compare", help="Compare score distributions across workspaces")
    p.add_argument("workspaces", nargs="+")
    p.add_argument("--output", default=None)
    p.set_defaults(func=cmd_compare)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the vizbench command line."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = VizbenchConfig.from_env()
        return args.func(args, config)
    except (VizbenchError, ValueError, OSError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
