"""Shared constants for vizbench runtime defaults and thresholds.

This module is the single source of truth for default values that are consumed
across configuration loading, workspace access, similarity scoring and analysis.
"""

from __future__ import annotations

import re
from pathlib import Path

# Paths and networking defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_DEMO_BASE_URL = "http://127.0.0.1:5500"
# Project root is 3 levels up from this file: src/vizbench/constants.py -> repo/
_PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_WORKSPACE_ROOT = _PROJECT_ROOT / "workspace"
DEFAULT_RATE_LIMIT = 120
API_VERSION = "1.0.0"

# LLM defaults
DEFAULT_LLM_BASE_URL = "https://api.openai.com/v1"
DEFAULT_GENERATION_MODEL = "gpt-5-mini"
DEFAULT_VISION_MODEL = "gpt-4o-mini"
DEFAULT_LLM_TIMEOUT_SECONDS = 300.0
DEFAULT_LLM_MAX_CONCURRENT = 4
DESIGN_TEMPERATURE = 0.4
IMPLEMENTATION_TEMPERATURE = 0.3
TEST_TEMPERATURE = 0.3

# Batch similarity
DEFAULT_SIMILARITY_CONCURRENCY = 3

# Workspace layout
DATA_DIR = "data"
HTML_DIR = "html"
FSM_DIR = "fsm"
IDEAL_FSM_DIR = "ideal-fsm"
TESTS_DIR = "tests"
VISUALS_DIR = "visuals"
TEST_RESULTS_DIR = "test-results"
LEGACY_DATA_FILE = "data.json"
PLAYWRIGHT_RESULTS_FILE = "results.json"
JUNIT_RESULTS_FILE = "junit.xml"
SIMILARITY_RESULTS_FILE = "fsm-similarity-results.json"
HUMAN_EVALUATION_FILE = "human-evaluation-results.json"
CONCEPT_CATEGORIES_FILE = "concept-categories.json"
EVALUATION_SUFFIX = "_evaluation.json"

UUID_FILENAME_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}\.json$",
    re.IGNORECASE,
)
EMBEDDED_FSM_PATTERN = re.compile(
    r"<script[^>]*type=['\"]application/json['\"][^>]*>([\s\S]*?)</script>",
    re.IGNORECASE,
)

# FSM similarity weights and caps
STRUCTURAL_WEIGHT = 0.4
SEMANTIC_WEIGHT = 0.4
ISOMORPHISM_WEIGHT = 0.2
MAX_COMPLEXITY_SCORE = 10.0
SIGNIFICANT_COUNT_DIFFERENCE = 2
RECOMMENDATION_THRESHOLD = 0.5

# Similarity distribution bands (lower bounds)
EXCELLENT_THRESHOLD = 0.9
GOOD_THRESHOLD = 0.7
FAIR_THRESHOLD = 0.5
TOP_N = 5

# Visual evaluation
MAX_SCREENSHOTS_PER_CATEGORY = 2
PARSE_FAILURE_SCORE = 7.0

# Statistics
SCORE_BIN_SIZE = 0.1
CDF_STEP_PERCENT = 5
CHI_SQUARE_NORMALITY_SCALE = 30.0
ANOVA_SIGNIFICANCE_F = 2.5
ZSCORE_AMPLIFICATION = 2.5
ZSCORE_CLAMP = 3.0
NORMALIZED_RANGE = (15.0, 85.0)
LOW_PASS_RATE_THRESHOLD = 0.5

CHART_JS_CDN = "https://cdn.jsdelivr.net/npm/chart.js"

# Report interpretation cut-offs (chi-square critical values for df=9)
CHI_SQUARE_CRITICAL = 15.507
CHI_SQUARE_MARGINAL = 20.09
SYMMETRIC_SKEWNESS = 0.5
MESOKURTIC_KURTOSIS = 0.5
NORMALITY_STRONG = 0.8
NORMALITY_PARTIAL = 0.6
CORRELATION_STRONG = 0.7
CORRELATION_MODERATE = 0.4

# Report file names
PASS_RATE_REPORT_FILE = "pass-rate-analysis-report.html"
SCORE_REPORT_FILE = "score-analysis-report.html"
MODEL_COMPARISON_REPORT_FILE = "model-comparison-report.html"
MODEL_SIMILARITY_REPORT_FILE = "model-similarity-analysis.html"
FSM_DIMENSIONS_REPORT_FILE = "fsm-dimensions-analysis.html"
CORRELATION_REPORT_FILE = "correlation-analysis.html"
DIFFERENTIATION_REPORT_FILE = "fsm-differentiation-analysis.html"
