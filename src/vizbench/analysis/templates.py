"""HTML templates for the analysis reports.

Every report is one self-contained page: a shared shell, a body built by
:mod:`vizbench.analysis.reports`, and a static chart script that reads its
data from the ``REPORT`` global embedded as JSON.
"""

from string import Template

PAGE = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$title</title>
    <script src="$chart_js"></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: 'Times New Roman', Times, serif;
            background: #fff;
            color: #000;
            padding: 40px 20px;
            line-height: 1.5;
        }
        .container { max-width: 1200px; margin: 0 auto; }
        h1 { text-align: center; font-size: 1.8rem; margin-bottom: 6px; }
        h2 { font-size: 1.2rem; margin: 30px 0 12px; border-bottom: 2px solid #000; }
        .subtitle { text-align: center; color: #444; margin-bottom: 30px; }
        .stats-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(180px, 1fr));
            gap: 12px;
            margin-bottom: 24px;
        }
        .stat-card { border: 1px solid #000; padding: 12px; text-align: center; }
        .stat-label { font-size: 0.85rem; color: #444; }
        .stat-value { font-size: 1.4rem; font-weight: bold; }
        .chart-container { border: 1px solid #000; padding: 16px; margin-bottom: 24px; }
        .chart-title { font-weight: bold; text-align: center; margin-bottom: 8px; }
        .chart-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(420px, 1fr)); gap: 16px; }
        table { width: 100%; border-collapse: collapse; margin-bottom: 24px; }
        th, td { border: 1px solid #000; padding: 6px 10px; text-align: left; }
        th { background: #f0f0f0; }
        .bar { height: 10px; background: #333; }
        .analysis p { margin: 8px 0; }
        .conclusion { border: 2px solid #000; padding: 14px; margin-top: 20px; }
        .correlation-strong { font-weight: bold; }
        .correlation-moderate { font-style: italic; }
        .correlation-weak { color: #666; }
    </style>
</head>
<body>
    <div class="container">
        <h1>$title</h1>
        <p class="subtitle">$subtitle</p>
$body
    </div>
    <script>
        const REPORT = $data;
        Chart.defaults.font.family = "'Times New Roman', Times, serif";
        Chart.defaults.color = '#000';
$script
    </script>
</body>
</html>
"""
)

DISTRIBUTION_SCRIPT = """
        new Chart(document.getElementById('histogramChart'), {
            type: 'bar',
            data: {
                labels: REPORT.bins.map((b) => b.range),
                datasets: [{
                    label: 'Observed Distribution',
                    data: REPORT.bins.map((b) => b.count),
                    backgroundColor: 'rgba(0, 0, 0, 0.7)',
                }, {
                    label: 'Theoretical Normal Distribution',
                    data: REPORT.expected,
                    type: 'line',
                    borderColor: '#000',
                    borderDash: [5, 5],
                    fill: false,
                    tension: 0.4,
                }],
            },
            options: {
                scales: {
                    y: { beginAtZero: true, title: { display: true, text: 'Frequency' } },
                    x: { title: { display: true, text: 'Score Range (%)' } },
                },
            },
        });
        new Chart(document.getElementById('cdfChart'), {
            type: 'line',
            data: {
                labels: REPORT.cdf.labels,
                datasets: [{
                    label: 'Cumulative Distribution',
                    data: REPORT.cdf.values,
                    borderColor: '#000',
                    backgroundColor: 'rgba(0, 0, 0, 0.1)',
                    fill: true,
                    tension: 0.4,
                }],
            },
            options: {
                scales: {
                    y: { beginAtZero: true, max: 100, title: { display: true, text: 'Cumulative Percentage (%)' } },
                    x: { title: { display: true, text: 'Score (%)' } },
                },
            },
        });
"""

COMPARISON_SCRIPT = """
        const shades = REPORT.models.map((_, i, all) => {
            const level = Math.round((i / Math.max(1, all.length - 1)) * 160);
            return `rgb(${level}, ${level}, ${level})`;
        });
        new Chart(document.getElementById('distributionChart'), {
            type: 'bar',
            data: {
                labels: REPORT.labels,
                datasets: REPORT.models.map((m, i) => ({
                    label: m.name,
                    data: m.percentages,
                    backgroundColor: shades[i],
                })),
            },
            options: {
                scales: {
                    y: { beginAtZero: true, title: { display: true, text: 'Percentage of Files (%)' } },
                    x: { title: { display: true, text: 'Pass Rate Range (%)' } },
                },
            },
        });
        new Chart(document.getElementById('cdfChart'), {
            type: 'line',
            data: {
                labels: REPORT.cdfLabels,
                datasets: REPORT.models.map((m, i) => ({
                    label: m.name,
                    data: m.cdf,
                    borderColor: shades[i],
                    fill: false,
                    tension: 0.3,
                })),
            },
            options: {
                scales: {
                    y: { beginAtZero: true, max: 100, title: { display: true, text: 'Cumulative Percentage (%)' } },
                },
            },
        });
"""

MODEL_SIMILARITY_SCRIPT = """
        new Chart(document.getElementById('similarityChart'), {
            type: 'bar',
            data: {
                labels: REPORT.models,
                datasets: [
                    { label: 'Combined', data: REPORT.combined, backgroundColor: 'rgba(0, 0, 0, 0.8)' },
                    { label: 'Structural', data: REPORT.structural, backgroundColor: 'rgba(0, 0, 0, 0.55)' },
                    { label: 'Semantic', data: REPORT.semantic, backgroundColor: 'rgba(0, 0, 0, 0.35)' },
                    { label: 'Isomorphism', data: REPORT.isomorphism, backgroundColor: 'rgba(0, 0, 0, 0.15)' },
                ],
            },
            options: {
                scales: { y: { beginAtZero: true, max: 100, title: { display: true, text: 'Similarity (%)' } } },
            },
        });
"""

DIMENSIONS_SCRIPT = """
        new Chart(document.getElementById('radarChart'), {
            type: 'radar',
            data: {
                labels: REPORT.labels,
                datasets: REPORT.models.map((m, i) => ({
                    label: m.name,
                    data: m.values,
                    fill: false,
                    borderDash: i % 2 ? [5, 5] : [],
                })),
            },
            options: {
                scales: { r: { min: 0, max: 100 } },
            },
        });
"""

CORRELATION_SCRIPT = """
        new Chart(document.getElementById('modelChart'), {
            type: 'line',
            data: {
                labels: REPORT.models.map((m) => m.name),
                datasets: [
                    { label: 'FSM (normalized)', data: REPORT.models.map((m) => m.fsm), borderColor: '#000' },
                    { label: 'Human', data: REPORT.models.map((m) => m.human), borderColor: '#777', borderDash: [5, 5] },
                ],
            },
            options: { scales: { y: { min: 0, max: 100 } } },
        });
        for (const dim of REPORT.dimensions) {
            new Chart(document.getElementById('scatter-' + dim), {
                type: 'scatter',
                data: {
                    datasets: [{
                        label: 'FSM vs human ' + dim,
                        data: REPORT.pairs.map((p) => ({ x: p.fsm, y: p[dim] })),
                        backgroundColor: 'rgba(0, 0, 0, 0.6)',
                    }],
                },
                options: {
                    scales: {
                        x: { min: 0, max: 100, title: { display: true, text: 'FSM score' } },
                        y: { min: 0, max: 100, title: { display: true, text: 'Human score' } },
                    },
                },
            });
        }
"""

DIFFERENTIATION_SCRIPT = """
        new Chart(document.getElementById('modelChart'), {
            type: 'bar',
            data: {
                labels: REPORT.models.map((m) => m.name),
                datasets: [{
                    label: 'Mean FSM score',
                    data: REPORT.models.map((m) => m.mean),
                    backgroundColor: 'rgba(0, 0, 0, 0.7)',
                }],
            },
            options: { scales: { y: { beginAtZero: true, max: 100 } } },
        });
        for (const [category, rows] of Object.entries(REPORT.categories)) {
            const canvas = document.getElementById('category-' + category.replace(/\\s+/g, '-'));
            if (!canvas) continue;
            new Chart(canvas, {
                type: 'bar',
                data: {
                    labels: rows.map((r) => r.model),
                    datasets: [{ label: category, data: rows.map((r) => r.mean), backgroundColor: 'rgba(0, 0, 0, 0.5)' }],
                },
                options: { scales: { y: { beginAtZero: true, max: 100 } } },
            });
        }
"""
