from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>AlleleSep Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>AlleleSep Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<table>
  <tr><th>BAM</th><td><code>{{ run.bam_path }}</code></td></tr>
  <tr><th>VCF</th><td><code>{{ run.vcf_path }}</code></td></tr>
  <tr><th>Genotype 1</th><td><code>{{ run.genotype1 }}</code></td></tr>
  <tr><th>Genotype 2</th><td><code>{{ run.genotype2 }}</code></td></tr>
  <tr><th>Chromosome names converted</th><td>{{ run.convert_chrom_names }}</td></tr>
  <tr><th>Runtime (s)</th><td>{{ "%.1f"|format(run.runtime_seconds) }}</td></tr>
</table>

<h2>Read assignments</h2>
<table>
  <tr><th>Total reads</th><td>{{ counts.reads_total }}</td></tr>
  <tr><th>Unmapped (ambiguous)</th><td>{{ counts.reads_unmapped }}</td></tr>
  <tr><th>Reads with informative sites</th><td>{{ counts.reads_with_evidence }}</td></tr>
  <tr><th>{{ run.genotype1 }}</th><td>{{ counts.class_var1 }}</td></tr>
  <tr><th>{{ run.genotype2 }}</th><td>{{ counts.class_var2 }}</td></tr>
  <tr><th>Ambiguous</th><td>{{ counts.class_ambiguous }}</td></tr>
  <tr><th>Conflicting</th><td>{{ counts.class_conflict }}</td></tr>
</table>

<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Assignment counts</h3>
    <img src="{{ plots.class_counts }}" alt="class counts">
  </div>
  <div class="card">
    <h3>Per contig</h3>
    <img src="{{ plots.contig_breakdown }}" alt="per-contig counts">
  </div>
  <div class="card">
    <h3>Informative sites per read</h3>
    <img src="{{ plots.informative_hist }}" alt="informative sites per read">
  </div>
</div>

<h2>Outputs</h2>
<ul>
  {% for label, path in run.outputs.items() %}
  <li><code>{{ path }}</code> ({{ label }})</li>
  {% endfor %}
  <li><code>summary.json</code> (machine-readable summary)</li>
</ul>

<h2>Interpretation notes</h2>
<ul>
  <li>Only sites where both genotypes are homozygous for different single bases are informative.</li>
  <li>Reads overlapping no informative site are ambiguous.</li>
  <li>A read is conflicting if it supports both genotypes, or shows a base matching neither at an informative site.</li>
</ul>

<hr>
<p class="small">AlleleSep {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    run: Dict[str, Any],
    plots: Dict[str, str],
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        run=run,
        counts=run.get("counts", {}),
        plots=plots,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    logger.debug("Wrote report to %s", out_path)
    return out_path
