from jinja2 import Template
import json
from typing import Any, Dict

HTML_TMPL = r"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8"/>
  <title>API Checks Report</title>
  <style>
    body{font-family:Arial,Helvetica,sans-serif;margin:16px;color:#222}
    .summary{margin-bottom:20px;padding:12px;background:#f2f8ff;border:1px solid #cfe0ff}
    .check{border:1px solid #ddd;margin-bottom:12px;border-radius:6px;overflow:hidden}
    .ck-head{background:#eef6ff;padding:10px;cursor:pointer;display:flex;justify-content:space-between}
    .ck-body{display:none;padding:10px;background:#fff}
    .passed{color:green;font-weight:600}
    .failed{color:red;font-weight:700}
    .skipped{color:#b58900;font-weight:600}
    pre{background:#f7f7f7;padding:8px;border-radius:4px;overflow:auto}
    .meta{font-size:12px;color:#666}
  </style>
</head>
<body>
  <h1>API Checks Report</h1>
  <div class="summary">
    <div>Base URL: {{ report.base_url }}</div>
    <div>User: {{ report.username }} (token acquired: {{ report.token_acquired }})</div>
    <div>Checks: {{ report.totals.executed }} | Passed {{ report.totals.passed }}
      Failed {{ report.totals.failed }} Skipped {{ report.totals.skipped }}</div>
  </div>

  {% for c in report.checks %}
  <div class="check">
    <div class="ck-head" onclick="toggle('ck-{{ loop.index0 }}')">
      <div><strong>[{{ loop.index }}] {{ c.name }}</strong></div>
      <div>
        {% if c.duration_ms is not none %}<span class="meta">{{ c.duration_ms }} ms</span>{% endif %}
        <span class="{{ c.outcome }}">{{ c.outcome|upper }}</span>
      </div>
    </div>
    <div id="ck-{{ loop.index0 }}" class="ck-body">
      {% if c.url %}<div class="meta">Request: {{ c.method }} {{ c.url }}</div>{% endif %}
      {% if c.status_code is not none %}<div class="meta">Response: status {{ c.status_code }}</div>{% endif %}
      {% if c.message %}
      <div class="{{ c.outcome }}">{{ c.message }}</div>
      {% endif %}
      {% if c.response_snippet %}
      <div>Response Snippet: <pre>{{ c.response_snippet }}</pre></div>
      {% endif %}
    </div>
  </div>
  {% endfor %}

  <script>
    function toggle(id){
      var el = document.getElementById(id);
      if(!el) return;
      el.style.display = (el.style.display === 'none' || el.style.display === '') ? 'block' : 'none';
    }
  </script>
</body>
</html>
"""


def render_html_report(report: Dict[str, Any]) -> str:
    tmpl = Template(HTML_TMPL, autoescape=True)
    return tmpl.render(report=report)


def generate_html_report(report: Dict[str, Any], out_path: str):
    """
    report: the structure produced by runner.build_report:
      {
        "base_url":..., "username":..., "token_acquired":...,
        "totals": {executed, passed, failed, skipped},
        "checks": [ {name, outcome, message, status_code, method, url, response_snippet, duration_ms} ]
      }
    out_path: path to write HTML file
    """
    html = render_html_report(report)
    with open(out_path, "w", encoding="utf-8") as fh:
        fh.write(html)


def write_json_report(report: Dict[str, Any], out_path: str):
    with open(out_path, "w", encoding="utf-8") as fh:
        json.dump(report, fh, indent=2, ensure_ascii=False)
