# File: linkwalk/report/html_report.py
"""linkwalk.report.html_report: HTML report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from linkwalk.report.json_report import ResultsT, as_list

TEMPLATE_NAME = "report.html.j2"


def render_html(
    results: ResultsT,
    template_dir: Union[Path, str],
    output_path: Union[Path, str],
) -> Path:
    """Render *results* through ``report.html.j2`` from *template_dir* and save the page.

    Args:
        results: one TraversalResult or a list of them.
        template_dir: directory holding the Jinja2 template.
        output_path: path of the HTML file to write.

    Returns:
        Path of the saved file.
    """
    template_dir = Path(template_dir)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {"results": [r.to_dict() for r in as_list(results)]}

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
