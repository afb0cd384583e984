# linkwalk/report/json_report.py

"""
JSON report for LinkWalk.

Serialises one or more TraversalResult objects to a file.
"""
import json
from pathlib import Path
from typing import Iterable, List, Union

from linkwalk.crawler.models import TraversalResult

ResultsT = Union[TraversalResult, Iterable[TraversalResult]]


def as_list(results: ResultsT) -> List[TraversalResult]:
    if isinstance(results, TraversalResult):
        return [results]
    return list(results)


def render_json(results: ResultsT, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *results* as JSON at *output_path*.

    A single result is written as an object, several as an array.

    Example:
    ```python
    from linkwalk.report.json_report import render_json
    report_path = render_json(result, 'reports/crawl.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    items = [r.to_dict() for r in as_list(results)]
    data = items[0] if isinstance(results, TraversalResult) else items

    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)

    return output
