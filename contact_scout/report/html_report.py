# File: contact_scout/report/html_report.py
"""contact_scout.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    items: Iterable[Mapping[str, Any]],
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        items: обогащённые элементы с плоскими полями контактов.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория с Jinja2-шаблонами; по умолчанию шаблон пакета.

    Returns:
        Path до сохранённого HTML-файла.

    Пример:
    ```python
    from contact_scout.report.html_report import render_html
    html_path = render_html(items, 'reports/contacts.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    rows = [dict(item) for item in items]
    context: dict[str, Any] = {
        "items": rows,
        "total": len(rows),
        "with_email": sum(1 for r in rows if r.get("emails")),
        "with_twitter": sum(1 for r in rows if r.get("twitterHandles")),
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
