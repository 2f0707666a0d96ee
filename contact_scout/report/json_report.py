# contact_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта ContactScout.

Сериализация списка обогащённых элементов в файл.
"""
import json
from pathlib import Path
from typing import Any, Iterable, Mapping


def render_json(items: Iterable[Mapping[str, Any]], output_path: Path | str) -> Path:
    """
    Сохраняет элементы с контактами в формате JSON по указанному пути.

    :param items: обогащённые элементы (результат process_batches/extract_contact_info)
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from contact_scout.report.json_report import render_json
    report_path = render_json(items, 'reports/contacts.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    rows = [dict(item) for item in items]
    data = {"count": len(rows), "items": rows}

    # Запись в файл с отступами и Unicode
    with output.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2, default=str)

    return output
