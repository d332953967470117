# order_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта OrderScout.

Сериализация объекта BatchReport в файл.
"""
from pathlib import Path

from order_scout.aggregator import BatchReport


def render_json(report: BatchReport, output_path: Path | str) -> Path:
    """
    Сохраняет отчёт report в формате JSON по указанному пути.

    :param report: объект BatchReport с результатами запуска
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=True), encoding="utf-8")
    return output
