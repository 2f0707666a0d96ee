"""
Модуль для загрузки и валидации конфигурации ContactScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from contact_scout.parser.emails import LIKELY_REAL_TLDS
from contact_scout.utils import BYPASS_DOMAINS, REDIRECT_PATTERNS

DEFAULT_USER_AGENTS: Tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/15.0 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:90.0) Gecko/20100101 Firefox/90.0",
)


class Timeouts(BaseModel):
    """Бюджеты времени (секунды) для каждой точки вызова."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    redirect_probe: float = Field(5.0, gt=0, description="Ручной GET без следования редиректам.")
    wrapper_page: float = Field(8.0, gt=0, description="Загрузка страницы-обёртки площадки.")
    canonical: float = Field(8.0, gt=0, description="Поиск канонического URL.")
    main_page: float = Field(15.0, gt=0, description="Главная страница сайта.")
    secondary_page: float = Field(5.0, gt=0, description="Страницы contact/about.")
    body_read: float = Field(10.0, gt=0, description="Чтение тела ответа.")
    parse_phase: float = Field(15.0, gt=0, description="Полная фаза разбора и извлечения.")


class ListingConfig(BaseModel):
    """Параметры источника листинга (GraphQL API)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    endpoint: str = Field("https://api.producthunt.com/v2/api/graphql", min_length=1)
    tokens: List[str] = Field(default_factory=list, description="Ключи API для ротации.")
    days_back: int = Field(1, ge=1, description="Окно просмотра назад (дней).")
    page_size: int = Field(50, ge=1, le=100, description="Размер страницы.")
    max_pages: int = Field(10, ge=1, description="Жесткий лимит страниц за один обход.")
    page_delay: float = Field(1.0, ge=0, description="Пауза между страницами (секунд).")
    max_retries: int = Field(3, ge=1, description="Попыток загрузки страницы листинга.")
    retry_backoff: float = Field(5.0, ge=0, description="Линейная пауза между попытками (секунд).")


class ScoutConfig(BaseModel):
    """Конфигурация краулера контактов и движка опроса."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeouts: Timeouts = Field(default_factory=Timeouts)
    concurrency_limit: int = Field(5, ge=1, description="Размер пачки параллельных обходов.")
    batch_delay: float = Field(1.0, ge=0, description="Пауза между пачками (секунд).")
    max_to_process: int = Field(10, ge=1, description="Лимит для последовательного режима.")
    max_external_links: int = Field(10, ge=0, description="Лимит внешних ссылок в записи.")
    retry_times: int = Field(0, ge=0, description="Повторы при сетевых ошибках.")
    max_body_chars: int = Field(2_000_000, ge=1, description="Сколько символов HTML разбирать с одной страницы.")
    user_agents: Tuple[str, ...] = Field(DEFAULT_USER_AGENTS, description="Пул User-Agent.")
    bypass_domains: Tuple[str, ...] = Field(BYPASS_DOMAINS, description="Домены без обхода.")
    redirect_patterns: Tuple[str, ...] = Field(REDIRECT_PATTERNS, description="Шаблоны редирект-обёрток.")
    platform_host: str = Field("producthunt.com", min_length=1, description="Хост площадки листинга.")
    likely_real_tlds: Tuple[str, ...] = Field(LIKELY_REAL_TLDS, description="Мягко проверяемые TLD.")
    structured_data_max_depth: int = Field(32, ge=1, description="Глубина обхода JSON-LD.")
    seen_ids_max: int = Field(1000, ge=1, description="Порог обрезки множества ID.")
    seen_ids_trim_to: int = Field(500, ge=0, description="Размер после обрезки.")
    min_interval: float = Field(30.0, ge=0, description="Минимальный интервал между проверками.")
    notify_stagger: float = Field(0.2, ge=0, description="Пауза между уведомлениями.")
    state_file: str = Field("scraper-state.json", min_length=1)
    max_stored_items: int = Field(1000, ge=1, description="Сколько обогащённых элементов хранить в состоянии.")
    webhook_url: str = Field("", description="Адрес вебхука для уведомлений.")
    listing: ListingConfig = Field(default_factory=ListingConfig)

    @field_validator("user_agents")
    def _non_empty_agents(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = tuple(a.strip() for a in v if a and a.strip())
        if not cleaned:
            raise ValueError("user_agents must contain at least one entry")
        return cleaned

    @field_validator("bypass_domains", "likely_real_tlds", mode="before")
    def _lower_entries(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return tuple(str(x).strip().lower() for x in v if str(x).strip())
        return v

    @model_validator(mode="after")
    def _check_trim_bounds(self) -> ScoutConfig:
        if self.seen_ids_trim_to >= self.seen_ids_max:
            raise ValueError("seen_ids_trim_to must be smaller than seen_ids_max")
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> ScoutConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект ScoutConfig.
    Без пути использует configs/default.yaml, если он есть, иначе значения по умолчанию.
    При отсутствии явно указанного файла бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            return ScoutConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    try:
        return ScoutConfig(**data)
    except ValidationError:
        raise


__all__ = ["ScoutConfig", "Timeouts", "ListingConfig", "DEFAULT_USER_AGENTS", "load_config"]
