"""contact_scout.notifier: Уведомления о новых элементах через вебхук (формат Discord embed)."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from contact_scout.logger import logger

__all__: Sequence[str] = ("WebhookNotifier", "build_embed")

_FIELD_LIMIT = 1024
_TITLE_LIMIT = 256
_EMBED_COLOR = 0xDA552F


def _field(name: str, values: Sequence[str]) -> Dict[str, Any]:
    text = "\n".join(values) if values else "-"
    if len(text) > _FIELD_LIMIT:
        text = text[: _FIELD_LIMIT - 1] + "…"
    return {"name": name, "value": text, "inline": False}


def build_embed(item: Mapping[str, Any]) -> Dict[str, Any]:
    """Тело запроса вебхука для одного обогащённого элемента."""
    website = item.get("exactWebsiteUrl") or item.get("website") or ""
    fields: List[Dict[str, Any]] = [
        _field("Emails", list(item.get("emails") or [])),
        _field("Twitter", list(item.get("twitterHandles") or [])),
    ]
    socials = [*(item.get("linkedinLinks") or []), *(item.get("facebookLinks") or []), *(item.get("instagramLinks") or [])]
    if socials:
        fields.append(_field("Social", socials))
    if item.get("contactLinks"):
        fields.append(_field("Contact page", list(item["contactLinks"])))
    embed: Dict[str, Any] = {
        "title": str(item.get("name") or website or item.get("id", ""))[:_TITLE_LIMIT],
        "description": str(item.get("tagline") or ""),
        "color": _EMBED_COLOR,
        "fields": fields,
    }
    if website:
        embed["url"] = website
    if item.get("imageUrl"):
        embed["thumbnail"] = {"url": item["imageUrl"]}
    return {"embeds": [embed]}


class WebhookNotifier:
    """Отправляет JSON POST на вебхук; возвращает успех и никогда не бросает исключений."""

    def __init__(self, session: ClientSession, webhook_url: str, timeout: float = 10.0) -> None:
        self.session = session
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def notify(self, item: Mapping[str, Any]) -> bool:
        if not self.webhook_url:
            logger.debug("Вебхук не настроен, уведомление пропущено")
            return False
        try:
            async with self.session.post(
                self.webhook_url, json=build_embed(item), timeout=ClientTimeout(total=self.timeout)
            ) as resp:
                if resp.status >= 400:
                    logger.warning("Вебхук ответил HTTP %s для %s", resp.status, item.get("id"))
                    return False
                return True
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("Ошибка отправки уведомления для %s: %s", item.get("id"), exc)
            return False
