"""
Удаление изображений товаров из внешнего объектного хранилища.
Best-effort: ошибка хранилища логируется и не мешает удалению товара.
"""
import logging

import httpx

from config import STORAGE_SERVICE_URL

logger = logging.getLogger(__name__)


async def delete_image(image_url: str) -> bool:
    """Попросить хранилище удалить файл по его URL. True, если хранилище подтвердило."""
    if not STORAGE_SERVICE_URL or not image_url:
        return False
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            r = await client.request(
                "DELETE", f"{STORAGE_SERVICE_URL}/files", params={"url": image_url}
            )
            r.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Failed to delete image {image_url}: {e}")
        return False
    logger.info(f"Image deleted from storage: {image_url}")
    return True
