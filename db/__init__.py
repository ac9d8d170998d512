"""SQLite хранилища: боты, каталог товаров, история переписки, учёт токенов."""

from db.models import init_db

__all__ = ["init_db"]
