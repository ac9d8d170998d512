"""Импорт товаров из Excel."""

from .excel_loader import ExcelImportError, ImportResult, import_products

__all__ = [
    "ExcelImportError",
    "ImportResult",
    "import_products",
]
