import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from ..utils.naming import to_pascal_case, unique_name
from .document import Schema

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIXES = ("#/components/schemas/", "#/definitions/")


def unescape_pointer(segment: str) -> str:
    """Раскодирование сегмента JSON Pointer (~1 -> /, ~0 -> ~)"""
    return segment.replace("~1", "/").replace("~0", "~")


def ref_last_segment(ref: str) -> str:
    return unescape_pointer(ref.rstrip("/").split("/")[-1])


class SchemaResolver:
    """Реестр именованных схем документа: имена, поиск по $ref, защита от циклов"""

    def __init__(self, schemas: Optional[Dict[str, Schema]] = None):
        self._schemas: Dict[str, Schema] = dict(schemas or {})
        self._stack: List[str] = []

        # Схемы, дающие одинаковое PascalCase имя, получают суффикс по порядку документа
        self._names: Dict[str, str] = {}
        used = set()
        for schema_name in self._schemas:
            clean = self.clean_name(schema_name)
            name = unique_name(clean, used)
            if name != clean:
                logger.warning(
                    "Schema %r renamed to %s: name %s is already taken",
                    schema_name,
                    name,
                    clean,
                )
            self._names[schema_name] = name

    @staticmethod
    def name_for_ref(ref: str) -> str:
        """Имя по ссылке без реестра: PascalCase последнего сегмента"""
        return to_pascal_case(ref_last_segment(ref))

    @staticmethod
    def clean_name(schema_name: str) -> str:
        return to_pascal_case(schema_name)

    @staticmethod
    def schema_key(ref: str) -> Optional[str]:
        """Имя схемы в реестре для внутренней ссылки"""
        for prefix in SCHEMA_REF_PREFIXES:
            if ref.startswith(prefix):
                return unescape_pointer(ref[len(prefix):])
        return None

    def name_of(self, schema_name: str) -> str:
        """Имя генерируемого типа для именованной схемы"""
        return self._names.get(schema_name) or self.clean_name(schema_name)

    def type_name(self, ref: str) -> str:
        """Имя генерируемого типа для ссылки"""
        key = self.schema_key(ref)
        if key is not None and key in self._names:
            return self._names[key]
        return self.name_for_ref(ref)

    def lookup(self, ref: str) -> Optional[Schema]:
        """Схема по внутренней ссылке; внешние и неизвестные ссылки -> None"""
        key = self.schema_key(ref)
        return self._schemas.get(key) if key is not None else None

    @contextmanager
    def resolving(self, ref: str) -> Iterator[Optional[Schema]]:
        """
        Переход по ссылке под защитой стека разрешения.

        Если ссылка уже разрешается выше по стеку (цикл), отдает None.
        """
        key = self.schema_key(ref) or ref
        if key in self._stack:
            logger.warning(
                "Cyclic reference %s (via %s), treated as untyped",
                ref,
                " -> ".join(self._stack),
            )
            yield None
            return

        self._stack.append(key)
        try:
            yield self.lookup(ref)
        finally:
            self._stack.pop()
