"""Исключения генератора"""

from typing import Iterable, List, Optional


class CodegenError(Exception):
    """Базовое исключение генератора"""


class MalformedInputError(CodegenError):
    """Пустой или нечитаемый (не JSON) входной документ"""


class InvalidDocumentError(CodegenError):
    """Документ десериализован, но нарушает обязательные правила"""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__(f"Invalid Swagger document: {', '.join(self.errors)}")


class SourceUnavailableError(CodegenError):
    """Не удалось получить документ по URL или из файла"""

    def __init__(self, source: str, message: str, cause: Optional[BaseException] = None):
        self.source = source
        self.message = message
        self.cause = cause
        super().__init__(f"{source}: {message}")


class ConfigurationError(CodegenError):
    """Нарушены правила конфигурации генератора"""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))
