"""
Главный модуль генератора - чистый интерфейс
"""

import logging
from typing import Any, Dict, Optional, Union

from .config import GeneratorConfig
from .internal.converter.model_converter import ModelConverter
from .internal.generator.python_generator import PythonGenerator
from .internal.parser.swagger import SwaggerParser
from .internal.types.code_model import CodeModel
from .internal.types.document import Document
from .internal.types.models import Project

logger = logging.getLogger(__name__)

Source = Union[str, bytes, Dict[str, Any]]


class ApiClientGenerator:
    """Чистый интерфейс для генерации API клиентов: документ -> {имя файла: текст}"""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        parser: Optional[SwaggerParser] = None,
    ):
        self.config = config or GeneratorConfig()
        self.parser = parser or SwaggerParser()

    def parse(self, data: Source) -> Document:
        return self.parser.parse(data)

    def convert(self, document: Document) -> CodeModel:
        return ModelConverter(self.config).convert(document)

    def generate_project(self, data: Source) -> Project:
        """Генерация проекта клиента"""
        model = self.convert(self.parse(data))
        return PythonGenerator().generate_project(model)

    def generate(self, data: Source) -> Dict[str, str]:
        return self.generate_from_document(self.parse(data))

    def generate_from_document(self, document: Document) -> Dict[str, str]:
        model = self.convert(document)
        files = PythonGenerator().generate_all(model)
        logger.info(
            "Generated %d files for %s (%d models, %d methods)",
            len(files),
            model.client_name,
            len(model.models),
            len(model.methods),
        )
        return files

    async def generate_from_source(self, source: str) -> Dict[str, str]:
        """JSON текст, URL или путь к файлу"""
        document = await self.parser.load(source)
        return self.generate_from_document(document)


def generate_client(data: Source, config: Optional[GeneratorConfig] = None) -> Dict[str, str]:
    """Создание API клиента из OpenAPI спецификации"""
    return ApiClientGenerator(config).generate(data)
