"""
Генератор типизированных HTTP клиентов из OpenAPI 3.x / Swagger 2.0 (JSON)
"""

from typing import Any, Dict, Optional, Union

from .config import (
    AuthenticationConfig,
    AuthenticationLocation,
    AuthenticationType,
    GeneratorConfig,
)
from .errors import (
    CodegenError,
    ConfigurationError,
    InvalidDocumentError,
    MalformedInputError,
    SourceUnavailableError,
)
from .generator import ApiClientGenerator, generate_client
from .internal.converter.model_converter import ModelConverter
from .internal.generator.python_generator import PythonGenerator
from .internal.parser.swagger import SourceKind, SwaggerParser, detect_source
from .internal.types.code_model import CodeModel
from .internal.types.document import Document


def parse(data: Union[str, bytes, Dict[str, Any]]) -> Document:
    return SwaggerParser().parse(data)


def can_parse(data: Union[str, bytes, Dict[str, Any]]) -> bool:
    return SwaggerParser().can_parse(data)


async def can_load(source: str) -> bool:
    return await SwaggerParser().can_load(source)


def convert(document: Document, config: Optional[GeneratorConfig] = None) -> CodeModel:
    return ModelConverter(config).convert(document)


def generate_all(model: CodeModel) -> Dict[str, str]:
    return PythonGenerator().generate_all(model)


__all__ = [
    "ApiClientGenerator",
    "AuthenticationConfig",
    "AuthenticationLocation",
    "AuthenticationType",
    "CodeModel",
    "CodegenError",
    "ConfigurationError",
    "Document",
    "GeneratorConfig",
    "InvalidDocumentError",
    "MalformedInputError",
    "ModelConverter",
    "PythonGenerator",
    "SourceKind",
    "SourceUnavailableError",
    "SwaggerParser",
    "can_load",
    "can_parse",
    "convert",
    "detect_source",
    "generate_all",
    "generate_client",
    "parse",
]
