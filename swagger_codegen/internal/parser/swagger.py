"""
Парсер OpenAPI 3.x / Swagger 2.0 документов (JSON)
"""

import asyncio
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from ...errors import InvalidDocumentError, MalformedInputError, SourceUnavailableError
from ..types.document import (
    Document,
    MediaType,
    Operation,
    Parameter,
    ParameterLocation,
    RequestBody,
    find_key,
)
from ..types.schema_resolver import ref_last_segment

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

RULE_VERSION = "Document must specify either 'openapi' or 'swagger' version"
RULE_TITLE = "Document must have an 'info' section with a title"
RULE_PATHS = "Document must have at least one path defined"


class SourceKind(str, Enum):
    JSON = "json"
    URL = "url"
    FILE = "file"
    UNKNOWN = "unknown"


def detect_source(value: Union[str, bytes, None]) -> SourceKind:
    """
    Определение вида входа: JSON текст, URL или путь к файлу.

    Порядок проверок фиксирован: скобки JSON, схема http(s), существование пути.
    """
    if value is None:
        return SourceKind.UNKNOWN
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8-sig")
        except UnicodeDecodeError:
            return SourceKind.UNKNOWN

    text = value.strip()
    if not text:
        return SourceKind.UNKNOWN

    if (text[0], text[-1]) in (("{", "}"), ("[", "]")):
        return SourceKind.JSON

    parsed = urlparse(text)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return SourceKind.URL

    try:
        if Path(text).exists():
            return SourceKind.FILE
    except (OSError, ValueError):
        pass

    return SourceKind.UNKNOWN


def _decode(data: Union[str, bytes, None]) -> str:
    if data is None:
        raise MalformedInputError("Input document is empty")
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedInputError(f"Input document is not UTF-8 text: {exc}") from exc
    if not data.strip():
        raise MalformedInputError("Input document is empty")
    return data


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"Input document is not valid JSON: {exc}") from exc


class SwaggerParser:
    """Парсер OpenAPI спецификации"""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.http_client = http_client
        self.transport = transport
        self.timeout = timeout

    def parse(self, data: Union[str, bytes, Dict[str, Any]]) -> Document:
        """
        Разбор содержимого документа (JSON текст, байты или уже загруженный dict).

        Raises:
            MalformedInputError: пустой вход или не JSON
            InvalidDocumentError: нарушены обязательные правила документа
        """
        raw = data if isinstance(data, dict) else _load_json(_decode(data))
        if not isinstance(raw, dict):
            # Не объект: ни одно из правил не выполнено
            raw = {}

        try:
            document = Document.model_validate(raw)
        except ValidationError as exc:
            # Правила проверяются и по исходному словарю, чтобы перечислить все нарушения
            raise InvalidDocumentError(
                self.validate_raw(raw) + [f"Document structure is invalid: {exc}"]
            ) from exc

        errors = self.validate(document)
        if errors:
            raise InvalidDocumentError(errors)

        self._resolve_references(document)
        logger.debug(
            "Parsed document %r: %d paths, %d schemas",
            document.info.title,
            len(document.paths),
            len(document.components.schemas),
        )
        return document

    def can_parse(self, data: Union[str, bytes, Dict[str, Any]]) -> bool:
        """То же, что parse, но без исключений"""
        try:
            self.parse(data)
        except (MalformedInputError, InvalidDocumentError):
            return False
        return True

    @staticmethod
    def validate(document: Document) -> List[str]:
        """Все нарушенные правила документа"""
        errors = []
        if not (document.openapi or document.swagger):
            errors.append(RULE_VERSION)
        if not document.info.title.strip():
            errors.append(RULE_TITLE)
        if not document.paths:
            errors.append(RULE_PATHS)
        return errors

    @staticmethod
    def validate_raw(raw: Dict[str, Any]) -> List[str]:
        """Те же правила по исходному JSON, когда структура документа неверна"""

        def value(data, name):
            if not isinstance(data, dict):
                return None
            key = find_key(data, name)
            return data.get(key) if key is not None else None

        errors = []
        if all(value(raw, name) in (None, "") for name in ("openapi", "swagger")):
            errors.append(RULE_VERSION)
        title = value(value(raw, "info"), "title")
        if title is None or not str(title).strip():
            errors.append(RULE_TITLE)
        if not value(raw, "paths"):
            errors.append(RULE_PATHS)
        return errors

    async def load(self, source: str) -> Document:
        """Разбор из JSON текста, URL или файла (вид определяется автоматически)"""
        kind = detect_source(source)
        if kind == SourceKind.JSON:
            return self.parse(source)
        if kind == SourceKind.URL:
            return await self.parse_from_url(source)
        if kind == SourceKind.FILE:
            return await self.parse_from_file(source)

        raise MalformedInputError(
            "Input is neither JSON content, an http(s) URL nor an existing file"
        )

    async def can_load(self, source: str) -> bool:
        """То же, что load, но без исключений (JSON текст, URL или путь к файлу)"""
        try:
            await self.load(source)
        except (MalformedInputError, InvalidDocumentError, SourceUnavailableError):
            return False
        return True

    async def parse_from_url(self, url: str) -> Document:
        content = await self.fetch_url(url)
        return self.parse(content)

    async def parse_from_file(self, path: Union[str, Path]) -> Document:
        content = await self.read_file(path)
        return self.parse(content)

    async def fetch_url(self, url: str) -> bytes:
        logger.info("Fetching OpenAPI document from %s", url)
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url)
                response.raise_for_status()
                return response.content

            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as exc:
            raise SourceUnavailableError(
                url, f"HTTP {exc.response.status_code}", cause=exc
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(url, str(exc) or type(exc).__name__, cause=exc) from exc

    @staticmethod
    async def read_file(path: Union[str, Path]) -> bytes:
        logger.info("Reading OpenAPI document from %s", path)
        try:
            return await asyncio.to_thread(Path(path).read_bytes)
        except OSError as exc:
            raise SourceUnavailableError(str(path), exc.strerror or str(exc), cause=exc) from exc

    def _resolve_references(self, document: Document):
        """Разрешение $ref параметров, тел запросов и ответов; тело Swagger 2.0"""
        components = document.components

        for path, operations in document.paths.items():
            for verb, operation in operations.items():
                parameters: Dict[Tuple[str, Any], Parameter] = {}
                for parameter in operation.parameters:
                    if parameter.ref:
                        resolved = components.parameters.get(ref_last_segment(parameter.ref))
                        if resolved is None:
                            logger.warning(
                                "Unresolved parameter reference %s in %s %s",
                                parameter.ref,
                                verb.upper(),
                                path,
                            )
                            continue
                        parameter = resolved

                    # Параметр операции перекрывает унаследованный от пути, позиция сохраняется
                    key = (parameter.name, parameter.location)
                    parameters[key] = parameter
                operation.parameters = list(parameters.values())

                body = operation.request_body
                if body is not None and body.ref:
                    operation.request_body = components.request_bodies.get(
                        ref_last_segment(body.ref)
                    )

                for code, response in list(operation.responses.items()):
                    if response.ref:
                        resolved = components.responses.get(ref_last_segment(response.ref))
                        if resolved is not None:
                            operation.responses[code] = resolved

                if operation.request_body is None:
                    self._lift_body_parameter(operation)

    @staticmethod
    def _lift_body_parameter(operation: Operation):
        for parameter in operation.parameters:
            if parameter.location == ParameterLocation.BODY and parameter.schema_:
                operation.request_body = RequestBody(
                    content={"application/json": MediaType(schema=parameter.schema_)},
                    required=parameter.required,
                    description=parameter.description,
                )
                return

