"""
Тесты парсера OpenAPI / Swagger документов
"""

import asyncio
import json

import httpx
import pytest

from swagger_codegen import can_load, can_parse, parse
from swagger_codegen.errors import (
    InvalidDocumentError,
    MalformedInputError,
    SourceUnavailableError,
)
from swagger_codegen.internal.parser.swagger import (
    RULE_PATHS,
    RULE_TITLE,
    RULE_VERSION,
    SourceKind,
    SwaggerParser,
    detect_source,
)
from swagger_codegen.internal.types.document import ParameterLocation

MINIMAL = {
    "openapi": "3.0.0",
    "info": {"title": "Minimal API", "version": "1.0.0"},
    "paths": {"/ping": {"get": {"responses": {"200": {"description": "OK"}}}}},
}


class TestParse:
    """Тесты разбора содержимого документа"""

    def test_round_trip(self, pet_store):
        """Тест: title, version и число путей сохраняются"""
        document = parse(json.dumps(pet_store))

        assert document.info.title == "Pet Store"
        assert document.info.version == "1.0.0"
        assert len(document.paths) == 2
        assert set(document.paths["/pets"]) == {"get", "post"}

    def test_bytes_with_bom(self):
        """Тест байтов UTF-8 с BOM"""
        document = parse(b"\xef\xbb\xbf" + json.dumps(MINIMAL).encode())

        assert document.openapi == "3.0.0"

    def test_dict_input(self):
        """Тест уже загруженного словаря"""
        assert parse(MINIMAL).info.title == "Minimal API"

    @pytest.mark.parametrize("data", [None, "", "   \n\t", b"", b"  "])
    def test_empty_input(self, data):
        """Тест пустого входа"""
        with pytest.raises(MalformedInputError):
            parse(data)

    @pytest.mark.parametrize("data", ["{not json", "openapi: 3.0.0", b"\xff\xfe\x00"])
    def test_not_json(self, data):
        """Тест входа, который не является JSON"""
        with pytest.raises(MalformedInputError):
            parse(data)

    def test_missing_title(self):
        """Тест отсутствия info.title"""
        document = dict(MINIMAL, info={"version": "1.0.0"})

        with pytest.raises(InvalidDocumentError) as exc_info:
            parse(json.dumps(document))

        assert RULE_TITLE in str(exc_info.value)
        assert exc_info.value.errors == [RULE_TITLE]

    def test_missing_paths(self):
        """Тест отсутствия путей"""
        document = dict(MINIMAL, paths={})

        with pytest.raises(InvalidDocumentError) as exc_info:
            parse(json.dumps(document))

        assert RULE_PATHS in str(exc_info.value)

    def test_missing_title_and_paths(self):
        """Тест: перечисляются все нарушенные правила"""
        document = {"openapi": "3.0.0", "info": {"title": ""}}

        with pytest.raises(InvalidDocumentError) as exc_info:
            parse(json.dumps(document))

        message = str(exc_info.value)
        assert RULE_TITLE in message
        assert RULE_PATHS in message
        assert RULE_VERSION not in message

    def test_missing_version(self):
        """Тест отсутствия версии"""
        document = {key: value for key, value in MINIMAL.items() if key != "openapi"}

        with pytest.raises(InvalidDocumentError) as exc_info:
            parse(json.dumps(document))

        assert exc_info.value.errors == [RULE_VERSION]

    def test_json_array(self):
        """Тест: JSON массив нарушает все правила"""
        with pytest.raises(InvalidDocumentError) as exc_info:
            parse("[]")

        assert exc_info.value.errors == [RULE_VERSION, RULE_TITLE, RULE_PATHS]

    def test_wrong_structure(self):
        """Тест неверной структуры документа"""
        with pytest.raises(InvalidDocumentError):
            parse(json.dumps(dict(MINIMAL, paths=["/ping"])))

    def test_wrong_structure_lists_rules(self):
        """Тест: при неверной структуре перечисляются и нарушенные правила"""
        with pytest.raises(InvalidDocumentError) as exc_info:
            parse('{"openapi": "3.0.0", "paths": {"/a": null}}')

        errors = exc_info.value.errors
        assert errors[0] == RULE_TITLE
        assert RULE_VERSION not in errors
        assert RULE_PATHS not in errors
        assert errors[-1].startswith("Document structure is invalid")
        assert RULE_TITLE in str(exc_info.value)

    def test_wrong_info_and_empty_paths(self):
        """Тест: info не объект и пути пусты"""
        with pytest.raises(InvalidDocumentError) as exc_info:
            parse('{"OpenAPI": "3.0.0", "info": "x", "paths": {}}')

        message = str(exc_info.value)
        assert exc_info.value.errors[:2] == [RULE_TITLE, RULE_PATHS]
        assert RULE_VERSION not in message

    def test_case_insensitive_field_names(self):
        """Тест сопоставления имен полей без учета регистра"""
        document = parse(
            json.dumps(
                {
                    "OpenAPI": "3.0.1",
                    "Info": {"Title": "Cased", "Version": "2"},
                    "Paths": {
                        "/items": {
                            "GET": {
                                "OperationId": "listItems",
                                "Responses": {"200": {"Description": "OK"}},
                            }
                        }
                    },
                }
            )
        )

        assert document.openapi == "3.0.1"
        assert document.info.title == "Cased"
        assert document.paths["/items"]["get"].operation_id == "listItems"

    def test_numeric_version(self):
        """Тест числовой версии"""
        document = parse(json.dumps(dict(MINIMAL, openapi=3.1)))

        assert document.openapi == "3.1"

    def test_non_operation_keys_ignored(self):
        """Тест: summary и parameters элемента пути не являются операциями"""
        document = parse(
            json.dumps(
                dict(
                    MINIMAL,
                    paths={
                        "/ping": {
                            "summary": "Ping",
                            "get": {"responses": {"200": {"description": "OK"}}},
                        }
                    },
                )
            )
        )

        assert list(document.paths["/ping"]) == ["get"]


class TestParameters:
    """Тесты разрешения параметров"""

    def test_path_level_parameters_inherited(self):
        """Тест наследования параметров пути и перекрытия на уровне операции"""
        document = parse(
            dict(
                MINIMAL,
                paths={
                    "/pets/{petId}": {
                        "parameters": [
                            {"name": "petId", "in": "path", "required": True},
                            {"name": "verbose", "in": "query", "description": "path"},
                        ],
                        "get": {
                            "parameters": [
                                {"name": "verbose", "in": "query", "description": "op"}
                            ],
                            "responses": {"200": {"description": "OK"}},
                        },
                    }
                },
            )
        )

        parameters = document.paths["/pets/{petId}"]["get"].parameters
        assert [p.name for p in parameters] == ["petId", "verbose"]
        assert parameters[1].description == "op"

    def test_parameter_reference(self):
        """Тест $ref на параметр из components"""
        document = parse(
            dict(
                MINIMAL,
                paths={
                    "/pets": {
                        "get": {
                            "parameters": [{"$ref": "#/components/parameters/Limit"}],
                            "responses": {"200": {"description": "OK"}},
                        }
                    }
                },
                components={
                    "parameters": {
                        "Limit": {
                            "name": "limit",
                            "in": "query",
                            "schema": {"type": "integer"},
                        }
                    }
                },
            )
        )

        parameter = document.paths["/pets"]["get"].parameters[0]
        assert parameter.name == "limit"
        assert parameter.location == ParameterLocation.QUERY

    def test_unresolved_parameter_reference_dropped(self):
        """Тест неразрешенной ссылки на параметр"""
        document = parse(
            dict(
                MINIMAL,
                paths={
                    "/pets": {
                        "get": {
                            "parameters": [{"$ref": "#/components/parameters/Nope"}],
                            "responses": {"200": {"description": "OK"}},
                        }
                    }
                },
            )
        )

        assert document.paths["/pets"]["get"].parameters == []

    def test_request_body_and_response_references(self):
        """Тест $ref на тело запроса и ответ"""
        pet = {"$ref": "#/components/schemas/Pet"}
        document = parse(
            dict(
                MINIMAL,
                paths={
                    "/pets": {
                        "post": {
                            "requestBody": {"$ref": "#/components/requestBodies/NewPet"},
                            "responses": {"200": {"$ref": "#/components/responses/PetOk"}},
                        }
                    }
                },
                components={
                    "requestBodies": {
                        "NewPet": {"content": {"application/json": {"schema": pet}}}
                    },
                    "responses": {
                        "PetOk": {
                            "description": "OK",
                            "content": {"application/json": {"schema": pet}},
                        }
                    },
                },
            )
        )

        operation = document.paths["/pets"]["post"]
        assert operation.request_body.content["application/json"].schema_.ref == pet["$ref"]
        assert operation.responses["200"].content["application/json"].schema_.ref == pet["$ref"]


class TestSwagger2:
    """Тесты нормализации Swagger 2.0"""

    DOCUMENT = {
        "swagger": "2.0",
        "info": {"title": "Legacy", "version": "1"},
        "host": "api.example.com",
        "basePath": "/v1",
        "schemes": ["http"],
        "paths": {
            "/pets": {
                "post": {
                    "parameters": [
                        {
                            "name": "body",
                            "in": "body",
                            "required": True,
                            "schema": {"$ref": "#/definitions/Pet"},
                        },
                        {"name": "dryRun", "in": "query", "type": "boolean"},
                    ],
                    "responses": {
                        "200": {"description": "OK", "schema": {"$ref": "#/definitions/Pet"}}
                    },
                }
            }
        },
        "definitions": {
            "Pet": {"type": "object", "properties": {"name": {"type": "string"}}}
        },
    }

    def test_definitions_folded(self):
        """Тест: definitions попадают в components.schemas"""
        document = parse(self.DOCUMENT)

        assert "Pet" in document.components.schemas

    def test_server_from_host(self):
        """Тест сервера из schemes/host/basePath"""
        document = parse(self.DOCUMENT)

        assert document.servers[0].url == "http://api.example.com/v1"

    def test_body_parameter_lifted(self):
        """Тест: параметр in=body становится телом запроса"""
        operation = parse(self.DOCUMENT).paths["/pets"]["post"]

        media = operation.request_body.content["application/json"]
        assert media.schema_.ref == "#/definitions/Pet"
        assert operation.request_body.required is True

    def test_inline_parameter_type(self):
        """Тест типа параметра без schema"""
        operation = parse(self.DOCUMENT).paths["/pets"]["post"]

        assert operation.parameters[1].schema_.type == "boolean"

    def test_response_schema(self):
        """Тест schema ответа Swagger 2.0"""
        operation = parse(self.DOCUMENT).paths["/pets"]["post"]

        assert "application/json" in operation.responses["200"].content


class TestCanParse:
    """Тесты согласованности can_parse и parse"""

    @pytest.mark.parametrize(
        "data",
        [
            json.dumps(MINIMAL),
            json.dumps(MINIMAL).encode(),
            "",
            "   ",
            None,
            "{broken",
            "[]",
            "https://example.com/openapi.json",
            "/definitely/not/a/file.json",
            json.dumps({"openapi": "3.0.0"}),
            json.dumps(dict(MINIMAL, paths=["/ping"])),
        ],
    )
    def test_agrees_with_parse(self, data):
        """Тест: can_parse истинно тогда и только тогда, когда parse не падает"""
        try:
            parse(data)
            accepted = True
        except (MalformedInputError, InvalidDocumentError):
            accepted = False

        assert can_parse(data) is accepted


class TestCanLoad:
    """Тесты согласованности can_load и load для всех видов входа"""

    URL = "https://example.com/openapi.json"

    @staticmethod
    def make_parser(status=200, payload=MINIMAL):
        transport = httpx.MockTransport(lambda request: httpx.Response(status, json=payload))
        return SwaggerParser(transport=transport)

    @staticmethod
    async def accepted(parser, source):
        try:
            await parser.load(source)
        except (MalformedInputError, InvalidDocumentError, SourceUnavailableError):
            return False
        return True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind, status, payload, expected",
        [
            ("json", 200, MINIMAL, True),
            ("json", 200, {"openapi": "3.0.0"}, False),
            ("url", 200, MINIMAL, True),
            ("url", 404, MINIMAL, False),
            ("url", 200, {"info": {"title": "x"}}, False),
            ("file", 200, MINIMAL, True),
            ("file", 200, {"openapi": "3.0.0"}, False),
            ("unknown", 200, MINIMAL, False),
        ],
    )
    async def test_agrees_with_load(self, tmp_path, kind, status, payload, expected):
        """Тест: can_load истинно тогда и только тогда, когда load не падает"""
        parser = self.make_parser(status, payload)
        if kind == "json":
            source = json.dumps(payload)
        elif kind == "url":
            source = self.URL
        elif kind == "file":
            path = tmp_path / "openapi.json"
            path.write_text(json.dumps(payload))
            source = str(path)
        else:
            source = "not a source"

        assert await parser.can_load(source) is expected
        assert await self.accepted(parser, source) is expected

    @pytest.mark.asyncio
    async def test_file_path_is_not_content(self, tmp_path):
        """Тест: путь к файлу принимает can_load, но не can_parse"""
        path = tmp_path / "openapi.json"
        path.write_text(json.dumps(MINIMAL))

        assert await can_load(str(path)) is True
        assert can_parse(str(path)) is False


class TestDetectSource:
    """Тесты определения вида входа"""

    def test_json(self):
        """Тест JSON текста"""
        assert detect_source('  {"openapi": "3.0.0"}  ') == SourceKind.JSON
        assert detect_source(b"[1, 2]") == SourceKind.JSON

    def test_url(self):
        """Тест URL"""
        assert detect_source("https://example.com/openapi.json") == SourceKind.URL
        assert detect_source("http://localhost:8000/docs.json") == SourceKind.URL

    def test_file(self, tmp_path):
        """Тест существующего файла"""
        path = tmp_path / "openapi.json"
        path.write_text("{}")

        assert detect_source(str(path)) == SourceKind.FILE

    @pytest.mark.parametrize("value", [None, "", "ftp://example.com/x", "missing.json"])
    def test_unknown(self, value):
        """Тест нераспознанного входа"""
        assert detect_source(value) == SourceKind.UNKNOWN


class TestLoaders:
    """Тесты загрузки по URL и из файла"""

    URL = "https://example.com/openapi.json"

    @pytest.mark.asyncio
    async def test_parse_from_url(self, pet_store):
        """Тест загрузки по URL"""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=pet_store))

        document = await SwaggerParser(transport=transport).parse_from_url(self.URL)

        assert document.info.title == "Pet Store"

    @pytest.mark.asyncio
    async def test_injected_client(self):
        """Тест переданного снаружи HTTP клиента"""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=MINIMAL))

        async with httpx.AsyncClient(transport=transport) as client:
            document = await SwaggerParser(http_client=client).parse_from_url(self.URL)

        assert document.info.title == "Minimal API"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        """Тест статуса 404"""
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        with pytest.raises(SourceUnavailableError) as exc_info:
            await SwaggerParser(transport=transport).parse_from_url(self.URL)

        assert exc_info.value.source == self.URL
        assert "404" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_cause(self):
        """Тест сетевой ошибки: исходная причина сохраняется"""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceUnavailableError) as exc_info:
            await SwaggerParser(transport=httpx.MockTransport(handler)).parse_from_url(
                self.URL
            )

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.cause is exc_info.value.__cause__

    @pytest.mark.asyncio
    async def test_bad_content_is_not_unavailable(self):
        """Тест: полученный, но испорченный документ - ошибка содержимого"""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="oops"))

        with pytest.raises(MalformedInputError):
            await SwaggerParser(transport=transport).parse_from_url(self.URL)

    @pytest.mark.asyncio
    async def test_cancellation(self):
        """Тест отмены загрузки до разбора"""

        async def handler(request):
            await asyncio.sleep(10)
            return httpx.Response(200, json=MINIMAL)

        parser = SwaggerParser(transport=httpx.MockTransport(handler))
        task = asyncio.create_task(parser.parse_from_url(self.URL))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_parse_from_file(self, tmp_path, pet_store):
        """Тест загрузки из файла"""
        path = tmp_path / "openapi.json"
        path.write_text(json.dumps(pet_store))

        document = await SwaggerParser().parse_from_file(path)

        assert len(document.components.schemas) == 3

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        """Тест отсутствующего файла"""
        with pytest.raises(SourceUnavailableError) as exc_info:
            await SwaggerParser().parse_from_file(tmp_path / "missing.json")

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_load_dispatch(self, tmp_path):
        """Тест автоматического выбора источника"""
        path = tmp_path / "openapi.json"
        path.write_text(json.dumps(MINIMAL))
        parser = SwaggerParser()

        from_text = await parser.load(json.dumps(MINIMAL))
        from_file = await parser.load(str(path))

        assert from_text.info.title == from_file.info.title == "Minimal API"

    @pytest.mark.asyncio
    async def test_load_unknown(self):
        """Тест нераспознанного источника"""
        with pytest.raises(MalformedInputError):
            await SwaggerParser().load("not a source")
