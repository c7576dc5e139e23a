"""Модели разобранного OpenAPI / Swagger документа"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


def find_key(data: Dict[str, Any], name: str) -> Optional[str]:
    """Поиск ключа словаря без учета регистра (точное совпадение приоритетнее)"""
    if name in data:
        return name
    lowered = name.lower()
    for key in data:
        if isinstance(key, str) and key.lower() == lowered:
            return key
    return None


class OpenApiModel(BaseModel):
    """Базовая модель: имена полей JSON сопоставляются без учета регистра"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _match_field_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        known = {}
        for name, field_info in cls.model_fields.items():
            alias = field_info.alias or name
            known[alias.lower()] = alias
            known.setdefault(name.lower(), alias)

        matched = {}
        # Сначала точные совпадения, затем остальные регистры; null = значение по умолчанию
        for key, value in data.items():
            if value is None:
                continue
            if key in known.values():
                matched[key] = value
        for key, value in data.items():
            if value is None or not isinstance(key, str):
                continue
            target = known.get(key.lower())
            if target is not None and target not in matched:
                matched[target] = value

        return matched


class Discriminator(OpenApiModel):
    property_name: str = Field(default="", alias="propertyName")
    mapping: Optional[Dict[str, str]] = None


class Schema(OpenApiModel):
    type: Optional[str] = None
    format: Optional[str] = None
    description: Optional[str] = None
    ref: Optional[str] = Field(default=None, alias="$ref")
    properties: Optional[Dict[str, "Schema"]] = None
    required: Optional[List[str]] = None
    items: Optional["Schema"] = None
    enum: Optional[List[Any]] = None
    one_of: Optional[List["Schema"]] = Field(default=None, alias="oneOf")
    any_of: Optional[List["Schema"]] = Field(default=None, alias="anyOf")
    all_of: Optional[List["Schema"]] = Field(default=None, alias="allOf")
    discriminator: Optional[Discriminator] = None

    @field_validator("type", mode="before")
    @classmethod
    def _collapse_type_list(cls, value):
        # OpenAPI 3.1: type: ["string", "null"]
        if isinstance(value, list):
            non_null = [item for item in value if item != "null"]
            return non_null[0] if non_null else None
        return value

    @field_validator("required", mode="before")
    @classmethod
    def _required_names_only(cls, value):
        # В свойствах Swagger 2.0 встречается required: true
        if isinstance(value, bool):
            return None
        return value


Schema.model_rebuild()


class ServerVariable(OpenApiModel):
    default: str = ""
    description: str = ""

    @field_validator("default", mode="before")
    @classmethod
    def _as_text(cls, value):
        return str(value)


class Server(OpenApiModel):
    url: str = ""
    description: str = ""
    variables: Dict[str, ServerVariable] = {}


class Info(OpenApiModel):
    title: str = ""
    version: str = ""
    description: str = ""

    @field_validator("title", "version", "description", mode="before")
    @classmethod
    def _as_text(cls, value):
        return str(value)


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"
    FORM_DATA = "formData"


class Parameter(OpenApiModel):
    name: str = ""
    location: Optional[ParameterLocation] = Field(default=None, alias="in")
    required: bool = False
    description: str = ""
    schema_: Optional[Schema] = Field(default=None, alias="schema")
    ref: Optional[str] = Field(default=None, alias="$ref")

    # Swagger 2.0: описание типа прямо в параметре
    type: Optional[str] = None
    format: Optional[str] = None
    items: Optional[Schema] = None
    enum: Optional[List[Any]] = None

    @model_validator(mode="after")
    def _inline_schema(self) -> "Parameter":
        if self.schema_ is None and self.type:
            self.schema_ = Schema(
                type=self.type, format=self.format, items=self.items, enum=self.enum
            )
        return self


class MediaType(OpenApiModel):
    schema_: Optional[Schema] = Field(default=None, alias="schema")


class RequestBody(OpenApiModel):
    content: Dict[str, MediaType] = {}
    required: bool = False
    description: str = ""
    ref: Optional[str] = Field(default=None, alias="$ref")


class Response(OpenApiModel):
    description: str = ""
    content: Dict[str, MediaType] = {}
    ref: Optional[str] = Field(default=None, alias="$ref")
    # Swagger 2.0
    schema_: Optional[Schema] = Field(default=None, alias="schema")

    @model_validator(mode="after")
    def _schema_as_content(self) -> "Response":
        if self.schema_ is not None and not self.content:
            self.content = {"application/json": MediaType(schema=self.schema_)}
        return self


class Operation(OpenApiModel):
    tags: List[str] = []
    summary: str = ""
    description: str = ""
    operation_id: str = Field(default="", alias="operationId")
    parameters: List[Parameter] = []
    request_body: Optional[RequestBody] = Field(default=None, alias="requestBody")
    responses: Dict[str, Response] = {}
    security: List[Dict[str, List[str]]] = []

    @field_validator("responses", mode="before")
    @classmethod
    def _status_codes_as_text(cls, value):
        if isinstance(value, dict):
            return {str(code): response for code, response in value.items()}
        return value


class SecurityScheme(OpenApiModel):
    type: str = ""
    scheme: str = ""
    bearer_format: str = Field(default="", alias="bearerFormat")
    location: str = Field(default="", alias="in")
    name: str = ""


class Components(OpenApiModel):
    schemas: Dict[str, Schema] = {}
    parameters: Dict[str, Parameter] = {}
    responses: Dict[str, Response] = {}
    request_bodies: Dict[str, RequestBody] = Field(default={}, alias="requestBodies")
    security_schemes: Dict[str, SecurityScheme] = Field(
        default={}, alias="securitySchemes"
    )


class Document(OpenApiModel):
    openapi: str = ""
    swagger: str = ""
    info: Info = Field(default_factory=Info)
    servers: List[Server] = []
    paths: Dict[str, Dict[str, Operation]] = {}
    components: Components = Field(default_factory=Components)

    # Swagger 2.0
    definitions: Dict[str, Schema] = {}
    parameters: Dict[str, Parameter] = {}
    responses: Dict[str, Response] = {}
    security_definitions: Dict[str, SecurityScheme] = Field(
        default={}, alias="securityDefinitions"
    )
    host: str = ""
    base_path: str = Field(default="", alias="basePath")
    schemes: List[str] = []

    @field_validator("openapi", "swagger", mode="before")
    @classmethod
    def _version_as_text(cls, value):
        return str(value)

    @field_validator("paths", mode="before")
    @classmethod
    def _collect_operations(cls, value):
        """Оставляет только HTTP методы, параметры пути наследуются операциями"""
        if not isinstance(value, dict):
            return value

        paths = {}
        for path, item in value.items():
            if not isinstance(item, dict):
                paths[path] = item
                continue

            shared_key = find_key(item, "parameters")
            shared = item.get(shared_key) if shared_key else None
            shared = shared if isinstance(shared, list) else []

            operations = {}
            for key, operation in item.items():
                verb = key.lower() if isinstance(key, str) else key
                if verb not in HTTP_METHODS or not isinstance(operation, dict):
                    continue

                operation = dict(operation)
                own_key = find_key(operation, "parameters")
                own = operation.pop(own_key, None) if own_key else None
                own = own if isinstance(own, list) else []
                operation["parameters"] = shared + own
                operations[verb] = operation

            paths[path] = operations
        return paths

    @model_validator(mode="after")
    def _fold_swagger2(self) -> "Document":
        for name, schema in self.definitions.items():
            self.components.schemas.setdefault(name, schema)
        for name, parameter in self.parameters.items():
            self.components.parameters.setdefault(name, parameter)
        for name, response in self.responses.items():
            self.components.responses.setdefault(name, response)
        for name, scheme in self.security_definitions.items():
            self.components.security_schemes.setdefault(name, scheme)

        if not self.servers and self.host:
            scheme = self.schemes[0] if self.schemes else "https"
            self.servers = [Server(url=f"{scheme}://{self.host}{self.base_path}")]

        return self
