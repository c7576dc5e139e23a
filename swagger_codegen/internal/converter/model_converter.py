"""
Преобразование разобранного документа в промежуточную модель кода
"""

import logging
import re
from typing import Dict, List, Optional

from ...config import GeneratorConfig
from ..types.code_model import (
    ApiMethod,
    ApiParameter,
    Authentication,
    CodeModel,
    ModelClass,
    ModelEnum,
    ModelProperty,
    TypeAlias,
    TypeKind,
    TypeRef,
)
from ..types.document import Document, Operation, ParameterLocation, Schema
from ..types.schema_resolver import SchemaResolver, ref_last_segment
from ..utils.naming import to_pascal_case

logger = logging.getLogger(__name__)

VERB_PREFIXES = {
    "get": "Get",
    "post": "Create",
    "put": "Update",
    "patch": "Update",
    "delete": "Delete",
}

_SERVER_VARIABLE = re.compile(r"\{([^}]+)\}")

NOT_METHOD_PARAMETERS = (ParameterLocation.BODY, ParameterLocation.FORM_DATA)


def method_name(operation_id: str, http_method: str, path: str) -> str:
    """
    Имя метода: operationId как есть, иначе глагол + сегменты пути.

    Examples:
        >>> method_name("", "post", "/pets")
        'CreatePets'
        >>> method_name("", "get", "/pets/{petId}")
        'GetPets'
    """
    if operation_id:
        return operation_id

    verb = http_method.lower()
    prefix = VERB_PREFIXES.get(verb, to_pascal_case(verb))
    segments = [
        to_pascal_case(segment)
        for segment in path.split("/")
        if segment and not segment.startswith("{")
    ]
    return prefix + "".join(segments)


class ModelConverter:
    """Конвертер Document -> CodeModel"""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()
        self.resolver = SchemaResolver()

    def convert(self, document: Document) -> CodeModel:
        self.config.validate()
        self.resolver = SchemaResolver(document.components.schemas)

        auth = self.config.authentication
        model = CodeModel(
            namespace=self.config.namespace_name,
            client_name=self.config.client_name,
            base_url=self.base_url(document),
            authentication=Authentication(
                type=auth.type, location=auth.location, name=auth.name
            ),
        )

        for name, schema in document.components.schemas.items():
            self._convert_named_schema(model, name, schema)

        for path, operations in document.paths.items():
            for verb, operation in operations.items():
                model.methods.append(self.convert_operation(path, verb, operation))

        logger.debug(
            "Converted %s: %d models, %d enums, %d aliases, %d methods",
            model.client_name,
            len(model.models),
            len(model.enums),
            len(model.aliases),
            len(model.methods),
        )
        return model

    @staticmethod
    def base_url(document: Document) -> str:
        """URL первого сервера с подставленными значениями переменных"""
        if not document.servers:
            return ""

        server = document.servers[0]

        def substitute(match):
            variable = server.variables.get(match.group(1))
            return variable.default if variable is not None else match.group(0)

        return _SERVER_VARIABLE.sub(substitute, server.url)

    # ---- типы ----

    def map_type(self, schema: Optional[Schema]) -> TypeRef:
        """Отображение схемы в нейтральный тип"""
        if schema is None:
            return TypeRef.any()

        if schema.ref:
            return TypeRef.model(self.resolver.type_name(schema.ref))

        schema_type = (schema.type or "").lower()
        schema_format = (schema.format or "").lower()

        if schema_type == "array":
            if schema.items is None:
                return TypeRef.any()
            return TypeRef.list_of(self.map_type(schema.items))

        if schema_type == "string":
            if schema_format in ("date", "date-time"):
                return TypeRef.of(TypeKind.DATE_TIME)
            if schema_format == "uuid":
                return TypeRef.of(TypeKind.UUID)
            return TypeRef.of(TypeKind.STRING)

        if schema_type == "integer":
            if schema_format == "int64":
                return TypeRef.of(TypeKind.INT64)
            return TypeRef.of(TypeKind.INT32)

        if schema_type == "number":
            if schema_format == "float":
                return TypeRef.of(TypeKind.FLOAT)
            if schema_format == "double":
                return TypeRef.of(TypeKind.DOUBLE)
            return TypeRef.of(TypeKind.DECIMAL)

        if schema_type == "boolean":
            return TypeRef.of(TypeKind.BOOLEAN)

        return TypeRef.any()

    # ---- схемы ----

    def _convert_named_schema(self, model: CodeModel, name: str, schema: Schema):
        clean_name = self.resolver.name_of(name)

        with self.resolver.resolving(_schema_ref(name)):
            converted = self.convert_schema(clean_name, schema)

        if converted is not None:
            model.models.append(converted)
        elif schema.enum:
            model.enums.append(
                ModelEnum(
                    name=clean_name,
                    values=[value for value in schema.enum if value is not None],
                    description=schema.description or "",
                )
            )
        else:
            model.aliases.append(
                TypeAlias(
                    name=clean_name,
                    target=self.map_type(schema),
                    description=schema.description or "",
                )
            )

    def convert_schema(self, name: str, schema: Schema) -> Optional[ModelClass]:
        """
        Модель для именованной схемы или None, если схема не является моделью.

        Порядок проверок: oneOf, anyOf, allOf, объект со свойствами.
        """
        if schema.one_of:
            return self._polymorphic_model(name, schema, schema.one_of, "one")
        if schema.any_of:
            return self._polymorphic_model(name, schema, schema.any_of, "any")
        if schema.all_of:
            return self._all_of_model(name, schema)
        if _is_object(schema):
            return ModelClass(
                name=name,
                properties=self._own_properties(schema),
                description=schema.description or "",
            )
        return None

    def _own_properties(self, schema: Schema) -> List[ModelProperty]:
        required = set(schema.required or [])
        return [
            ModelProperty(
                name=to_pascal_case(wire_name),
                type=self.map_type(property_schema),
                is_required=wire_name in required,
                json_property_name=wire_name,
                description=(property_schema.description or "") if property_schema else "",
            )
            for wire_name, property_schema in (schema.properties or {}).items()
        ]

    def _flatten(self, schema: Schema) -> List[ModelProperty]:
        """
        Свойства схемы с раскрытием $ref и вложенных allOf.

        Повторное имя заменяет прежнее свойство на его же позиции.
        """
        if schema.ref:
            with self.resolver.resolving(schema.ref) as target:
                if target is None:
                    return []
                return self._flatten(target)

        merged: Dict[str, ModelProperty] = {}
        for child in schema.all_of or []:
            for prop in self._flatten(child):
                merged[prop.name] = prop
        for prop in self._own_properties(schema):
            merged[prop.name] = prop
        return list(merged.values())

    def _all_of_model(self, name: str, schema: Schema) -> ModelClass:
        parts = ", ".join(_describe(child) for child in schema.all_of)
        return ModelClass(
            name=name,
            properties=self._flatten(schema),
            description=schema.description
            or f"Represents a schema that is composed of all the following types: {parts}",
        )

    def _polymorphic_model(
        self, name: str, schema: Schema, children: List[Schema], kind: str
    ) -> ModelClass:
        parts = ", ".join(_describe(child) for child in children)
        model = ModelClass(
            name=name,
            is_polymorphic=True,
            description=schema.description
            or f"Represents a schema that can be {kind} of the following types: {parts}",
        )

        properties: Dict[str, ModelProperty] = {}
        discriminator = None

        for child in children:
            for prop in self._flatten(child):
                if prop.name not in properties:
                    properties[prop.name] = prop.model_copy(update={"is_required": False})

            if discriminator is None:
                discriminator = self._declared_discriminator(child)

            if child.ref:
                sub_type = self._sub_type(child.ref)
                if sub_type is not None:
                    model.sub_types.append(sub_type)

        if discriminator is None and schema.discriminator is not None:
            discriminator = schema.discriminator

        model.properties = list(properties.values())
        if discriminator is not None and discriminator.property_name:
            model.discriminator_property = discriminator.property_name
            model.discriminator_mapping = {
                value: self.resolver.type_name(target)
                for value, target in (discriminator.mapping or {}).items()
            }

        return model

    def _declared_discriminator(self, child: Schema):
        if child.discriminator is not None:
            return child.discriminator
        if child.ref:
            target = self.resolver.lookup(child.ref)
            if target is not None:
                return target.discriminator
        return None

    def _sub_type(self, ref: str) -> Optional[ModelClass]:
        sub_name = self.resolver.type_name(ref)
        with self.resolver.resolving(ref) as target:
            if target is None:
                return None
            return self.convert_schema(sub_name, target)

    # ---- операции ----

    def convert_operation(self, path: str, verb: str, operation: Operation) -> ApiMethod:
        method = ApiMethod(
            name=method_name(operation.operation_id, verb, path),
            http_method=verb.upper(),
            path=path,
            summary=operation.summary,
            description=operation.description,
        )

        for parameter in operation.parameters:
            if parameter.location in NOT_METHOD_PARAMETERS or parameter.location is None:
                logger.debug(
                    "Parameter %s (%s) of %s is not a method parameter",
                    parameter.name,
                    parameter.location,
                    method.name,
                )
                continue

            method.parameters.append(
                ApiParameter(
                    name=parameter.name,
                    type=self.map_type(parameter.schema_),
                    location=parameter.location.value,
                    # Параметры пути обязательны всегда
                    is_required=parameter.required
                    or parameter.location == ParameterLocation.PATH,
                    description=parameter.description,
                )
            )

        body = operation.request_body
        if body is not None:
            for media in body.content.values():
                if media.schema_ is not None:
                    method.request_body = ApiParameter(
                        name="request",
                        type=self.map_type(media.schema_),
                        location="body",
                        is_required=body.required,
                        description=body.description,
                    )
                    break

        method.response_type = self._response_type(operation)
        return method

    def _response_type(self, operation: Operation) -> TypeRef:
        for code, response in operation.responses.items():
            if not code.startswith("2"):
                continue
            for media in response.content.values():
                if media.schema_ is not None:
                    return self.map_type(media.schema_)
        return TypeRef.any()


def _schema_ref(name: str) -> str:
    return "#/components/schemas/" + name.replace("~", "~0").replace("/", "~1")


def _is_object(schema: Schema) -> bool:
    if schema.ref or schema.properties is None:
        return False
    return (schema.type or "object").lower() == "object"


def _describe(schema: Schema) -> str:
    if schema.ref:
        return ref_last_segment(schema.ref)
    return schema.type or "object"
