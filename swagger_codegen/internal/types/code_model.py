"""
Промежуточная модель кода, не зависящая от целевого языка.

Ссылок на модели документа нет: типы связаны только по имени,
поэтому дерево целиком сериализуется через model_dump() и сравнивается в тестах.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from ...config import AuthenticationLocation, AuthenticationType
from ..utils.naming import to_camel_case


class TypeKind(str, Enum):
    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE_TIME = "date-time"
    UUID = "uuid"
    LIST = "list"
    MODEL = "model"
    ANY = "any"


class TypeRef(BaseModel):
    """Нейтральная ссылка на тип"""

    model_config = ConfigDict(frozen=True)

    kind: TypeKind = TypeKind.ANY
    name: Optional[str] = None
    item: Optional["TypeRef"] = None

    @classmethod
    def of(cls, kind: TypeKind) -> "TypeRef":
        return cls(kind=kind)

    @classmethod
    def model(cls, name: str) -> "TypeRef":
        return cls(kind=TypeKind.MODEL, name=name)

    @classmethod
    def list_of(cls, item: "TypeRef") -> "TypeRef":
        return cls(kind=TypeKind.LIST, item=item)

    @classmethod
    def any(cls) -> "TypeRef":
        return cls(kind=TypeKind.ANY)

    @property
    def is_any(self) -> bool:
        return self.kind == TypeKind.ANY

    def model_names(self) -> List[str]:
        """Имена моделей, на которые ссылается тип (включая элементы списков)"""
        if self.kind == TypeKind.MODEL and self.name:
            return [self.name]
        if self.kind == TypeKind.LIST and self.item is not None:
            return self.item.model_names()
        return []

    def __str__(self) -> str:
        if self.kind == TypeKind.MODEL:
            return self.name or "Any"
        if self.kind == TypeKind.LIST:
            return f"List[{self.item if self.item is not None else 'Any'}]"
        if self.kind == TypeKind.ANY:
            return "Any"
        return self.kind.value


TypeRef.model_rebuild()


class Authentication(BaseModel):
    type: AuthenticationType = AuthenticationType.NONE
    location: AuthenticationLocation = AuthenticationLocation.NONE
    name: str = ""


class ModelProperty(BaseModel):
    name: str
    type: TypeRef = TypeRef()
    is_required: bool = False
    json_property_name: str = ""
    description: str = ""

    @model_validator(mode="after")
    def _default_wire_name(self) -> "ModelProperty":
        if not self.json_property_name:
            self.json_property_name = to_camel_case(self.name)
        return self


class ModelClass(BaseModel):
    name: str
    properties: List[ModelProperty] = []
    description: str = ""

    is_polymorphic: bool = False
    discriminator_property: Optional[str] = None
    # значение дискриминатора -> имя подтипа
    discriminator_mapping: Dict[str, str] = {}
    sub_types: List["ModelClass"] = []

    def get_property(self, name: str) -> Optional[ModelProperty]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


ModelClass.model_rebuild()


class ModelEnum(BaseModel):
    name: str
    values: List[Any] = []
    description: str = ""


class TypeAlias(BaseModel):
    name: str
    target: TypeRef = TypeRef()
    description: str = ""


class ApiParameter(BaseModel):
    name: str
    type: TypeRef = TypeRef()
    location: str = "query"
    is_required: bool = False
    description: str = ""


class ApiMethod(BaseModel):
    name: str
    http_method: str
    path: str
    summary: str = ""
    description: str = ""
    parameters: List[ApiParameter] = []
    request_body: Optional[ApiParameter] = None
    response_type: TypeRef = TypeRef()


class CodeModel(BaseModel):
    """Все, что нужно генератору: клиент, модели, методы"""

    namespace: str = ""
    client_name: str = "ApiClient"
    base_url: str = ""
    authentication: Authentication = Authentication()

    models: List[ModelClass] = []
    methods: List[ApiMethod] = []
    enums: List[ModelEnum] = []
    aliases: List[TypeAlias] = []

    def find_model(self, name: str) -> Optional[ModelClass]:
        for model in self.models:
            if model.name == name:
                return model
        return None
