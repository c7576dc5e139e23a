"""
Конфигурация генератора API клиента
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import toml

from .errors import ConfigurationError

CONFIG_FILE_NAME = "openapi.toml"
DEFAULT_CLIENT_NAME = "ApiClient"


class AuthenticationType(str, Enum):
    NONE = "none"
    API_KEY = "apiKey"
    BEARER = "bearer"


class AuthenticationLocation(str, Enum):
    NONE = "none"
    HEADER = "header"
    QUERY = "query"


def _enum_value(enum_cls, value, default):
    """Разбор значения enum без учета регистра"""
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value

    for member in enum_cls:
        if str(value).lower() in (member.value.lower(), member.name.lower()):
            return member

    raise ConfigurationError([f"Unknown {enum_cls.__name__} value: {value!r}"])


@dataclass
class AuthenticationConfig:
    """Настройки аутентификации генерируемого клиента"""

    type: AuthenticationType = AuthenticationType.NONE
    location: AuthenticationLocation = AuthenticationLocation.NONE
    name: str = ""

    def __post_init__(self):
        self.type = _enum_value(AuthenticationType, self.type, AuthenticationType.NONE)
        self.location = _enum_value(
            AuthenticationLocation, self.location, AuthenticationLocation.NONE
        )
        self.name = (self.name or "").strip()

    @property
    def enabled(self) -> bool:
        return self.type != AuthenticationType.NONE

    def validation_errors(self) -> list:
        errors = []
        if self.enabled:
            if not self.name:
                errors.append(
                    "Authentication name must be specified when authentication is enabled"
                )
            if (
                self.type == AuthenticationType.API_KEY
                and self.location == AuthenticationLocation.NONE
            ):
                errors.append(
                    "Authentication location must be specified for API Key authentication"
                )
        return errors

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AuthenticationConfig":
        data = data or {}
        return cls(
            type=data.get("type"),
            location=data.get("location"),
            name=data.get("name", ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "location": self.location.value,
            "name": self.name,
        }


@dataclass
class GeneratorConfig:
    """Конфигурация генератора: пространство имен, имя клиента, аутентификация"""

    namespace_name: str = ""
    client_name: str = DEFAULT_CLIENT_NAME
    authentication: AuthenticationConfig = field(default_factory=AuthenticationConfig)

    def __post_init__(self):
        self.namespace_name = (self.namespace_name or "").strip()
        self.client_name = (self.client_name or "").strip() or DEFAULT_CLIENT_NAME
        if isinstance(self.authentication, dict):
            self.authentication = AuthenticationConfig.from_dict(self.authentication)
        elif self.authentication is None:
            self.authentication = AuthenticationConfig()

    def validate(self) -> "GeneratorConfig":
        """Проверка правил аутентификации до начала генерации"""
        errors = self.authentication.validation_errors()
        if errors:
            raise ConfigurationError(errors)
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratorConfig":
        """Создание из словаря (camelCase или snake_case ключи)"""

        def pick(*keys, default=None):
            for key in keys:
                if key in data:
                    return data[key]
            return default

        return cls(
            namespace_name=pick("namespaceName", "namespace_name", "namespace", default=""),
            client_name=pick("clientName", "client_name", default=DEFAULT_CLIENT_NAME),
            authentication=AuthenticationConfig.from_dict(
                pick("authentication", "auth", default={})
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespaceName": self.namespace_name,
            "clientName": self.client_name,
            "authentication": self.authentication.to_dict(),
        }

    @classmethod
    def from_file(
        cls, config_path: str = CONFIG_FILE_NAME, search_dir: str = None
    ) -> Optional["GeneratorConfig"]:
        """Загрузка конфигурации из toml файла"""
        # Если указана директория для поиска, ищем конфиг там
        if search_dir and os.path.isdir(search_dir):
            config_in_dir = os.path.join(search_dir, CONFIG_FILE_NAME)
            if os.path.exists(config_in_dir):
                config_path = config_in_dir

        if not os.path.exists(config_path):
            return None

        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as exc:
            raise ConfigurationError([f"Cannot read {config_path}: {exc}"]) from exc

        return cls.from_dict(config_data.get("generator", config_data))

    def save_to_file(self, config_path: str = CONFIG_FILE_NAME) -> None:
        """Сохранение конфигурации в файл"""
        with open(config_path, "w") as f:
            toml.dump({"generator": self.to_dict()}, f)
