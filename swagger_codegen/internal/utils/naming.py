"""Утилиты нормализации имен"""

import keyword
import re
from typing import Iterable, Optional, Set

_WORD_SEPARATOR = re.compile(r"[^A-Za-z0-9]+")


def split_words(name: str) -> list:
    """Разбивает имя по любым последовательностям не буквенно-цифровых символов"""
    if not name:
        return []
    return [word for word in _WORD_SEPARATOR.split(name) if word]


def to_pascal_case(name: str) -> str:
    """
    PascalCase преобразование, общее для схем, свойств и методов.

    Каждое слово получает заглавную первую букву, остаток слова не меняется.

    Examples:
        >>> to_pascal_case("pet-store_api")
        'PetStoreApi'
        >>> to_pascal_case("petId")
        'PetId'
    """
    return "".join(word[0].upper() + word[1:] for word in split_words(name))


def to_camel_case(name: str) -> str:
    """
    Имя поля на проводе (JSON) по умолчанию: camelCase от PascalCase.

    Examples:
        >>> to_camel_case("PetId")
        'petId'
        >>> to_camel_case("created_at")
        'createdAt'
    """
    pascal = to_pascal_case(name)
    if not pascal:
        return ""
    return pascal[0].lower() + pascal[1:]


def to_snake_case(name: str) -> str:
    """Преобразование в snake_case с учетом аббревиатур (HTTPError -> http_error)"""
    name = "_".join(split_words(name))

    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1)
    s3 = re.sub("([A-Z]+)([A-Z][a-z])", r"\1_\2", s2)
    s4 = re.sub("_+", "_", s3)
    return s4.strip("_").lower()


def python_identifier(
    name: str,
    fallback: str = "value",
    reserved: Optional[Iterable[str]] = None,
) -> str:
    """Делает из имени валидный идентификатор Python"""
    identifier = re.sub(r"\W", "_", name or "", flags=re.ASCII)

    if not identifier or identifier.strip("_") == "":
        identifier = fallback
    if identifier[0].isdigit():
        identifier = f"{fallback}_{identifier}"

    if keyword.iskeyword(identifier):
        identifier += "_"
    if reserved and identifier in set(reserved):
        identifier += "_"

    return identifier


def unique_name(name: str, used: Set[str]) -> str:
    """Возвращает имя, не встречавшееся в used, и регистрирует его"""
    candidate = name
    index = 2
    while candidate in used:
        candidate = f"{name}{index}"
        index += 1
    used.add(candidate)
    return candidate
