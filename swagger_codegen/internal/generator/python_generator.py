"""
Генерация Python клиента (pydantic модели + aiohttp клиент) из промежуточной модели
"""

import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from ...config import AuthenticationLocation, AuthenticationType
from ..types.code_model import (
    ApiMethod,
    ApiParameter,
    CodeModel,
    ModelClass,
    ModelEnum,
    TypeKind,
    TypeRef,
)
from ..types.models import Class, CodeBlock, CodeFile, Function, Parameter, Project, Variable
from ..utils.naming import python_identifier, to_snake_case, unique_name
from .templates import templates

logger = logging.getLogger(__name__)

MODELS_MODULE = "models"

PRIMITIVES = {
    TypeKind.STRING: "str",
    TypeKind.INT32: "int",
    TypeKind.INT64: "int",
    TypeKind.FLOAT: "float",
    TypeKind.DOUBLE: "float",
    TypeKind.DECIMAL: "Decimal",
    TypeKind.BOOLEAN: "bool",
    TypeKind.DATE_TIME: "datetime",
    TypeKind.UUID: "UUID",
    TypeKind.ANY: "Any",
}

# Имена, занятые импортами сгенерированных модулей
MODULE_RESERVED = {
    "datetime", "Decimal", "Enum", "Annotated", "Any", "Dict", "List", "Optional",
    "Union", "Tuple", "UUID", "BaseModel", "ConfigDict", "Discriminator", "Field",
    "Tag", "TypeAdapter", "ApiRequestError", "ABC", "abstractmethod",
    "aiohttp", "logging", "logger", "quote", "urlencode", "to_json",
}

# Атрибуты BaseModel и имена типов аннотаций, которые нельзя перекрывать полями
FIELD_RESERVED = {
    "datetime", "model_config", "model_fields", "model_computed_fields", "model_extra",
    "model_fields_set", "model_construct", "model_copy", "model_dump", "model_dump_json",
    "model_json_schema", "model_parametrized_name", "model_post_init", "model_rebuild",
    "model_validate", "model_validate_json", "model_validate_strings", "dict", "json",
    "copy", "parse_obj", "parse_raw", "parse_file", "from_orm", "construct", "schema",
    "schema_json", "validate", "update_forward_refs", "fields", "register",
    "str", "int", "float", "bool",
}

CLIENT_RESERVED = {"close", "base_url"}

_PATH_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


def client_module_name(client_name: str) -> str:
    module = python_identifier(to_snake_case(client_name), fallback="api_client")
    return f"{module}_client" if module == MODELS_MODULE else module


class PythonGenerator:
    """Генератор трех файлов: интерфейс, клиент, модели"""

    def __init__(self):
        self.names: Dict[str, str] = {}
        self.used_names: Set[str] = set()

    def generate_all(self, model: CodeModel) -> Dict[str, str]:
        """Имя файла -> текст файла (всегда ровно три файла)"""
        return self.generate_project(model).render()

    def generate_project(self, model: CodeModel) -> Project:
        self.names = {}
        self.used_names = set(MODULE_RESERVED)

        client_class = self._identifier(model.client_name or "ApiClient", "ApiClient")
        interface_class = self._identifier(f"I{client_class}", "IApiClient")
        self._register_types(model)

        module = client_module_name(model.client_name)
        project = Project(name=module)

        method_names = self._method_names(model.methods)

        self._models_file(project, model)
        self._interface_file(project, model, f"{module}_interface", interface_class, method_names)
        self._client_file(
            project, model, module, client_class, interface_class, method_names
        )

        logger.debug(
            "Generated %s: %s",
            client_class,
            ", ".join(code_file.file_name for code_file in project.files),
        )
        return project

    # ---- имена ----

    def _identifier(self, name: str, fallback: str) -> str:
        return unique_name(python_identifier(name, fallback=fallback), self.used_names)

    def _type_name(self, name: str) -> str:
        """Python идентификатор для нейтрального имени типа"""
        if name not in self.names:
            self.names[name] = self._identifier(name, "Model")
        return self.names[name]

    def _register_types(self, model: CodeModel):
        for declared in self._declared_names(model):
            self._type_name(declared)

    @staticmethod
    def _declared_names(model: CodeModel) -> List[str]:
        names = []
        for model_class in model.models:
            names.append(model_class.name)
            names.extend(sub.name for sub in model_class.sub_types)
        names.extend(enum.name for enum in model.enums)
        names.extend(alias.name for alias in model.aliases)
        return names

    @staticmethod
    def _referenced_names(model: CodeModel) -> List[str]:
        refs = []
        for model_class in model.models:
            for owner in [model_class] + list(model_class.sub_types):
                for prop in owner.properties:
                    refs.extend(prop.type.model_names())
                refs.extend(sub.name for sub in owner.sub_types)
        for alias in model.aliases:
            refs.extend(alias.target.model_names())
        for method in model.methods:
            for parameter in method.parameters:
                refs.extend(parameter.type.model_names())
            if method.request_body is not None:
                refs.extend(method.request_body.type.model_names())
            refs.extend(method.response_type.model_names())
        return refs

    def py_type(self, type_ref: TypeRef) -> str:
        if type_ref.kind == TypeKind.LIST:
            item = type_ref.item if type_ref.item is not None else TypeRef.any()
            return str(Variable.wrap(self.py_type(item), "List"))
        if type_ref.kind == TypeKind.MODEL:
            return self._type_name(type_ref.name) if type_ref.name else "Any"
        return PRIMITIVES.get(type_ref.kind, "Any")

    def _method_names(self, methods: List[ApiMethod]) -> List[str]:
        used: Set[str] = set()
        names = []
        for method in methods:
            name = python_identifier(
                to_snake_case(method.name), fallback="call", reserved=CLIENT_RESERVED
            )
            names.append(unique_name(name, used))
        return names

    # ---- models.py ----

    def _models_file(self, project: Project, model: CodeModel):
        models_file = project.add_file(
            f"{MODELS_MODULE}.py",
            header=_header("Models", model),
            imports=[templates.models_imports],
        )

        defined: Set[str] = set()
        rendered_classes: List[str] = []
        assignments: Dict[str, Tuple[str, List[str]]] = {}

        owners = self._sub_type_owners(model.models)

        for enum in model.enums:
            if enum.name in defined:
                continue
            defined.add(enum.name)
            models_file.add_class(self._enum_class(enum, order=80))

        for model_class in model.models:
            owner = owners.get(model_class.name, model_class.name)
            if model_class.name in defined or owner != model_class.name:
                continue
            defined.add(model_class.name)

            if not model_class.is_polymorphic:
                models_file.add_class(self._model_class(model_class, order=70))
                rendered_classes.append(self._type_name(model_class.name))
                continue

            for cls in self._polymorphic_classes(model_class, owners, defined):
                models_file.add_class(cls)
                rendered_classes.append(cls.name)

            expression, depends = self._union_expression(model_class, models_file)
            assignments[self._type_name(model_class.name)] = (expression, depends)

        for alias in model.aliases:
            if alias.name in defined:
                continue
            defined.add(alias.name)
            assignments[self._type_name(alias.name)] = (
                self.py_type(alias.target),
                [self._type_name(name) for name in alias.target.model_names()],
            )

        placeholders = []
        for name in self._referenced_names(model):
            if name not in defined:
                defined.add(name)
                placeholders.append(f"{self._type_name(name)} = Any")
        if placeholders:
            models_file.add_code_block("\n".join(placeholders), order=90)

        ordered = _ordered_assignments(assignments)
        if ordered:
            models_file.add_code_block("\n\n".join(ordered), order=50)

        if rendered_classes:
            models_file.add_code_block(
                "\n".join(f"{name}.model_rebuild()" for name in rendered_classes),
                order=-100,
            )

    @staticmethod
    def _sub_type_owners(models: List[ModelClass]) -> Dict[str, str]:
        """Подтип рендерится внутри первого полиморфного владельца"""
        owners: Dict[str, str] = {}
        for model_class in models:
            if not model_class.is_polymorphic:
                continue
            for sub in model_class.sub_types:
                if not sub.is_polymorphic and sub.name != model_class.name:
                    owners.setdefault(sub.name, model_class.name)
        return owners

    def _enum_class(self, enum: ModelEnum, order: int) -> Class:
        values = list(enum.values)
        if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            inherits = ["int", "Enum"]
        elif all(isinstance(v, str) for v in values):
            inherits = ["str", "Enum"]
        else:
            inherits = ["Enum"]

        cls = Class(
            name=self._type_name(enum.name),
            inherits=inherits,
            description=enum.description or None,
            order=order,
        )

        used: Set[str] = set()
        for value in values:
            member = python_identifier(to_snake_case(str(value)).upper(), fallback="VALUE")
            cls.add_parameter(unique_name(member, used), default=repr(value))
        return cls

    def _model_class(
        self,
        model_class: ModelClass,
        order: int,
        name: Optional[str] = None,
        base: str = "BaseModel",
    ) -> Class:
        cls = Class(
            name=name or self._type_name(model_class.name),
            inherits=[base],
            description=model_class.description or None,
            order=order,
        )
        cls.add_code_block(templates.model_config, order=1)

        used: Set[str] = set()
        for prop in model_class.properties:
            field_name = unique_name(_field_name(prop.name, prop.json_property_name), used)
            field_type = self.py_type(prop.type)

            arguments = [] if prop.is_required else ["default=None"]
            arguments.append(f"alias={prop.json_property_name!r}")
            if prop.description:
                arguments.append(f"description={prop.description!r}")

            cls.add_parameter(
                field_name,
                var_type=field_type if prop.is_required else Variable.wrap(field_type, "Optional"),
                default=f"Field({', '.join(arguments)})",
            )
        return cls

    def _polymorphic_classes(
        self, model_class: ModelClass, owners: Dict[str, str], defined: Set[str]
    ) -> List[Class]:
        """Базовый класс с объединением полей и по подклассу на каждый подтип"""
        base_name = self._identifier(f"{self._type_name(model_class.name)}Base", "ModelBase")
        classes = [self._model_class(model_class, order=70, name=base_name)]

        for sub in model_class.sub_types:
            if owners.get(sub.name) != model_class.name or sub.name in defined:
                continue
            defined.add(sub.name)
            classes.append(self._model_class(sub, order=70, base=base_name))
        return classes

    def _union_expression(
        self, model_class: ModelClass, models_file: CodeFile
    ) -> Tuple[str, List[str]]:
        members = []
        for sub in model_class.sub_types:
            member = self._type_name(sub.name)
            if member not in members:
                members.append(member)

        if not members:
            return f"{self._type_name(model_class.name)}Base", []
        if len(members) == 1:
            return members[0], members

        if not model_class.discriminator_property:
            return f"Union[{', '.join(members)}]", members

        tags = {}
        for value, target in model_class.discriminator_mapping.items():
            tags.setdefault(self._type_name(target), value)

        function = "_" + to_snake_case(self._type_name(model_class.name)) + "_discriminator"
        models_file.add_code_block(
            templates.discriminator.format(
                function=function,
                wire_name=model_class.discriminator_property,
                attribute=self._discriminator_attribute(model_class),
            ),
            order=60,
        )

        tagged = ", ".join(
            f"Annotated[{member}, Tag({tags.get(member, sub_name)!r})]"
            for member, sub_name in zip(members, _unique_sub_names(model_class))
        )
        return f"Annotated[Union[{tagged}], Discriminator({function})]", members

    @staticmethod
    def _discriminator_attribute(model_class: ModelClass) -> str:
        used: Set[str] = set()
        for prop in model_class.properties:
            field_name = unique_name(_field_name(prop.name, prop.json_property_name), used)
            if prop.json_property_name == model_class.discriminator_property:
                return field_name
        return _field_name("", model_class.discriminator_property)

    # ---- интерфейс и клиент ----

    def _signature(self, method: ApiMethod) -> Tuple[List[Parameter], Dict[int, str]]:
        """Параметры Python функции и имена, привязанные к параметрам метода"""
        used = {"self"}
        parameters = [Parameter(name="self")]
        bound: Dict[int, str] = {}

        arguments = list(method.parameters)
        if method.request_body is not None:
            arguments.append(method.request_body)

        for index, argument in enumerate(arguments):
            name = unique_name(
                python_identifier(to_snake_case(argument.name), fallback="param"), used
            )
            bound[index] = name

            annotation = self.py_type(argument.type)
            if argument.is_required:
                parameters.append(Parameter(name=name, var_type=annotation))
            else:
                parameters.append(
                    Parameter(
                        name=name,
                        var_type=Variable.wrap(annotation, "Optional"),
                        default="None",
                    )
                )
        return parameters, bound

    def _interface_file(
        self,
        project: Project,
        model: CodeModel,
        module: str,
        interface_class: str,
        method_names: List[str],
    ):
        interface_file = project.add_file(
            f"{module}.py",
            header=_header("Interface", model),
            imports=[templates.interface_imports],
        )
        cls = interface_file.add_class(
            interface_class,
            inherits=["ABC"],
            description=f"Interface of {model.client_name}",
        )

        for order, (method, name) in enumerate(zip(model.methods, method_names)):
            parameters, _ = self._signature(method)
            cls.add_function(
                Function(
                    name=name,
                    parameters=parameters,
                    response=self.py_type(method.response_type),
                    async_def=True,
                    decorators=["@abstractmethod"],
                    description=method.summary or method.description or None,
                    code=CodeBlock(code="..."),
                    order=-order,
                )
            )

    def _client_file(
        self,
        project: Project,
        model: CodeModel,
        module: str,
        client_class: str,
        interface_class: str,
        method_names: List[str],
    ):
        client_file = project.add_file(
            f"{module}.py",
            header=_header("Client", model),
            imports=[
                templates.client_imports.format(
                    interface_module=f"{module}_interface",
                    interface_class=interface_class,
                )
            ],
        )
        client_file.add_code_block(templates.api_request_error, order=10)

        cls = client_file.add_class(
            client_class,
            inherits=[interface_class],
            description=f"HTTP client of {model.client_name} on aiohttp",
        )

        auth = model.authentication
        authentication = ""
        query_api_key = ""
        if auth.type == AuthenticationType.BEARER:
            authentication = templates.bearer_header
        elif auth.type == AuthenticationType.API_KEY:
            if auth.location == AuthenticationLocation.HEADER:
                authentication = templates.api_key_header.format(name=auth.name)
            elif auth.location == AuthenticationLocation.QUERY:
                # Ключ в query добавляется к каждому запросу
                query_api_key = templates.api_key_query.format(name=auth.name)

        cls.add_code_block(
            templates.client_init.format(
                base_url=model.base_url, authentication=authentication
            ),
            order=1000,
        )
        cls.add_code_block(templates.session_helpers, order=900)

        for order, (method, name) in enumerate(zip(model.methods, method_names)):
            parameters, bound = self._signature(method)
            cls.add_function(
                Function(
                    name=name,
                    parameters=parameters,
                    response=self.py_type(method.response_type),
                    async_def=True,
                    description=method.summary or method.description or None,
                    code=CodeBlock(code=self._method_body(method, bound)),
                    order=-order,
                )
            )

        cls.add_code_block(templates.value_helpers, order=-10000)
        cls.add_code_block(
            templates.send_request.format(query_api_key=query_api_key), order=-10001
        )

    def _method_body(self, method: ApiMethod, bound: Dict[int, str]) -> str:
        by_location: Dict[str, List[Tuple[ApiParameter, str]]] = {}
        for index, parameter in enumerate(method.parameters):
            by_location.setdefault(parameter.location, []).append((parameter, bound[index]))

        lines = [f"_url = {self._path_expression(method.path, by_location.get('path', []))}"]

        query = by_location.get("query", [])
        if query:
            lines.append("_query: List[Tuple[str, Any]] = []")
            for parameter, name in query:
                append = f"_query.append(({parameter.name!r}, {name}))"
                if parameter.is_required:
                    lines.append(append)
                else:
                    lines.extend([f"if {name} is not None:", f"    {append}"])
            lines.append("_url += self._query_string(_query)")

        call_arguments = [repr(method.http_method), "_url", self.py_type(method.response_type)]

        if method.request_body is not None:
            body_name = bound[len(method.parameters)]
            if method.request_body.is_required:
                lines.append(f"_body = self._to_json({body_name})")
            else:
                lines.append(
                    f"_body = self._to_json({body_name}) if {body_name} is not None else None"
                )
            call_arguments.append("body=_body")

        for location, variable in (("header", "_headers"), ("cookie", "_cookies")):
            parameters = by_location.get(location, [])
            if not parameters:
                continue
            lines.append(f"{variable}: Dict[str, str] = {{}}")
            for parameter, name in parameters:
                assign = f"{variable}[{parameter.name!r}] = self._text({name})"
                if parameter.is_required:
                    lines.append(assign)
                else:
                    lines.extend([f"if {name} is not None:", f"    {assign}"])
            call_arguments.append(f"{location}s={variable}")

        lines.append(f"return await self._send_request({', '.join(call_arguments)})")
        return "\n".join(lines)

    @staticmethod
    def _path_expression(path: str, path_parameters: List[Tuple[ApiParameter, str]]) -> str:
        """Шаблон пути -> конкатенация строк с экранированными значениями"""
        bound = {parameter.name: name for parameter, name in path_parameters}

        parts = []
        for index, chunk in enumerate(_PATH_PLACEHOLDER.split(path)):
            # Нечетные элементы - имена из {...}
            if index % 2 and chunk in bound:
                parts.append(f"self._path_value({bound[chunk]})")
            elif index % 2:
                parts.append(repr("{" + chunk + "}"))
            elif chunk:
                parts.append(repr(chunk))

        return " + ".join(parts) if parts else "''"


def _field_name(name: str, wire_name: str) -> str:
    return python_identifier(
        to_snake_case(name or wire_name), fallback="field", reserved=FIELD_RESERVED
    )


def _unique_sub_names(model_class: ModelClass) -> List[str]:
    names = []
    for sub in model_class.sub_types:
        if sub.name not in names:
            names.append(sub.name)
    return names


def _header(kind: str, model: CodeModel) -> str:
    title = f"{kind} of {model.client_name}"
    if model.namespace:
        title += f" ({model.namespace})"
    return title + "\n\nGenerated by swagger_codegen"


def _ordered_assignments(assignments: Dict[str, Tuple[str, List[str]]]) -> List[str]:
    """
    Присваивания уровня модуля в порядке зависимостей.

    Участники циклов становятся Any.
    """
    ordered: List[str] = []
    state: Dict[str, str] = {}
    cyclic: Set[str] = set()

    def visit(name: str, trail: List[str]):
        if state.get(name) == "done":
            return
        if state.get(name) == "visiting":
            cyclic.update(trail[trail.index(name):])
            return

        state[name] = "visiting"
        for dependency in assignments[name][1]:
            if dependency in assignments:
                visit(dependency, trail + [dependency])
        state[name] = "done"
        ordered.append(name)

    for name in assignments:
        visit(name, [name])

    return [
        f"{name} = Any" if name in cyclic else f"{name} = {assignments[name][0]}"
        for name in ordered
    ]
