"""Дерево генерируемого Python кода: переменные, параметры, функции, классы, файлы"""

import textwrap
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, field_validator

INDENT = "    "


def docstring(text: str) -> str:
    """Тройные кавычки с экранированием содержимого"""
    text = (text or "").strip().replace("\\", "\\\\").replace('"', '\\"')
    if "\n" in text:
        return '"""\n' + text + '\n"""'
    return f'"""{text}"""'


class Variable(BaseModel):
    """Аннотация типа: List[int], Optional[Pet], Union[A, B]"""

    value: List[Union["Variable", str]] = []
    wrap_name: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def value_check(cls, value):
        if not isinstance(value, list):
            return [value]
        return value

    @classmethod
    def wrap(cls, value: Union["Variable", str], wrap_name: str) -> "Variable":
        return cls(value=value, wrap_name=wrap_name)

    def __str__(self) -> str:
        inner = ", ".join(str(item) for item in self.value)
        if self.wrap_name is None:
            return inner
        return f"{self.wrap_name}[{inner}]" if inner else self.wrap_name


Variable.model_rebuild()


class Parameter(BaseModel):
    name: str

    default: Optional[str] = None
    var_type: Optional[Union[Variable, str]] = None

    order: int = 0

    def __str__(self) -> str:
        return (
            self.name
            + (f": {self.var_type}" if self.var_type else "")
            + (f" = {self.default}" if self.default is not None else "")
        )


class CodeBlock(BaseModel):
    order: int = 0
    code: str = "pass"

    def __str__(self):
        return self.code.replace("\t", INDENT)


class Function(BaseModel):
    name: str
    parameters: List[Parameter] = []
    response: Optional[str] = "None"

    async_def: bool = False
    decorators: List[str] = []
    description: Optional[str] = None

    code: CodeBlock = CodeBlock(code="pass")
    order: int = 0

    def ordered_parameters(self) -> List[Parameter]:
        # Параметры без значения по умолчанию идут первыми
        return sorted(self.parameters, key=lambda p: p.default is not None)

    def __str__(self) -> str:
        parameters = self.ordered_parameters()
        if len(parameters) > 1:
            signature = (
                "(\n"
                + "".join(f"{INDENT}{parameter},\n" for parameter in parameters)
                + ")"
            )
        else:
            signature = "(" + "".join(str(p) for p in parameters) + ")"

        lines = list(self.decorators)
        lines.append(
            f"{'async ' if self.async_def else ''}def {self.name}{signature}"
            + (f" -> {self.response}" if self.response else "")
            + ":"
        )

        body = []
        if self.description:
            body.append(docstring(self.description))
        body.append(str(self.code))

        return "\n".join(lines) + "\n" + textwrap.indent("\n".join(body), INDENT)


class Class(BaseModel):
    name: str
    description: Optional[str] = None

    functions: Dict[str, Function] = {}
    code_blocks: List[CodeBlock] = []
    parameters: List[Parameter] = []

    inherits: List[str] = []

    order: int = 0

    def __str__(self) -> str:
        members = sorted(
            self.parameters + self.code_blocks + list(self.functions.values()),
            key=lambda x: x.order,
            reverse=True,
        )

        chunks = []
        if self.description:
            chunks.append(docstring(self.description))

        # Подряд идущие поля выводятся без пустых строк между ними
        fields: List[str] = []
        for member in members:
            if isinstance(member, Parameter):
                fields.append(str(member))
                continue
            if fields:
                chunks.append("\n".join(fields))
                fields = []
            chunks.append(str(member))
        if fields:
            chunks.append("\n".join(fields))

        body = "\n\n".join(chunks) if chunks else "pass"

        return (
            f"class {self.name}"
            + (f"({', '.join(self.inherits)})" if self.inherits else "")
            + ":\n"
            + textwrap.indent(body, INDENT)
        )

    def add_function(self, function: Union[Function, str], **kwargs) -> Function:
        if isinstance(function, str):
            function = Function(name=function, **kwargs)

        self.functions[function.name] = function
        return function

    def add_code_block(self, code_block: Union[CodeBlock, str], **kwargs) -> "Class":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.code_blocks.append(code_block)
        return self

    def add_parameter(self, parameter: Union[Parameter, str], **kwargs) -> Parameter:
        if isinstance(parameter, str):
            parameter = Parameter(name=parameter, **kwargs)

        self.parameters.append(parameter)
        return parameter


class CodeFile(BaseModel):
    file_name: str

    header: Optional[str] = None
    imports: List[str] = []
    classes: Dict[str, Class] = {}
    code_blocks: List[CodeBlock] = []

    def __str__(self) -> str:
        members = sorted(
            self.code_blocks + list(self.classes.values()),
            key=lambda x: x.order,
            reverse=True,
        )

        chunks = []
        if self.header:
            chunks.append(docstring(self.header))
        if self.imports:
            chunks.append("\n".join(self.imports))
        chunks.extend(text for text in map(str, members) if text.strip())

        text = "\n\n\n".join(chunks).replace("\t", INDENT)
        return "\n".join(line.rstrip() for line in text.splitlines()) + "\n"

    def add_class(self, cls: Union[Class, str], **kwargs) -> Class:
        if isinstance(cls, str):
            cls = Class(name=cls, **kwargs)

        self.classes[cls.name] = cls
        return cls

    def add_code_block(
        self, code_block: Union[CodeBlock, str], **kwargs
    ) -> "CodeFile":
        if isinstance(code_block, str):
            code_block = CodeBlock(code=code_block, **kwargs)

        self.code_blocks.append(code_block)
        return self


class Project(BaseModel):
    name: str
    files: List[CodeFile] = []

    def add_file(self, file_name: str, **kwargs) -> CodeFile:
        code_file = CodeFile(file_name=file_name, **kwargs)
        self.files.append(code_file)
        return code_file

    def render(self) -> Dict[str, str]:
        """Имя файла -> текст"""
        return {code_file.file_name: str(code_file) for code_file in self.files}
