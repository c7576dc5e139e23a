class Templates:
    """Шаблоны для генерации файлов"""

    models_imports = """from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag"""

    model_config = "model_config = ConfigDict(populate_by_name=True)"

    discriminator = """def {function}(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get({wire_name!r})
    return getattr(value, {attribute!r}, None)"""

    interface_imports = """from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from .models import *"""

    client_imports = """import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode
from uuid import UUID

import aiohttp
from pydantic import TypeAdapter
from pydantic_core import to_json

from .models import *
from .{interface_module} import {interface_class}

logger = logging.getLogger(__name__)"""

    api_request_error = """class ApiRequestError(Exception):
    \"\"\"Ответ сервера со статусом вне диапазона 2xx\"\"\"

    def __init__(self, message, path, status_code, response_data=None):
        self.message = message
        self.path = path
        self.status_code = status_code
        self.response_data = response_data
        super().__init__(f"[{status_code}] {path}: {message}")"""

    client_init = """def __init__(
    self,
    base_url: str = {base_url!r},
    authentication_value: Optional[str] = None,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = 30,
) -> None:
    self.base_url = base_url.rstrip("/")
    self._authentication_value = authentication_value
    self._session = session
    self._owns_session = session is None
    self._timeout = aiohttp.ClientTimeout(total=timeout)
    self._default_headers: Dict[str, str] = {{}}{authentication}"""

    bearer_header = """
    if authentication_value:
        self._default_headers["Authorization"] = f"Bearer {authentication_value}\""""

    api_key_header = """
    if authentication_value:
        self._default_headers[{name!r}] = authentication_value"""

    api_key_query = """
    if self._authentication_value:
        separator = "&" if "?" in url else "?"
        url += separator + urlencode({{{name!r}: self._authentication_value}})"""

    session_helpers = """def _ensure_session(self) -> aiohttp.ClientSession:
    if self._session is None or self._session.closed:
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        self._owns_session = True
    return self._session

async def close(self) -> None:
    \"\"\"Закрытие собственной сессии (переданная снаружи сессия не закрывается)\"\"\"
    if self._session is not None and self._owns_session and not self._session.closed:
        await self._session.close()
    self._session = None

async def __aenter__(self):
    return self

async def __aexit__(self, exc_type, exc_val, exc_tb):
    await self.close()"""

    value_helpers = """@staticmethod
def _text(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)

@classmethod
def _path_value(cls, value: Any) -> str:
    return quote(cls._text(value), safe="")

@classmethod
def _query_string(cls, params: List[Tuple[str, Any]]) -> str:
    pairs = []
    for name, value in params:
        values = value if isinstance(value, (list, tuple)) else [value]
        pairs.extend((name, cls._text(item)) for item in values)
    return "?" + urlencode(pairs) if pairs else ""

@staticmethod
def _to_json(value: Any) -> str:
    return to_json(value, by_alias=True, exclude_none=True).decode()"""

    send_request = """async def _send_request(
    self,
    method: str,
    url: str,
    response_type: Any = None,
    body: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    cookies: Optional[Dict[str, str]] = None,
) -> Any:{query_api_key}
    request_headers = {{**self._default_headers, **(headers or {{}})}}
    if body is not None:
        request_headers.setdefault("Content-Type", "application/json")

    session = self._ensure_session()
    logger.debug("Making %s request to %s%s", method, self.base_url, url)

    async with session.request(
        method,
        self.base_url + url,
        data=body,
        headers=request_headers,
        cookies=cookies or None,
    ) as response:
        content = await response.text()
        logger.debug("Response status: %s", response.status)
        if not 200 <= response.status < 300:
            raise ApiRequestError(
                response.reason or "Request failed",
                path=url,
                status_code=response.status,
                response_data=content,
            )

    if response_type is None or not content.strip():
        return None
    return TypeAdapter(response_type).validate_json(content)"""


templates = Templates()
