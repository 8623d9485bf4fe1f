"""
API 安全模块：
- 负责修改指示器状态的端点的 API 密钥认证。
- 配置中的 auth_keys 为空时认证被禁用。
"""

from typing import Optional
from fastapi import Request, HTTPException, Security
from fastapi.security.api_key import APIKeyHeader, APIKeyQuery

API_KEY_NAME = "Authorization"
API_KEY_QUERY_NAME = "key"

api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)
api_key_query = APIKeyQuery(name=API_KEY_QUERY_NAME, auto_error=False)

async def verify_api_key(
    request: Request,
    key_from_header: Optional[str] = Security(api_key_header),
    key_from_query: Optional[str] = Security(api_key_query),
) -> Optional[str]:
    """
    从 Authorization: Bearer ... 或 ?key=... 获取 API 密钥并验证。
    """
    auth_keys = request.app.state.settings["auth_keys"]
    if not auth_keys:
        return None

    if key_from_header and key_from_header.startswith("Bearer "):
        token = key_from_header[len("Bearer "):]
        if token in auth_keys:
            return token

    if key_from_query and key_from_query in auth_keys:
        return key_from_query

    raise HTTPException(
        status_code=401,
        detail="Invalid or missing API Key. Provide it via 'Authorization: Bearer <key>' or '?key=<key>'.",
    )
