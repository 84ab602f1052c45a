"""
微信小程序登录客户端
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from domain.errors import RemoteUnavailableError

logger = logging.getLogger(__name__)


class WechatClient:
    """微信小程序 code2session 客户端"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        login_url: str,
        appid: Optional[str],
        secret: Optional[str],
        grant_type: str = "authorization_code",
        timeout: float = 5.0
    ):
        """
        初始化微信客户端

        Args:
            http_client: 共享的 httpx 异步客户端
            login_url: jscode2session 接口地址
            appid: 小程序 appid
            secret: 小程序 secret
            grant_type: 授权类型
            timeout: 请求超时（秒）
        """
        self.http_client = http_client
        self.login_url = login_url
        self.appid = appid
        self.secret = secret
        self.grant_type = grant_type
        self.timeout = timeout

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient, settings) -> "WechatClient":
        """根据应用配置创建客户端"""
        return cls(
            http_client=http_client,
            login_url=settings.WECHAT_LOGIN_URL,
            appid=settings.WECHAT_APPID,
            secret=settings.WECHAT_SECRET,
            grant_type=settings.WECHAT_GRANT_TYPE,
            timeout=settings.WECHAT_TIMEOUT,
        )

    async def code2session(self, code: str) -> Dict[str, Any]:
        """
        用登录凭证换取 openid

        Args:
            code: 小程序 wx.login 获取的临时凭证

        Returns:
            包含 openid、unionid、session_key 的字典

        Raises:
            RemoteUnavailableError: 请求失败或微信返回错误
        """
        params = {
            "appid": self.appid,
            "secret": self.secret,
            "js_code": code,
            "grant_type": self.grant_type,
        }
        try:
            response = await self.http_client.get(self.login_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            # 微信接口返回的 Content-Type 为 text/plain，直接按 JSON 解析
            body = response.json()
        except httpx.HTTPError as e:
            logger.error(f"微信登录请求失败: {e}")
            raise RemoteUnavailableError(f"微信登录请求失败: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"微信登录响应不是合法JSON: {response.text[:500]}")
            raise RemoteUnavailableError("微信登录响应格式错误") from e

        if not isinstance(body, dict):
            raise RemoteUnavailableError("微信登录响应格式错误")

        errcode = body.get("errcode")
        if errcode:
            errmsg = body.get("errmsg", "")
            logger.error(f"微信登录失败: errcode={errcode}, errmsg={errmsg}")
            raise RemoteUnavailableError(f"微信登录失败: {errmsg}")

        openid = body.get("openid")
        if not openid:
            logger.error(f"微信登录响应缺少openid: {body}")
            raise RemoteUnavailableError("获取openid失败")

        return {
            "openid": openid,
            "unionid": body.get("unionid"),
            "session_key": body.get("session_key"),
        }
