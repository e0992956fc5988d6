"""
@PURPOSE: 测试工具模块, 提供 API 调用辅助函数
@OUTLINE:
  - api: 注册用户、创建文章等常用请求
"""

from utils.api import auth_headers, create_article, register_user

__all__ = [
    "auth_headers",
    "create_article",
    "register_user",
]
