"""
@PURPOSE: 认证相关的 Pydantic 模型定义 (RealWorld {"user": {...}} 信封)
@OUTLINE:
  - class UserRegister / UserRegisterRequest: 用户注册请求
  - class UserLogin / UserLoginRequest: 用户登录请求
  - class UserUpdate / UserUpdateRequest: 用户资料更新请求
  - class UserWithToken / UserResponse: 用户信息响应 (含令牌)
@DEPENDENCIES:
  - 内部: conduit.core.schemas
  - 外部: pydantic
"""

from __future__ import annotations

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from conduit.core.schemas import USERNAME_PATTERN

_url_adapter = TypeAdapter(AnyHttpUrl)


class UserRegister(BaseModel):
    """用户注册请求."""

    username: str = Field(..., min_length=3, max_length=20, pattern=USERNAME_PATTERN, description="用户名")
    email: EmailStr = Field(..., description="邮箱")
    password: str = Field(..., min_length=8, max_length=100, description="密码")


class UserRegisterRequest(BaseModel):
    user: UserRegister


class UserLogin(BaseModel):
    """用户登录请求."""

    email: EmailStr = Field(..., description="邮箱")
    password: str = Field(..., min_length=1, description="密码")


class UserLoginRequest(BaseModel):
    user: UserLogin


class UserUpdate(BaseModel):
    """用户资料更新请求, 所有字段可选."""

    email: EmailStr | None = Field(default=None, description="邮箱")
    username: str | None = Field(
        default=None, min_length=3, max_length=20, pattern=USERNAME_PATTERN, description="用户名"
    )
    password: str | None = Field(default=None, min_length=8, max_length=100, description="新密码")
    bio: str | None = Field(default=None, max_length=500, description="个人简介")
    image: str | None = Field(default=None, max_length=500, description="头像 URL")

    @field_validator("image")
    @classmethod
    def validate_image(cls, value: str | None) -> str | None:
        """头像必须是 http(s) URL, 空字符串表示清空."""
        if value is None or value == "":
            return value
        try:
            _url_adapter.validate_python(value)
        except ValidationError:
            raise ValueError("image must be a valid URL") from None
        return value


class UserUpdateRequest(BaseModel):
    user: UserUpdate


class UserWithToken(BaseModel):
    """用户信息 (RealWorld 规范不包含 id)."""

    username: str = Field(..., description="用户名")
    email: str = Field(..., description="邮箱")
    bio: str = Field(default="", description="个人简介")
    image: str = Field(default="", description="头像 URL")
    token: str = Field(..., description="JWT 令牌")


class UserResponse(BaseModel):
    """用户信息响应."""

    user: UserWithToken
