"""
@PURPOSE: 认证模块包，提供注册、登录、当前用户相关功能
@OUTLINE:
  - router: 认证路由
  - service: 认证业务逻辑
  - schemas: 认证相关的 Pydantic 模型
  - deps: 认证相关的依赖注入 (必需/可选认证)
"""
