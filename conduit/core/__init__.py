"""
@PURPOSE: 核心模块包，包含配置、数据库、安全等基础设施
@OUTLINE:
  - config: 应用配置
  - database: 数据库连接
  - security: 密码哈希和 JWT 工具
  - logging: loguru 日志配置
  - exceptions: 领域异常与全局异常处理器
  - health: 就绪检查
"""
