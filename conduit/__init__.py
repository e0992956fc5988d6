"""
@PURPOSE: Conduit (RealWorld) 博客平台后端
@OUTLINE:
  - main: FastAPI 应用入口
  - cli: 命令行工具
  - core / models: 基础设施与数据模型
  - auth / profiles / articles / comments / tags: 业务模块
"""

__version__ = "1.0.0"
