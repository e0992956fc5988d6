"""
@PURPOSE: 文章模块, 提供文章 CRUD、列表/订阅流与收藏功能
@OUTLINE:
  - router: 文章路由
  - service: 文章业务逻辑 (含 slug 生成)
  - schemas: 文章请求/响应模型
"""
