"""
@PURPOSE: 评论模块包，提供文章评论的查询、发表与删除
@OUTLINE:
  - router: 评论路由
  - service: 评论业务逻辑
  - schemas: 评论相关的 Pydantic 模型
"""
