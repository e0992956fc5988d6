"""
@PURPOSE: 用户资料与关注模块
@OUTLINE:
  - router: 资料查询、关注/取消关注路由
  - service: 关注关系业务逻辑
  - schemas: 资料响应模型
"""
