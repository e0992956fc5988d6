"""
@PURPOSE: 标签模块包，提供热门标签查询
"""
