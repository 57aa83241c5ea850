"""
Application 模块

应用层编排服务。
"""
